"""Configuration management using Pydantic settings."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Visor temático"
    debug: bool = False

    # Data sources: local override, then release URLs, then default base
    use_local_data: bool = False
    local_paths: dict[str, str] = {}
    layer_urls: dict[str, str] = {}
    default_release_base: str = ""
    data_dir: Path = Path("./data")
    fetch_timeout: float = 30.0

    # Coordinate sanity check
    geometry_sample_cap: int = 2000
    geometry_bad_fraction: float = 0.2
    reprojection_enabled: bool = True
    utm_zone: int = 17
    utm_south: bool = True      # EPSG:32717

    # Controls checked when the viewer opens
    initial_layers: list[str] = ["provincias"]

    # Polygon labels
    label_min_zoom: float = 8.0
    label_min_font: float = 10.0
    label_max_font: float = 16.0
    label_font_step: float = 1.5


settings = Settings()
