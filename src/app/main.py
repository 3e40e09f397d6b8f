"""Thematic map viewer — FastAPI application.

Wires the layer engine (source resolution, fetcher, coordinate check,
pipeline, toggle controller) to the HTTP layer API.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from loguru import logger

from app.config import Settings, settings
from app.routers.layers import router as layers_router
from mapviewer.fetch import DataFetcher
from mapviewer.geometry import GeometryNormalizer, utm_reprojector
from mapviewer.labels import LabelRule
from mapviewer.layers import (
    DEFAULT_SPECS,
    LayerPipeline,
    LayerRegistry,
    MapPanel,
    RenderSurface,
    ToggleController,
)
from mapviewer.sources import SourceResolver


def create_controller(config: Settings, fetcher: DataFetcher | None = None) -> ToggleController:
    """Build a ToggleController for the default layer catalogue."""
    reprojector = None
    if config.reprojection_enabled:
        reprojector = utm_reprojector(config.utm_zone, config.utm_south)

    pipeline = LayerPipeline(
        resolver=SourceResolver.from_settings(config),
        fetcher=fetcher or DataFetcher(data_dir=config.data_dir, timeout=config.fetch_timeout),
        normalizer=GeometryNormalizer(
            reprojector=reprojector,
            sample_cap=config.geometry_sample_cap,
            bad_fraction=config.geometry_bad_fraction,
        ),
        label_rule=LabelRule(
            min_zoom=config.label_min_zoom,
            min_font=config.label_min_font,
            max_font=config.label_max_font,
            font_step=config.label_font_step,
        ),
    )

    registry = LayerRegistry(DEFAULT_SPECS)
    panel = MapPanel()
    for key in config.initial_layers:
        if key not in registry:
            logger.warning(f"Unknown initial layer: {key}")
            continue
        panel.set_control(registry.spec(key).control_id, True)

    return ToggleController(registry, pipeline, surface=RenderSurface(), panel=panel)


def create_app(config: Settings | None = None, controller: ToggleController | None = None) -> FastAPI:
    config = config or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler."""
        logger.info(f"{config.app_name} starting")
        app.state.controller = controller or create_controller(config)
        await app.state.controller.activate_checked()
        yield
        logger.info(f"{config.app_name} stopped")

    app = FastAPI(
        title=config.app_name,
        description="Thematic map viewer",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(layers_router)

    @app.get("/", response_class=HTMLResponse)
    async def root():
        """Landing page pointing at the layer API."""
        return HTMLResponse(
            content=(
                f"<html><body><h1>{config.app_name}</h1>"
                f'<p><a href="/api/layers">/api/layers</a> · <a href="/docs">/docs</a></p>'
                f"</body></html>"
            )
        )

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


app = create_app()
