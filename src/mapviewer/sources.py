"""Source resolution — layer key to dataset URL or local path.

Precedence:
    1. local override (only when ``use_local_data`` is on)
    2. remote release URL table
    3. ``default_base`` + the fixed per-key filename
    4. a bundled relative file, for the layers that ship one
    5. None

Tables may also be keyed by a legacy name (``cantonesNbiTopo``); the
layer key wins when both are present.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

DEFAULT_FILENAMES: dict[str, str] = {
    "provincias": "provincias_simplificado.geojson",
    "cantonesNbi": "cantones_nbi_mayor_50.topo.json",
    "violencia": "total_casos_violencia.geojson",
    "otrasNacionalidades": "total_estudiantes_otras_nacionalidades.geojson",
    "ieNoAtendidas": "ie_fiscales_no_atendidas.geojson",
    "servicios": "servicios_agua_luz.geojson",
}

KEY_ALIASES: dict[str, tuple[str, ...]] = {
    "cantonesNbi": ("cantonesNbiTopo",),
}

# Read relative to the fetcher's data directory
FALLBACK_PATHS: dict[str, str] = {
    "provincias": "provincias_simplificado.geojson",
}


@dataclass(frozen=True)
class SourceResolver:
    use_local_data: bool = False
    local_paths: Mapping[str, str] = field(default_factory=dict)
    layer_urls: Mapping[str, str] = field(default_factory=dict)
    default_base: str = ""
    filenames: Mapping[str, str] = field(default_factory=lambda: dict(DEFAULT_FILENAMES))
    aliases: Mapping[str, tuple[str, ...]] = field(default_factory=lambda: dict(KEY_ALIASES))
    fallbacks: Mapping[str, str] = field(default_factory=lambda: dict(FALLBACK_PATHS))

    def resolve(self, key: str) -> str | None:
        names = (key, *self.aliases.get(key, ()))
        if self.use_local_data:
            local = self._lookup(self.local_paths, names)
            if local:
                return local
        url = self._lookup(self.layer_urls, names)
        if url:
            return url
        filename = self._lookup(self.filenames, names)
        if self.default_base and filename:
            return self.default_base + filename
        return self.fallbacks.get(key) or None

    __call__ = resolve

    @staticmethod
    def _lookup(table: Mapping[str, str], names: tuple[str, ...]) -> str | None:
        for name in names:
            if table.get(name):
                return table[name]
        return None

    @classmethod
    def from_settings(cls, settings) -> "SourceResolver":
        return cls(
            use_local_data=settings.use_local_data,
            local_paths=dict(settings.local_paths),
            layer_urls=dict(settings.layer_urls),
            default_base=settings.default_release_base,
        )
