"""Tests for source resolution precedence."""

import pytest

from mapviewer.sources import SourceResolver


@pytest.mark.unit
class TestSourceResolver:
    """local override -> release table -> default base -> None."""

    def test_local_override_only_when_enabled(self):
        resolver = SourceResolver(
            use_local_data=False,
            local_paths={"provincias": "data/provincias.geojson"},
            layer_urls={"provincias": "https://example.org/prov.geojson"},
        )
        assert resolver.resolve("provincias") == "https://example.org/prov.geojson"

        local = SourceResolver(
            use_local_data=True,
            local_paths={"provincias": "data/provincias.geojson"},
            layer_urls={"provincias": "https://example.org/prov.geojson"},
        )
        assert local.resolve("provincias") == "data/provincias.geojson"

    def test_release_table_before_default_base(self):
        resolver = SourceResolver(
            layer_urls={"violencia": "https://cdn.example.org/v.geojson"},
            default_base="https://example.org/releases/",
        )
        assert resolver("violencia") == "https://cdn.example.org/v.geojson"

    def test_default_base_with_fixed_filename(self):
        resolver = SourceResolver(default_base="https://example.org/releases/")
        assert resolver("cantonesNbi") == "https://example.org/releases/cantones_nbi_mayor_50.topo.json"

    def test_unknown_key_without_tables_is_none(self):
        resolver = SourceResolver(default_base="https://example.org/releases/")
        assert resolver("serviciosAgua") is None

    def test_nothing_configured(self):
        assert SourceResolver().resolve("violencia") is None

    def test_provinces_fall_back_to_bundled_file(self):
        assert SourceResolver().resolve("provincias") == "provincias_simplificado.geojson"
        resolver = SourceResolver(default_base="https://example.org/releases/")
        assert resolver("provincias") == "https://example.org/releases/provincias_simplificado.geojson"

    def test_legacy_topology_key(self):
        resolver = SourceResolver(layer_urls={"cantonesNbiTopo": "https://cdn.example.org/c.topo.json"})
        assert resolver("cantonesNbi") == "https://cdn.example.org/c.topo.json"

        local = SourceResolver(
            use_local_data=True,
            local_paths={"cantonesNbiTopo": "old.topo.json", "cantonesNbi": "new.topo.json"},
        )
        assert local("cantonesNbi") == "new.topo.json"

    def test_empty_entries_fall_through(self):
        resolver = SourceResolver(
            use_local_data=True,
            local_paths={"servicios": ""},
            layer_urls={"servicios": ""},
            default_base="https://example.org/",
        )
        assert resolver("servicios") == "https://example.org/servicios_agua_luz.geojson"
