"""Unit tests for the layer API router.

Layers are built through the real pipeline on top of an in-memory fetcher
(no external HTTP calls).
"""
from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import ValidationError

from app.config import Settings
from app.main import create_app, create_controller
from app.routers.layers import ToggleRequest, router
from mapviewer.errors import TransportError
from mapviewer.layers import DEFAULT_SPECS, LayerPipeline, LayerRegistry, ToggleController
from mapviewer.labels import LabelRule

VIOLENCE = {
    "type": "FeatureCollection",
    "features": [
        {
            "type": "Feature",
            "id": "ue-1",
            "geometry": {"type": "Point", "coordinates": [-78.5, -0.2]},
            "properties": {"NOM_INSTIT": "UE Quito", "AMIE": "17H001", "Total estu": 900},
        },
    ],
}

CANTONS = {
    "type": "Topology",
    "arcs": [[[-79, -1], [-78, -1], [-78, 0], [-79, -1]]],
    "objects": {
        "cantones": {
            "type": "GeometryCollection",
            "geometries": [{"type": "Polygon", "arcs": [[0]], "properties": {"DPA_DESCAN": "DISTRITO METROPOLITANO DE QUITO"}}],
        },
    },
}


class MemoryFetcher:
    documents = {"mem://violencia": VIOLENCE, "mem://cantonesNbi": CANTONS}

    async def fetch_json(self, source):
        if source not in self.documents:
            raise TransportError(source, status=404)
        return self.documents[source]


def _controller():
    pipeline = LayerPipeline(
        resolver=lambda key: f"mem://{key}",
        fetcher=MemoryFetcher(),
        label_rule=LabelRule(min_zoom=8, min_font=10, max_font=16, font_step=1.5),
    )
    return ToggleController(LayerRegistry(DEFAULT_SPECS), pipeline)


def _make_app(controller=None):
    app = FastAPI()
    app.include_router(router)
    app.state.controller = controller or _controller()
    return app


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------

@pytest.mark.unit
class TestModels:
    def test_toggle_request(self):
        assert ToggleRequest(checked=True).checked is True

    def test_toggle_request_missing(self):
        with pytest.raises(ValidationError):
            ToggleRequest()


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@pytest.mark.unit
class TestLayerEndpoints:
    def test_list_layers(self):
        client = TestClient(_make_app())
        resp = client.get("/api/layers")
        assert resp.status_code == 200
        keys = [row["key"] for row in resp.json()]
        assert keys[:2] == ["provincias", "cantonesNbi"]
        assert all(row["state"] == "unbuilt" for row in resp.json())

    def test_toggle_builds_and_exports_features(self):
        client = TestClient(_make_app())
        resp = client.post("/api/layers/controls/tgViol", json={"checked": True})
        assert resp.status_code == 200
        panel = resp.json()
        assert panel["status"] == ""
        assert panel["controls"]["tgViol"] is True
        assert panel["legends"]["legViol"] is True

        data = client.get("/api/layers/violencia/features").json()
        assert data["type"] == "FeatureCollection"
        feature = data["features"][0]
        assert feature["style"]["radius"] == pytest.approx(12.0)
        assert feature["popup"]["title"] == "UE Quito"
        assert feature["properties"]["AMIE"] == "17H001"

    def test_popup_endpoint(self):
        client = TestClient(_make_app())
        client.post("/api/layers/controls/tgViol", json={"checked": True})
        resp = client.get("/api/layers/violencia/features/ue-1/popup")
        assert resp.status_code == 200
        assert resp.json()["subtitle"] == "AMIE: 17H001"
        assert client.get("/api/layers/violencia/features/nope/popup").status_code == 404

    def test_failed_toggle_reports_status(self):
        client = TestClient(_make_app())
        resp = client.post("/api/layers/controls/tgIENo", json={"checked": True})
        assert resp.status_code == 200
        panel = resp.json()
        assert "HTTP 404" in panel["status"]
        assert panel["controls"]["tgIENo"] is False

    def test_unknown_control(self):
        client = TestClient(_make_app())
        resp = client.post("/api/layers/controls/tgNope", json={"checked": True})
        assert resp.status_code == 404

    def test_features_of_unbuilt_layer(self):
        client = TestClient(_make_app())
        assert client.get("/api/layers/violencia/features").status_code == 409
        assert client.get("/api/layers/nope/features").status_code == 404

    def test_labels_follow_zoom(self):
        client = TestClient(_make_app())
        client.post("/api/layers/controls/tgNbi", json={"checked": True})

        hidden = client.get("/api/layers/cantonesNbi/labels", params={"zoom": 6}).json()
        assert hidden["visible"] is False
        assert hidden["labels"] == []

        shown = client.get("/api/layers/cantonesNbi/labels", params={"zoom": 10}).json()
        assert shown["visible"] is True
        assert shown["font_size"] == 13
        assert shown["labels"][0]["text"] == "DISTRITO METROPOLITANO\nDE\nQUITO"
        assert shown["labels"][0]["anchor"] == [-78.5, -0.5]

    def test_point_layer_has_no_labels(self):
        client = TestClient(_make_app())
        client.post("/api/layers/controls/tgViol", json={"checked": True})
        assert client.get("/api/layers/violencia/labels", params={"zoom": 10}).status_code == 404

    def test_draw_order(self):
        client = TestClient(_make_app())
        client.post("/api/layers/controls/tgViol", json={"checked": True})
        client.post("/api/layers/controls/tgNbi", json={"checked": True})
        assert client.get("/api/layers/order").json() == ["cantonesNbi", "violencia"]

    def test_invalidate(self):
        controller = _controller()
        client = TestClient(_make_app(controller))
        client.post("/api/layers/controls/tgViol", json={"checked": True})
        resp = client.post("/api/layers/violencia/invalidate")
        assert resp.json() == {"key": "violencia", "state": "unbuilt"}
        assert client.get("/api/layers/panel").json()["controls"]["tgViol"] is False

    def test_controller_missing(self):
        app = FastAPI()
        app.include_router(router)
        assert TestClient(app).get("/api/layers").status_code == 503


@pytest.mark.unit
class TestAppFactory:
    def test_startup_activates_initial_layers(self):
        controller = _controller()
        controller.panel.set_control("tgViol", True)
        app = create_app(Settings(initial_layers=[]), controller=controller)
        with TestClient(app) as client:
            assert client.get("/health").json() == {"status": "ok"}
            rows = {row["key"]: row for row in client.get("/api/layers").json()}
        assert rows["violencia"]["state"] == "built-visible"

    def test_landing_page_without_static_mount(self):
        app = create_app(Settings(initial_layers=[]), controller=_controller())
        with TestClient(app) as client:
            resp = client.get("/")
            assert resp.status_code == 200
            assert "/api/layers" in resp.text
            assert client.get("/static/index.html").status_code == 404

    def test_create_controller_checks_initial_controls(self):
        config = Settings(initial_layers=["provincias", "bogus"], reprojection_enabled=False)
        controller = create_controller(config)
        assert controller.panel.is_checked("tgProv") is True
        assert controller.panel.is_checked("tgViol") is False
        assert controller.builder.normalizer.reprojector is None
        assert controller.builder.normalizer.sample_cap == 2000
