"""Layer API — toggles, built features, labels and the status sink.

The viewer frontend posts control changes here and reads back the computed
GeoJSON (with per-feature symbols and popup cards) for visible layers.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query, Request
from pydantic import BaseModel

from mapviewer.layers import ToggleController
from mapviewer.layers.exporters.geojson import export_geojson

router = APIRouter(prefix="/api/layers", tags=["layers"])


# ---------------------------------------------------------------------------
# Request / Response models
# ---------------------------------------------------------------------------

class ToggleRequest(BaseModel):
    """Change notification from a layer control."""
    checked: bool


class PanelState(BaseModel):
    """Status message, control states and legend visibility."""
    status: str
    controls: dict[str, bool]
    legends: dict[str, bool]


class LabelResponse(BaseModel):
    key: str
    zoom: float
    visible: bool
    font_size: float
    labels: list[dict]


def _get_controller(request: Request) -> ToggleController:
    controller = getattr(request.app.state, "controller", None)
    if controller is None:
        raise HTTPException(503, "Layer controller not available")
    return controller


def _get_built_layer(controller: ToggleController, key: str):
    if key not in controller.registry:
        raise HTTPException(404, f"Unknown layer: {key}")
    slot = controller.registry.slot(key)
    if slot.layer is None:
        raise HTTPException(409, f"Layer {key} is not built")
    return slot.layer


def _panel_state(controller: ToggleController) -> PanelState:
    panel = controller.panel
    return PanelState(
        status=panel.status,
        controls=dict(panel.controls),
        legends=dict(panel.legends),
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("")
async def list_layers(request: Request):
    """State of every layer in the catalogue."""
    return _get_controller(request).snapshot()


@router.get("/panel", response_model=PanelState)
async def get_panel(request: Request):
    """Status sink, control states and legend visibility."""
    return _panel_state(_get_controller(request))


@router.get("/order")
async def get_draw_order(request: Request):
    """Attached layer keys, bottom to top."""
    return _get_controller(request).surface.draw_order()


@router.post("/controls/{control_id}", response_model=PanelState)
async def toggle_control(control_id: str, body: ToggleRequest, request: Request):
    """Apply a control change; build failures are reported in ``status``."""
    controller = _get_controller(request)
    try:
        await controller.on_change(control_id, body.checked)
    except KeyError:
        raise HTTPException(404, f"Unknown control: {control_id}")
    return _panel_state(controller)


@router.post("/{key}/invalidate")
async def invalidate_layer(key: str, request: Request):
    """Drop a cached layer so the next activation refetches it."""
    controller = _get_controller(request)
    if key not in controller.registry:
        raise HTTPException(404, f"Unknown layer: {key}")
    controller.invalidate(key)
    return {"key": key, "state": controller.registry.state(key).value}


@router.get("/{key}/features")
async def get_features(key: str, request: Request):
    """GeoJSON of a built layer with ``style`` and ``popup`` per feature."""
    layer = _get_built_layer(_get_controller(request), key)
    return export_geojson(layer)


@router.get("/{key}/features/{feature_id}/popup")
async def get_popup(key: str, feature_id: str, request: Request):
    """Attribute card for one feature."""
    layer = _get_built_layer(_get_controller(request), key)
    for feature in layer.features:
        if feature.feature_id == feature_id:
            if feature.popup is None:
                raise HTTPException(404, f"Layer {key} has no popups")
            return feature.popup.to_dict()
    raise HTTPException(404, f"Feature not found: {feature_id}")


@router.get("/{key}/labels", response_model=LabelResponse)
async def get_labels(key: str, request: Request, zoom: float = Query(..., ge=0, le=24)):
    """Labels evaluated for ``zoom``; call again on every zoom change."""
    layer = _get_built_layer(_get_controller(request), key)
    if layer.labels is None:
        raise HTTPException(404, f"Layer {key} has no labels")
    style = layer.labels.rule.evaluate(zoom)
    return LabelResponse(
        key=key,
        zoom=zoom,
        visible=style.visible,
        font_size=style.font_size,
        labels=layer.labels.at_zoom(zoom),
    )
