"""In-process model of the rendering surface and the UI panel.

RenderSurface holds the attached layers in two panes: polygons (z=350)
always beneath points (z=450), regardless of the order layers are attached.

MapPanel holds what the viewer shows around the map: the status message,
one boolean control per layer and the legend visibility flags.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from mapviewer.layers.layer import Layer, LayerKind

PANE_Z_INDEX = {
    LayerKind.POLYGON: 350,
    LayerKind.POINT: 450,
}


class RenderSurface:
    """Attached layers, grouped by pane."""

    def __init__(self) -> None:
        self._panes: dict[LayerKind, list[Layer]] = {kind: [] for kind in PANE_Z_INDEX}

    def attach(self, layer: Layer) -> None:
        pane = self._panes[layer.kind]
        if any(l is layer for l in pane):
            return
        pane.append(layer)

    def detach(self, key: str) -> bool:
        for pane in self._panes.values():
            for idx, layer in enumerate(pane):
                if layer.key == key:
                    del pane[idx]
                    return True
        return False

    def is_attached(self, key: str) -> bool:
        return any(l.key == key for pane in self._panes.values() for l in pane)

    def draw_order(self) -> list[str]:
        """Layer keys bottom to top."""
        order: list[str] = []
        for kind in sorted(PANE_Z_INDEX, key=PANE_Z_INDEX.get):
            order.extend(layer.key for layer in self._panes[kind])
        return order

    def layers(self) -> list[Layer]:
        return [l for kind in sorted(PANE_Z_INDEX, key=PANE_Z_INDEX.get) for l in self._panes[kind]]


@dataclass
class MapPanel:
    status: str = ""
    controls: dict[str, bool] = field(default_factory=dict)
    legends: dict[str, bool] = field(default_factory=dict)

    def set_status(self, message: str | None) -> None:
        self.status = message or ""

    def set_control(self, control_id: str, checked: bool) -> None:
        self.controls[control_id] = checked

    def is_checked(self, control_id: str) -> bool:
        return self.controls.get(control_id, False)

    def set_legend(self, legend_id: str | None, visible: bool) -> None:
        if legend_id:
            self.legends[legend_id] = visible
