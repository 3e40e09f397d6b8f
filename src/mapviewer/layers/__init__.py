"""Map layer system — catalogue, cache registry, build pipeline and toggles.

Input documents are GeoJSON (RFC 7946) or TopoJSON; decoders use only the
Python stdlib (json).
"""

from mapviewer.layers.catalog import DEFAULT_SPECS, LayerSpec
from mapviewer.layers.controller import ToggleController
from mapviewer.layers.layer import Layer, LayerFeature, LayerKind
from mapviewer.layers.pipeline import LayerPipeline
from mapviewer.layers.registry import LayerRegistry, LayerSlot, ToggleState
from mapviewer.layers.surface import MapPanel, RenderSurface

__all__ = [
    "DEFAULT_SPECS",
    "Layer",
    "LayerFeature",
    "LayerKind",
    "LayerPipeline",
    "LayerRegistry",
    "LayerSlot",
    "LayerSpec",
    "MapPanel",
    "RenderSurface",
    "ToggleController",
    "ToggleState",
]
