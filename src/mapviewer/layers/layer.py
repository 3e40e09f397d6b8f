"""Layer and LayerFeature dataclasses for the thematic map.

All coordinates are stored in GeoJSON convention: [lng, lat] or [lng, lat, alt].
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

from mapviewer.labels import LabelSet
from mapviewer.popup import PopupCard
from mapviewer.symbology import SymbolDescriptor


class LayerKind(enum.Enum):
    """Geometry family of a layer; decides the pane it is drawn in."""

    POLYGON = "polygon"
    POINT = "point"


@dataclass
class LayerFeature:
    """A single feature (point or polygon) within a layer.

    Attributes:
        feature_id: Unique identifier for this feature.
        geometry_type: GeoJSON geometry type ("Point", "MultiPolygon", ...).
        coordinates: GeoJSON-style coordinate arrays.
        properties: Attribute mapping as published by the source.
        style: Symbol computed at build time.
        popup: Attribute card computed at build time.
    """

    feature_id: str
    geometry_type: str
    coordinates: list
    properties: dict
    style: SymbolDescriptor | None = None
    popup: PopupCard | None = None


@dataclass
class Layer:
    """A built, cacheable map layer.

    Attributes:
        key: Layer key this layer was built for.
        name: Human-readable display name.
        kind: Polygon or point layer.
        source_format: Original format ("geojson", "topojson", "derived").
        features: List of LayerFeature instances.
        labels: Centroid labels (polygon layers only).
        metadata: Arbitrary key-value metadata about the layer.
        created_at: ISO8601 build timestamp.
    """

    key: str
    name: str
    kind: LayerKind
    source_format: str
    features: list[LayerFeature]
    labels: LabelSet | None = None
    metadata: dict = field(default_factory=dict)
    created_at: str = ""
