"""Parse a GeoJSON (RFC 7946) document into LayerFeatures.

Handles FeatureCollection and bare Feature documents with Point, Polygon and
their Multi* variants.  Properties are passed through untouched.  Features
with no geometry or an unsupported geometry type are dropped.
"""

from __future__ import annotations

from mapviewer.errors import FormatError
from mapviewer.layers.layer import LayerFeature, LayerKind

POINT_TYPES = ("Point", "MultiPoint")
POLYGON_TYPES = ("Polygon", "MultiPolygon")
LINE_TYPES = ("LineString", "MultiLineString")
SUPPORTED_TYPES = POINT_TYPES + POLYGON_TYPES + LINE_TYPES


def parse_features(data: dict, kind: LayerKind | None = None) -> list[LayerFeature]:
    """Convert a parsed GeoJSON document into LayerFeatures.

    Args:
        data: Parsed GeoJSON (FeatureCollection or Feature).
        kind: When given, features of the other geometry family are dropped.

    Raises:
        FormatError: If the document is neither a FeatureCollection nor a Feature.
    """
    if not isinstance(data, dict):
        raise FormatError("GeoJSON document must be an object")

    doc_type = data.get("type")
    if doc_type == "FeatureCollection":
        raw_features = data.get("features") or []
    elif doc_type == "Feature":
        raw_features = [data]
    else:
        raise FormatError(f"Unsupported GeoJSON document type: {doc_type!r}")

    features: list[LayerFeature] = []
    for idx, raw in enumerate(raw_features):
        feature = _parse_feature(raw, idx)
        if feature is None:
            continue
        if kind is not None and geometry_kind(feature.geometry_type) not in (kind, None):
            continue
        features.append(feature)
    return features


def geometry_kind(geometry_type: str) -> LayerKind | None:
    if geometry_type in POINT_TYPES:
        return LayerKind.POINT
    if geometry_type in POLYGON_TYPES:
        return LayerKind.POLYGON
    return None


def _parse_feature(raw: dict, idx: int) -> LayerFeature | None:
    """Parse a single GeoJSON Feature dict into a LayerFeature."""
    if not isinstance(raw, dict):
        return None

    geometry = raw.get("geometry")
    if not isinstance(geometry, dict):
        return None

    geom_type = geometry.get("type", "")
    coordinates = geometry.get("coordinates")

    if geom_type not in SUPPORTED_TYPES or coordinates is None:
        return None

    properties = raw.get("properties") or {}
    if not isinstance(properties, dict):
        properties = {}

    feature_id = raw.get("id", f"feature-{idx}")
    if not isinstance(feature_id, str):
        feature_id = str(feature_id)

    return LayerFeature(
        feature_id=feature_id,
        geometry_type=geom_type,
        coordinates=coordinates,
        properties=properties,
    )
