"""Export a built Layer to a GeoJSON dict for the rendering client.

Each feature carries its computed symbol under ``style`` and its attribute
card under ``popup``, next to the untouched source properties.
"""

from __future__ import annotations

from mapviewer.layers.layer import Layer, LayerFeature


def export_geojson(layer: Layer) -> dict:
    """Export a Layer to a GeoJSON FeatureCollection dict.

    Args:
        layer: The Layer to export.

    Returns:
        Dict representing a GeoJSON FeatureCollection.
    """
    return {
        "type": "FeatureCollection",
        "name": layer.key,
        "features": [_feature_to_geojson(f) for f in layer.features],
    }


def _feature_to_geojson(feature: LayerFeature) -> dict:
    """Convert a LayerFeature to a GeoJSON Feature dict."""
    return {
        "type": "Feature",
        "id": feature.feature_id,
        "geometry": {
            "type": feature.geometry_type,
            "coordinates": feature.coordinates,
        },
        "properties": dict(feature.properties),
        "style": feature.style.to_dict() if feature.style else None,
        "popup": feature.popup.to_dict() if feature.popup else None,
    }
