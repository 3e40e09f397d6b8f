"""Tests for the GeoJSON parser — FeatureCollection, geometry families, properties."""

import pytest

from mapviewer.errors import FormatError
from mapviewer.layers.layer import LayerKind
from mapviewer.layers.parsers.geojson import geometry_kind, parse_features

FEATURE_COLLECTION = {
    "type": "FeatureCollection",
    "features": [
        {
            "type": "Feature",
            "id": 7,
            "geometry": {"type": "Point", "coordinates": [-78.5, -0.2]},
            "properties": {"NOMBRE": "UE Quito", "Total estu": "350"},
        },
        {
            "type": "Feature",
            "geometry": {
                "type": "MultiPolygon",
                "coordinates": [[[[-79, -1], [-78, -1], [-78, 0], [-79, -1]]]],
            },
            "properties": {"DPA_DESPRO": "PICHINCHA"},
        },
        {"type": "Feature", "geometry": None, "properties": {}},
        {"type": "Feature", "geometry": {"type": "Unknown", "coordinates": []}},
        "not a feature",
    ],
}


@pytest.mark.unit
class TestGeoJSONParser:
    """Parse GeoJSON to LayerFeatures."""

    def test_parse_feature_collection_drops_invalid(self):
        features = parse_features(FEATURE_COLLECTION)
        assert len(features) == 2

    def test_feature_id_stringified_or_generated(self):
        features = parse_features(FEATURE_COLLECTION)
        assert features[0].feature_id == "7"
        assert features[1].feature_id == "feature-1"

    def test_properties_passed_through(self):
        point = parse_features(FEATURE_COLLECTION)[0]
        assert point.properties == {"NOMBRE": "UE Quito", "Total estu": "350"}
        assert point.coordinates == [-78.5, -0.2]

    def test_kind_filter(self):
        points = parse_features(FEATURE_COLLECTION, LayerKind.POINT)
        polygons = parse_features(FEATURE_COLLECTION, LayerKind.POLYGON)
        assert [f.geometry_type for f in points] == ["Point"]
        assert [f.geometry_type for f in polygons] == ["MultiPolygon"]

    def test_single_feature(self):
        features = parse_features(FEATURE_COLLECTION["features"][0])
        assert len(features) == 1

    def test_null_properties_become_empty(self):
        doc = {"type": "Feature", "geometry": {"type": "Point", "coordinates": [0, 0]}, "properties": None}
        assert parse_features(doc)[0].properties == {}

    @pytest.mark.parametrize("doc", [{"type": "Topology"}, [], {"features": []}])
    def test_unsupported_document(self, doc):
        with pytest.raises(FormatError):
            parse_features(doc)

    def test_geometry_kind(self):
        assert geometry_kind("MultiPoint") is LayerKind.POINT
        assert geometry_kind("Polygon") is LayerKind.POLYGON
        assert geometry_kind("LineString") is None
