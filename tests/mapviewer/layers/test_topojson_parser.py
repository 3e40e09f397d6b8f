"""Tests for TopoJSON decoding — arcs, quantization, shared boundaries."""

import pytest

from mapviewer.errors import FormatError
from mapviewer.layers.parsers.topojson import object_names, topology_to_geojson

# Two unit squares sharing the edge x=1 (arc 1)
TOPOLOGY = {
    "type": "Topology",
    "arcs": [
        [[1, 0], [0, 0], [0, 1], [1, 1]],
        [[1, 1], [1, 0]],
        [[1, 1], [2, 1], [2, 0], [1, 0]],
    ],
    "objects": {
        "cantones": {
            "type": "GeometryCollection",
            "geometries": [
                {"type": "Polygon", "id": "c1", "arcs": [[0, 1]], "properties": {"DPA_DESCAN": "A"}},
                {"type": "Polygon", "arcs": [[2, -2]], "properties": {"DPA_DESCAN": "B"}},
                {"type": "Point", "coordinates": [5, 5], "properties": {"name": "p"}},
            ],
        },
        "other": {"type": "Point", "coordinates": [1, 2]},
    },
}

QUANTIZED = {
    "type": "Topology",
    "transform": {"scale": [0.5, 0.25], "translate": [-80, -2]},
    "arcs": [[[0, 0], [2, 0], [0, 4], [-2, -4]]],
    "objects": {
        "shape": {"type": "Polygon", "arcs": [[0]], "properties": {}},
        "pt": {"type": "Point", "coordinates": [4, 8]},
    },
}


@pytest.mark.unit
class TestTopologyToGeoJSON:
    """Decode topology objects into a FeatureCollection."""

    def test_first_object_by_default(self):
        assert object_names(TOPOLOGY) == ["cantones", "other"]
        fc = topology_to_geojson(TOPOLOGY)
        assert fc["type"] == "FeatureCollection"
        assert len(fc["features"]) == 3

    def test_stitches_arcs_and_closes_ring(self):
        fc = topology_to_geojson(TOPOLOGY)
        ring = fc["features"][0]["geometry"]["coordinates"][0]
        assert ring == [[1, 0], [0, 0], [0, 1], [1, 1], [1, 0]]
        assert fc["features"][0]["id"] == "c1"
        assert fc["features"][0]["properties"] == {"DPA_DESCAN": "A"}

    def test_negative_index_reverses_shared_arc(self):
        fc = topology_to_geojson(TOPOLOGY)
        ring = fc["features"][1]["geometry"]["coordinates"][0]
        assert ring == [[1, 1], [2, 1], [2, 0], [1, 0], [1, 1]]

    def test_named_object(self):
        fc = topology_to_geojson(TOPOLOGY, "other")
        assert fc["features"][0]["geometry"] == {"type": "Point", "coordinates": [1, 2]}

    def test_quantized_delta_decoding(self):
        fc = topology_to_geojson(QUANTIZED)
        ring = fc["features"][0]["geometry"]["coordinates"][0]
        assert ring == [[-80.0, -2.0], [-79.0, -2.0], [-79.0, -1.0], [-80.0, -2.0]]

    def test_quantized_point(self):
        fc = topology_to_geojson(QUANTIZED, "pt")
        assert fc["features"][0]["geometry"]["coordinates"] == [-78.0, 0.0]

    def test_missing_objects(self):
        with pytest.raises(FormatError):
            topology_to_geojson({"type": "Topology", "arcs": []})

    def test_unknown_object(self):
        with pytest.raises(FormatError):
            topology_to_geojson(TOPOLOGY, "nope")

    def test_arc_index_out_of_range(self):
        bad = {"type": "Topology", "arcs": [], "objects": {"x": {"type": "LineString", "arcs": [3]}}}
        with pytest.raises(FormatError):
            topology_to_geojson(bad)
