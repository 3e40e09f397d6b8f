"""Decode a TopoJSON topology into a GeoJSON FeatureCollection.

Supports quantized (delta-encoded, with ``transform``) and plain arcs, and
all geometry types of the TopoJSON 1.0 specification.  Adjacent polygons
share arcs; negative arc indices (``~i``) reference arc ``i`` reversed.
"""

from __future__ import annotations

from mapviewer.errors import FormatError


def object_names(topology: dict) -> list[str]:
    objects = topology.get("objects") if isinstance(topology, dict) else None
    if not isinstance(objects, dict):
        return []
    return list(objects.keys())


def topology_to_geojson(topology: dict, object_name: str | None = None) -> dict:
    """Convert one named object of a topology to a FeatureCollection.

    Args:
        topology: Parsed TopoJSON document.
        object_name: Object to convert; defaults to the first one.

    Raises:
        FormatError: If the topology has no objects or the object is unknown.
    """
    names = object_names(topology)
    if not names:
        raise FormatError("TopoJSON document has no objects")
    name = object_name or names[0]
    if name not in topology["objects"]:
        raise FormatError(f"TopoJSON object not found: {name}")

    decoder = _ArcDecoder(topology)
    obj = topology["objects"][name]
    if obj.get("type") == "GeometryCollection":
        geometries = obj.get("geometries") or []
    else:
        geometries = [obj]

    features = [_feature(geometry, decoder) for geometry in geometries]
    return {"type": "FeatureCollection", "features": features}


class _ArcDecoder:
    def __init__(self, topology: dict) -> None:
        transform = topology.get("transform")
        if transform:
            self.scale = transform.get("scale", [1, 1])
            self.translate = transform.get("translate", [0, 0])
        else:
            self.scale = None
            self.translate = None
        self._arcs = [self._decode_arc(arc) for arc in topology.get("arcs") or []]

    def _decode_arc(self, arc: list) -> list[list[float]]:
        if self.scale is None:
            return [list(p) for p in arc]
        kx, ky = self.scale
        dx, dy = self.translate
        x = y = 0
        points = []
        for position in arc:
            x += position[0]
            y += position[1]
            points.append([x * kx + dx, y * ky + dy, *position[2:]])
        return points

    def point(self, position: list) -> list[float]:
        if self.scale is None:
            return list(position)
        kx, ky = self.scale
        dx, dy = self.translate
        return [position[0] * kx + dx, position[1] * ky + dy, *position[2:]]

    def line(self, arc_indices: list[int]) -> list[list[float]]:
        points: list[list[float]] = []
        for index in arc_indices:
            try:
                arc = self._arcs[~index if index < 0 else index]
            except IndexError:
                raise FormatError(f"TopoJSON arc index out of range: {index}") from None
            if index < 0:
                arc = arc[::-1]
            # consecutive arcs share their joining point
            start = 1 if points else 0
            points.extend(list(p) for p in arc[start:])
        return points

    def ring(self, arc_indices: list[int]) -> list[list[float]]:
        points = self.line(arc_indices)
        if points and points[0] != points[-1]:
            points.append(list(points[0]))
        return points


def _geometry(obj: dict, decoder: _ArcDecoder) -> dict | None:
    geom_type = obj.get("type")
    if geom_type is None:
        return None
    if geom_type == "Point":
        return {"type": "Point", "coordinates": decoder.point(obj["coordinates"])}
    if geom_type == "MultiPoint":
        return {"type": "MultiPoint", "coordinates": [decoder.point(p) for p in obj["coordinates"]]}
    if geom_type == "LineString":
        return {"type": "LineString", "coordinates": decoder.line(obj["arcs"])}
    if geom_type == "MultiLineString":
        return {"type": "MultiLineString", "coordinates": [decoder.line(a) for a in obj["arcs"]]}
    if geom_type == "Polygon":
        return {"type": "Polygon", "coordinates": [decoder.ring(r) for r in obj["arcs"]]}
    if geom_type == "MultiPolygon":
        return {
            "type": "MultiPolygon",
            "coordinates": [[decoder.ring(r) for r in poly] for poly in obj["arcs"]],
        }
    if geom_type == "GeometryCollection":
        return {
            "type": "GeometryCollection",
            "geometries": [g for g in (_geometry(o, decoder) for o in obj.get("geometries") or []) if g],
        }
    raise FormatError(f"Unsupported TopoJSON geometry type: {geom_type}")


def _feature(obj: dict, decoder: _ArcDecoder) -> dict:
    feature = {
        "type": "Feature",
        "properties": obj.get("properties") or {},
        "geometry": _geometry(obj, decoder),
    }
    if "id" in obj:
        feature["id"] = obj["id"]
    return feature
