"""Coordinate sanity check and UTM fallback reprojection.

Some published datasets ship planar UTM coordinates inside a GeoJSON
document.  ``GeometryNormalizer`` samples vertex pairs, decides whether the
document is geographic (lng/lat degrees), and when it is not, reprojects a
deep copy from the configured UTM zone back to WGS84 degrees.

The input document is never mutated.
"""

from __future__ import annotations

import copy
import math
from dataclasses import dataclass
from numbers import Real
from typing import Callable, Iterator

from loguru import logger

# (x, y) -> (lng, lat)
Reprojector = Callable[[float, float], tuple[float, float]]

DEFAULT_SAMPLE_CAP = 2000
DEFAULT_BAD_FRACTION = 0.2


def utm_to_latlng(
    zone: int, easting: float, northing: float, south: bool,
) -> tuple[float, float]:
    """Convert UTM zone/easting/northing to lat/lng (WGS84).

    Returns:
        (latitude, longitude) in degrees
    """
    a = 6378137.0
    f = 1 / 298.257223563
    e2 = 2 * f - f * f
    ep2 = e2 / (1 - e2)
    k0 = 0.9996

    x = easting - 500000.0
    y = northing - 10000000.0 if south else northing

    lon0 = (zone - 1) * 6 - 180 + 3

    M = y / k0
    mu = M / (a * (1 - e2 / 4 - 3 * e2**2 / 64 - 5 * e2**3 / 256))

    e1 = (1 - math.sqrt(1 - e2)) / (1 + math.sqrt(1 - e2))

    phi1 = (
        mu
        + (3 * e1 / 2 - 27 * e1**3 / 32) * math.sin(2 * mu)
        + (21 * e1**2 / 16 - 55 * e1**4 / 32) * math.sin(4 * mu)
        + (151 * e1**3 / 96) * math.sin(6 * mu)
    )

    N1 = a / math.sqrt(1 - e2 * math.sin(phi1) ** 2)
    T1 = math.tan(phi1) ** 2
    C1 = ep2 * math.cos(phi1) ** 2
    R1 = a * (1 - e2) / (1 - e2 * math.sin(phi1) ** 2) ** 1.5
    D = x / (N1 * k0)

    lat = phi1 - (N1 * math.tan(phi1) / R1) * (
        D**2 / 2
        - (5 + 3 * T1 + 10 * C1 - 4 * C1**2 - 9 * ep2) * D**4 / 24
        + (61 + 90 * T1 + 298 * C1 + 45 * T1**2 - 252 * ep2 - 3 * C1**2) * D**6 / 720
    )

    lng = (
        D
        - (1 + 2 * T1 + C1) * D**3 / 6
        + (5 - 2 * C1 + 28 * T1 - 3 * C1**2 + 8 * ep2 + 24 * T1**2) * D**5 / 120
    ) / math.cos(phi1)

    return (math.degrees(lat), lon0 + math.degrees(lng))


def utm_reprojector(zone: int = 17, south: bool = True) -> Reprojector:
    """Reprojector from WGS84 / UTM (default zone 17 south, EPSG:32717)."""

    def _reproject(x: float, y: float) -> tuple[float, float]:
        lat, lng = utm_to_latlng(zone, x, y, south)
        return (lng, lat)

    return _reproject


@dataclass(frozen=True)
class CoordinateCheck:
    """Outcome of sampling a document's vertices."""

    sampled: int
    implausible: int

    @property
    def fraction(self) -> float:
        return self.implausible / self.sampled if self.sampled else 0.0


def _is_number(value) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def _is_vertex(node) -> bool:
    return (
        isinstance(node, list)
        and len(node) >= 2
        and _is_number(node[0])
        and _is_number(node[1])
    )


def walk_vertices(node) -> Iterator[list]:
    """Depth-first over nested coordinate arrays, yielding vertex lists."""
    if _is_vertex(node):
        yield node
    elif isinstance(node, list):
        for child in node:
            yield from walk_vertices(child)


def _geometries(document: dict) -> Iterator[dict]:
    if not isinstance(document, dict):
        return
    doc_type = document.get("type")
    if doc_type == "FeatureCollection":
        for feature in document.get("features") or []:
            yield from _geometries(feature)
    elif doc_type == "Feature":
        yield from _geometries(document.get("geometry"))
    elif doc_type == "GeometryCollection":
        for geometry in document.get("geometries") or []:
            yield from _geometries(geometry)
    elif "coordinates" in document:
        yield document


def iter_vertices(document: dict) -> Iterator[list]:
    """Yield every [x, y, ...] vertex list in a GeoJSON document."""
    for geometry in _geometries(document):
        yield from walk_vertices(geometry.get("coordinates"))


class GeometryNormalizer:
    """Decides whether a document is geographic and reprojects it if not.

    Args:
        reprojector: Callable mapping projected (x, y) to (lng, lat), or None
            when no reprojection capability is available.
        sample_cap: Maximum number of vertices inspected.
        bad_fraction: Fraction of implausible vertices at which a document
            is considered projected.
    """

    def __init__(
        self,
        reprojector: Reprojector | None = None,
        sample_cap: int = DEFAULT_SAMPLE_CAP,
        bad_fraction: float = DEFAULT_BAD_FRACTION,
    ) -> None:
        self.reprojector = reprojector
        self.sample_cap = sample_cap
        self.bad_fraction = bad_fraction

    def inspect(self, document: dict) -> CoordinateCheck:
        sampled = 0
        implausible = 0
        for vertex in iter_vertices(document):
            if sampled >= self.sample_cap:
                break
            sampled += 1
            if abs(vertex[0]) > 180 or abs(vertex[1]) > 90:
                implausible += 1
        return CoordinateCheck(sampled=sampled, implausible=implausible)

    def is_geographic(self, document: dict) -> bool:
        check = self.inspect(document)
        if check.sampled == 0:
            return True
        return check.fraction < self.bad_fraction

    def normalize(self, document: dict, name: str = "") -> dict:
        """Return a geographic version of ``document``.

        A projected document is reprojected on a deep copy.  Without a
        reprojector, or when reprojection fails, the input is returned
        unchanged and a warning is logged.
        """
        check = self.inspect(document)
        if check.sampled == 0 or check.fraction < self.bad_fraction:
            return document

        label = name or "dataset"
        if self.reprojector is None:
            logger.warning(
                f"{label}: {check.implausible}/{check.sampled} vertices look projected "
                f"but no reprojection is available; using coordinates as-is"
            )
            return document

        clone = copy.deepcopy(document)
        try:
            for vertex in iter_vertices(clone):
                lng, lat = self.reprojector(float(vertex[0]), float(vertex[1]))
                vertex[0] = lng
                vertex[1] = lat
        except (ArithmeticError, ValueError) as e:
            logger.warning(f"{label}: reprojection failed ({e}); using coordinates as-is")
            return document

        logger.info(
            f"{label}: reprojected {check.implausible}/{check.sampled} sampled "
            f"projected vertices to geographic degrees"
        )
        return clone
