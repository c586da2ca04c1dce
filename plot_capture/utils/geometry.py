"""
Geometry utilities for drawn plot boundaries.

Provides:
- Spherical-excess polygon area (matches the backend's approximation)
- Ellipsoidal area via pyproj for cross-checking
- WKT and GeoJSON serialization of drawn polygons
- Tolerant WKT and GeoJSON parsing

Coordinates are held as (latitude, longitude) in memory but serialized as
(longitude, latitude) pairs in both text formats. Serialized rings are always
closed; in-memory polygons never carry the closing point.
"""
import json
import logging
import math
from typing import Any, Optional, Sequence

import shapely.wkt
from pydantic import ValidationError
from pyproj import Geod
from shapely.errors import ShapelyError
from shapely.geometry import Point, Polygon, shape

from plot_capture.domain.models import Coordinate, GeoJsonText, WktText

logger = logging.getLogger(__name__)

EARTH_RADIUS_M = 6371000.0
MIN_POLYGON_POINTS = 3

_WGS84 = Geod(ellps="WGS84")


def is_complete(polygon: Sequence[Coordinate]) -> bool:
    """A polygon is complete once it has at least three vertices."""
    return len(polygon) >= MIN_POLYGON_POINTS


def close_ring(polygon: Sequence[Coordinate]) -> list[Coordinate]:
    """
    Return a copy of the polygon with the first point repeated at the end.

    Already-closed rings and empty polygons are returned unchanged (as a copy).
    """
    ring = list(polygon)
    if ring and ring[0] != ring[-1]:
        ring.append(ring[0])
    return ring


def compute_area(polygon: Sequence[Coordinate]) -> float:
    """
    Calculate polygon area in square meters using the spherical excess formula.

    Valid for plot-scale polygons; not geodesically exact for very large ones.

    Args:
        polygon: Vertices in tap order, closed or open

    Returns:
        Area in m², rounded to the nearest integer. 0 for fewer than 3 points.
    """
    if not is_complete(polygon):
        return 0

    ring = close_ring(polygon)
    total = 0.0
    for p1, p2 in zip(ring, ring[1:]):
        total += math.radians(p2.longitude - p1.longitude) * (
            2 + math.sin(math.radians(p1.latitude)) + math.sin(math.radians(p2.latitude))
        )

    return round(abs(total * EARTH_RADIUS_M * EARTH_RADIUS_M / 2))


def compute_geodesic_area(polygon: Sequence[Coordinate]) -> float:
    """Ellipsoidal (WGS84) area in m², 0 for fewer than 3 points."""
    if not is_complete(polygon):
        return 0.0
    ring = close_ring(polygon)
    area, _ = _WGS84.polygon_area_perimeter(
        [c.longitude for c in ring],
        [c.latitude for c in ring],
    )
    return abs(area)


def _require_polygon(polygon: Sequence[Coordinate]) -> list[Coordinate]:
    if not is_complete(polygon):
        raise ValueError(
            f"Polygon must have at least {MIN_POLYGON_POINTS} points, got {len(polygon)}"
        )
    return close_ring(polygon)


def to_geojson(polygon: Sequence[Coordinate]) -> dict[str, Any]:
    """
    Build a closed GeoJSON Polygon geometry from drawn vertices.

    Raises:
        ValueError: If the polygon has fewer than 3 points
    """
    ring = _require_polygon(polygon)
    return {
        "type": "Polygon",
        "coordinates": [[[c.longitude, c.latitude] for c in ring]],
    }


def to_geojson_string(polygon: Sequence[Coordinate]) -> str:
    """Serialized form of to_geojson, as sent to the backend."""
    return json.dumps(to_geojson(polygon))


def to_wkt(polygon: Sequence[Coordinate]) -> str:
    """
    Build a closed WKT polygon, e.g. ``POLYGON((lng lat, lng lat, ...))``.

    Raises:
        ValueError: If the polygon has fewer than 3 points
    """
    ring = _require_polygon(polygon)
    pairs = ", ".join(f"{c.longitude} {c.latitude}" for c in ring)
    return f"POLYGON(({pairs}))"


def to_wkt_point(coordinate: Coordinate) -> str:
    return f"POINT({coordinate.longitude} {coordinate.latitude})"


def _to_coordinates(pairs: Sequence[Sequence[float]]) -> Optional[list[Coordinate]]:
    """Convert (lng, lat) pairs to coordinates, None if any is out of range."""
    try:
        return [Coordinate(latitude=pair[1], longitude=pair[0]) for pair in pairs]
    except (ValidationError, IndexError, TypeError):
        return None


def _open_ring(coordinates: list[Coordinate]) -> list[Coordinate]:
    if len(coordinates) > 1 and coordinates[0] == coordinates[-1]:
        return coordinates[:-1]
    return coordinates


def _disambiguate_point_axes(first: float, second: float) -> tuple[float, float]:
    """
    Axis-order fallback for WKT points.

    Point markers reach us in either order. A value whose magnitude exceeds 90
    cannot be a latitude, so it is taken as the longitude (standard WKT order).
    Otherwise the pair is read as (latitude, longitude).

    Returns:
        (longitude, latitude)
    """
    if abs(first) > 90:
        return first, second
    return second, first


def _polygon_coordinates(polygon: Polygon) -> Optional[list[Coordinate]]:
    if polygon.is_empty:
        return None
    coordinates = _to_coordinates(list(polygon.exterior.coords))
    if coordinates is None:
        return None
    coordinates = _open_ring(coordinates)
    return coordinates if is_complete(coordinates) else None


def parse_wkt(text: Optional[str]) -> Optional[list[Coordinate]]:
    """
    Parse a WKT POLYGON or POINT into coordinates.

    The polygon's closing point is dropped. A POINT yields a single coordinate.

    Args:
        text: WKT string

    Returns:
        List of coordinates, or None if the text is malformed, out of range
        or not a POLYGON/POINT
    """
    if not text or not isinstance(text, str):
        return None
    try:
        geometry = shapely.wkt.loads(text.strip())
    except (ShapelyError, ValueError, TypeError) as e:
        logger.debug(f"Unparsable WKT: {e}")
        return None

    if isinstance(geometry, Polygon):
        return _polygon_coordinates(geometry)

    if isinstance(geometry, Point):
        if geometry.is_empty:
            return None
        lng, lat = _disambiguate_point_axes(geometry.x, geometry.y)
        return _to_coordinates([(lng, lat)])

    logger.debug(f"Unsupported WKT geometry type: {geometry.geom_type}")
    return None


def parse_geojson(text: Optional[str]) -> Optional[list[Coordinate]]:
    """
    Parse a GeoJSON Polygon or Point (bare geometry or Feature).

    Returns:
        List of coordinates, or None on malformed JSON, an unclosed ring,
        out-of-range values or an unsupported geometry type
    """
    if not text or not isinstance(text, str):
        return None
    try:
        data = json.loads(text)
    except ValueError:
        return None

    if isinstance(data, dict) and data.get("type") == "Feature":
        data = data.get("geometry")
    if not isinstance(data, dict):
        return None

    geometry_type = data.get("type")
    try:
        if geometry_type == "Polygon":
            rings = data.get("coordinates")
            if not isinstance(rings, list) or not rings:
                return None
            exterior = rings[0]
            if not isinstance(exterior, list) or not exterior:
                return None
            if list(exterior[0]) != list(exterior[-1]):
                return None
            return _polygon_coordinates(shape(data))

        if geometry_type == "Point":
            point = shape(data)
            if point.is_empty:
                return None
            return _to_coordinates([(point.x, point.y)])
    except (ShapelyError, ValueError, TypeError, IndexError, KeyError, AttributeError) as e:
        logger.debug(f"Invalid GeoJSON geometry: {e}")
        return None

    return None


def parse_geodetic(value: WktText | GeoJsonText) -> Optional[list[Coordinate]]:
    """Parse geometry text using the parser named by its format tag."""
    if isinstance(value, WktText):
        return parse_wkt(value.text)
    return parse_geojson(value.text)


def point_location(value: WktText | GeoJsonText) -> Optional[Coordinate]:
    """
    Representative location of a plot marker: the point itself, or the first
    vertex of a polygon.
    """
    coordinates = parse_geodetic(value)
    if not coordinates:
        return None
    return coordinates[0]
