#!/usr/bin/env python3
"""
PaintRun Territory - Geometry Primitives

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Turn raw (lon, lat) rings into Shapely polygons and measure
them. Everything that touches Shapely construction or pyproj measurement
for a single geometry lives here.

Key Features:
1. Ring closing and degenerate-ring rejection
2. Polygon construction with optional make_valid repair
3. Geodesic area on the WGS84 ellipsoid (pyproj.Geod)
4. Closed-loop detection for raw GPS tracks
5. Coordinate-array serialization for map rendering

Navigation Guide:
- close_ring / to_polygon / polygon_from_coords: construction
- area: geodesic measurement
- detect_closed_loop: track -> ring
- to_coordinate_arrays: geometry -> nested lists

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

import logging
import math
from functools import lru_cache
from typing import Any, List, Optional, Sequence, Tuple

from pyproj import Geod
from shapely.errors import GEOSException
from shapely.geometry import GeometryCollection, MultiPoint, MultiPolygon, Polygon
from shapely.geometry.base import BaseGeometry
from shapely.geometry.polygon import orient
from shapely.validation import make_valid

# ═══════════════════════════════════════════════════════════════════════════
# 🔧 CONSTANTS
# ═══════════════════════════════════════════════════════════════════════════

DEFAULT_ELLIPSOID = "WGS84"

# A closed ring needs 3 distinct vertices plus the repeated first one
MIN_RING_VERTICES = 4

Coord = Tuple[float, float]

logger = logging.getLogger(__name__)


class DegenerateGeometryError(ValueError):
    """Raised when a ring cannot become a usable polygon."""


# ═══════════════════════════════════════════════════════════════════════════
# 🔁 RING CONSTRUCTION
# ═══════════════════════════════════════════════════════════════════════════


def _coerce_points(coords: Optional[Sequence[Sequence[Any]]]) -> Optional[List[Coord]]:
    """Convert a sequence of positions to (lon, lat) float pairs.

    Extra ordinates (elevation, time) are dropped. Returns None when any
    position is malformed or non-finite.
    """
    if coords is None:
        return None
    try:
        points = [(float(p[0]), float(p[1])) for p in coords]
    except (TypeError, ValueError, IndexError):
        return None
    if not all(math.isfinite(x) and math.isfinite(y) for x, y in points):
        return None
    return points


def close_ring(coords: Optional[Sequence[Sequence[Any]]]) -> Optional[List[Coord]]:
    """
    Close an ordered sequence of (lon, lat) points into a ring.

    Appends the first point when the last one differs from it.

    Args:
        coords: Sequence of at least 3 (lon, lat) positions

    Returns:
        Closed ring as a list of (lon, lat) tuples, or None when fewer than
        3 distinct points remain or all points lie on one line.
    """
    points = _coerce_points(coords)
    if points is None or len(points) < 3:
        return None

    if points[0] != points[-1]:
        points.append(points[0])

    if len(set(points[:-1])) < 3:
        return None

    # Collinear points have a line for a hull. A figure-8 with equal lobes
    # has zero signed area but a real hull, and is left to make_valid.
    if not isinstance(MultiPoint(points).convex_hull, Polygon):
        return None

    return points


def polygonal_parts(geometry: Optional[BaseGeometry]) -> List[Polygon]:
    """
    Flatten a geometry to its non-empty polygons.

    Overlay operations can return GeometryCollections mixing polygons with
    lines or points along shared edges; only the polygons carry area.
    """
    if geometry is None or geometry.is_empty:
        return []
    if isinstance(geometry, Polygon):
        return [geometry]
    if isinstance(geometry, MultiPolygon):
        return [p for p in geometry.geoms if not p.is_empty]
    if isinstance(geometry, GeometryCollection):
        parts: List[Polygon] = []
        for geom in geometry.geoms:
            parts.extend(polygonal_parts(geom))
        return parts
    return []


def collect_polygonal(geometry: Optional[BaseGeometry]) -> Optional[BaseGeometry]:
    """Polygonal content of a geometry as a Polygon, MultiPolygon or None."""
    parts = polygonal_parts(geometry)
    if not parts:
        return None
    if len(parts) == 1:
        return parts[0]
    return MultiPolygon(parts)


def to_polygon(ring: Sequence[Coord], repair_invalid: bool = True) -> BaseGeometry:
    """
    Build a polygon from a closed ring.

    Self-intersecting rings are repaired with make_valid when
    ``repair_invalid`` is set (a bow-tie becomes a two-part MultiPolygon);
    otherwise they are rejected.

    Args:
        ring: Closed ring from close_ring()
        repair_invalid: Repair invalid rings instead of rejecting them

    Returns:
        Valid Polygon or MultiPolygon

    Raises:
        DegenerateGeometryError: If no valid polygonal geometry can be built
    """
    if ring is None or len(ring) < MIN_RING_VERTICES:
        raise DegenerateGeometryError("Ring has fewer than 4 vertices")

    try:
        polygon = Polygon(ring)
    except (GEOSException, ValueError) as e:
        raise DegenerateGeometryError(f"Polygon construction failed: {e}") from e

    if polygon.is_empty:
        raise DegenerateGeometryError("Polygon is empty")

    # Area is checked only after repair: an invalid ring's signed area can
    # cancel out to zero while its lobes still enclose ground.
    if polygon.is_valid:
        if polygon.area <= 0.0:
            raise DegenerateGeometryError("Polygon encloses no area")
        return polygon

    if not repair_invalid:
        raise DegenerateGeometryError("Polygon is not valid (self-intersection)")

    try:
        repaired = collect_polygonal(make_valid(polygon))
    except GEOSException as e:
        raise DegenerateGeometryError(f"Polygon repair failed: {e}") from e

    if repaired is None or repaired.area <= 0.0:
        raise DegenerateGeometryError("Repaired polygon encloses no area")
    return repaired


def polygon_from_coords(
    coords: Optional[Sequence[Sequence[Any]]],
    repair_invalid: bool = True,
    min_vertices: int = MIN_RING_VERTICES,
) -> Optional[BaseGeometry]:
    """
    Close and build a polygon in one step.

    Returns:
        Polygon/MultiPolygon, or None for any degenerate input
    """
    ring = close_ring(coords)
    if ring is None or len(ring) < min_vertices:
        return None
    try:
        return to_polygon(ring, repair_invalid=repair_invalid)
    except DegenerateGeometryError as e:
        logger.debug(f"Degenerate ring rejected: {e}")
        return None


# ═══════════════════════════════════════════════════════════════════════════
# 📏 MEASUREMENT
# ═══════════════════════════════════════════════════════════════════════════


@lru_cache(maxsize=None)
def _geod_for(ellipsoid: str) -> Geod:
    return Geod(ellps=ellipsoid)


def get_geod(ellipsoid: str = DEFAULT_ELLIPSOID) -> Geod:
    """Shared Geod instance per ellipsoid, so every area in a run agrees."""
    return _geod_for(ellipsoid)


def area(geometry: Optional[BaseGeometry], ellipsoid: str = DEFAULT_ELLIPSOID) -> float:
    """
    Geodesic area of a lon/lat geometry in square meters.

    Polygons are oriented counter-clockwise (holes clockwise) before
    measurement so pyproj subtracts holes instead of adding them.

    Args:
        geometry: Polygon, MultiPolygon or collection in EPSG:4326
        ellipsoid: pyproj ellipsoid name

    Returns:
        Area in m² (0.0 for None/empty/non-polygonal input)
    """
    geod = get_geod(ellipsoid)
    total = 0.0
    for part in polygonal_parts(geometry):
        part_area, _ = geod.geometry_area_perimeter(orient(part, sign=1.0))
        total += abs(part_area)
    return total


# ═══════════════════════════════════════════════════════════════════════════
# 🏃 TRACK LOOP DETECTION
# ═══════════════════════════════════════════════════════════════════════════


def detect_closed_loop(
    track: Optional[Sequence[Sequence[Any]]],
    min_points: int = 10,
    max_closing_gap_m: float = 500.0,
    simplify_tolerance_deg: float = 0.0001,
    ellipsoid: str = DEFAULT_ELLIPSOID,
) -> Optional[List[Coord]]:
    """
    Detect whether a GPS track is a loop and return its simplified ring.

    A track is a loop when it has at least ``min_points`` positions and its
    start and end are within ``max_closing_gap_m`` of each other.

    Args:
        track: Ordered (lon, lat) positions of the run
        min_points: Minimum positions for a track to be considered
        max_closing_gap_m: Maximum geodesic start/end distance in meters
        simplify_tolerance_deg: Topology-preserving simplification tolerance

    Returns:
        Closed, simplified ring of (lon, lat) tuples, or None
    """
    points = _coerce_points(track)
    if points is None or len(points) < min_points:
        return None

    (lon1, lat1), (lon2, lat2) = points[0], points[-1]
    _, _, gap_m = get_geod(ellipsoid).inv(lon1, lat1, lon2, lat2)
    if gap_m > max_closing_gap_m:
        return None

    closed = points + [points[0]]
    try:
        simplified = Polygon(closed).simplify(
            simplify_tolerance_deg, preserve_topology=True
        )
    except (GEOSException, ValueError) as e:
        logger.debug(f"Loop simplification failed: {e}")
        return None

    if (
        not isinstance(simplified, Polygon)
        or simplified.is_empty
        or simplified.area <= 0.0
    ):
        return None

    ring = [(float(c[0]), float(c[1])) for c in simplified.exterior.coords]
    if len(ring) < MIN_RING_VERTICES:
        return None
    return ring


# ═══════════════════════════════════════════════════════════════════════════
# 📤 SERIALIZATION
# ═══════════════════════════════════════════════════════════════════════════


def to_coordinate_arrays(geometry: Optional[BaseGeometry]) -> List[List[List[List[float]]]]:
    """
    Nested coordinate arrays, one ``[exterior, *holes]`` entry per polygon.

    Matches GeoJSON Polygon/MultiPolygon coordinate nesting with lists
    instead of tuples so the result is JSON-serializable as-is.
    """
    arrays: List[List[List[List[float]]]] = []
    for part in polygonal_parts(geometry):
        rings = [[[float(x), float(y)] for x, y, *_ in part.exterior.coords]]
        for hole in part.interiors:
            rings.append([[float(x), float(y)] for x, y, *_ in hole.coords])
        arrays.append(rings)
    return arrays
