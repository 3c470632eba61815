"""
═══════════════════════════════════════════════════════════════════════════════
📦 GEOMETRY PACKAGE
═══════════════════════════════════════════════════════════════════════════════

Shapely/pyproj wrappers used by the territory engine.

Modules:
- primitives: ring closing, polygon construction, geodesic area, loop detection
- difference: ``subtract(base, cutter)`` with the later-claim-wins failure policy

═══════════════════════════════════════════════════════════════════════════════
"""

from paintrun_territory.geometry.primitives import (
    DegenerateGeometryError,
    area,
    close_ring,
    collect_polygonal,
    detect_closed_loop,
    get_geod,
    polygon_from_coords,
    polygonal_parts,
    to_coordinate_arrays,
    to_polygon,
)
from paintrun_territory.geometry.difference import subtract

__all__ = [
    "DegenerateGeometryError",
    "area",
    "close_ring",
    "collect_polygonal",
    "detect_closed_loop",
    "get_geod",
    "polygon_from_coords",
    "polygonal_parts",
    "to_coordinate_arrays",
    "to_polygon",
    "subtract",
]
