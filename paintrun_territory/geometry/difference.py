"""
Polygon difference engine.

═══════════════════════════════════════════════════════════════════════════════
ARCHITECTURAL OVERVIEW
═══════════════════════════════════════════════════════════════════════════════

Responsibility: Cut a later claim out of an earlier one. The only overlay
operation the resolver needs is ``base - cutter``.

Failure policy: any geometry-engine failure or invalid input is reported as
"nothing left" (None). The later claimant wins whenever the engine cannot
decide.

For Navigation: Use VS Code outline (Ctrl+Shift+O)

═══════════════════════════════════════════════════════════════════════════════
"""

import logging
from typing import Optional, Tuple

from shapely.errors import GEOSException
from shapely.geometry.base import BaseGeometry

from .primitives import collect_polygonal

logger = logging.getLogger(__name__)

Bounds = Tuple[float, float, float, float]


def _bounds_overlap(a: Bounds, b: Bounds) -> bool:
    """True when two (minx, miny, maxx, maxy) boxes share interior or edge."""
    return not (a[2] < b[0] or b[2] < a[0] or a[3] < b[1] or b[3] < a[1])


def subtract(
    base: Optional[BaseGeometry], cutter: Optional[BaseGeometry]
) -> Optional[BaseGeometry]:
    """
    Planar set difference ``base - cutter``.

    Args:
        base: Region currently held (Polygon or MultiPolygon)
        cutter: Later claim cutting into it

    Returns:
        Remaining Polygon or MultiPolygon of disjoint pieces, or None when
        nothing remains or the operation failed.
    """
    if base is None or base.is_empty:
        return None
    if cutter is None or cutter.is_empty:
        return base

    if not base.is_valid or not cutter.is_valid:
        logger.debug("Difference skipped: invalid input, treating base as overwritten")
        return None

    # Quick bounds check for performance
    if not _bounds_overlap(base.bounds, cutter.bounds):
        return base

    try:
        result = base.difference(cutter)
    except (GEOSException, ValueError) as e:
        logger.debug(f"Difference failed ({e}), treating base as overwritten")
        return None

    return collect_polygonal(result)
