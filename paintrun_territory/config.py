#!/usr/bin/env python3
"""
PaintRun Territory - Configuration

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Centralized configuration for the territory engine.
Single source of truth for geometry tolerances, resolver behaviour, ranking
denominators, loop detection, server and logging settings.

Configuration Sections (ordered by importance for game tuning):
1. ranking: World area denominator (and per-group overrides)
2. resolver: Sliver filtering for surviving claims
3. geometry: Polygon repair and minimum vertex counts
4. loop_detection: Closed-loop detection for uploaded tracks
5. server: Flask host/port and data source
6. logging: Log level and log directory
7. file_paths: Input/output file locations (bottom - rarely changed)

Navigation Guide:
- Use VS Code outline (Ctrl+Shift+O) to jump between sections
"""

import os
from typing import Dict, Any, TypeVar, Callable, Optional

T = TypeVar("T")


def _env_or_default(
    key: str, default: T, type_fn: Optional[Callable[[str], T]] = None
) -> T:
    """
    Get value from environment variable or use default.

    Args:
        key: Environment variable name (e.g., "PAINTRUN_WORLD_AREA_SQ_M")
        default: Default value if env var not set
        type_fn: Optional type conversion function (e.g., float, int)

    Returns:
        Value from environment (converted) or default

    Example:
        >>> _env_or_default("PAINTRUN_SLIVER_AREA_SQ_M", 1.0, float)
        1.0  # If env var not set
    """
    val = os.getenv(key)
    if val is not None:
        if type_fn is not None:
            return type_fn(val)
        return val  # type: ignore
    return default


def _env_bool(key: str, default: bool) -> bool:
    """
    Get boolean value from environment variable.

    Treats "true", "1", "yes" as True (case-insensitive).
    Any other value or unset returns default.
    """
    val = os.getenv(key)
    if val is None:
        return default
    return val.lower() in ("true", "1", "yes")


# ═══════════════════════════════════════════════════════════════════════════
# 🔧 ENVIRONMENT VARIABLE OVERRIDES
# ═══════════════════════════════════════════════════════════════════════════
# PAINTRUN_WORLD_AREA_SQ_M   - float, city area used as percent denominator
# PAINTRUN_SLIVER_AREA_SQ_M  - float, drop surviving parts smaller than this
# PAINTRUN_REPAIR_INVALID    - "true" or "false" (default: "true")
# PAINTRUN_SERVER_HOST       - str (default: "127.0.0.1")
# PAINTRUN_SERVER_PORT       - int (default: 5052)
# PAINTRUN_DATA_FILE         - path to JSON data file ("" = built-in seed data)
# PAINTRUN_LOG_LEVEL         - "DEBUG", "INFO", ... (default: "INFO")
#
# Example usage:
#   export PAINTRUN_WORLD_AREA_SQ_M=101400000
#   export PAINTRUN_DATA_FILE=Output/activities.json
#   python -m paintrun_territory.server
# ═══════════════════════════════════════════════════════════════════════════

# Barcelona municipal area, ~101.4 km²
BARCELONA_AREA_SQ_M = 101_400_000.0

# ═══════════════════════════════════════════════════════════════════════════
# ⚙️ MASTER CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════

CONFIG: Dict[str, Any] = {
    # ═══════════════════════════════════════════════════════════════════════
    # 🏆 RANKING
    # ═══════════════════════════════════════════════════════════════════════
    "ranking": {
        # Denominator for territoryPercent (world scope and default for groups)
        "world_area_sq_meters": _env_or_default(
            "PAINTRUN_WORLD_AREA_SQ_M", BARCELONA_AREA_SQ_M, float
        ),
        # Optional per-group denominators: {"group-id": area_sq_m}
        "group_world_area_sq_meters": {},
        # Decimal places kept on territoryPercent
        "percent_decimals": 4,
    },
    # ═══════════════════════════════════════════════════════════════════════
    # ✂️ RESOLVER
    # ═══════════════════════════════════════════════════════════════════════
    "resolver": {
        # Surviving polygon parts below this area (m²) are discarded.
        # 0.0 keeps every sliver the difference operation produces.
        "sliver_area_sq_meters": _env_or_default(
            "PAINTRUN_SLIVER_AREA_SQ_M", 1.0, float
        ),
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 📐 GEOMETRY
    # ═══════════════════════════════════════════════════════════════════════
    "geometry": {
        # Repair self-intersecting rings with make_valid instead of rejecting
        "repair_invalid": _env_bool("PAINTRUN_REPAIR_INVALID", True),
        # Minimum vertices of a closed ring (first == last counted twice)
        "min_ring_vertices": 4,
        # Ellipsoid used for geodesic area
        "ellipsoid": "WGS84",
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 🔁 LOOP DETECTION (track → polygon)
    # ═══════════════════════════════════════════════════════════════════════
    "loop_detection": {
        "min_track_points": 10,
        # Max start/end gap for a track to count as a closed loop
        "max_closing_gap_m": 500.0,
        # Douglas-Peucker tolerance in degrees
        "simplify_tolerance_deg": 0.0001,
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 🌐 SERVER
    # ═══════════════════════════════════════════════════════════════════════
    "server": {
        "host": _env_or_default("PAINTRUN_SERVER_HOST", "127.0.0.1"),
        "port": _env_or_default("PAINTRUN_SERVER_PORT", 5052, int),
        "data_file": _env_or_default("PAINTRUN_DATA_FILE", ""),
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 📋 LOGGING
    # ═══════════════════════════════════════════════════════════════════════
    "logging": {
        "level": _env_or_default("PAINTRUN_LOG_LEVEL", "INFO"),
        "log_to_file": True,
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 📁 FILE PATHS
    # ═══════════════════════════════════════════════════════════════════════
    "file_paths": {
        "output_dir": "Output",
        "log_dir": "logs",
    },
}
