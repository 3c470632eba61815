#!/usr/bin/env python3
"""
Territory Data Exporter

Exports resolved territories as a GeoJSON FeatureCollection (one feature per
user, WGS84) and rankings as CSV, for map tooling and offline inspection.

Usage:
    from paintrun_territory.service.export import (
        export_territories_geojson,
        export_rankings_csv,
    )

    export_territories_geojson(entries, output_dir=Path("Output"))
    export_rankings_csv(rankings, output_dir=Path("Output"))
"""

from pathlib import Path
from typing import List, Optional, Sequence
import logging

import geopandas as gpd
import pandas as pd
from shapely.ops import unary_union

from paintrun_territory.models import RankedEntry, TerritoryEntry

# ═══════════════════════════════════════════════════════════════════════════
# 🔧 CONSTANTS
# ═══════════════════════════════════════════════════════════════════════════

CRS_WGS84 = "EPSG:4326"

TERRITORIES_FILENAME = "territories.geojson"
RANKINGS_FILENAME = "rankings.csv"

RANKING_COLUMNS = [
    "rank",
    "userId",
    "username",
    "paintColor",
    "totalAreaSqMeters",
    "territoryPercent",
]

logger = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════════
# 🗺️ TERRITORIES -> GEODATAFRAME
# ═══════════════════════════════════════════════════════════════════════════


def territories_to_geodataframe(
    entries: Sequence[TerritoryEntry],
    rankings: Optional[Sequence[RankedEntry]] = None,
) -> gpd.GeoDataFrame:
    """
    One row per user, geometry = union of the user's surviving regions.

    Own overlapping claims are merged for display only; areas come from the
    ranking (which counts each surviving claim separately).

    Args:
        entries: Output of TerritoryQueryService.get_territory_geometries()
        rankings: Optional ranking to attach rank/area/percent columns

    Returns:
        GeoDataFrame in EPSG:4326
    """
    by_user = {r.user_id: r for r in rankings} if rankings else {}

    records = []
    geometries = []
    for entry in entries:
        ranked = by_user.get(entry.user_id)
        records.append(
            {
                "user_id": entry.user_id,
                "username": entry.username,
                "paint_color": entry.paint_color,
                "region_count": len(entry.regions),
                "rank": ranked.rank if ranked else None,
                "total_area_sq_m": (
                    int(round(ranked.total_area_sq_meters)) if ranked else None
                ),
                "territory_percent": ranked.percent_of_world_area if ranked else None,
            }
        )
        geometries.append(unary_union(list(entry.regions)))

    columns = [
        "user_id",
        "username",
        "paint_color",
        "region_count",
        "rank",
        "total_area_sq_m",
        "territory_percent",
    ]
    return gpd.GeoDataFrame(
        pd.DataFrame(records, columns=columns),
        geometry=gpd.GeoSeries(geometries, crs=CRS_WGS84),
        crs=CRS_WGS84,
    )


def export_territories_geojson(
    entries: Sequence[TerritoryEntry],
    output_dir: Path,
    rankings: Optional[Sequence[RankedEntry]] = None,
    filename: str = TERRITORIES_FILENAME,
) -> Path:
    """
    Write territories to a GeoJSON FeatureCollection.

    Returns:
        Path to the created file.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    gdf = territories_to_geodataframe(entries, rankings)
    output_path = output_dir / filename
    with open(output_path, "w", encoding="utf-8") as f:
        f.write(gdf.to_json())

    logger.info(f"📄 Exported territories: {output_path}")
    logger.info(f"   {len(gdf)} users with territory")
    return output_path


# ═══════════════════════════════════════════════════════════════════════════
# 🏆 RANKINGS -> CSV
# ═══════════════════════════════════════════════════════════════════════════


def rankings_to_dataframe(rankings: Sequence[RankedEntry]) -> pd.DataFrame:
    """Ranking rows in their JSON shape, as a DataFrame."""
    rows: List[dict] = [r.as_dict() for r in rankings]
    return pd.DataFrame(rows, columns=RANKING_COLUMNS)


def export_rankings_csv(
    rankings: Sequence[RankedEntry],
    output_dir: Path,
    filename: str = RANKINGS_FILENAME,
) -> Path:
    """Write the ranking to CSV. Returns the file path."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    output_path = output_dir / filename
    rankings_to_dataframe(rankings).to_csv(output_path, index=False)

    logger.info(f"📄 Exported rankings: {output_path} ({len(rankings)} users)")
    return output_path
