#!/usr/bin/env python3
"""
PaintRun Territory - Territory Resolver

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Decide which part of every claim still belongs to its owner
once all later claims of other users have been painted over it.

Algorithm (later-claim-wins):
1. Build one claim per activity with a usable polygon; skip the rest
2. Sort claims by (timestamp, activity_id), a stable total order
3. For each claim, subtract every later claim of a DIFFERENT user
   (own later claims never cut), stopping as soon as nothing is left
4. Record the survivor (minus slivers) and its geodesic area per user

Complexity: O(n²) differences per period. A city league has hundreds of
claims per month, not millions.

Key Interactions:
- Input: Activity records from the data source (one period, one scope)
- Output: Dict[user_id, ResolvedTerritory] for the ranking aggregator

Navigation Guide:
- TerritoryResolver.build_claims: activity -> claim filtering
- TerritoryResolver.resolve: main entry point
- resolve_territories: functional shortcut

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

import logging
import time
from typing import Dict, Iterable, List, Optional, Tuple

from shapely.geometry import MultiPolygon
from shapely.geometry.base import BaseGeometry

from paintrun_territory.config_types import GeometryConfig, ResolverConfig
from paintrun_territory.geometry.difference import subtract
from paintrun_territory.geometry.primitives import (
    area,
    polygon_from_coords,
    polygonal_parts,
)
from paintrun_territory.models import (
    Activity,
    ResolutionStats,
    ResolvedTerritory,
    TerritoryClaim,
)

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# ✂️ TERRITORY RESOLVER
# ═══════════════════════════════════════════════════════════════════════════


class TerritoryResolver:
    """
    Later-claim-wins territory resolution for one period.

    A resolver holds no state between runs apart from ``last_stats``;
    create one per request.
    """

    def __init__(
        self,
        config: Optional[ResolverConfig] = None,
        geometry_config: Optional[GeometryConfig] = None,
    ) -> None:
        self.config = config or ResolverConfig()
        self.geometry_config = geometry_config or GeometryConfig()
        self.last_stats: Optional[ResolutionStats] = None

    # ═══════════════════════════════════════════════════════════════════
    # 🧱 CLAIM CONSTRUCTION
    # ═══════════════════════════════════════════════════════════════════

    def build_claims(
        self,
        activities: Iterable[Activity],
        stats: Optional[ResolutionStats] = None,
    ) -> List[TerritoryClaim]:
        """
        Turn activities into chronologically sorted claims.

        Activities without a polygon, or whose polygon is degenerate, are
        skipped and counted; they never abort the run.

        Args:
            activities: Activities of one period and scope
            stats: Optional counters to update

        Returns:
            Claims sorted by (timestamp, activity_id)
        """
        stats = stats if stats is not None else ResolutionStats()
        claims: List[TerritoryClaim] = []

        for activity in activities:
            stats.activities_in += 1

            if not activity.has_polygon:
                stats.skipped_no_polygon += 1
                continue

            region = polygon_from_coords(
                activity.polygon,
                repair_invalid=self.geometry_config.repair_invalid,
                min_vertices=self.geometry_config.min_ring_vertices,
            )
            if region is None:
                stats.skipped_degenerate += 1
                stats.skipped_ids.append(activity.activity_id)
                logger.debug(
                    f"Skipping activity {activity.activity_id}: degenerate polygon"
                )
                continue

            claims.append(
                TerritoryClaim(
                    activity_id=activity.activity_id,
                    user_id=activity.user_id,
                    timestamp=activity.timestamp,
                    region=region,
                    neighborhood=activity.neighborhood,
                )
            )

        claims.sort(key=lambda c: c.sort_key)
        stats.claims_built = len(claims)
        return claims

    # ═══════════════════════════════════════════════════════════════════
    # 🎯 RESOLUTION
    # ═══════════════════════════════════════════════════════════════════

    def resolve(self, activities: Iterable[Activity]) -> Dict[str, ResolvedTerritory]:
        """
        Resolve the exclusive territory of every user.

        Args:
            activities: Activities of one period and scope (any order)

        Returns:
            Dict mapping user_id -> ResolvedTerritory. Users whose claims
            were all overwritten are absent.
        """
        t_start = time.perf_counter()
        stats = ResolutionStats()
        claims = self.build_claims(activities, stats)

        regions: Dict[str, List[BaseGeometry]] = {}
        areas: Dict[str, List[float]] = {}
        tags: Dict[str, List[Optional[str]]] = {}

        for i, claim in enumerate(claims):
            survivor = self._surviving_region(claim, claims[i + 1 :])
            if survivor is None:
                stats.fully_overwritten += 1
                continue

            survivor, dropped = self._drop_slivers(survivor)
            stats.slivers_dropped += dropped
            if survivor is None:
                stats.fully_overwritten += 1
                continue

            stats.survived += 1
            regions.setdefault(claim.user_id, []).append(survivor)
            areas.setdefault(claim.user_id, []).append(
                area(survivor, self.geometry_config.ellipsoid)
            )
            tags.setdefault(claim.user_id, []).append(claim.neighborhood)

        resolved = {
            user_id: ResolvedTerritory(
                user_id=user_id,
                regions=tuple(user_regions),
                total_area_sq_meters=sum(areas[user_id]),
                region_areas=tuple(areas[user_id]),
                region_neighborhoods=tuple(tags[user_id]),
            )
            for user_id, user_regions in regions.items()
        }

        stats.elapsed_s = time.perf_counter() - t_start
        self.last_stats = stats

        logger.info(
            f"🗺️ Resolved {stats.claims_built} claims in {stats.elapsed_s:.2f}s: "
            f"{stats.survived} survived, {stats.fully_overwritten} overwritten, "
            f"{stats.skipped_no_polygon + stats.skipped_degenerate} skipped"
        )
        if stats.skipped_degenerate:
            logger.warning(
                f"   ⚠️ {stats.skipped_degenerate} activities had degenerate polygons: "
                f"{stats.skipped_ids[:10]}"
            )

        return resolved

    def _surviving_region(
        self, claim: TerritoryClaim, later_claims: List[TerritoryClaim]
    ) -> Optional[BaseGeometry]:
        """Cut a claim by every later claim of another user."""
        remaining: Optional[BaseGeometry] = claim.region
        for later in later_claims:
            # Own re-runs never erase own territory
            if later.user_id == claim.user_id:
                continue
            remaining = subtract(remaining, later.region)
            if remaining is None:
                return None
        return remaining

    def _drop_slivers(
        self, geometry: BaseGeometry
    ) -> Tuple[Optional[BaseGeometry], int]:
        """Remove polygon parts smaller than the sliver threshold."""
        threshold = self.config.sliver_area_sq_meters
        if threshold <= 0:
            return geometry, 0

        parts = polygonal_parts(geometry)
        kept = [
            p for p in parts if area(p, self.geometry_config.ellipsoid) >= threshold
        ]
        dropped = len(parts) - len(kept)
        if dropped == 0:
            return geometry, 0
        if not kept:
            return None, dropped
        if len(kept) == 1:
            return kept[0], dropped
        return MultiPolygon(kept), dropped


def resolve_territories(
    activities: Iterable[Activity],
    config: Optional[ResolverConfig] = None,
    geometry_config: Optional[GeometryConfig] = None,
) -> Dict[str, ResolvedTerritory]:
    """Functional shortcut: one resolver, one run."""
    return TerritoryResolver(config, geometry_config).resolve(activities)
