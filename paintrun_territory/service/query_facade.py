#!/usr/bin/env python3
"""
PaintRun Territory - Query Facade

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: The read operations the HTTP layer calls. Each call fetches
the period's activities and the scope's users once, resolves territory from
scratch and aggregates the result. Nothing derived is cached or persisted.

Key Interactions:
- ActivityRepository (injected): activities + users for a period/scope
- TerritoryResolver: per-user surviving regions and areas
- rank_territories: complete, deterministic leaderboard

Error semantics:
- Data-quality issues never fail a query (skipped claims, zero entries)
- DataSourceError from the repository propagates unchanged
- Malformed period keys raise ValueError

Navigation Guide:
- TerritoryQueryService.get_rankings
- TerritoryQueryService.get_territory_geometries
- TerritoryQueryService.get_user_rank
- TerritoryQueryService.get_neighborhood_rankings / get_monthly_titles
- territory_entries: map rows from an already resolved run

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from paintrun_territory.config_types import AppConfig
from paintrun_territory.models import (
    MonthlyTitle,
    NeighborhoodSummary,
    RankedEntry,
    ResolutionStats,
    ResolvedTerritory,
    Scope,
    TerritoryEntry,
    UserProfile,
    validate_period_key,
)
from paintrun_territory.service.data_access import ActivityRepository
from paintrun_territory.territory.ranking import (
    award_monthly_titles,
    rank_neighborhood,
    rank_territories,
    summarize_neighborhoods,
)
from paintrun_territory.territory.resolver import TerritoryResolver

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# 📦 RESULT CONTAINER
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class ResolutionResult:
    """Everything one resolution run produced for a period and scope."""

    period: str
    scope: Scope
    users: List[UserProfile]
    resolved: Dict[str, ResolvedTerritory]
    ranking: List[RankedEntry]
    stats: Optional[ResolutionStats] = None


# ═══════════════════════════════════════════════════════════════════════════
# 🔎 QUERY SERVICE
# ═══════════════════════════════════════════════════════════════════════════


class TerritoryQueryService:
    """
    Facade consumed by the HTTP layer.

    The service itself holds only its repository and config; every query
    builds its own resolver, so concurrent requests share no mutable state.
    """

    def __init__(
        self,
        repository: ActivityRepository,
        app_config: Optional[AppConfig] = None,
    ) -> None:
        self.repository = repository
        self.app_config = app_config or AppConfig()

    def resolve(self, period: str, scope: Optional[Scope] = None) -> ResolutionResult:
        """
        Run resolution + aggregation for a period and scope.

        Args:
            period: ``YYYY-MM`` period key
            scope: World (default) or group scope

        Returns:
            ResolutionResult with users, resolved territories and ranking

        Raises:
            ValueError: If the period key is malformed
            DataSourceError: If the repository cannot be read
        """
        validate_period_key(period)
        scope = scope or Scope.world()

        # Fetch everything up front; resolution below is pure in-memory work
        activities = self.repository.list_activities_for_period(period, scope)
        users = self.repository.list_users_in_scope(scope)

        logger.info(
            f"📊 Resolving {period} [{scope.label}]: "
            f"{len(activities)} activities, {len(users)} users"
        )

        resolver = TerritoryResolver(
            self.app_config.resolver, self.app_config.geometry
        )
        resolved = resolver.resolve(activities)

        ranking = rank_territories(
            resolved,
            users,
            self.app_config.ranking.world_area_for(scope),
            self.app_config.ranking.percent_decimals,
        )

        return ResolutionResult(
            period=period,
            scope=scope,
            users=users,
            resolved=resolved,
            ranking=ranking,
            stats=resolver.last_stats,
        )

    def get_rankings(self, period: str, scope: Optional[Scope] = None) -> List[RankedEntry]:
        """Full ranking, one entry per user in scope (zero entries included)."""
        return self.resolve(period, scope).ranking

    def get_territory_geometries(
        self, period: str, scope: Optional[Scope] = None
    ) -> List[TerritoryEntry]:
        """Users with non-empty territory and their regions, in ranking order."""
        return territory_entries(self.resolve(period, scope))

    def get_user_rank(
        self, period: str, user_id: str, scope: Optional[Scope] = None
    ) -> int:
        """1-based rank of a user, or 0 when the user is not in scope."""
        for entry in self.get_rankings(period, scope):
            if entry.user_id == user_id:
                return entry.rank
        return 0

    # ═══════════════════════════════════════════════════════════════════
    # 🏘️ NEIGHBOURHOODS AND TITLES
    # ═══════════════════════════════════════════════════════════════════

    def get_neighborhood_rankings(
        self, period: str, scope: Optional[Scope] = None
    ) -> List[NeighborhoodSummary]:
        """Leader, runner count and held area of every neighbourhood."""
        return self._neighborhood_summaries(self.resolve(period, scope))

    def get_neighborhood_leaderboard(
        self, period: str, neighborhood: str, scope: Optional[Scope] = None
    ) -> List[RankedEntry]:
        """Ranking of the users holding territory in one neighbourhood."""
        result = self.resolve(period, scope)
        return rank_neighborhood(
            result.resolved,
            result.users,
            neighborhood,
            self.app_config.ranking.world_area_for(result.scope),
            self.app_config.ranking.percent_decimals,
        )

    def get_monthly_titles(
        self, period: str, scope: Optional[Scope] = None
    ) -> List[MonthlyTitle]:
        """Titles held for a period: scope leader first, then neighbourhood leaders."""
        result = self.resolve(period, scope)
        return award_monthly_titles(
            period, result.ranking, self._neighborhood_summaries(result)
        )

    def get_user_titles(
        self, period: str, user_id: str, scope: Optional[Scope] = None
    ) -> List[MonthlyTitle]:
        return [t for t in self.get_monthly_titles(period, scope) if t.user_id == user_id]

    def _neighborhood_summaries(
        self, result: ResolutionResult
    ) -> List[NeighborhoodSummary]:
        return summarize_neighborhoods(
            result.resolved,
            result.users,
            self.app_config.ranking.world_area_for(result.scope),
            self.app_config.ranking.percent_decimals,
        )


def territory_entries(result: ResolutionResult) -> List[TerritoryEntry]:
    """
    Map rows for a finished resolution run, in ranking order.

    Users without surviving territory are omitted.
    """
    entries: List[TerritoryEntry] = []
    for ranked in result.ranking:
        territory = result.resolved.get(ranked.user_id)
        if territory is None or territory.is_empty:
            continue
        entries.append(
            TerritoryEntry(
                user_id=ranked.user_id,
                username=ranked.username,
                paint_color=ranked.paint_color,
                regions=territory.regions,
            )
        )
    return entries
