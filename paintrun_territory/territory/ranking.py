"""
Ranking aggregator.

═══════════════════════════════════════════════════════════════════════════════
ARCHITECTURAL OVERVIEW
═══════════════════════════════════════════════════════════════════════════════

Responsibility: Turn resolved territories into a complete, deterministic
leaderboard for a scope.

Rules:
- Every user in scope appears exactly once, zero-territory users included
- territoryPercent = area / world area * 100, rounded to 4 decimals
- Order: area descending, username ascending, user_id ascending
- Rank = 1-based position (no gaps, no shared ranks)

Neighbourhood leaderboards apply the same ordering to the regions won by
runs tagged with one neighbourhood; their leaders, plus the scope leader,
hold the monthly titles.

For Navigation: Use VS Code outline (Ctrl+Shift+O)

═══════════════════════════════════════════════════════════════════════════════
"""

import logging
from typing import Dict, List, Mapping, Sequence

from paintrun_territory.models import (
    MonthlyTitle,
    NeighborhoodSummary,
    RankedEntry,
    ResolvedTerritory,
    TitleType,
    UserProfile,
)

logger = logging.getLogger(__name__)


def percent_of_area(
    area_sq_meters: float, total_world_area_sq_meters: float, decimals: int = 4
) -> float:
    """
    Share of the world area held, in percent.

    Clamped to [0, 100]; overlapping own claims can in theory sum past the
    city area.

    Raises:
        ValueError: If the world area is not positive
    """
    if total_world_area_sq_meters <= 0:
        raise ValueError(
            f"total_world_area_sq_meters must be > 0, got {total_world_area_sq_meters}"
        )
    pct = area_sq_meters / total_world_area_sq_meters * 100.0
    return round(min(100.0, max(0.0, pct)), decimals)


def rank_territories(
    resolved: Mapping[str, ResolvedTerritory],
    users_in_scope: Sequence[UserProfile],
    total_world_area_sq_meters: float,
    percent_decimals: int = 4,
) -> List[RankedEntry]:
    """
    Build the ranking of every user in scope.

    Args:
        resolved: Output of TerritoryResolver.resolve()
        users_in_scope: Users that must appear (duplicates collapsed by id)
        total_world_area_sq_meters: Denominator for the percentage
        percent_decimals: Decimal places kept on the percentage

    Returns:
        RankedEntry list, rank 1 first

    Raises:
        ValueError: If the world area is not positive
    """
    if total_world_area_sq_meters <= 0:
        raise ValueError(
            f"total_world_area_sq_meters must be > 0, got {total_world_area_sq_meters}"
        )

    unique_users: Dict[str, UserProfile] = {}
    for user in users_in_scope:
        unique_users.setdefault(user.user_id, user)

    rows = []
    for user in unique_users.values():
        territory = resolved.get(user.user_id)
        total = territory.total_area_sq_meters if territory is not None else 0.0
        rows.append((max(0.0, total), user))

    rows.sort(key=lambda row: (-row[0], row[1].username, row[1].user_id))

    ranking = [
        RankedEntry(
            user_id=user.user_id,
            username=user.username,
            paint_color=user.paint_color,
            total_area_sq_meters=total,
            percent_of_world_area=percent_of_area(
                total, total_world_area_sq_meters, percent_decimals
            ),
            rank=position,
        )
        for position, (total, user) in enumerate(rows, start=1)
    ]

    logger.debug(f"Ranked {len(ranking)} users")
    return ranking


# ═══════════════════════════════════════════════════════════════════════════
# 🏘️ NEIGHBOURHOOD LEADERBOARDS
# ═══════════════════════════════════════════════════════════════════════════


def rank_neighborhood(
    resolved: Mapping[str, ResolvedTerritory],
    users_in_scope: Sequence[UserProfile],
    neighborhood: str,
    total_world_area_sq_meters: float,
    percent_decimals: int = 4,
) -> List[RankedEntry]:
    """
    Leaderboard of one neighbourhood.

    Only surviving regions won by runs tagged with ``neighborhood`` count.
    Unlike the scope ranking, users holding nothing there are left out.
    """
    local: Dict[str, ResolvedTerritory] = {}
    for user_id, territory in resolved.items():
        part = territory.in_neighborhood(neighborhood)
        if not part.is_empty:
            local[user_id] = part

    holders = [u for u in users_in_scope if u.user_id in local]
    return rank_territories(
        local, holders, total_world_area_sq_meters, percent_decimals
    )


def summarize_neighborhoods(
    resolved: Mapping[str, ResolvedTerritory],
    users_in_scope: Sequence[UserProfile],
    total_world_area_sq_meters: float,
    percent_decimals: int = 4,
) -> List[NeighborhoodSummary]:
    """
    One summary per neighbourhood with surviving territory in scope.

    Ordered by total held area descending, then neighbourhood name.
    """
    in_scope = {u.user_id for u in users_in_scope}
    names = sorted(
        {
            name
            for user_id, territory in resolved.items()
            if user_id in in_scope
            for name in territory.neighborhoods
        }
    )

    summaries: List[NeighborhoodSummary] = []
    for name in names:
        board = rank_neighborhood(
            resolved, users_in_scope, name, total_world_area_sq_meters, percent_decimals
        )
        if not board:
            continue
        summaries.append(
            NeighborhoodSummary(
                neighborhood=name,
                runner_count=len(board),
                total_area_sq_meters=sum(e.total_area_sq_meters for e in board),
                leader=board[0],
            )
        )

    summaries.sort(key=lambda s: (-s.total_area_sq_meters, s.neighborhood))
    logger.debug(f"Summarized {len(summaries)} neighbourhoods")
    return summaries


def award_monthly_titles(
    period: str,
    ranking: Sequence[RankedEntry],
    neighborhoods: Sequence[NeighborhoodSummary],
) -> List[MonthlyTitle]:
    """
    Titles for a period: the scope leader plus every neighbourhood leader.

    A leader with no territory wins nothing.
    """
    titles: List[MonthlyTitle] = []
    if ranking and ranking[0].total_area_sq_meters > 0:
        leader = ranking[0]
        titles.append(
            MonthlyTitle(
                user_id=leader.user_id,
                period_key=period,
                title_type=TitleType.GLOBAL,
                area_sq_meters=leader.total_area_sq_meters,
            )
        )
    for summary in neighborhoods:
        if summary.leader.total_area_sq_meters <= 0:
            continue
        titles.append(
            MonthlyTitle(
                user_id=summary.leader.user_id,
                period_key=period,
                title_type=TitleType.NEIGHBORHOOD,
                area_sq_meters=summary.leader.total_area_sq_meters,
                neighborhood=summary.neighborhood,
            )
        )
    return titles
