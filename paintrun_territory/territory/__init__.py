"""
═══════════════════════════════════════════════════════════════════════════════
📦 TERRITORY PACKAGE
═══════════════════════════════════════════════════════════════════════════════

Modules:
- resolver: later-claim-wins resolution of claims into per-user territory
- ranking: percentage and deterministic ranking over a scope

Usage:
    from paintrun_territory.territory import TerritoryResolver, rank_territories

    resolved = TerritoryResolver().resolve(activities)
    ranking = rank_territories(resolved, users, world_area)

═══════════════════════════════════════════════════════════════════════════════
"""

from paintrun_territory.territory.resolver import (
    TerritoryResolver,
    resolve_territories,
)
from paintrun_territory.territory.ranking import (
    percent_of_area,
    rank_territories,
)

__all__ = [
    "TerritoryResolver",
    "resolve_territories",
    "percent_of_area",
    "rank_territories",
]
