"""
═══════════════════════════════════════════════════════════════════════════════
📦 SERVICE PACKAGE
═══════════════════════════════════════════════════════════════════════════════

Modules:
- data_access: ActivityRepository contract + in-memory / JSON implementations
- query_facade: TerritoryQueryService (rankings, territory geometries, user rank)
- export: GeoJSON / CSV export of query results

═══════════════════════════════════════════════════════════════════════════════
"""

from paintrun_territory.service.data_access import (
    ActivityRepository,
    DataSourceError,
    InMemoryActivityRepository,
    JsonFileActivityRepository,
    save_repository_snapshot,
)
from paintrun_territory.service.query_facade import (
    ResolutionResult,
    TerritoryQueryService,
)

__all__ = [
    "ActivityRepository",
    "DataSourceError",
    "InMemoryActivityRepository",
    "JsonFileActivityRepository",
    "save_repository_snapshot",
    "ResolutionResult",
    "TerritoryQueryService",
]
