"""
PaintRun Territory

Territory resolution and live rankings for a run-to-paint city game.
Later claims win; each query recomputes ownership from the month's runs.
"""

from paintrun_territory.config import CONFIG
from paintrun_territory.config_types import AppConfig
from paintrun_territory.service.query_facade import TerritoryQueryService

__all__ = ["CONFIG", "AppConfig", "TerritoryQueryService"]
