"""Data models package for activities, scopes and derived territories."""

from .data_models import (
    Activity,
    UserProfile,
    Scope,
    ScopeKind,
    TerritoryClaim,
    ResolvedTerritory,
    RankedEntry,
    TerritoryEntry,
    ResolutionStats,
    NeighborhoodSummary,
    MonthlyTitle,
    TitleType,
    DEFAULT_PAINT_COLOR,
    # Period helpers
    month_key,
    parse_timestamp,
    to_utc,
    validate_period_key,
    # Batch conversion utilities
    activities_from_dicts,
    users_from_dicts,
)

__all__ = [
    # Input records
    "Activity",
    "UserProfile",
    "Scope",
    "ScopeKind",
    # Derived records
    "TerritoryClaim",
    "ResolvedTerritory",
    "RankedEntry",
    "TerritoryEntry",
    "ResolutionStats",
    "NeighborhoodSummary",
    "MonthlyTitle",
    "TitleType",
    "DEFAULT_PAINT_COLOR",
    # Period helpers
    "month_key",
    "parse_timestamp",
    "to_utc",
    "validate_period_key",
    # Batch conversion utilities
    "activities_from_dicts",
    "users_from_dicts",
]
