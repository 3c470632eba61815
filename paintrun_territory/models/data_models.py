"""
Typed data models for territory resolution.

Architectural Overview:
=======================
This module contains the immutable dataclasses that flow through one
resolution run: raw activities and users delivered by the data source, the
claims built from them, and the derived territories, ranking rows and map
entries returned to the HTTP layer.

Key Interactions:
-----------------
- Input: Repositories create Activity and UserProfile instances (from_dict)
- Core: TerritoryResolver turns Activity -> TerritoryClaim -> ResolvedTerritory
- Output: as_dict() methods produce the JSON payloads served by the API
- Navigation: Use VS Code outline (Ctrl+Shift+O) for quick navigation

Data Flow:
----------
1. Activities for a period + scope are fetched once
2. Each activity with a usable polygon becomes a TerritoryClaim
3. Claims are cut by later claims of other users -> ResolvedTerritory
4. Ranking produces RankedEntry rows; map rendering produces TerritoryEntry rows
"""

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Dict, Any, List, Sequence, Tuple

from shapely.geometry.base import BaseGeometry

from paintrun_territory.geometry.primitives import to_coordinate_arrays

DEFAULT_PAINT_COLOR = "#FF6B35"

_PERIOD_KEY_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


# ═══════════════════════════════════════════════════════════════════════════
# 📅 PERIOD HELPERS
# ═══════════════════════════════════════════════════════════════════════════


def to_utc(ts: datetime) -> datetime:
    """Return an aware UTC datetime. Naive timestamps are taken as UTC."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO-8601 string (``Z`` suffix allowed) or pass a datetime through.

    Raises:
        ValueError: If the value is neither a datetime nor an ISO string
    """
    if isinstance(value, datetime):
        return to_utc(value)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        return to_utc(datetime.fromisoformat(text))
    raise ValueError(f"Unsupported timestamp value: {value!r}")


def month_key(ts: Optional[datetime] = None) -> str:
    """Period key (``YYYY-MM``) of a timestamp, default now (UTC)."""
    ts = to_utc(ts) if ts is not None else datetime.now(timezone.utc)
    return f"{ts.year:04d}-{ts.month:02d}"


def validate_period_key(period: str) -> str:
    """Check a ``YYYY-MM`` period key.

    Raises:
        ValueError: If the key is malformed
    """
    if not isinstance(period, str) or not _PERIOD_KEY_RE.match(period):
        raise ValueError(f"Invalid period key {period!r}, expected YYYY-MM")
    return period


# ═══════════════════════════════════════════════════════════════════════════
# 🏷️ SCOPE SECTION
# ═══════════════════════════════════════════════════════════════════════════


class ScopeKind(Enum):
    """Population of users a query is computed for."""

    WORLD = "world"
    GROUP = "group"

    @classmethod
    def from_string(cls, s: str) -> "ScopeKind":
        """Convert string to ScopeKind, with fallback to WORLD."""
        for member in cls:
            if member.value == s:
                return member
        return cls.WORLD


@dataclass(frozen=True)
class Scope:
    """World scope (every verified user) or one private group."""

    kind: ScopeKind = ScopeKind.WORLD
    group_id: Optional[str] = None

    def __post_init__(self) -> None:
        if self.kind is ScopeKind.GROUP and not self.group_id:
            raise ValueError("Group scope requires a group_id")
        if self.kind is ScopeKind.WORLD and self.group_id is not None:
            object.__setattr__(self, "group_id", None)

    @classmethod
    def world(cls) -> "Scope":
        return cls(ScopeKind.WORLD)

    @classmethod
    def group(cls, group_id: str) -> "Scope":
        return cls(ScopeKind.GROUP, group_id)

    @classmethod
    def from_group_param(cls, group_id: Optional[str]) -> "Scope":
        """Build a scope from an optional ``group`` query parameter."""
        if group_id:
            return cls.group(group_id)
        return cls.world()

    @property
    def is_group(self) -> bool:
        return self.kind is ScopeKind.GROUP

    @property
    def label(self) -> str:
        """Short label for log lines (``world`` or ``group:<id>``)."""
        if self.is_group:
            return f"group:{self.group_id}"
        return self.kind.value


# ═══════════════════════════════════════════════════════════════════════════
# 🏃 INPUT RECORDS (owned by the data source)
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class UserProfile:
    """A player as seen by rankings and map rendering.

    Attributes:
        user_id: Stable user identifier
        username: Display name, also the ranking tie-breaker
        paint_color: Hex colour used to paint the user's territory
        verified: Only verified users take part in world rankings
        group_ids: Private groups the user belongs to
    """

    user_id: str
    username: str
    paint_color: str = DEFAULT_PAINT_COLOR
    verified: bool = True
    group_ids: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "group_ids", tuple(self.group_ids))

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "UserProfile":
        """Create UserProfile from a camelCase or snake_case dictionary."""
        return cls(
            user_id=str(d.get("id", d.get("userId", d.get("user_id")))),
            username=str(d.get("username", "")),
            paint_color=d.get("paintColor", d.get("paint_color", DEFAULT_PAINT_COLOR)),
            verified=bool(d.get("verified", True)),
            group_ids=tuple(d.get("groups", d.get("group_ids", ()))),
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id": self.user_id,
            "username": self.username,
            "paintColor": self.paint_color,
            "verified": self.verified,
            "groups": list(self.group_ids),
        }


@dataclass(frozen=True)
class Activity:
    """One uploaded run.

    The polygon is the closed loop detected for the run, as an ordered
    sequence of (lon, lat) pairs, or None when the run was not a loop.
    It is kept exactly as delivered; validation happens in the resolver.

    Attributes:
        activity_id: Stable identifier, secondary sort key for equal timestamps
        user_id: Owner of the run
        timestamp: Upload/claim time (normalised to aware UTC)
        polygon: Ring of (lon, lat) pairs, or None
        area_sq_meters: Raw loop area as computed at upload time
        period_key: ``YYYY-MM`` period, derived from timestamp when missing
        neighborhood: Neighbourhood the run was tagged with at upload, if any
    """

    activity_id: str
    user_id: str
    timestamp: datetime
    polygon: Optional[Tuple[Tuple[float, ...], ...]] = None
    area_sq_meters: float = 0.0
    period_key: Optional[str] = None
    neighborhood: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "timestamp", to_utc(self.timestamp))
        if self.polygon is not None:
            object.__setattr__(
                self, "polygon", tuple(tuple(point) for point in self.polygon)
            )
        if self.period_key is None:
            object.__setattr__(self, "period_key", month_key(self.timestamp))

    @property
    def has_polygon(self) -> bool:
        return self.polygon is not None and len(self.polygon) > 0

    @property
    def sort_key(self) -> Tuple[datetime, str]:
        """Total chronological order: timestamp, then activity id."""
        return (self.timestamp, self.activity_id)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Activity":
        """Create Activity from a camelCase or snake_case dictionary.

        Raises:
            ValueError: If the id, owner or timestamp is missing, or the
                timestamp is unparseable
        """
        activity_id = d.get("id", d.get("activity_id"))
        if activity_id is None or activity_id == "":
            raise ValueError(f"Activity without id: {sorted(d)}")
        user_id = d.get("userId", d.get("user_id"))
        if user_id is None or user_id == "":
            raise ValueError(f"Activity {activity_id!r} has no owner")
        ts = d.get("timestamp", d.get("uploadedAt", d.get("timestamp_utc")))
        if ts is None:
            raise ValueError(f"Activity {activity_id!r} has no timestamp")
        return cls(
            activity_id=str(activity_id),
            user_id=str(user_id),
            timestamp=parse_timestamp(ts),
            polygon=d.get("polygon"),
            area_sq_meters=float(d.get("areaSqMeters", d.get("area_sq_meters", 0.0)) or 0.0),
            period_key=d.get("monthKey", d.get("period_key")),
            neighborhood=d.get("neighborhoodName", d.get("neighborhood")) or None,
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id": self.activity_id,
            "userId": self.user_id,
            "timestamp": self.timestamp.isoformat(),
            "polygon": [list(p) for p in self.polygon] if self.polygon else None,
            "areaSqMeters": self.area_sq_meters,
            "monthKey": self.period_key,
            "neighborhoodName": self.neighborhood,
        }


# ═══════════════════════════════════════════════════════════════════════════
# 🗺️ DERIVED RECORDS (owned by one resolution run)
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class TerritoryClaim:
    """A single activity's polygon entering resolution."""

    activity_id: str
    user_id: str
    timestamp: datetime
    region: BaseGeometry
    neighborhood: Optional[str] = None

    @property
    def sort_key(self) -> Tuple[datetime, str]:
        return (self.timestamp, self.activity_id)


@dataclass(frozen=True)
class ResolvedTerritory:
    """What a user still owns after every later foreign claim is applied.

    Attributes:
        user_id: Owner
        regions: Surviving Polygon/MultiPolygon per surviving claim
        total_area_sq_meters: Sum of geodesic areas of ``regions``
        region_areas: Geodesic area of each region, same order as ``regions``
        region_neighborhoods: Neighbourhood tag of the claim behind each region
    """

    user_id: str
    regions: Tuple[BaseGeometry, ...] = ()
    total_area_sq_meters: float = 0.0
    region_areas: Tuple[float, ...] = ()
    region_neighborhoods: Tuple[Optional[str], ...] = ()

    @property
    def is_empty(self) -> bool:
        return len(self.regions) == 0

    @property
    def neighborhoods(self) -> List[str]:
        """Distinct neighbourhood tags of the surviving regions, sorted."""
        return sorted({n for n in self.region_neighborhoods if n})

    def in_neighborhood(self, neighborhood: str) -> "ResolvedTerritory":
        """The part of this territory won by runs tagged with ``neighborhood``."""
        regions: List[BaseGeometry] = []
        areas: List[float] = []
        for region, region_area, tag in zip(
            self.regions, self.region_areas, self.region_neighborhoods
        ):
            if tag == neighborhood:
                regions.append(region)
                areas.append(region_area)
        return ResolvedTerritory(
            user_id=self.user_id,
            regions=tuple(regions),
            total_area_sq_meters=sum(areas),
            region_areas=tuple(areas),
            region_neighborhoods=(neighborhood,) * len(regions),
        )


@dataclass(frozen=True)
class RankedEntry:
    """One row of a ranking response."""

    user_id: str
    username: str
    paint_color: str
    total_area_sq_meters: float
    percent_of_world_area: float
    rank: int

    def as_dict(self) -> Dict[str, Any]:
        """JSON form served by the rankings endpoint."""
        return {
            "userId": self.user_id,
            "username": self.username,
            "paintColor": self.paint_color,
            "totalAreaSqMeters": int(round(self.total_area_sq_meters)),
            "territoryPercent": self.percent_of_world_area,
            "rank": self.rank,
        }


@dataclass(frozen=True)
class TerritoryEntry:
    """Map-rendering payload for one user with territory."""

    user_id: str
    username: str
    paint_color: str
    regions: Tuple[BaseGeometry, ...] = ()

    @property
    def polygons(self) -> List[List[List[List[float]]]]:
        """One ``[exterior, *holes]`` coordinate array per disjoint polygon."""
        polygons: List[List[List[List[float]]]] = []
        for region in self.regions:
            polygons.extend(to_coordinate_arrays(region))
        return polygons

    def as_dict(self) -> Dict[str, Any]:
        return {
            "userId": self.user_id,
            "username": self.username,
            "paintColor": self.paint_color,
            "polygons": self.polygons,
        }


class TitleType(Enum):
    """Kind of monthly title."""

    GLOBAL = "global"
    NEIGHBORHOOD = "neighborhood"


@dataclass(frozen=True)
class NeighborhoodSummary:
    """One row of the neighbourhood overview: who leads and how contested it is."""

    neighborhood: str
    runner_count: int
    total_area_sq_meters: float
    leader: RankedEntry

    def as_dict(self) -> Dict[str, Any]:
        return {
            "neighborhoodName": self.neighborhood,
            "runnerCount": self.runner_count,
            "totalAreaSqMeters": int(round(self.total_area_sq_meters)),
            "leader": self.leader.as_dict(),
        }


@dataclass(frozen=True)
class MonthlyTitle:
    """A title held for a period: world leader or neighbourhood leader."""

    user_id: str
    period_key: str
    title_type: TitleType
    area_sq_meters: float
    neighborhood: Optional[str] = None
    rank: int = 1

    def as_dict(self) -> Dict[str, Any]:
        return {
            "userId": self.user_id,
            "monthKey": self.period_key,
            "titleType": self.title_type.value,
            "neighborhoodName": self.neighborhood,
            "rank": self.rank,
            "areaSqMeters": int(round(self.area_sq_meters)),
        }


# ═══════════════════════════════════════════════════════════════════════════
# 📊 RUN STATISTICS
# ═══════════════════════════════════════════════════════════════════════════


@dataclass
class ResolutionStats:
    """Counters for one resolution run (logged, never served)."""

    activities_in: int = 0
    claims_built: int = 0
    skipped_no_polygon: int = 0
    skipped_degenerate: int = 0
    fully_overwritten: int = 0
    survived: int = 0
    slivers_dropped: int = 0
    elapsed_s: float = 0.0
    skipped_ids: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert stats to dictionary for logging."""
        return {
            "activities_in": self.activities_in,
            "claims_built": self.claims_built,
            "skipped_no_polygon": self.skipped_no_polygon,
            "skipped_degenerate": self.skipped_degenerate,
            "fully_overwritten": self.fully_overwritten,
            "survived": self.survived,
            "slivers_dropped": self.slivers_dropped,
            "elapsed_s": round(self.elapsed_s, 3),
        }


def activities_from_dicts(items: Sequence[Dict[str, Any]]) -> List[Activity]:
    """Batch conversion of raw activity dicts."""
    return [Activity.from_dict(d) for d in items]


def users_from_dicts(items: Sequence[Dict[str, Any]]) -> List[UserProfile]:
    """Batch conversion of raw user dicts."""
    return [UserProfile.from_dict(d) for d in items]
