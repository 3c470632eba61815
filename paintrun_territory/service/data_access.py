#!/usr/bin/env python3
"""
PaintRun Territory - Data Access

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Define the contract the query facade reads activities and
users through, plus two implementations that need no database.

Key Features:
1. ActivityRepository: abstract contract injected into the facade
2. InMemoryActivityRepository: dict-backed store for tests and seed data
3. JsonFileActivityRepository: loads a JSON snapshot exported by the
   upload pipeline (users + activities)

Scope semantics:
- World scope: every verified user
- Group scope: every member of the group

Navigation Guide:
- ActivityRepository: abstract interface
- InMemoryActivityRepository: reference implementation
- JsonFileActivityRepository: file-backed snapshot

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional
import json
import logging
import os

from paintrun_territory.config_types import LoopDetectionConfig
from paintrun_territory.geometry.primitives import detect_closed_loop
from paintrun_territory.models import (
    Activity,
    Scope,
    UserProfile,
    activities_from_dicts,
    users_from_dicts,
)

logger = logging.getLogger(__name__)


class DataSourceError(RuntimeError):
    """The activity/user source could not be read. Fails the whole query."""


# ═══════════════════════════════════════════════════════════════════════════
# 📜 REPOSITORY CONTRACT
# ═══════════════════════════════════════════════════════════════════════════


class ActivityRepository(ABC):
    """Read-only source of activities and users for territory queries."""

    @abstractmethod
    def list_activities_for_period(self, period: str, scope: Scope) -> List[Activity]:
        """Activities of users in ``scope`` whose period key is ``period``.

        Raises:
            DataSourceError: If the underlying source is unreachable
        """

    @abstractmethod
    def list_users_in_scope(self, scope: Scope) -> List[UserProfile]:
        """Users that make up ``scope``.

        Raises:
            DataSourceError: If the underlying source is unreachable
        """


# ═══════════════════════════════════════════════════════════════════════════
# 🧠 IN-MEMORY IMPLEMENTATION
# ═══════════════════════════════════════════════════════════════════════════


class InMemoryActivityRepository(ActivityRepository):
    """Dict-backed repository. Returned lists are fresh copies per call."""

    def __init__(
        self,
        users: Optional[Iterable[UserProfile]] = None,
        activities: Optional[Iterable[Activity]] = None,
    ) -> None:
        self._users: Dict[str, UserProfile] = {}
        self._activities: Dict[str, Activity] = {}
        for user in users or []:
            self.add_user(user)
        for activity in activities or []:
            self.add_activity(activity)

    def add_user(self, user: UserProfile) -> None:
        self._users[user.user_id] = user

    def add_activity(self, activity: Activity) -> None:
        self._activities[activity.activity_id] = activity

    def all_users(self) -> List[UserProfile]:
        return list(self._users.values())

    def all_activities(self) -> List[Activity]:
        return list(self._activities.values())

    @property
    def user_count(self) -> int:
        return len(self._users)

    @property
    def activity_count(self) -> int:
        return len(self._activities)

    def list_users_in_scope(self, scope: Scope) -> List[UserProfile]:
        if scope.is_group:
            return [u for u in self._users.values() if scope.group_id in u.group_ids]
        return [u for u in self._users.values() if u.verified]

    def list_activities_for_period(self, period: str, scope: Scope) -> List[Activity]:
        member_ids = {u.user_id for u in self.list_users_in_scope(scope)}
        return [
            a
            for a in self._activities.values()
            if a.period_key == period and a.user_id in member_ids
        ]


# ═══════════════════════════════════════════════════════════════════════════
# 📂 JSON FILE IMPLEMENTATION
# ═══════════════════════════════════════════════════════════════════════════


class JsonFileActivityRepository(InMemoryActivityRepository):
    """
    Repository loaded from a JSON snapshot.

    Expected format:
        {
            "users": [
                {"id": "u1", "username": "MaratonistaBCN",
                 "paintColor": "#FF6B35", "verified": true, "groups": ["g1"]}
            ],
            "activities": [
                {"id": "a1", "userId": "u1",
                 "timestamp": "2026-10-03T08:15:00Z",
                 "polygon": [[2.1685, 41.3825], ...] | null,
                 "neighborhoodName": "el Raval",
                 "track": [[lon, lat], ...],
                 "monthKey": "2026-10"}
            ]
        }
    """

    def __init__(
        self, path: Path, loop_config: Optional[LoopDetectionConfig] = None
    ) -> None:
        super().__init__()
        self.path = Path(path)
        self.loop_config = loop_config or LoopDetectionConfig()
        self._data_file_modified: Optional[datetime] = None
        self._data_loaded_at: Optional[datetime] = None
        self.reload()

    def reload(self) -> None:
        """(Re)load the snapshot from disk.

        Raises:
            DataSourceError: If the file is missing or not valid JSON
        """
        if not self.path.exists():
            raise DataSourceError(f"Data file not found: {self.path}")

        logger.info(f"Loading territory data from: {self.path.name}")
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise DataSourceError(f"Could not read {self.path}: {e}") from e

        try:
            users = users_from_dicts(data.get("users", []))
            activities = activities_from_dicts(
                [self._with_loop_polygon(d) for d in data.get("activities", [])]
            )
        except (AttributeError, TypeError, ValueError) as e:
            raise DataSourceError(f"Malformed data in {self.path}: {e}") from e

        self._users.clear()
        self._activities.clear()
        for user in users:
            self.add_user(user)
        for activity in activities:
            self.add_activity(activity)

        self._data_file_modified = datetime.fromtimestamp(os.path.getmtime(self.path))
        self._data_loaded_at = datetime.now()

        logger.info(f"Loaded {self.user_count} users, {self.activity_count} activities")

    def _with_loop_polygon(self, d: Dict[str, Any]) -> Dict[str, Any]:
        """Derive ``polygon`` from a raw ``track`` when only the track was stored."""
        if d.get("polygon") is not None or not d.get("track"):
            return d
        ring = detect_closed_loop(
            d["track"],
            min_points=self.loop_config.min_track_points,
            max_closing_gap_m=self.loop_config.max_closing_gap_m,
            simplify_tolerance_deg=self.loop_config.simplify_tolerance_deg,
        )
        if ring is None:
            logger.debug(f"Activity {d.get('id')!r}: track is not a closed loop")
            return d
        return {**d, "polygon": ring}

    def get_data_info(self) -> Dict[str, Any]:
        """File timestamps and counts, for the health endpoint."""
        return {
            "data_file": str(self.path),
            "data_file_modified": (
                self._data_file_modified.isoformat() if self._data_file_modified else None
            ),
            "data_loaded_at": (
                self._data_loaded_at.isoformat() if self._data_loaded_at else None
            ),
            "user_count": self.user_count,
            "activity_count": self.activity_count,
        }


def save_repository_snapshot(
    repository: InMemoryActivityRepository, path: Path
) -> Path:
    """Write an in-memory repository in the JsonFileActivityRepository format."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = {
        "users": [u.as_dict() for u in repository.all_users()],
        "activities": [a.as_dict() for a in repository.all_activities()],
    }
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)
    logger.info(f"📄 Saved data snapshot: {path}")
    return path
