"""
Shared fixtures for the territory engine tests.

Squares are built near Barcelona (lon ~2.15, lat ~41.38) so geodesic areas
are city-scale: a 0.001° square is roughly 83 m x 111 m, about 9,300 m².
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional, Tuple

import pytest

from paintrun_territory.models import Activity, UserProfile

BASE_LON = 2.150
BASE_LAT = 41.380
PERIOD = "2026-10"


def square_ring(
    lon: float = BASE_LON, lat: float = BASE_LAT, size: float = 0.001
) -> List[Tuple[float, float]]:
    """Closed counter-clockwise square ring with its lower-left corner at (lon, lat)."""
    # Rounded so corners match the same literal coordinates used in tests
    east, north = round(lon + size, 7), round(lat + size, 7)
    return [
        (lon, lat),
        (east, lat),
        (east, north),
        (lon, north),
        (lon, lat),
    ]


@pytest.fixture
def square() -> Callable[..., List[Tuple[float, float]]]:
    return square_ring


@pytest.fixture
def base_time() -> datetime:
    return datetime(2026, 10, 5, 8, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_activity(base_time) -> Callable[..., Activity]:
    """Factory: activity ``hours`` after base_time with the given ring."""

    def _make(
        activity_id: str,
        user_id: str,
        ring: Optional[List[Tuple[float, float]]],
        hours: float = 0.0,
        neighborhood: Optional[str] = None,
    ) -> Activity:
        return Activity(
            activity_id=activity_id,
            user_id=user_id,
            timestamp=base_time + timedelta(hours=hours),
            polygon=ring,
            neighborhood=neighborhood,
        )

    return _make


@pytest.fixture
def users() -> List[UserProfile]:
    return [
        UserProfile("alice", "Alice", "#FF6B35", True, ("club",)),
        UserProfile("bob", "Bob", "#3182CE", True, ("club",)),
        UserProfile("carol", "Carol", "#38A169", True, ()),
        UserProfile("dave", "Dave", "#D53F8C", False, ("club",)),
    ]
