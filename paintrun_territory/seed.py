"""
Sample Barcelona data for demos and the dev server.

Four runners, seven loops across Raval, Eixample, Barceloneta, Gràcia,
Montjuïc and Diagonal. PaintMaster repaints the Raval loop after
MaratonistaBCN, who then runs it again; the group "colla-raval" holds both.
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple

from paintrun_territory.models import Activity, UserProfile, month_key
from paintrun_territory.service.data_access import InMemoryActivityRepository

SEED_GROUP_ID = "colla-raval"

SAMPLE_USERS: List[UserProfile] = [
    UserProfile("runner-1", "MaratonistaBCN", "#FF6B35", True, (SEED_GROUP_ID,)),
    UserProfile("runner-2", "CorredorUrba", "#3182CE", True, ()),
    UserProfile("runner-3", "TrailRunnerBCN", "#38A169", True, ()),
    UserProfile("runner-4", "PaintMaster", "#D53F8C", True, (SEED_GROUP_ID,)),
    # Registered but never verified: excluded from world rankings
    UserProfile("runner-5", "NouCorredor", "#805AD5", False, ()),
]

SAMPLE_LOOPS: Dict[str, List[Tuple[float, float]]] = {
    "raval": [
        (2.1685, 41.3825), (2.1695, 41.3830), (2.1710, 41.3835),
        (2.1730, 41.3828), (2.1745, 41.3815), (2.1740, 41.3800),
        (2.1725, 41.3790), (2.1705, 41.3785), (2.1690, 41.3790),
        (2.1680, 41.3800), (2.1675, 41.3815), (2.1685, 41.3825),
    ],
    "eixample_nord": [
        (2.1550, 41.3920), (2.1580, 41.3940), (2.1620, 41.3950),
        (2.1660, 41.3945), (2.1690, 41.3930), (2.1680, 41.3910),
        (2.1650, 41.3900), (2.1610, 41.3895), (2.1570, 41.3900),
        (2.1550, 41.3920),
    ],
    "barceloneta": [
        (2.1870, 41.3810), (2.1890, 41.3800), (2.1920, 41.3785),
        (2.1940, 41.3770), (2.1930, 41.3755), (2.1900, 41.3745),
        (2.1870, 41.3750), (2.1850, 41.3765), (2.1845, 41.3785),
        (2.1860, 41.3800), (2.1870, 41.3810),
    ],
    "gracia": [
        (2.1530, 41.4010), (2.1560, 41.4030), (2.1600, 41.4045),
        (2.1640, 41.4050), (2.1680, 41.4040), (2.1700, 41.4020),
        (2.1690, 41.3995), (2.1660, 41.3980), (2.1620, 41.3975),
        (2.1580, 41.3980), (2.1550, 41.3995), (2.1530, 41.4010),
    ],
    "montjuic": [
        (2.1500, 41.3680), (2.1520, 41.3700), (2.1550, 41.3720),
        (2.1590, 41.3730), (2.1630, 41.3725), (2.1650, 41.3705),
        (2.1640, 41.3680), (2.1610, 41.3660), (2.1570, 41.3650),
        (2.1530, 41.3655), (2.1510, 41.3670), (2.1500, 41.3680),
    ],
    "diagonal": [
        (2.1380, 41.3920), (2.1420, 41.3935), (2.1470, 41.3945),
        (2.1520, 41.3940), (2.1550, 41.3925), (2.1540, 41.3905),
        (2.1500, 41.3895), (2.1450, 41.3890), (2.1400, 41.3900),
        (2.1380, 41.3920),
    ],
    "passeig_de_gracia": [
        (2.1620, 41.3890), (2.1640, 41.3910), (2.1665, 41.3920),
        (2.1690, 41.3915), (2.1700, 41.3895), (2.1690, 41.3875),
        (2.1665, 41.3865), (2.1640, 41.3870), (2.1620, 41.3890),
    ],
}

# Neighbourhood each sample loop is tagged with at upload
SAMPLE_NEIGHBORHOODS: Dict[str, str] = {
    "raval": "el Raval",
    "eixample_nord": "la Dreta de l'Eixample",
    "barceloneta": "la Barceloneta",
    "gracia": "la Vila de Gràcia",
    "montjuic": "el Poble-sec",
    "diagonal": "Sant Gervasi - Galvany",
    "passeig_de_gracia": "la Dreta de l'Eixample",
}

# (activity id, user id, loop name or None, hours after period start)
SAMPLE_SCHEDULE: List[Tuple[str, str, Optional[str], int]] = [
    ("act-01", "runner-1", "raval", 10),
    ("act-02", "runner-1", "eixample_nord", 12),
    ("act-03", "runner-1", "gracia", 30),
    ("act-04", "runner-2", "barceloneta", 14),
    ("act-05", "runner-2", "montjuic", 40),
    ("act-06", "runner-3", "diagonal", 20),
    ("act-07", "runner-3", "passeig_de_gracia", 26),
    ("act-08", "runner-4", "raval", 50),
    ("act-09", "runner-1", "raval", 72),
    # Out-and-back run, no loop
    ("act-10", "runner-2", None, 80),
]


def _period_start(period: Optional[str]) -> datetime:
    period = period or month_key()
    year, month = (int(part) for part in period.split("-"))
    return datetime(year, month, 1, tzinfo=timezone.utc)


def build_seed_repository(period: Optional[str] = None) -> InMemoryActivityRepository:
    """In-memory repository with the sample runners, all in ``period`` (default: now)."""
    start = _period_start(period)
    repository = InMemoryActivityRepository(users=SAMPLE_USERS)
    for activity_id, user_id, loop, hours in SAMPLE_SCHEDULE:
        repository.add_activity(
            Activity(
                activity_id=activity_id,
                user_id=user_id,
                timestamp=start + timedelta(hours=hours),
                polygon=tuple(SAMPLE_LOOPS[loop]) if loop else None,
                neighborhood=SAMPLE_NEIGHBORHOODS[loop] if loop else None,
            )
        )
    return repository
