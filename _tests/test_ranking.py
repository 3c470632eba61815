"""
Unit tests for the ranking aggregator.

Run with: python -m pytest _tests/test_ranking.py -v
"""

import pytest
from shapely.geometry import box

from paintrun_territory.models import ResolvedTerritory, TitleType, UserProfile
from paintrun_territory.territory.ranking import (
    award_monthly_titles,
    percent_of_area,
    rank_neighborhood,
    rank_territories,
    summarize_neighborhoods,
)

WORLD = 1_000_000.0


def _resolved(**areas):
    return {
        user_id: ResolvedTerritory(user_id=user_id, regions=(), total_area_sq_meters=a)
        for user_id, a in areas.items()
    }


class TestPercentOfArea:
    """Test percentage computation."""

    def test_basic_percent(self):
        assert percent_of_area(1000.0, 101_400_000.0) == pytest.approx(0.001, abs=1e-4)

    def test_rounded_to_four_decimals(self):
        assert percent_of_area(1.0, 3.0) == 33.3333

    def test_clamped_to_bounds(self):
        assert percent_of_area(2 * WORLD, WORLD) == 100.0
        assert percent_of_area(-5.0, WORLD) == 0.0

    @pytest.mark.parametrize("world", [0.0, -1.0])
    def test_non_positive_world_rejected(self, world):
        with pytest.raises(ValueError):
            percent_of_area(1.0, world)


class TestRankTerritories:
    """Test ranking completeness and ordering."""

    def test_every_user_in_scope_once(self, users):
        ranking = rank_territories(_resolved(alice=500.0), users, WORLD)
        assert sorted(r.user_id for r in ranking) == sorted(u.user_id for u in users)

    def test_zero_entries_for_users_without_territory(self, users):
        ranking = rank_territories({}, users, WORLD)
        assert all(r.total_area_sq_meters == 0.0 for r in ranking)
        assert all(r.percent_of_world_area == 0.0 for r in ranking)

    def test_sorted_by_area_descending(self, users):
        ranking = rank_territories(
            _resolved(alice=100.0, bob=300.0, carol=200.0), users, WORLD
        )
        assert [r.user_id for r in ranking] == ["bob", "carol", "alice", "dave"]
        assert [r.rank for r in ranking] == [1, 2, 3, 4]

    def test_ties_broken_by_username_then_user_id(self):
        scope_users = [
            UserProfile("u3", "Zed"),
            UserProfile("u2", "Amy"),
            UserProfile("u1", "Amy"),
        ]
        ranking = rank_territories(_resolved(u1=50.0, u2=50.0, u3=50.0), scope_users, WORLD)
        assert [r.user_id for r in ranking] == ["u1", "u2", "u3"]
        assert [r.rank for r in ranking] == [1, 2, 3]

    def test_username_order_is_code_point(self):
        scope_users = [UserProfile("u1", "bob"), UserProfile("u2", "Bob")]
        ranking = rank_territories({}, scope_users, WORLD)
        # "B" (66) sorts before "b" (98)
        assert [r.username for r in ranking] == ["Bob", "bob"]

    def test_duplicate_users_collapsed(self, users):
        ranking = rank_territories({}, users + users[:2], WORLD)
        assert len(ranking) == len(users)

    def test_territory_outside_scope_ignored(self, users):
        ranking = rank_territories(_resolved(stranger=900.0), users, WORLD)
        assert "stranger" not in {r.user_id for r in ranking}

    def test_ranks_monotonic_with_area(self, users):
        ranking = rank_territories(
            _resolved(alice=10.0, bob=10.0, carol=5.0, dave=20.0), users, WORLD
        )
        for earlier, later in zip(ranking, ranking[1:]):
            assert earlier.total_area_sq_meters >= later.total_area_sq_meters
            assert earlier.rank + 1 == later.rank

    def test_profile_fields_carried(self, users):
        top = rank_territories(_resolved(bob=1000.0), users, WORLD)[0]
        assert top.username == "Bob"
        assert top.paint_color == "#3182CE"
        assert top.percent_of_world_area == 0.1

    def test_non_positive_world_rejected(self, users):
        with pytest.raises(ValueError):
            rank_territories({}, users, 0.0)

    def test_json_shape(self, users):
        entry = rank_territories(_resolved(alice=1234.56), users, WORLD)[0]
        assert entry.as_dict() == {
            "userId": "alice",
            "username": "Alice",
            "paintColor": "#FF6B35",
            "totalAreaSqMeters": 1235,
            "territoryPercent": 0.1235,
            "rank": 1,
        }


# ═══════════════════════════════════════════════════════════════════════════
# NEIGHBOURHOODS AND TITLES
# ═══════════════════════════════════════════════════════════════════════════


def _tagged(user_id, *regions):
    """Territory from (neighbourhood, area) pairs; geometry is irrelevant here."""
    return ResolvedTerritory(
        user_id=user_id,
        regions=tuple(box(i, 0, i + 1, 1) for i in range(len(regions))),
        total_area_sq_meters=sum(a for _, a in regions),
        region_areas=tuple(a for _, a in regions),
        region_neighborhoods=tuple(n for n, _ in regions),
    )


@pytest.fixture
def tagged_resolved():
    return {
        "alice": _tagged("alice", ("el Raval", 300.0), ("Gràcia", 50.0)),
        "bob": _tagged("bob", ("el Raval", 500.0)),
        "carol": _tagged("carol", (None, 900.0)),
    }


class TestNeighborhoodRanking:
    """Per-neighbourhood leaderboards."""

    def test_only_holders_ranked(self, tagged_resolved, users):
        board = rank_neighborhood(tagged_resolved, users, "el Raval", WORLD)
        assert [e.user_id for e in board] == ["bob", "alice"]
        assert [e.rank for e in board] == [1, 2]
        assert board[1].total_area_sq_meters == 300.0

    def test_unknown_neighborhood_empty(self, tagged_resolved, users):
        assert rank_neighborhood(tagged_resolved, users, "Sants", WORLD) == []

    def test_summaries_ordered_by_held_area(self, tagged_resolved, users):
        summaries = summarize_neighborhoods(tagged_resolved, users, WORLD)
        assert [s.neighborhood for s in summaries] == ["el Raval", "Gràcia"]

        raval = summaries[0]
        assert raval.runner_count == 2
        assert raval.total_area_sq_meters == 800.0
        assert raval.leader.user_id == "bob"
        assert raval.as_dict()["leader"]["userId"] == "bob"

    def test_out_of_scope_users_ignored(self, tagged_resolved, users):
        alice_only = [u for u in users if u.user_id == "alice"]
        summaries = summarize_neighborhoods(tagged_resolved, alice_only, WORLD)
        assert {s.leader.user_id for s in summaries} == {"alice"}


class TestMonthlyTitles:
    """Titles from the scope ranking and neighbourhood leaders."""

    def test_global_and_neighborhood_titles(self, tagged_resolved, users):
        ranking = rank_territories(tagged_resolved, users, WORLD)
        summaries = summarize_neighborhoods(tagged_resolved, users, WORLD)
        titles = award_monthly_titles("2026-10", ranking, summaries)

        assert titles[0].title_type is TitleType.GLOBAL
        assert titles[0].user_id == "carol"
        by_place = {t.neighborhood: t.user_id for t in titles[1:]}
        assert by_place == {"el Raval": "bob", "Gràcia": "alice"}
        assert all(t.period_key == "2026-10" and t.rank == 1 for t in titles)
        assert titles[1].as_dict()["titleType"] == "neighborhood"

    def test_no_territory_no_titles(self, users):
        ranking = rank_territories({}, users, WORLD)
        assert award_monthly_titles("2026-10", ranking, []) == []
