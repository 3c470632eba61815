"""
Unit tests for the Territory Resolver.

Tests:
1. Later claim of another user overwrites the earlier one
2. Own re-runs never erode own territory
3. Partial overlap splits ownership
4. Chronological ordering (timestamp, then activity id)
5. Degenerate / missing polygons are skipped, never fatal
6. Sliver filtering and run statistics
7. Per-region areas and neighbourhood tags

Run with: python -m pytest _tests/test_resolver.py -v
"""

import random
from datetime import timedelta

import pytest
from shapely.geometry import Polygon

from paintrun_territory.config_types import ResolverConfig
from paintrun_territory.geometry.primitives import area
from paintrun_territory.models import Activity
from paintrun_territory.territory.resolver import TerritoryResolver, resolve_territories


# ═══════════════════════════════════════════════════════════════════════════
# CLAIM SCENARIOS
# ═══════════════════════════════════════════════════════════════════════════


class TestClaimScenarios:
    """Overwrite, re-run and partial-overlap cases."""

    def test_same_square_overwritten_by_later_user(self, make_activity, square):
        p = square()
        resolved = resolve_territories(
            [
                make_activity("a1", "alice", p, hours=1),
                make_activity("b1", "bob", p, hours=2),
            ]
        )

        assert "alice" not in resolved
        assert resolved["bob"].total_area_sq_meters == pytest.approx(area(Polygon(p)))

    def test_own_rerun_counts_both_claims(self, make_activity, square):
        p = square()
        resolved = resolve_territories(
            [
                make_activity("a1", "alice", p, hours=1),
                make_activity("a2", "alice", p, hours=3),
            ]
        )

        single = area(Polygon(p))
        assert len(resolved["alice"].regions) == 2
        assert resolved["alice"].total_area_sq_meters == pytest.approx(2 * single)

    def test_half_overlap_of_one_of_two_squares(self, make_activity, square):
        p1 = square(2.150, 41.380, size=0.002)
        p2 = square(2.160, 41.380, size=0.002)
        right_half_of_p1 = [
            (2.151, 41.380),
            (2.152, 41.380),
            (2.152, 41.382),
            (2.151, 41.382),
        ]
        resolved = resolve_territories(
            [
                make_activity("a1", "alice", p1, hours=1),
                make_activity("a2", "alice", p2, hours=1),
                make_activity("b1", "bob", right_half_of_p1, hours=2),
            ]
        )

        alice_regions = resolved["alice"].regions
        assert len(alice_regions) == 2
        left_half = Polygon(
            [(2.150, 41.380), (2.151, 41.380), (2.151, 41.382), (2.150, 41.382)]
        )
        assert alice_regions[0].equals(left_half)
        assert alice_regions[1].equals(Polygon(p2))

        bob_regions = resolved["bob"].regions
        assert len(bob_regions) == 1
        assert bob_regions[0].equals(Polygon(right_half_of_p1))

        assert resolved["alice"].total_area_sq_meters == pytest.approx(
            area(left_half) + area(Polygon(p2))
        )


# ═══════════════════════════════════════════════════════════════════════════
# INVARIANTS
# ═══════════════════════════════════════════════════════════════════════════


class TestResolverInvariants:
    """Determinism, later-wins, self-non-erosion."""

    def _activities(self, make_activity, square):
        return [
            make_activity("a1", "alice", square(2.150, 41.380, 0.002), hours=1),
            make_activity("b1", "bob", square(2.151, 41.381, 0.002), hours=2),
            make_activity("c1", "carol", square(2.1505, 41.3795, 0.001), hours=3),
            make_activity("a2", "alice", square(2.152, 41.382, 0.001), hours=4),
            make_activity("b2", "bob", square(2.170, 41.390, 0.001), hours=5),
        ]

    def test_input_order_does_not_matter(self, make_activity, square):
        activities = self._activities(make_activity, square)
        expected = resolve_territories(activities)

        shuffled = list(activities)
        random.Random(7).shuffle(shuffled)
        result = resolve_territories(shuffled)

        assert set(result) == set(expected)
        for user_id, territory in expected.items():
            assert result[user_id].total_area_sq_meters == pytest.approx(
                territory.total_area_sq_meters
            )
            for got, want in zip(result[user_id].regions, territory.regions):
                assert got.equals(want)

    def test_latest_claim_always_survives_whole(self, make_activity, square):
        activities = self._activities(make_activity, square)
        resolved = resolve_territories(activities)

        latest = max(activities, key=lambda a: a.sort_key)
        assert resolved[latest.user_id].regions[-1].equals(Polygon(latest.polygon))

    def test_no_two_users_share_area(self, make_activity, square):
        resolved = resolve_territories(self._activities(make_activity, square))
        users = list(resolved)
        for i, u in enumerate(users):
            for v in users[i + 1 :]:
                for r1 in resolved[u].regions:
                    for r2 in resolved[v].regions:
                        assert r1.intersection(r2).area == pytest.approx(0.0, abs=1e-12)

    def test_areas_non_negative(self, make_activity, square):
        resolved = resolve_territories(self._activities(make_activity, square))
        assert all(t.total_area_sq_meters >= 0 for t in resolved.values())

    def test_equal_timestamps_ordered_by_activity_id(self, make_activity, square):
        p = square()
        # "a-2" sorts after "a-1": bob's claim is the later one
        resolved = resolve_territories(
            [
                make_activity("a-2", "bob", p, hours=1),
                make_activity("a-1", "alice", p, hours=1),
            ]
        )
        assert "alice" not in resolved
        assert "bob" in resolved

    def test_earlier_other_user_claim_does_not_cut_later(self, make_activity, square):
        resolved = resolve_territories(
            [
                make_activity("b1", "bob", square(2.1505, 41.3805, 0.001), hours=1),
                make_activity("a1", "alice", square(2.150, 41.380, 0.002), hours=2),
            ]
        )
        assert resolved["alice"].regions[0].equals(Polygon(square(2.150, 41.380, 0.002)))
        assert "bob" not in resolved


# ═══════════════════════════════════════════════════════════════════════════
# ERROR HANDLING / STATS
# ═══════════════════════════════════════════════════════════════════════════


class TestResolverRobustness:
    """Malformed input never aborts a run."""

    def test_missing_and_degenerate_polygons_skipped(self, make_activity, square):
        resolver = TerritoryResolver()
        resolved = resolver.resolve(
            [
                make_activity("a1", "alice", square(), hours=1),
                make_activity("a2", "alice", None, hours=2),
                make_activity("b1", "bob", [(2.15, 41.38), (2.16, 41.39)], hours=3),
                make_activity("b2", "bob", [(2.15, 41.38), (2.15, 41.38), (2.16, 41.39)], hours=4),
            ]
        )

        assert set(resolved) == {"alice"}
        stats = resolver.last_stats
        assert stats.activities_in == 4
        assert stats.claims_built == 1
        assert stats.skipped_no_polygon == 1
        assert stats.skipped_degenerate == 2
        assert stats.skipped_ids == ["b1", "b2"]
        assert stats.survived == 1

    def test_self_intersecting_polygon_repaired(self, make_activity):
        bow_tie = [
            (2.150, 41.380),
            (2.154, 41.384),
            (2.154, 41.380),
            (2.150, 41.382),
        ]
        resolved = resolve_territories([make_activity("a1", "alice", bow_tie)])
        assert resolved["alice"].total_area_sq_meters > 0

    def test_symmetric_bow_tie_claim_counted(self, make_activity):
        bow_tie = [
            (2.150, 41.380),
            (2.152, 41.382),
            (2.152, 41.380),
            (2.150, 41.382),
        ]
        resolver = TerritoryResolver()
        resolved = resolver.resolve([make_activity("a1", "alice", bow_tie)])

        assert resolver.last_stats.skipped_degenerate == 0
        assert resolved["alice"].total_area_sq_meters > 0

    def test_empty_input(self):
        resolver = TerritoryResolver()
        assert resolver.resolve([]) == {}
        assert resolver.last_stats.claims_built == 0

    def test_fully_overwritten_counted(self, make_activity, square):
        resolver = TerritoryResolver()
        resolver.resolve(
            [
                make_activity("a1", "alice", square(), hours=1),
                make_activity("b1", "bob", square(), hours=2),
            ]
        )
        assert resolver.last_stats.fully_overwritten == 1
        assert resolver.last_stats.survived == 1


class TestSliverFilter:
    """Surviving parts below the sliver threshold are dropped."""

    def _almost_covered(self, make_activity, square):
        # Bob covers all of alice's square except a 0.0000001° strip (~1 m² at most)
        return [
            make_activity("a1", "alice", square(2.150, 41.380, 0.001), hours=1),
            make_activity(
                "b1",
                "bob",
                [
                    (2.1500001, 41.379),
                    (2.152, 41.379),
                    (2.152, 41.382),
                    (2.1500001, 41.382),
                ],
                hours=2,
            ),
        ]

    def test_sliver_dropped_with_default_threshold(self, make_activity, square):
        resolver = TerritoryResolver(ResolverConfig(sliver_area_sq_meters=1.0))
        resolved = resolver.resolve(self._almost_covered(make_activity, square))
        assert "alice" not in resolved
        assert resolver.last_stats.slivers_dropped == 1

    def test_sliver_kept_when_filter_disabled(self, make_activity, square):
        resolver = TerritoryResolver(ResolverConfig(sliver_area_sq_meters=0.0))
        resolved = resolver.resolve(self._almost_covered(make_activity, square))
        assert "alice" in resolved
        assert resolved["alice"].total_area_sq_meters < 1.0


class TestRegionBookkeeping:
    """Per-region areas and neighbourhood tags."""

    def test_region_areas_and_tags_follow_regions(self, base_time, square):
        resolved = resolve_territories(
            [
                Activity("a1", "alice", base_time, square(), neighborhood="el Raval"),
                Activity(
                    "a2", "alice", base_time + timedelta(hours=1),
                    square(2.160, 41.380), neighborhood="Gràcia",
                ),
                Activity("a3", "alice", base_time + timedelta(hours=2), square(2.170, 41.380)),
            ]
        )

        alice = resolved["alice"]
        assert alice.region_neighborhoods == ("el Raval", "Gràcia", None)
        assert len(alice.region_areas) == 3
        assert sum(alice.region_areas) == pytest.approx(alice.total_area_sq_meters)
        assert alice.neighborhoods == ["Gràcia", "el Raval"]

        raval = alice.in_neighborhood("el Raval")
        assert len(raval.regions) == 1
        assert raval.total_area_sq_meters == pytest.approx(alice.region_areas[0])
        assert alice.in_neighborhood("Sants").is_empty
