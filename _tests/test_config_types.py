"""
Tests for typed configuration.

Ensures AppConfig.from_dict(CONFIG) builds every section and that
out-of-range values fail fast.

Run with: python -m pytest _tests/test_config_types.py -v
"""

import pytest

from paintrun_territory.config import BARCELONA_AREA_SQ_M, CONFIG
from paintrun_territory.config_types import (
    AppConfig,
    FilePathsConfig,
    GeometryConfig,
    RankingConfig,
    ResolverConfig,
    ServerConfig,
)
from paintrun_territory.models import Scope


class TestAppConfigFromDict:
    """Build from the CONFIG dictionary."""

    def test_from_config_dict(self):
        app_config = AppConfig.from_dict(CONFIG)
        assert app_config.ranking.percent_decimals == 4
        assert app_config.geometry.min_ring_vertices == 4
        assert app_config.loop_detection.min_track_points == 10
        assert app_config.loop_detection.max_closing_gap_m == 500.0

    def test_empty_dict_uses_defaults(self):
        app_config = AppConfig.from_dict({})
        assert app_config.ranking.world_area_sq_meters == BARCELONA_AREA_SQ_M
        assert app_config.resolver.sliver_area_sq_meters == 1.0
        assert app_config.server.data_file == ""
        assert app_config == AppConfig()

    def test_none_uses_defaults(self):
        assert AppConfig.from_dict(None) == AppConfig()

    def test_frozen(self):
        app_config = AppConfig()
        with pytest.raises(AttributeError):
            app_config.ranking = RankingConfig()  # type: ignore[misc]

    def test_logging_level_upper_cased(self):
        app_config = AppConfig.from_dict({"logging": {"level": "debug"}})
        assert app_config.logging.level == "DEBUG"

    def test_file_paths(self):
        paths = FilePathsConfig.from_dict({"output_dir": "out", "log_dir": "logs/runs"})
        assert paths.output_path.name == "out"
        assert paths.log_path.parts == ("logs", "runs")


class TestRankingConfig:
    """World area per scope."""

    def test_world_scope_uses_city_area(self):
        config = RankingConfig(world_area_sq_meters=5_000.0)
        assert config.world_area_for(Scope.world()) == 5_000.0

    def test_group_override(self):
        config = RankingConfig(
            world_area_sq_meters=5_000.0, group_world_area_sq_meters={"g1": 250.0}
        )
        assert config.world_area_for(Scope.group("g1")) == 250.0
        assert config.world_area_for(Scope.group("g2")) == 5_000.0

    def test_from_dict_coerces_numbers(self):
        config = RankingConfig.from_dict(
            {"world_area_sq_meters": "1000", "group_world_area_sq_meters": {"g1": 10}}
        )
        assert config.world_area_sq_meters == 1000.0
        assert config.group_world_area_sq_meters == {"g1": 10.0}


class TestValidation:
    """Out-of-range values raise ValueError."""

    @pytest.mark.parametrize("area", [0.0, -1.0])
    def test_world_area_positive(self, area):
        with pytest.raises(ValueError):
            RankingConfig(world_area_sq_meters=area)

    def test_group_area_positive(self):
        with pytest.raises(ValueError):
            RankingConfig(group_world_area_sq_meters={"g1": 0.0})

    def test_sliver_threshold_non_negative(self):
        with pytest.raises(ValueError):
            ResolverConfig(sliver_area_sq_meters=-0.5)

    def test_min_ring_vertices(self):
        with pytest.raises(ValueError):
            GeometryConfig(min_ring_vertices=3)

    def test_port_range(self):
        with pytest.raises(ValueError):
            ServerConfig(port=0)
