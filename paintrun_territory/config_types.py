"""
═══════════════════════════════════════════════════════════════════════════════
📋 UNIFIED CONFIGURATION TYPES
═══════════════════════════════════════════════════════════════════════════════

ARCHITECTURAL OVERVIEW
----------------------
Responsibility: Define all configuration dataclasses for the territory engine.
Replaces scattered CONFIG dictionary access with typed, validated config
objects.

Usage:
    from paintrun_territory.config import CONFIG
    from paintrun_territory.config_types import AppConfig

    # Create once at application startup
    app_config = AppConfig.from_dict(CONFIG)

    # Use throughout the application
    world_area = app_config.ranking.world_area_for(scope)

For Navigation: Use VS Code outline (Ctrl+Shift+O)

NAVIGATION GUIDE
----------------
# ═════ 1. GEOMETRY CONFIGURATION
# ═════ 2. RESOLVER CONFIGURATION
# ═════ 3. RANKING CONFIGURATION
# ═════ 4. LOOP DETECTION CONFIGURATION
# ═════ 5. SERVER / LOGGING / FILE PATHS
# ═════ 6. APP CONFIG (MASTER FACADE)

═══════════════════════════════════════════════════════════════════════════════
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Any, Mapping, Optional

from paintrun_territory.config import BARCELONA_AREA_SQ_M
from paintrun_territory.models import Scope


# ═══════════════════════════════════════════════════════════════════════════════
# 📐 1. GEOMETRY CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class GeometryConfig:
    """
    Polygon construction and measurement settings.

    Attributes:
        repair_invalid: Repair self-intersecting rings with make_valid.
        min_ring_vertices: Minimum vertices of a closed ring.
        ellipsoid: pyproj ellipsoid used for every area in a run.
    """

    repair_invalid: bool = True
    min_ring_vertices: int = 4
    ellipsoid: str = "WGS84"

    def __post_init__(self) -> None:
        if self.min_ring_vertices < 4:
            raise ValueError(
                f"min_ring_vertices must be >= 4, got {self.min_ring_vertices}"
            )

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "GeometryConfig":
        """Create GeometryConfig from CONFIG['geometry'] dictionary."""
        return cls(
            repair_invalid=d.get("repair_invalid", True),
            min_ring_vertices=d.get("min_ring_vertices", 4),
            ellipsoid=d.get("ellipsoid", "WGS84"),
        )


# ═══════════════════════════════════════════════════════════════════════════════
# ✂️ 2. RESOLVER CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class ResolverConfig:
    """Resolver settings.

    Attributes:
        sliver_area_sq_meters: Surviving parts below this area are dropped.
    """

    sliver_area_sq_meters: float = 1.0

    def __post_init__(self) -> None:
        if self.sliver_area_sq_meters < 0:
            raise ValueError(
                f"sliver_area_sq_meters must be >= 0, got {self.sliver_area_sq_meters}"
            )

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ResolverConfig":
        """Create ResolverConfig from CONFIG['resolver'] dictionary."""
        return cls(sliver_area_sq_meters=float(d.get("sliver_area_sq_meters", 1.0)))


# ═══════════════════════════════════════════════════════════════════════════════
# 🏆 3. RANKING CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class RankingConfig:
    """
    Ranking denominators and formatting.

    Attributes:
        world_area_sq_meters: City area, denominator of territoryPercent.
        group_world_area_sq_meters: Optional per-group denominators.
        percent_decimals: Decimal places kept on territoryPercent.
    """

    world_area_sq_meters: float = BARCELONA_AREA_SQ_M
    group_world_area_sq_meters: Mapping[str, float] = field(default_factory=dict)
    percent_decimals: int = 4

    def __post_init__(self) -> None:
        if self.world_area_sq_meters <= 0:
            raise ValueError(
                f"world_area_sq_meters must be > 0, got {self.world_area_sq_meters}"
            )
        for group_id, value in self.group_world_area_sq_meters.items():
            if value <= 0:
                raise ValueError(
                    f"group world area for {group_id!r} must be > 0, got {value}"
                )
        if self.percent_decimals < 0:
            raise ValueError(
                f"percent_decimals must be >= 0, got {self.percent_decimals}"
            )

    def world_area_for(self, scope: Scope) -> float:
        """Denominator for a scope: group override if set, else the city area."""
        if scope.is_group and scope.group_id in self.group_world_area_sq_meters:
            return float(self.group_world_area_sq_meters[scope.group_id])
        return float(self.world_area_sq_meters)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "RankingConfig":
        """Create RankingConfig from CONFIG['ranking'] dictionary."""
        return cls(
            world_area_sq_meters=float(
                d.get("world_area_sq_meters", BARCELONA_AREA_SQ_M)
            ),
            group_world_area_sq_meters={
                str(k): float(v)
                for k, v in d.get("group_world_area_sq_meters", {}).items()
            },
            percent_decimals=int(d.get("percent_decimals", 4)),
        )


# ═══════════════════════════════════════════════════════════════════════════════
# 🔁 4. LOOP DETECTION CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class LoopDetectionConfig:
    """Closed-loop detection thresholds for raw tracks."""

    min_track_points: int = 10
    max_closing_gap_m: float = 500.0
    simplify_tolerance_deg: float = 0.0001

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "LoopDetectionConfig":
        """Create LoopDetectionConfig from CONFIG['loop_detection'] dictionary."""
        return cls(
            min_track_points=int(d.get("min_track_points", 10)),
            max_closing_gap_m=float(d.get("max_closing_gap_m", 500.0)),
            simplify_tolerance_deg=float(d.get("simplify_tolerance_deg", 0.0001)),
        )


# ═══════════════════════════════════════════════════════════════════════════════
# 🌐 5. SERVER / LOGGING / FILE PATHS
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class ServerConfig:
    """Flask server settings. Empty data_file means built-in seed data."""

    host: str = "127.0.0.1"
    port: int = 5052
    data_file: str = ""

    def __post_init__(self) -> None:
        if not 0 < self.port < 65536:
            raise ValueError(f"port must be in 1..65535, got {self.port}")

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ServerConfig":
        """Create ServerConfig from CONFIG['server'] dictionary."""
        return cls(
            host=d.get("host", "127.0.0.1"),
            port=int(d.get("port", 5052)),
            data_file=d.get("data_file", "") or "",
        )


@dataclass(frozen=True)
class LoggingConfig:
    """Log level and whether runs also log to a file."""

    level: str = "INFO"
    log_to_file: bool = True

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "LoggingConfig":
        """Create LoggingConfig from CONFIG['logging'] dictionary."""
        return cls(
            level=str(d.get("level", "INFO")).upper(),
            log_to_file=d.get("log_to_file", True),
        )


@dataclass(frozen=True)
class FilePathsConfig:
    """
    File path configuration for outputs.

    Attributes:
        output_dir: Directory for exported rankings/territories.
        log_dir: Directory for log files.
    """

    output_dir: str = "Output"
    log_dir: str = "logs"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "FilePathsConfig":
        """Create FilePathsConfig from CONFIG['file_paths'] dictionary."""
        return cls(
            output_dir=d.get("output_dir", "Output"),
            log_dir=d.get("log_dir", "logs"),
        )

    @property
    def output_path(self) -> Path:
        """Get output directory as relative Path object."""
        return Path(self.output_dir)

    @property
    def log_path(self) -> Path:
        """Get log directory as relative Path object."""
        return Path(self.log_dir)


# ═══════════════════════════════════════════════════════════════════════════════
# 🎯 6. APP CONFIG (MASTER FACADE)
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class AppConfig:
    """
    Single typed facade over the CONFIG dictionary.

    Create once at startup with AppConfig.from_dict(CONFIG) and pass it to
    the query service, server and CLI.
    """

    geometry: GeometryConfig = field(default_factory=GeometryConfig)
    resolver: ResolverConfig = field(default_factory=ResolverConfig)
    ranking: RankingConfig = field(default_factory=RankingConfig)
    loop_detection: LoopDetectionConfig = field(default_factory=LoopDetectionConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    file_paths: FilePathsConfig = field(default_factory=FilePathsConfig)

    @classmethod
    def from_dict(cls, d: Optional[Dict[str, Any]] = None) -> "AppConfig":
        """Create AppConfig from the full CONFIG dictionary."""
        d = d or {}
        return cls(
            geometry=GeometryConfig.from_dict(d.get("geometry", {})),
            resolver=ResolverConfig.from_dict(d.get("resolver", {})),
            ranking=RankingConfig.from_dict(d.get("ranking", {})),
            loop_detection=LoopDetectionConfig.from_dict(d.get("loop_detection", {})),
            server=ServerConfig.from_dict(d.get("server", {})),
            logging=LoggingConfig.from_dict(d.get("logging", {})),
            file_paths=FilePathsConfig.from_dict(d.get("file_paths", {})),
        )
