#!/usr/bin/env python3
"""
PaintRun Territory - Main Entry Point

Resolves one month of territory for a scope and exports the leaderboard
(CSV) and the painted map (GeoJSON).

Usage:
    python -m paintrun_territory.main --data Output/activities.json
    python -m paintrun_territory.main --seed --month 2026-10 --group colla-raval
"""

import argparse
import logging
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

# Fix Windows console encoding for emoji support
if sys.platform == "win32":
    sys.stdout.reconfigure(encoding="utf-8", errors="replace")
    sys.stderr.reconfigure(encoding="utf-8", errors="replace")

from paintrun_territory.config import CONFIG
from paintrun_territory.config_types import AppConfig
from paintrun_territory.models import Scope, month_key, validate_period_key
from paintrun_territory.seed import build_seed_repository
from paintrun_territory.service.data_access import (
    ActivityRepository,
    DataSourceError,
    JsonFileActivityRepository,
)
from paintrun_territory.service.export import (
    export_rankings_csv,
    export_territories_geojson,
)
from paintrun_territory.service.query_facade import (
    TerritoryQueryService,
    territory_entries,
)

# ═══════════════════════════════════════════════════════════════════════════
# 🎯 MODULE-LEVEL CONFIG (Single Source of Truth)
# ═══════════════════════════════════════════════════════════════════════════
APP_CONFIG = AppConfig.from_dict(CONFIG)

# ═══════════════════════════════════════════════════════════════════════════
# 📋 LOGGING SETUP
# ═══════════════════════════════════════════════════════════════════════════


def setup_logging(app_config: AppConfig = APP_CONFIG) -> Tuple[logging.Logger, Optional[Path]]:
    """Configure logging with file and console handlers.

    Handlers are attached to the package logger so module loggers
    (``paintrun_territory.territory.resolver`` etc.) report into the same run.

    Returns:
        Tuple of (logger, run_log_folder). run_log_folder is None when file
        logging is disabled.

    Folder naming convention:
        run_{MMDD}_{HHMM}, e.g. run_1018_0915
    """
    level = getattr(logging, app_config.logging.level, logging.INFO)

    logger = logging.getLogger("paintrun_territory")
    logger.setLevel(level)
    logger.handlers.clear()

    run_log_folder: Optional[Path] = None
    if app_config.logging.log_to_file:
        timestamp = datetime.now().strftime("%m%d_%H%M")
        run_log_folder = app_config.file_paths.log_path / f"run_{timestamp}"
        run_log_folder.mkdir(parents=True, exist_ok=True)

        # File handler
        fh = logging.FileHandler(run_log_folder / "main.log", encoding="utf-8")
        fh.setLevel(level)
        fh.setFormatter(
            logging.Formatter(
                "%(asctime)s | %(levelname)-8s | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        logger.addHandler(fh)

    # Console handler
    ch = logging.StreamHandler(sys.stdout)
    ch.setLevel(level)
    ch.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(ch)

    return logger, run_log_folder


# ═══════════════════════════════════════════════════════════════════════════
# 🧭 ARGUMENTS
# ═══════════════════════════════════════════════════════════════════════════


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Resolve monthly territory and export rankings + map"
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--data",
        type=Path,
        help="JSON snapshot with users and activities",
    )
    source.add_argument(
        "--seed",
        action="store_true",
        help="Use the built-in Barcelona sample data",
    )
    parser.add_argument(
        "--month",
        default=None,
        help="Period key YYYY-MM (default: current UTC month)",
    )
    parser.add_argument(
        "--group",
        default=None,
        help="Group id to rank (default: world scope)",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Directory for rankings.csv and territories.geojson",
    )
    return parser


def _load_repository(
    args: argparse.Namespace, period: str, app_config: AppConfig
) -> ActivityRepository:
    data_file = args.data or (
        Path(app_config.server.data_file) if app_config.server.data_file else None
    )
    if data_file is not None and not args.seed:
        return JsonFileActivityRepository(data_file, app_config.loop_detection)
    return build_seed_repository(period)


# ═══════════════════════════════════════════════════════════════════════════
# 🚀 RUN
# ═══════════════════════════════════════════════════════════════════════════


def run_territory_export(
    argv: Optional[List[str]] = None, app_config: AppConfig = APP_CONFIG
) -> Dict[str, Any]:
    """
    Resolve one period and write the export files.

    Returns:
        Summary dict with period, scope label, output paths and run stats.

    Raises:
        ValueError: If the month argument is malformed
        DataSourceError: If the data file cannot be read
    """
    args = build_parser().parse_args(argv)
    logger, run_log_folder = setup_logging(app_config)

    period = validate_period_key(args.month or month_key())
    scope = Scope.from_group_param(args.group)
    output_dir = args.output_dir or app_config.file_paths.output_path

    logger.info("=" * 60)
    logger.info("🏃 PAINTRUN TERRITORY RESOLUTION")
    logger.info("=" * 60)
    logger.info(f"📅 Period: {period}   🌍 Scope: {scope.label}")
    if run_log_folder is not None:
        logger.info(f"📋 Log folder: {run_log_folder}")

    start = time.perf_counter()
    repository = _load_repository(args, period, app_config)
    service = TerritoryQueryService(repository, app_config)

    result = service.resolve(period, scope)
    entries = territory_entries(result)

    rankings_path = export_rankings_csv(result.ranking, output_dir)
    territories_path = export_territories_geojson(entries, output_dir, result.ranking)

    logger.info("")
    logger.info("🏆 Top runners:")
    for entry in result.ranking[:5]:
        logger.info(
            f"   {entry.rank}. {entry.username:<16} "
            f"{int(round(entry.total_area_sq_meters)):>10,} m²  "
            f"{entry.percent_of_world_area:.4f}%"
        )

    elapsed = time.perf_counter() - start
    logger.info("")
    logger.info("=" * 60)
    logger.info(f"✅ COMPLETE in {elapsed:.2f}s")
    logger.info("=" * 60)

    return {
        "period": period,
        "scope": scope.label,
        "rankings_path": rankings_path,
        "territories_path": territories_path,
        "stats": result.stats.to_dict() if result.stats else {},
    }


def main(
    argv: Optional[List[str]] = None, app_config: AppConfig = APP_CONFIG
) -> None:
    """Command line entry point."""
    try:
        run_territory_export(argv, app_config)
    except (DataSourceError, ValueError) as e:
        logging.getLogger("paintrun_territory").error(f"❌ ERROR: {e}")
        sys.exit(1)


# ═══════════════════════════════════════════════════════════════════════════
# 🚀 ENTRY POINT
# ═══════════════════════════════════════════════════════════════════════════


if __name__ == "__main__":
    main()
