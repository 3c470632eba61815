#!/usr/bin/env python3
"""
PaintRun Territory - Flask Server

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Lightweight Flask server exposing the territory query
facade as JSON endpoints for the map and leaderboard front-end.

Key Interactions:
- TerritoryQueryService: every request recomputes from the data source
- Data source: JSON snapshot (PAINTRUN_DATA_FILE) or built-in seed data

Navigation Guide:
- ROUTES: /api/rankings, /api/territories, /api/users/<id>/rank, /api/health
- NEIGHBOURHOODS: /api/rankings/neighborhoods[/<name>], /api/titles,
  /api/users/<id>/titles
- STARTUP: initialize_services() and main()

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

from pathlib import Path
from typing import Any, Dict, Optional, Tuple
import logging
import sys

from flask import Flask, jsonify, request, Response
from flask_cors import CORS

from paintrun_territory.config import CONFIG
from paintrun_territory.config_types import AppConfig
from paintrun_territory.models import Scope, month_key, validate_period_key
from paintrun_territory.seed import build_seed_repository
from paintrun_territory.service.data_access import (
    DataSourceError,
    JsonFileActivityRepository,
)
from paintrun_territory.service.query_facade import TerritoryQueryService

# ═══════════════════════════════════════════════════════════════════════════
# 🌐 FLASK APPLICATION
# ═══════════════════════════════════════════════════════════════════════════

app = Flask(__name__)
CORS(app)

# Global service - initialized on startup
query_service: Optional[TerritoryQueryService] = None

# Logging setup
logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(name)s:%(message)s")
logger = logging.getLogger(__name__)


class BadRequestError(ValueError):
    """A query parameter the client must fix. Served as 400."""


def _query_params() -> Tuple[str, Scope]:
    """Read ``month`` (default: current UTC month) and ``group`` query params.

    Raises:
        BadRequestError: If ``month`` is malformed
    """
    period = request.args.get("month") or month_key()
    try:
        validate_period_key(period)
    except ValueError as e:
        raise BadRequestError(str(e)) from e
    return period, Scope.from_group_param(request.args.get("group"))


def _not_initialized() -> Tuple[Response, int]:
    return jsonify({"error": "Server not initialized"}), 500


# ═══════════════════════════════════════════════════════════════════════════
# ⚠️ ERROR HANDLERS
# ═══════════════════════════════════════════════════════════════════════════


@app.errorhandler(DataSourceError)
def handle_data_source_error(e: DataSourceError) -> Tuple[Response, int]:
    """Upstream data unavailable: the whole query fails."""
    logger.error(f"❌ Data source failure: {e}")
    return jsonify({"error": "Data source unavailable"}), 503


@app.errorhandler(BadRequestError)
def handle_bad_request(e: BadRequestError) -> Tuple[Response, int]:
    return jsonify({"error": str(e)}), 400


# ═══════════════════════════════════════════════════════════════════════════
# 🛣️ API ROUTES
# ═══════════════════════════════════════════════════════════════════════════


@app.route("/api/health")
def health() -> Response:
    """Liveness plus data source info when available."""
    info: Dict[str, Any] = {"status": "ok", "initialized": query_service is not None}
    if query_service is not None and hasattr(query_service.repository, "get_data_info"):
        info["data"] = query_service.repository.get_data_info()
    return jsonify(info)


@app.route("/api/rankings")
def get_rankings() -> Any:
    """
    Ranking of every user in scope for a month.

    Query Params:
        month: YYYY-MM (default: current month)
        group: Group id (default: world scope)

    Returns:
        JSON list of {userId, username, paintColor, totalAreaSqMeters,
        territoryPercent, rank}
    """
    if query_service is None:
        return _not_initialized()

    period, scope = _query_params()
    rankings = query_service.get_rankings(period, scope)
    return jsonify([entry.as_dict() for entry in rankings])


@app.route("/api/territories")
def get_territories() -> Any:
    """
    Territory geometries of users holding any territory.

    Returns:
        JSON list of {userId, username, paintColor, polygons}
    """
    if query_service is None:
        return _not_initialized()

    period, scope = _query_params()
    entries = query_service.get_territory_geometries(period, scope)
    return jsonify([entry.as_dict() for entry in entries])


@app.route("/api/users/<user_id>/rank")
def get_user_rank(user_id: str) -> Any:
    """Rank of one user (0 when not in scope)."""
    if query_service is None:
        return _not_initialized()

    period, scope = _query_params()
    rank = query_service.get_user_rank(period, user_id, scope)
    return jsonify({"userId": user_id, "month": period, "rank": rank})


@app.route("/api/rankings/neighborhoods")
def get_neighborhood_rankings() -> Any:
    """
    Every neighbourhood with surviving territory and its current leader.

    Returns:
        JSON list of {neighborhoodName, runnerCount, totalAreaSqMeters, leader}
    """
    if query_service is None:
        return _not_initialized()

    period, scope = _query_params()
    summaries = query_service.get_neighborhood_rankings(period, scope)
    return jsonify([summary.as_dict() for summary in summaries])


@app.route("/api/rankings/neighborhoods/<name>")
def get_neighborhood_leaderboard(name: str) -> Any:
    """Leaderboard of one neighbourhood (empty list when nobody holds any)."""
    if query_service is None:
        return _not_initialized()

    period, scope = _query_params()
    leaderboard = query_service.get_neighborhood_leaderboard(period, name, scope)
    return jsonify([entry.as_dict() for entry in leaderboard])


@app.route("/api/titles")
def get_titles() -> Any:
    """Monthly titles for a period."""
    if query_service is None:
        return _not_initialized()

    period, scope = _query_params()
    titles = query_service.get_monthly_titles(period, scope)
    return jsonify([title.as_dict() for title in titles])


@app.route("/api/users/<user_id>/titles")
def get_user_titles(user_id: str) -> Any:
    """Titles one user holds for a period."""
    if query_service is None:
        return _not_initialized()

    period, scope = _query_params()
    titles = query_service.get_user_titles(period, user_id, scope)
    return jsonify([title.as_dict() for title in titles])


# ═══════════════════════════════════════════════════════════════════════════
# 🚀 SERVER INITIALIZATION
# ═══════════════════════════════════════════════════════════════════════════


def initialize_services(
    service: Optional[TerritoryQueryService] = None,
    app_config: Optional[AppConfig] = None,
) -> bool:
    """
    Initialize the query service.

    Args:
        service: Ready-made service (tests inject one with an in-memory source)
        app_config: Config used to build the service when none is given

    Returns:
        True if initialization successful, False otherwise.
    """
    global query_service

    if service is not None:
        query_service = service
        return True

    app_config = app_config or AppConfig.from_dict(CONFIG)
    data_file = app_config.server.data_file

    try:
        if data_file:
            logger.info(f"🚀 Initializing services from: {data_file}")
            repository = JsonFileActivityRepository(
                Path(data_file), app_config.loop_detection
            )
        else:
            logger.info("🚀 No data file configured, using built-in seed data")
            repository = build_seed_repository()
    except DataSourceError as e:
        logger.error(f"❌ Failed to initialize services: {e}")
        return False

    query_service = TerritoryQueryService(repository, app_config)
    return True


def main() -> None:
    """Main entry point - initialize and start server."""
    app_config = AppConfig.from_dict(CONFIG)

    if not initialize_services(app_config=app_config):
        logger.error("Failed to initialize. Check the data file exists.")
        sys.exit(1)

    host, port = app_config.server.host, app_config.server.port
    logger.info(f"🌐 Starting server at http://{host}:{port}")
    app.run(host=host, port=port, debug=False)


if __name__ == "__main__":
    main()
