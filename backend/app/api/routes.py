"""HTTP routes for the Flask API."""

from datetime import datetime
from http import HTTPStatus
from typing import Any, Dict

from flask import Blueprint, current_app, jsonify, request
from pydantic import ValidationError

from backend.core.index_cache import IndexStatisticsCache
from backend.core.projection import project_by_target, project_by_years
from backend.domain.errors import SimulationError
from backend.schemas.indexes import IndexesResponse, IndexSummary
from backend.schemas.simulation import SimulateByTargetRequest, SimulateByYearsRequest

api_bp = Blueprint("api", __name__)


def _index_cache() -> IndexStatisticsCache:
    cache = current_app.extensions["index_cache"]
    # never blocks; a stale cache is reloaded in the background
    cache.refresh_if_stale()
    return cache


def _now() -> datetime:
    return current_app.config.get("CLOCK", datetime.now)()


@api_bp.errorhandler(ValidationError)
def _handle_validation_error(exc: ValidationError):
    """Convert Pydantic validation errors into JSON responses."""
    return (
        jsonify({"detail": exc.errors(include_url=False, include_context=False)}),
        HTTPStatus.BAD_REQUEST,
    )


@api_bp.errorhandler(SimulationError)
def _handle_simulation_error(exc: SimulationError):
    return jsonify({"error": str(exc)}), HTTPStatus.BAD_REQUEST


@api_bp.get("/indexes")
def indexes() -> Any:
    """Cached statistics for every supported index."""
    cache = _index_cache()
    response = IndexesResponse(indexes=[IndexSummary.from_info(info) for info in cache.get_all()])
    return jsonify(response.model_dump())


@api_bp.post("/simulate/years")
def simulate_by_years() -> Any:
    raw_payload: Dict[str, Any] = request.get_json(force=True, silent=False)
    payload = SimulateByYearsRequest.model_validate(raw_payload)
    result = project_by_years(payload, _index_cache(), _now())
    return jsonify(result.model_dump(exclude_none=True))


@api_bp.post("/simulate/target")
def simulate_by_target() -> Any:
    raw_payload: Dict[str, Any] = request.get_json(force=True, silent=False)
    payload = SimulateByTargetRequest.model_validate(raw_payload)
    result = project_by_target(payload, _index_cache(), _now())
    return jsonify(result.model_dump(exclude_none=True))
