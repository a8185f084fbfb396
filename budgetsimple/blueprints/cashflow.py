"""Cashflow blueprint for month-over-month change attribution."""

from typing import Any

from flask import Blueprint, current_app, jsonify, request
from pydantic import ValidationError

from budgetsimple.blueprints.projection import validation_error_response
from budgetsimple.blueprints.schemas import WhatChangedRequest
from budgetsimple.models.exceptions import EngineError
from budgetsimple.services.planning_service import PlanningService

cashflow_bp = Blueprint("cashflow", __name__, url_prefix="/api/cashflow")


@cashflow_bp.route("/what-changed", methods=["POST"])
def what_changed() -> Any:
    """Compute month-over-month change drivers.

    Returns:
        JSON response with per-category deltas ranked by magnitude
    """
    try:
        data = request.get_json(silent=True) or {}
        payload = WhatChangedRequest.model_validate(data)
        return jsonify(PlanningService().what_changed(payload)), 200

    except ValidationError as e:
        return validation_error_response(e)
    except EngineError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        current_app.logger.error(f"Error computing what changed: {str(e)}")
        return jsonify({"error": "Internal server error"}), 500
