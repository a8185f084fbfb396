"""
Projection blueprint for net worth trajectories and milestone progress.

This module provides API endpoints for projecting net worth under growth
assumptions, generating scenario curves, classifying milestones, and
computing contribution levers.
"""

from typing import Any

from flask import Blueprint, current_app, jsonify, request
from pydantic import ValidationError

from budgetsimple.blueprints.schemas import (
    LeversRequest,
    MilestoneProgressRequest,
    ProjectionQuery,
)
from budgetsimple.models.exceptions import EngineError
from budgetsimple.services.planning_service import PlanningService

projection_bp = Blueprint("projection", __name__, url_prefix="/api/milestones")


def validation_error_response(error: ValidationError) -> Any:
    """Build a 400 response from a request schema validation failure."""
    return (
        jsonify(
            {
                "error": "Invalid request",
                "details": error.errors(
                    include_url=False, include_context=False, include_input=False
                ),
            }
        ),
        400,
    )


@projection_bp.route("/projection", methods=["GET"])
def get_projection() -> Any:
    """Get a net worth projection curve.

    Returns:
        JSON response with projection points and effective assumptions
    """
    try:
        query = ProjectionQuery.model_validate(request.args.to_dict())
        return jsonify(PlanningService().project(query)), 200

    except ValidationError as e:
        return validation_error_response(e)
    except EngineError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        current_app.logger.error(f"Error calculating projection: {str(e)}")
        return jsonify({"error": "Internal server error"}), 500


@projection_bp.route("/projection/curves", methods=["GET"])
def get_projection_curves() -> Any:
    """Get base, conservative and aggressive projection curves.

    Returns:
        JSON response with one curve per scenario
    """
    try:
        query = ProjectionQuery.model_validate(request.args.to_dict())
        return jsonify(PlanningService().projection_curves(query)), 200

    except ValidationError as e:
        return validation_error_response(e)
    except EngineError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        current_app.logger.error(f"Error calculating projection curves: {str(e)}")
        return jsonify({"error": "Internal server error"}), 500


@projection_bp.route("/progress", methods=["POST"])
def milestone_progress() -> Any:
    """Classify milestones against the projected trajectory.

    Returns:
        JSON response with progress, ETA and status per milestone
    """
    try:
        data = request.get_json(silent=True) or {}
        payload = MilestoneProgressRequest.model_validate(data)
        return jsonify(PlanningService().milestone_progress(payload)), 200

    except ValidationError as e:
        return validation_error_response(e)
    except EngineError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        current_app.logger.error(f"Error classifying milestones: {str(e)}")
        return jsonify({"error": "Internal server error"}), 500


@projection_bp.route("/levers", methods=["POST"])
def milestone_levers() -> Any:
    """Get the contribution levers for reaching a target.

    Returns:
        JSON response with the required contribution and ETA sensitivity
    """
    try:
        data = request.get_json(silent=True) or {}
        payload = LeversRequest.model_validate(data)
        return jsonify(PlanningService().levers(payload)), 200

    except ValidationError as e:
        return validation_error_response(e)
    except EngineError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        current_app.logger.error(f"Error calculating milestone levers: {str(e)}")
        return jsonify({"error": "Internal server error"}), 500
