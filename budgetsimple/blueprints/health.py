"""Health check blueprint."""

from flask import Blueprint, Response, current_app, jsonify

SERVICE_NAME = "budgetsimple-engine"

health_bp = Blueprint("health", __name__)


@health_bp.route("/healthz", methods=["GET"])
def health_check() -> Response:
    """Liveness check.

    Returns:
        JSON response with the service name and the engine blueprints served
    """
    engines = sorted(name for name in current_app.blueprints if name != health_bp.name)
    return jsonify({"status": "ok", "service": SERVICE_NAME, "engines": engines})
