"""BudgetSimple projection and change-attribution Flask application factory."""

import logging
from typing import Optional

from flask import Flask

from budgetsimple.config import get_global_settings


def create_app(config_name: Optional[str] = None) -> Flask:
    """Create and configure the Flask application.

    Args:
        config_name: Configuration name (development, testing, production)

    Returns:
        Flask: Configured Flask application instance
    """
    app = Flask(__name__)

    # Configuration from Pydantic Settings
    settings = get_global_settings()
    app.config["SECRET_KEY"] = settings.secret_key
    app.config["ENV"] = settings.flask_env
    app.config["DEBUG"] = settings.app_env == "development"
    app.config["TESTING"] = (config_name or settings.app_env) == "testing"

    # Logging
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logging.getLogger("budgetsimple").setLevel(settings.log_level)
    app.logger.setLevel(settings.log_level)

    # Register blueprints
    from budgetsimple.blueprints.cashflow import cashflow_bp
    from budgetsimple.blueprints.health import health_bp
    from budgetsimple.blueprints.projection import projection_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(projection_bp)
    app.register_blueprint(cashflow_bp)

    return app
