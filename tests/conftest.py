"""
Pytest configuration and shared fixtures for the BudgetSimple engine tests.
"""

import os
from unittest.mock import patch

import pytest

from budgetsimple import create_app
from budgetsimple.config import reset_global_settings
from budgetsimple.models.projection import ProjectionAssumptions

TEST_ENV = {"SECRET_KEY": "test-secret-key-123", "APP_ENV": "testing"}


@pytest.fixture(autouse=True)
def clean_settings():
    """Drop cached settings so each test sees its own environment."""
    reset_global_settings()
    yield
    reset_global_settings()


@pytest.fixture
def app():
    """Create a Flask app configured for testing."""
    with patch.dict(os.environ, TEST_ENV, clear=True):
        yield create_app("testing")


@pytest.fixture
def client(app):
    """Create a test client for the app."""
    return app.test_client()


@pytest.fixture
def zero_return_assumptions():
    """$100/month with no growth over two years."""
    return ProjectionAssumptions(
        annual_return_percent=0.0, monthly_contribution=100.0, horizon_months=24
    )
