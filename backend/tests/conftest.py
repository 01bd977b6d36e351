"""
Pytest configuration for test suite.

Registers markers and provides a fixed clock so every date-dependent test
resolves presets against the same instant.
"""
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Add the backend directory to sys.path for imports
backend_dir = Path(__file__).parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

from analytics_api.config import settings  # noqa: E402

FIXED_NOW = datetime(2024, 3, 10, 12, 0, 0, tzinfo=timezone.utc)


def pytest_configure(config):
    """Register custom markers dynamically."""
    config.addinivalue_line(
        "markers", "integration: integration tests that exercise the HTTP layer"
    )
    config.addinivalue_line(
        "markers", "unit: unit tests with mocked dependencies"
    )


@pytest.fixture(autouse=True)
def utc_reporting_timezone(monkeypatch):
    """Pin the reporting timezone and defaults regardless of the environment."""
    monkeypatch.setattr(settings, "timezone", "UTC")
    monkeypatch.setattr(settings, "default_period", "last_30_days")
    monkeypatch.setattr(settings, "default_comparison", "previous_period")
    monkeypatch.setattr(settings, "export_quote_record_cells", False)


@pytest.fixture
def fixed_now():
    return FIXED_NOW


@pytest.fixture
def fixed_clock():
    """Clock that always reads 2024-03-10T12:00:00Z."""
    return lambda: FIXED_NOW
