"""
Shared pytest fixtures for all tests.

This module provides common fixtures including:
- Sample coordinates and polygons
- Sample tasks, plots and verdicts
- Mock validation client and persistence gateway
- Drawing session controller
- FastAPI test client
"""
import math
import os

# Keep retry backoff out of test runtime; must be set before settings load.
os.environ.setdefault("RETRY_MIN_WAIT", "0")
os.environ.setdefault("RETRY_BACKOFF_MULTIPLIER", "0")
os.environ.setdefault("RATE_LIMIT_REQUESTS", "10000")

import pytest
from unittest.mock import AsyncMock
from fastapi.testclient import TestClient

from plot_capture.domain.models import Coordinate, Plot, PolygonTask, ValidationVerdict
from plot_capture.services.application.persistence_gateway import PersistenceGateway
from plot_capture.services.application.validation_client import ValidationClient
from plot_capture.services.domain.drawing_session import DrawingSessionController


# ============================================================
# Sample Data Fixtures
# ============================================================

def square(lat: float, lng: float, side_m: float) -> list[Coordinate]:
    """Open square ring with the given side length on a sphere of R=6371 km."""
    dlat = math.degrees(side_m / 6371000.0)
    dlng = dlat / math.cos(math.radians(lat))
    return [
        Coordinate(latitude=lat, longitude=lng),
        Coordinate(latitude=lat, longitude=lng + dlng),
        Coordinate(latitude=lat + dlat, longitude=lng + dlng),
        Coordinate(latitude=lat + dlat, longitude=lng),
    ]


@pytest.fixture
def square_100m() -> list[Coordinate]:
    """Square with 100 m sides in the Mekong delta."""
    return square(10.0, 105.8, 100.0)


@pytest.fixture
def triangle() -> list[Coordinate]:
    return [
        Coordinate(latitude=10.0, longitude=105.8),
        Coordinate(latitude=10.0, longitude=105.8001),
        Coordinate(latitude=10.0001, longitude=105.8001),
    ]


@pytest.fixture
def sample_plot() -> Plot:
    return Plot(
        plot_id="plot-1",
        farmer_id="farmer-1",
        farmer_name="Nguyen Van A",
        so_thua=12,
        so_to=3,
        area=1.0,
        coordinate_geo_json="POINT(105.8 10.0)",
    )


@pytest.fixture
def sample_task() -> PolygonTask:
    return PolygonTask(
        id="task-1",
        plot_id="plot-1",
        farmer_id="farmer-1",
        priority=1,
        plot_area=1.0,
    )


def make_verdict(is_valid: bool = True, difference_percent: float = 2.0) -> ValidationVerdict:
    return ValidationVerdict(
        is_valid=is_valid,
        drawn_area_ha=1.02 if is_valid else 1.15,
        plot_area_ha=1.0,
        difference_percent=difference_percent,
        tolerance_percent=10.0,
        message="Area is within tolerance" if is_valid else "Area difference exceeds tolerance",
    )


@pytest.fixture
def valid_verdict() -> ValidationVerdict:
    return make_verdict(True, 2.0)


@pytest.fixture
def invalid_verdict() -> ValidationVerdict:
    return make_verdict(False, 15.0)


# ============================================================
# Mock Collaborator Fixtures
# ============================================================

@pytest.fixture
def mock_validation_client(valid_verdict):
    """Validation client that immediately returns a passing verdict."""
    mock_client = AsyncMock(spec=ValidationClient)
    mock_client.validate.return_value = valid_verdict
    return mock_client


@pytest.fixture
def mock_gateway():
    """Persistence gateway that accepts every save."""
    gateway = AsyncMock(spec=PersistenceGateway)
    gateway.complete_task.return_value = None
    gateway.update_plot_boundary.return_value = None
    return gateway


@pytest.fixture
def controller(mock_validation_client, mock_gateway) -> DrawingSessionController:
    return DrawingSessionController(
        validation_client=mock_validation_client,
        gateway=mock_gateway,
    )


# ============================================================
# FastAPI Test Client Fixtures
# ============================================================

@pytest.fixture
def test_client():
    """
    Test client bound to one event loop for the whole test, so background
    validation started by one request is still running for the next.
    """
    from plot_capture.main import app

    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()
