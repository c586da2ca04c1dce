"""
Integration tests for API endpoints.

Tests the full HTTP request/response cycle with mocked backend collaborators.
"""
import pytest
from unittest.mock import AsyncMock

from plot_capture.api.dependencies import get_reference_service, get_session_controller
from plot_capture.infrastructure.backend_client import BackendAPIError
from plot_capture.services.application.reference_service import ReferenceService
from plot_capture.utils.geometry import parse_wkt


def point_json(coordinate):
    return {"latitude": coordinate.latitude, "longitude": coordinate.longitude}


@pytest.fixture
def api(test_client, controller):
    """Test client wired to a fresh drawing session controller."""
    from plot_capture.main import app

    app.dependency_overrides[get_session_controller] = lambda: controller
    return test_client


# ============================================================
# Health Check Tests
# ============================================================

class TestHealthEndpoints:
    """Tests for health check endpoints."""

    def test_root_endpoint(self, test_client):
        """Root endpoint should return healthy status."""
        response = test_client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "service" in data
        assert "version" in data

    def test_health_endpoint(self, test_client):
        response = test_client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


# ============================================================
# Session Endpoint Tests
# ============================================================

class TestSessionEndpoints:
    """Tests for the drawing session endpoints."""

    def test_idle_session(self, api):
        response = api.get("/api/v1/session")

        assert response.status_code == 200
        data = response.json()
        assert data["state"] == "idle"
        assert data["mode"] is None
        assert data["points"] == []
        assert data["can_finish"] is False

    def test_add_point_without_session_conflicts(self, api):
        response = api.post("/api/v1/session/points", json={"latitude": 10.0, "longitude": 105.8})

        assert response.status_code == 409
        assert response.json()["error"] == "No active session"

    def test_out_of_range_point_rejected(self, api):
        api.post("/api/v1/session/task", json={"task_id": "task-1", "plot_id": "plot-1"})

        response = api.post("/api/v1/session/points", json={"latitude": 95.0, "longitude": 105.8})

        assert response.status_code == 422

    def test_task_flow(self, api, mock_gateway, triangle):
        """Draw three points, wait for validation, then save."""
        response = api.post("/api/v1/session/task", json={"task_id": "task-1", "plot_id": "plot-1"})
        assert response.json()["mode"] == {"kind": "task", "plot_id": "plot-1", "task_id": "task-1"}

        for point in triangle:
            response = api.post("/api/v1/session/points", json=point_json(point))
            assert response.status_code == 200

        data = api.get("/api/v1/session", params={"wait": True}).json()
        assert data["state"] == "validated"
        assert data["verdict"]["isValid"] is True
        assert data["area_m2"] > 0
        assert data["can_finish"] is True

        response = api.post("/api/v1/session/finish")

        assert response.status_code == 200
        body = response.json()
        assert body["mode"]["kind"] == "task"
        assert body["boundary"].startswith('{"type": "Polygon"')
        mock_gateway.complete_task.assert_awaited_once()
        assert api.get("/api/v1/session").json()["state"] == "idle"

    def test_plot_edit_flow(self, api, mock_gateway, sample_plot, triangle):
        response = api.post(
            "/api/v1/session/plot",
            json=sample_plot.model_dump(mode="json", by_alias=True),
        )
        assert response.json()["mode"]["kind"] == "plot_edit"

        for point in triangle:
            api.post("/api/v1/session/points", json=point_json(point))
        api.get("/api/v1/session", params={"wait": True})

        response = api.post("/api/v1/session/finish")

        assert response.status_code == 200
        assert parse_wkt(response.json()["boundary"]) == triangle
        mock_gateway.update_plot_boundary.assert_awaited_once()

    def test_finish_with_too_few_points(self, api, mock_gateway, triangle):
        api.post("/api/v1/session/task", json={"task_id": "task-1", "plot_id": "plot-1"})
        api.post("/api/v1/session/points", json=point_json(triangle[0]))

        response = api.post("/api/v1/session/finish")

        assert response.status_code == 422
        assert response.json()["error"] == "Too few points"
        mock_gateway.complete_task.assert_not_called()

    def test_finish_with_failed_validation(self, api, mock_validation_client, mock_gateway, invalid_verdict, triangle):
        mock_validation_client.validate.return_value = invalid_verdict
        api.post("/api/v1/session/task", json={"task_id": "task-1", "plot_id": "plot-1"})
        for point in triangle:
            api.post("/api/v1/session/points", json=point_json(point))
        api.get("/api/v1/session", params={"wait": True})

        response = api.post("/api/v1/session/finish")

        assert response.status_code == 422
        data = response.json()
        assert data["error"] == "Validation failed"
        assert data["verdict"]["differencePercent"] == 15.0
        assert data["verdict"]["tolerancePercent"] == 10.0
        mock_gateway.complete_task.assert_not_called()

    def test_finish_backend_failure_keeps_session(self, api, mock_gateway, triangle):
        mock_gateway.complete_task.side_effect = BackendAPIError("Task already completed", status_code=400)
        api.post("/api/v1/session/task", json={"task_id": "task-1", "plot_id": "plot-1"})
        for point in triangle:
            api.post("/api/v1/session/points", json=point_json(point))
        api.get("/api/v1/session", params={"wait": True})

        response = api.post("/api/v1/session/finish")

        assert response.status_code == 400
        assert response.json()["detail"] == "Task already completed"
        assert len(api.get("/api/v1/session").json()["points"]) == 3

    def test_undo_and_cancel(self, api, triangle):
        api.post("/api/v1/session/task", json={"task_id": "task-1", "plot_id": "plot-1"})
        for point in triangle:
            api.post("/api/v1/session/points", json=point_json(point))

        data = api.delete("/api/v1/session/points/last").json()
        assert len(data["points"]) == 2
        assert data["verdict"] is None
        assert data["area_m2"] == 0

        data = api.post("/api/v1/session/cancel").json()
        assert data["state"] == "idle"


# ============================================================
# Geometry Endpoint Tests
# ============================================================

class TestGeometryEndpoints:
    """Tests for the stateless geometry endpoints."""

    def test_area(self, test_client, square_100m):
        response = test_client.post(
            "/api/v1/geometry/area",
            json={"points": [point_json(p) for p in square_100m]},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["area_m2"] == pytest.approx(10000, rel=0.005)
        assert data["area_ha"] == pytest.approx(1.0, rel=0.005)

    def test_convert_wkt_to_geojson(self, test_client):
        response = test_client.post("/api/v1/geometry/convert", json={
            "source": {
                "format": "wkt",
                "text": "POLYGON((105.8 10.0, 105.81 10.0, 105.81 10.01, 105.8 10.0))",
            },
        })

        assert response.status_code == 200
        data = response.json()
        assert data["format"] == "geojson"
        assert data["points"][0] == {"latitude": 10.0, "longitude": 105.8}
        assert data["text"].startswith('{"type": "Polygon", "coordinates": [[[105.8, 10.0]')

    def test_convert_point(self, test_client):
        response = test_client.post("/api/v1/geometry/convert", json={
            "source": {"format": "wkt", "text": "POINT(10.0 105.8)"},
            "target": "wkt",
        })

        assert response.status_code == 200
        assert response.json()["text"] == "POINT(105.8 10.0)"

    def test_convert_unparsable(self, test_client):
        response = test_client.post("/api/v1/geometry/convert", json={
            "source": {"format": "geojson", "text": "{broken"},
        })

        assert response.status_code == 400

    def test_convert_polygon_with_object_coordinates(self, test_client):
        response = test_client.post("/api/v1/geometry/convert", json={
            "source": {
                "format": "geojson",
                "text": '{"type": "Polygon", "coordinates": {"a": 1}}',
            },
        })

        assert response.status_code == 400

    def test_convert_unknown_format(self, test_client):
        response = test_client.post("/api/v1/geometry/convert", json={
            "source": {"format": "kml", "text": "<kml/>"},
        })

        assert response.status_code == 422


# ============================================================
# Reference Endpoint Tests
# ============================================================

class TestReferenceEndpoints:
    """Tests for tasks and plots."""

    def test_list_tasks(self, test_client, sample_task):
        from plot_capture.main import app

        service = AsyncMock(spec=ReferenceService)
        service.get_pending_tasks.return_value = [sample_task]
        app.dependency_overrides[get_reference_service] = lambda: service

        response = test_client.get("/api/v1/tasks")

        assert response.status_code == 200
        data = response.json()
        assert data[0]["task"]["plotId"] == "plot-1"
        assert data[0]["priority_text"] == "High"

    def test_list_plots(self, test_client, sample_plot, triangle):
        from plot_capture.main import app

        service = AsyncMock(spec=ReferenceService)
        service.get_plots.return_value = [(sample_plot, triangle, triangle[0])]
        app.dependency_overrides[get_reference_service] = lambda: service

        response = test_client.get("/api/v1/plots")

        assert response.status_code == 200
        data = response.json()
        assert data[0]["plot"]["plotId"] == "plot-1"
        assert len(data[0]["boundary"]) == 3
        assert data[0]["location"] == {"latitude": 10.0, "longitude": 105.8}

    def test_backend_failure_maps_to_bad_gateway(self, test_client):
        from plot_capture.main import app

        service = AsyncMock(spec=ReferenceService)
        service.get_pending_tasks.side_effect = BackendAPIError("connection refused")
        app.dependency_overrides[get_reference_service] = lambda: service

        response = test_client.get("/api/v1/tasks")

        assert response.status_code == 502
        assert response.json()["error"] == "Backend error"


# ============================================================
# Response Format Tests
# ============================================================

class TestResponseFormats:
    """Tests for API documentation."""

    def test_openapi_schema_available(self, test_client):
        response = test_client.get("/openapi.json")

        assert response.status_code == 200
        paths = response.json()["paths"]
        assert "/api/v1/session" in paths
        assert "/api/v1/session/finish" in paths
        assert "/api/v1/geometry/convert" in paths

    def test_rate_limit_documented_in_openapi(self, test_client):
        paths = test_client.get("/openapi.json").json()["paths"]

        assert "429" in paths["/api/v1/session/points"]["post"]["responses"]

    def test_docs_endpoint_available(self, test_client):
        response = test_client.get("/docs")

        assert response.status_code == 200


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
