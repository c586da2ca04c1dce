"""
Backend endpoint constants.

Centralizes the farm management backend's paths used by the capture service.
"""


class BackendEndpoints:
    """Farm management backend endpoint paths."""

    # Supervisor polygon workflow
    SUPERVISOR_BASE = "/Supervisor"
    POLYGON_TASKS = f"{SUPERVISOR_BASE}/polygon-tasks"
    VALIDATE_POLYGON_AREA = f"{SUPERVISOR_BASE}/polygon/validate-area"
    COMPLETE_POLYGON_TASK = f"{SUPERVISOR_BASE}/polygon/{{task_id}}/complete"

    # Plots
    PLOTS = "/Plot"

    @classmethod
    def complete_polygon_task(cls, task_id: str) -> str:
        """
        Get the completion endpoint for a polygon task.

        Args:
            task_id: Polygon task ID

        Returns:
            Formatted endpoint path
        """
        return cls.COMPLETE_POLYGON_TASK.format(task_id=task_id)


class APIConstants:
    """General API configuration constants."""

    CONTENT_TYPE_JSON = "application/json"

    PENDING_TASK_STATUS = "Pending"
    FIRST_PAGE = 1
