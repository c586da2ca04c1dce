"""
Application service: terminal persistence of captured boundaries.

Both operations are single-shot. Failures propagate unchanged so the caller
can keep its drawing session and retry.
"""
import logging
from typing import Optional

from plot_capture.domain.models import Plot, PlotBoundaryUpdate, PlotStatus
from plot_capture.infrastructure.backend_client import BackendClient

logger = logging.getLogger(__name__)


class PersistenceGateway:
    """Completes polygon tasks and updates plot boundaries on the backend."""

    def __init__(self, backend: BackendClient):
        self.backend = backend

    async def complete_task(
        self,
        task_id: str,
        polygon_geojson: str,
        notes: Optional[str] = None,
    ) -> None:
        """
        Complete a polygon-drawing task with a GeoJSON boundary.

        Raises:
            BackendAPIError: If the backend rejects the completion
        """
        logger.info(f"Completing polygon task {task_id}")
        await self.backend.complete_polygon_task(task_id, polygon_geojson, notes)

    async def update_plot_boundary(self, plot: Plot, boundary_wkt: str) -> PlotBoundaryUpdate:
        """
        Replace a plot's boundary with a WKT polygon and mark the plot active.

        The plot's recorded area, cadastral numbers, group and soil type are
        sent back unchanged.

        Raises:
            BackendAPIError: If the backend rejects the update
        """
        logger.info(f"Updating boundary of plot {plot.plot_id}")
        update = PlotBoundaryUpdate(
            plot_id=plot.plot_id,
            farmer_id=plot.farmer_id,
            group_id=plot.group_id,
            boundary=boundary_wkt,
            area=plot.area,
            so_thua=plot.so_thua,
            so_to=plot.so_to,
            soil_type=plot.soil_type,
            status=PlotStatus.ACTIVE,
        )
        return await self.backend.update_plot(update)
