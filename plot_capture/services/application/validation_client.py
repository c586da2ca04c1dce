"""
Application service: area validation of drawn polygons.
"""
import logging
from typing import Optional, Sequence

from plot_capture.config import settings
from plot_capture.domain.models import Coordinate, ValidationVerdict
from plot_capture.infrastructure.backend_client import BackendClient
from plot_capture.utils.geometry import MIN_POLYGON_POINTS, is_complete, to_geojson_string

logger = logging.getLogger(__name__)


class ValidationClient:
    """
    Submits a drawn polygon to the backend, which compares its area with the
    plot's recorded area and decides pass/fail against a tolerance.

    Stateless per call; session state lives in the drawing session controller.
    """

    def __init__(self, backend: BackendClient, default_tolerance_percent: Optional[float] = None):
        self.backend = backend
        self.default_tolerance_percent = (
            default_tolerance_percent
            if default_tolerance_percent is not None
            else settings.default_tolerance_percent
        )

    async def validate(
        self,
        plot_id: str,
        polygon: Sequence[Coordinate],
        tolerance_percent: Optional[float] = None,
    ) -> ValidationVerdict:
        """
        Validate a drawn polygon against a reference plot.

        Args:
            plot_id: Reference plot identifier
            polygon: Drawn vertices (open ring)
            tolerance_percent: Allowed difference; defaults to the configured value

        Returns:
            ValidationVerdict from the backend

        Raises:
            ValueError: If the polygon has fewer than 3 points
            BackendAPIError: If the backend call fails
        """
        if not is_complete(polygon):
            raise ValueError(
                f"Cannot validate a polygon with fewer than {MIN_POLYGON_POINTS} points"
            )
        tolerance = (
            tolerance_percent if tolerance_percent is not None else self.default_tolerance_percent
        )
        verdict = await self.backend.validate_polygon_area(
            plot_id=plot_id,
            polygon_geojson=to_geojson_string(polygon),
            tolerance_percent=tolerance,
        )
        logger.debug(
            f"Validation for plot {plot_id}: valid={verdict.is_valid}, "
            f"drawn={verdict.drawn_area_ha}ha, plot={verdict.plot_area_ha}ha, "
            f"diff={verdict.difference_percent}%"
        )
        return verdict
