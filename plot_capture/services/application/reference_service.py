"""
Application service: reference data shown alongside the drawing map.
"""
from typing import List, Optional, Tuple

from plot_capture.domain.models import Coordinate, GeoJsonText, Plot, PolygonTask, WktText
from plot_capture.infrastructure.backend_client import BackendClient
from plot_capture.utils.geometry import parse_geodetic, point_location


def _as_geodetic_text(text: str) -> WktText | GeoJsonText:
    """
    Tag stored plot geometry with its format.

    The backend's boundaryGeoJson and coordinateGeoJson fields hold either
    GeoJSON or WKT despite their names, and carry no format marker. This is
    the only place the format is inferred from content; everything downstream
    dispatches on the returned tag.
    """
    if text.lstrip().startswith("{"):
        return GeoJsonText(text=text)
    return WktText(text=text)


class ReferenceService:
    """
    Fetches pending polygon tasks and plots, and parses stored plot geometry.

    No business logic beyond resolving geometry for display.
    """

    def __init__(self, backend: BackendClient):
        self.backend = backend

    async def get_pending_tasks(self) -> List[PolygonTask]:
        return await self.backend.get_polygon_tasks()

    async def get_plots(
        self,
    ) -> List[Tuple[Plot, Optional[List[Coordinate]], Optional[Coordinate]]]:
        """
        Fetch plots with their boundary vertices and marker location.

        Returns:
            List of (plot, boundary or None, location or None) tuples
        """
        plots = await self.backend.get_plots()
        return [(plot, self.plot_boundary(plot), self.plot_location(plot)) for plot in plots]

    @staticmethod
    def plot_boundary(plot: Plot) -> Optional[List[Coordinate]]:
        if not plot.boundary_geo_json:
            return None
        coordinates = parse_geodetic(_as_geodetic_text(plot.boundary_geo_json))
        if coordinates is None or len(coordinates) < 3:
            return None
        return coordinates

    @staticmethod
    def plot_location(plot: Plot) -> Optional[Coordinate]:
        """Marker location, falling back to the boundary's first vertex."""
        for text in (plot.coordinate_geo_json, plot.boundary_geo_json):
            if text:
                location = point_location(_as_geodetic_text(text))
                if location is not None:
                    return location
        return None
