"""
Domain models for plot boundary capture.

These models represent the core domain entities and should be independent
of any infrastructure concerns (API clients, databases, etc.).
Backend payloads use camelCase keys, so wire-facing models declare aliases
and accept either spelling.
"""
from enum import IntEnum
from typing import Annotated, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Coordinate(BaseModel):
    """A geodetic point in degrees. Stored as (latitude, longitude)."""
    model_config = ConfigDict(frozen=True)

    latitude: float = Field(ge=-90, le=90, description="Latitude in degrees")
    longitude: float = Field(ge=-180, le=180, description="Longitude in degrees")


class WktText(BaseModel):
    """Geometry supplied as Well-Known Text."""
    format: Literal["wkt"] = "wkt"
    text: str


class GeoJsonText(BaseModel):
    """Geometry supplied as a GeoJSON string."""
    format: Literal["geojson"] = "geojson"
    text: str


GeodeticText = Annotated[Union[WktText, GeoJsonText], Field(discriminator="format")]


class CamelModel(BaseModel):
    """Base for models exchanged with the backend."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PlotStatus(IntEnum):
    """Plot status codes used by the backend's plot update endpoint."""
    ACTIVE = 0
    PENDING_POLYGON = 1


class ValidationVerdict(CamelModel):
    """Result of comparing a drawn polygon's area with the plot's recorded area."""
    is_valid: bool
    drawn_area_ha: float
    plot_area_ha: float
    difference_percent: float
    tolerance_percent: float
    message: str = ""

    def summary(self) -> str:
        """Numeric comparison suitable for showing to the user."""
        return (
            f"{self.message}\n\n"
            f"Drawn Area: {self.drawn_area_ha} ha\n"
            f"Plot Area: {self.plot_area_ha} ha\n"
            f"Difference: {self.difference_percent:.1f}%\n"
            f"Max Allowed: {self.tolerance_percent}%"
        ).strip()


class PolygonTask(CamelModel):
    """A pending assignment to draw the boundary of a plot."""
    id: str
    plot_id: str
    status: str = "Pending"
    assigned_at: Optional[str] = None
    completed_at: Optional[str] = None
    notes: Optional[str] = None
    priority: Union[int, str, None] = None
    so_thua: Optional[int] = None
    so_to: Optional[int] = None
    plot_area: float = 0.0
    soil_type: Optional[str] = None
    farmer_id: str
    farmer_name: Optional[str] = None
    farmer_phone: Optional[str] = None

    @property
    def priority_text(self) -> str:
        if isinstance(self.priority, str):
            return self.priority
        return {1: "High", 2: "Medium", 3: "Low"}.get(self.priority, "Unknown")


class Plot(CamelModel):
    """Reference plot record owned by the backend. Read-only here."""
    plot_id: str
    farmer_id: str
    farmer_name: Optional[str] = None
    group_id: Optional[str] = None
    boundary_geo_json: Optional[str] = None
    coordinate_geo_json: Optional[str] = None
    so_thua: Optional[int] = None
    so_to: Optional[int] = None
    area: float = 0.0
    soil_type: Optional[str] = None
    status: Union[str, int, None] = None
    variety_name: Optional[str] = None


class PlotBoundaryUpdate(CamelModel):
    """Plot update payload; the backend echoes the same shape back."""
    plot_id: str
    farmer_id: str
    group_id: Optional[str] = None
    boundary: Optional[str] = Field(default=None, description="WKT polygon")
    so_thua: Optional[int] = None
    so_to: Optional[int] = None
    area: float
    soil_type: Optional[str] = None
    coordinate: Optional[str] = Field(default=None, description="WKT point")
    status: PlotStatus = PlotStatus.ACTIVE
