"""
API response models using Pydantic.
"""
from typing import List, Literal, Optional
from pydantic import BaseModel, Field

from plot_capture.domain.models import (
    Coordinate,
    Plot,
    PlotBoundaryUpdate,
    PolygonTask,
    ValidationVerdict,
)
from plot_capture.services.domain.drawing_session import (
    FinishResult,
    PlotEditMode,
    SessionSnapshot,
    TaskCompletionMode,
)


class SessionModeResponse(BaseModel):
    """Which workflow the session belongs to."""
    kind: Literal["task", "plot_edit"]
    plot_id: str
    task_id: Optional[str] = None


class SessionResponse(BaseModel):
    """Current drawing session state."""
    state: Literal["idle", "drawing", "validating", "validated", "persisting"]
    mode: Optional[SessionModeResponse] = None
    points: List[Coordinate] = Field(description="Drawn vertices, never closed")
    area_m2: float = Field(description="Spherical-excess area in m²")
    verdict: Optional[ValidationVerdict] = None
    is_validating: bool
    can_finish: bool

    @classmethod
    def from_snapshot(cls, snapshot: SessionSnapshot) -> "SessionResponse":
        return cls(
            state=snapshot.state,
            mode=_mode_response(snapshot.mode),
            points=list(snapshot.polygon),
            area_m2=snapshot.area,
            verdict=snapshot.verdict,
            is_validating=snapshot.is_validating,
            can_finish=snapshot.can_finish,
        )


class FinishResponse(BaseModel):
    """Result of saving a drawn boundary."""
    mode: SessionModeResponse
    boundary: str = Field(description="GeoJSON for tasks, WKT for plot edits")
    area_m2: float
    verdict: ValidationVerdict
    updated_plot: Optional[PlotBoundaryUpdate] = None

    @classmethod
    def from_result(cls, result: FinishResult) -> "FinishResponse":
        return cls(
            mode=_mode_response(result.mode),
            boundary=result.boundary,
            area_m2=result.area,
            verdict=result.verdict,
            updated_plot=result.updated_plot,
        )


def _mode_response(mode) -> Optional[SessionModeResponse]:
    if isinstance(mode, TaskCompletionMode):
        return SessionModeResponse(kind="task", plot_id=mode.plot_id, task_id=mode.task_id)
    if isinstance(mode, PlotEditMode):
        return SessionModeResponse(kind="plot_edit", plot_id=mode.plot_id)
    return None


class AreaResponse(BaseModel):
    """Area of a polygon."""
    area_m2: float = Field(description="Spherical-excess area, rounded to m²")
    geodesic_area_m2: float = Field(description="WGS84 ellipsoidal area in m²")
    area_ha: float


class ConvertGeometryResponse(BaseModel):
    """Parsed coordinates and the re-serialized geometry."""
    points: List[Coordinate]
    format: Literal["wkt", "geojson"]
    text: str


class PlotResponse(BaseModel):
    """Plot with its boundary and marker parsed for the map."""
    plot: Plot
    boundary: Optional[List[Coordinate]] = None
    location: Optional[Coordinate] = None


class TaskResponse(BaseModel):
    task: PolygonTask
    priority_text: str

