"""
Domain service: drawing session state machine for plot boundary capture.

A session is started either to complete an assigned polygon task or to edit
an existing plot's boundary. Every point mutation recomputes the area and,
once the polygon has at least three vertices, re-validates it against the
plot's recorded area in the background. Saving is gated on the most recent
verdict being present and valid.

Validation responses carry the mutation token they were issued for; a
response whose token no longer matches the session is discarded.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional, Union

from plot_capture.domain.models import (
    Coordinate,
    Plot,
    PlotBoundaryUpdate,
    PolygonTask,
    ValidationVerdict,
)
from plot_capture.services.application.persistence_gateway import PersistenceGateway
from plot_capture.services.application.validation_client import ValidationClient
from plot_capture.utils.geometry import (
    MIN_POLYGON_POINTS,
    compute_area,
    is_complete,
    to_geojson_string,
    to_wkt,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TaskCompletionMode:
    """Drawing the boundary requested by a polygon task."""
    task_id: str
    plot_id: str


@dataclass(frozen=True)
class PlotEditMode:
    """Redrawing the boundary of an existing plot."""
    plot: Plot

    @property
    def plot_id(self) -> str:
        return self.plot.plot_id


SessionMode = Union[TaskCompletionMode, PlotEditMode]


class DrawingSessionError(Exception):
    """Base class for rejected session operations."""


class NoActiveSessionError(DrawingSessionError):
    def __init__(self):
        super().__init__("No drawing session is active")


class PersistenceInProgressError(DrawingSessionError):
    def __init__(self):
        super().__init__("The polygon is already being saved")


class TooFewPointsError(DrawingSessionError):
    def __init__(self, point_count: int):
        super().__init__(
            f"Polygon must have at least {MIN_POLYGON_POINTS} points (has {point_count})"
        )
        self.point_count = point_count


class ValidationPendingError(DrawingSessionError):
    def __init__(self):
        super().__init__("Please wait for polygon validation to complete")


class ValidationFailedError(DrawingSessionError):
    """The drawn area deviates from the plot's recorded area beyond tolerance."""

    def __init__(self, verdict: ValidationVerdict):
        super().__init__(verdict.summary())
        self.verdict = verdict


@dataclass
class DrawingSession:
    """Mutable session aggregate. Only the controller touches it."""
    mode: Optional[SessionMode] = None
    polygon: list[Coordinate] = field(default_factory=list)
    area: float = 0
    verdict: Optional[ValidationVerdict] = None
    is_validating: bool = False
    is_persisting: bool = False


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only view of the session handed to callers."""
    mode: Optional[SessionMode]
    polygon: tuple[Coordinate, ...]
    area: float
    verdict: Optional[ValidationVerdict]
    is_validating: bool
    is_persisting: bool

    @property
    def state(self) -> str:
        if self.mode is None:
            return "idle"
        if self.is_persisting:
            return "persisting"
        if self.is_validating:
            return "validating"
        if self.verdict is not None:
            return "validated"
        return "drawing"

    @property
    def can_finish(self) -> bool:
        return (
            self.mode is not None
            and not self.is_persisting
            and len(self.polygon) >= MIN_POLYGON_POINTS
            and self.verdict is not None
            and self.verdict.is_valid
        )


@dataclass(frozen=True)
class FinishResult:
    """Outcome of a successful save."""
    mode: SessionMode
    boundary: str
    area: float
    verdict: ValidationVerdict
    updated_plot: Optional[PlotBoundaryUpdate] = None


class DrawingSessionController:
    """
    Owns the single active drawing session.

    Mutations (begin, add_point, remove_last_point, cancel) are synchronous
    and must run inside an event loop; validation runs as background tasks.
    """

    def __init__(
        self,
        validation_client: ValidationClient,
        gateway: PersistenceGateway,
        tolerance_percent: Optional[float] = None,
    ):
        self.validation_client = validation_client
        self.gateway = gateway
        self.tolerance_percent = tolerance_percent
        self._session = DrawingSession()
        self._token = 0
        self._validation_tasks: set[asyncio.Task] = set()
        self._latest_validation: Optional[asyncio.Task] = None

    @property
    def is_active(self) -> bool:
        return self._session.mode is not None

    def snapshot(self) -> SessionSnapshot:
        session = self._session
        return SessionSnapshot(
            mode=session.mode,
            polygon=tuple(session.polygon),
            area=session.area,
            verdict=session.verdict,
            is_validating=session.is_validating,
            is_persisting=session.is_persisting,
        )

    def begin(self, mode: SessionMode) -> SessionSnapshot:
        """
        Start a new session, silently abandoning any active one.

        Args:
            mode: Task completion or plot edit

        Returns:
            Snapshot of the fresh session
        """
        if self.is_active:
            logger.info(f"Abandoning active session for {self._describe(self._session.mode)}")
        self._reset()
        self._session = DrawingSession(mode=mode)
        logger.info(f"Started drawing session for {self._describe(mode)}")
        return self.snapshot()

    def begin_task(self, task: PolygonTask) -> SessionSnapshot:
        return self.begin(TaskCompletionMode(task_id=task.id, plot_id=task.plot_id))

    def begin_plot_edit(self, plot: Plot) -> SessionSnapshot:
        return self.begin(PlotEditMode(plot=plot))

    def add_point(self, coordinate: Coordinate) -> SessionSnapshot:
        session = self._require_drawing()
        session.polygon.append(coordinate)
        self._polygon_changed()
        return self.snapshot()

    def remove_last_point(self) -> SessionSnapshot:
        """Undo the last tap. No-op on an empty polygon."""
        session = self._require_drawing()
        if session.polygon:
            session.polygon.pop()
            self._polygon_changed()
        return self.snapshot()

    def cancel(self) -> SessionSnapshot:
        """Discard all in-progress state, including pending validation."""
        if self.is_active:
            logger.info(f"Cancelled drawing session for {self._describe(self._session.mode)}")
        self._reset()
        return self.snapshot()

    async def wait_for_validation(self) -> Optional[ValidationVerdict]:
        """Wait for the latest validation call, then return the current verdict."""
        task = self._latest_validation
        if task is not None and not task.done():
            await asyncio.gather(task, return_exceptions=True)
        return self._session.verdict

    async def finish(self) -> FinishResult:
        """
        Persist the drawn boundary if the latest verdict allows it.

        Returns:
            FinishResult describing what was saved

        Raises:
            NoActiveSessionError: If no session is active
            PersistenceInProgressError: If a save is already running
            TooFewPointsError: If the polygon has fewer than 3 points
            ValidationPendingError: If no verdict is available yet
            ValidationFailedError: If the verdict rejected the drawn area
            BackendAPIError: If the save fails; the session is kept for retry
        """
        session = self._require_drawing()
        if not is_complete(session.polygon):
            raise TooFewPointsError(len(session.polygon))
        verdict = session.verdict
        if verdict is None:
            raise ValidationPendingError()
        if not verdict.is_valid:
            raise ValidationFailedError(verdict)

        token = self._token
        mode = session.mode
        polygon = list(session.polygon)
        area = session.area
        session.is_persisting = True
        try:
            result = await self._persist(mode, polygon, area, verdict)
        finally:
            session.is_persisting = False

        if token == self._token:
            self._reset()
        logger.info(f"Saved boundary for {self._describe(mode)} ({area} m²)")
        return result

    async def _persist(
        self,
        mode: SessionMode,
        polygon: list[Coordinate],
        area: float,
        verdict: ValidationVerdict,
    ) -> FinishResult:
        if isinstance(mode, TaskCompletionMode):
            geojson = to_geojson_string(polygon)
            notes = f"Polygon drawn with area: {verdict.drawn_area_ha}ha ({area}m²)"
            await self.gateway.complete_task(mode.task_id, geojson, notes)
            return FinishResult(mode=mode, boundary=geojson, area=area, verdict=verdict)

        if isinstance(mode, PlotEditMode):
            wkt = to_wkt(polygon)
            updated = await self.gateway.update_plot_boundary(mode.plot, wkt)
            return FinishResult(
                mode=mode, boundary=wkt, area=area, verdict=verdict, updated_plot=updated
            )

        raise TypeError(f"Unsupported session mode: {mode!r}")

    def _require_drawing(self) -> DrawingSession:
        if not self.is_active:
            raise NoActiveSessionError()
        if self._session.is_persisting:
            raise PersistenceInProgressError()
        return self._session

    def _polygon_changed(self) -> None:
        self._token += 1
        session = self._session
        session.verdict = None

        if not is_complete(session.polygon):
            session.area = 0
            session.is_validating = False
            return

        session.area = compute_area(session.polygon)
        session.is_validating = True
        task = asyncio.create_task(
            self._validate(self._token, session.mode.plot_id, list(session.polygon))
        )
        self._validation_tasks.add(task)
        task.add_done_callback(self._validation_tasks.discard)
        self._latest_validation = task

    async def _validate(self, token: int, plot_id: str, polygon: list[Coordinate]) -> None:
        try:
            verdict = await self.validation_client.validate(
                plot_id, polygon, self.tolerance_percent
            )
        except Exception as e:
            if token == self._token:
                logger.warning(f"Polygon validation failed for plot {plot_id}: {e}")
                self._session.verdict = None
                self._session.is_validating = False
            return

        if token != self._token:
            logger.debug(f"Discarding stale validation response (token {token}, current {self._token})")
            return

        self._session.verdict = verdict
        self._session.is_validating = False

    def _reset(self) -> None:
        self._token += 1
        for task in self._validation_tasks:
            task.cancel()
        self._latest_validation = None
        self._session = DrawingSession()

    @staticmethod
    def _describe(mode: Optional[SessionMode]) -> str:
        if isinstance(mode, TaskCompletionMode):
            return f"task {mode.task_id} (plot {mode.plot_id})"
        if isinstance(mode, PlotEditMode):
            return f"plot {mode.plot_id}"
        return "no session"
