"""
API router for the drawing session.

Session rule violations (no session, too few points, pending or failed
validation) are mapped to responses by the error handling middleware.
"""
from fastapi import APIRouter, Query

from plot_capture.api.dependencies import SessionControllerDep
from plot_capture.api.rate_limit import RATE_LIMIT_RESPONSE
from plot_capture.api.v1.models.requests import StartTaskSessionRequest
from plot_capture.api.v1.models.responses import FinishResponse, SessionResponse
from plot_capture.domain.models import Coordinate, Plot
from plot_capture.services.domain.drawing_session import TaskCompletionMode


router = APIRouter(
    prefix="/session",
    tags=["session"],
    responses=RATE_LIMIT_RESPONSE,
)

_SESSION_ERRORS = {
    409: {"description": "No active session, save in progress or validation pending"},
}


@router.get(
    "",
    response_model=SessionResponse,
    summary="Get the drawing session",
)
async def get_session(
    controller: SessionControllerDep,
    wait: bool = Query(
        default=False,
        description="Wait for an in-flight validation before responding",
    ),
) -> SessionResponse:
    if wait:
        await controller.wait_for_validation()
    return SessionResponse.from_snapshot(controller.snapshot())


@router.post(
    "/task",
    response_model=SessionResponse,
    summary="Start drawing for a polygon task",
    description="Starts a task-completion session. Any active session is abandoned.",
)
async def start_task_session(
    request: StartTaskSessionRequest,
    controller: SessionControllerDep,
) -> SessionResponse:
    snapshot = controller.begin(
        TaskCompletionMode(task_id=request.task_id, plot_id=request.plot_id)
    )
    return SessionResponse.from_snapshot(snapshot)


@router.post(
    "/plot",
    response_model=SessionResponse,
    summary="Start redrawing a plot boundary",
    description="Starts a plot-edit session. Any active session is abandoned.",
)
async def start_plot_session(
    plot: Plot,
    controller: SessionControllerDep,
) -> SessionResponse:
    return SessionResponse.from_snapshot(controller.begin_plot_edit(plot))


@router.post(
    "/points",
    response_model=SessionResponse,
    summary="Add a tapped point",
    description="""
    Appends a vertex. Once the polygon has three or more vertices the area is
    recomputed and validation against the plot's recorded area starts in the
    background.
    """,
    responses=_SESSION_ERRORS,
)
async def add_point(
    coordinate: Coordinate,
    controller: SessionControllerDep,
) -> SessionResponse:
    return SessionResponse.from_snapshot(controller.add_point(coordinate))


@router.delete(
    "/points/last",
    response_model=SessionResponse,
    summary="Undo the last point",
    responses=_SESSION_ERRORS,
)
async def remove_last_point(controller: SessionControllerDep) -> SessionResponse:
    return SessionResponse.from_snapshot(controller.remove_last_point())


@router.post(
    "/cancel",
    response_model=SessionResponse,
    summary="Cancel the drawing session",
)
async def cancel_session(controller: SessionControllerDep) -> SessionResponse:
    return SessionResponse.from_snapshot(controller.cancel())


@router.post(
    "/finish",
    response_model=FinishResponse,
    summary="Save the drawn boundary",
    description="""
    Saves the polygon once the latest validation passed. Task sessions
    complete the task with a GeoJSON boundary; plot edits update the plot
    with a WKT boundary. On a backend failure the session is kept so the
    save can be retried.
    """,
    responses={
        **_SESSION_ERRORS,
        422: {"description": "Too few points or validation failed"},
        502: {"description": "Backend failure while saving"},
    },
)
async def finish_session(controller: SessionControllerDep) -> FinishResponse:
    result = await controller.finish()
    return FinishResponse.from_result(result)
