"""
API router for polygon tasks and plots shown on the drawing map.
"""
from typing import List

from fastapi import APIRouter

from plot_capture.api.dependencies import ReferenceServiceDep
from plot_capture.api.rate_limit import RATE_LIMIT_RESPONSE
from plot_capture.api.v1.models.responses import PlotResponse, TaskResponse


router = APIRouter(
    tags=["reference"],
    responses={
        **RATE_LIMIT_RESPONSE,
        502: {"description": "Backend unavailable"},
    },
)


@router.get(
    "/tasks",
    response_model=List[TaskResponse],
    summary="List pending polygon tasks",
)
async def list_tasks(reference_service: ReferenceServiceDep) -> List[TaskResponse]:
    tasks = await reference_service.get_pending_tasks()
    return [TaskResponse(task=task, priority_text=task.priority_text) for task in tasks]


@router.get(
    "/plots",
    response_model=List[PlotResponse],
    summary="List plots with parsed geometry",
)
async def list_plots(reference_service: ReferenceServiceDep) -> List[PlotResponse]:
    plots = await reference_service.get_plots()
    return [
        PlotResponse(plot=plot, boundary=boundary, location=location)
        for plot, boundary, location in plots
    ]
