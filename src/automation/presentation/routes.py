from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from src.automation.application.services import AutomationService
from src.automation.domain.models import StatusSummary, TaskState, TaskStatusView
from src.automation.presentation.schemas import (
    AutomateRequest,
    CancelResponse,
    EnqueueResponse,
    ErrorResponse,
    HealthResponse,
    TaskListResponse,
)

router = APIRouter(tags=["automation"])
health_router = APIRouter(tags=["health"])


def get_automation_service() -> AutomationService:
    return AutomationService()


@router.post(
    "/automate",
    response_model=EnqueueResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Submit an automation task",
    description="Queues the task for asynchronous execution and returns its id immediately.",
    responses={
        400: {"model": ErrorResponse, "description": "Missing or empty task definition."},
        503: {"model": ErrorResponse, "description": "Queue is full or service is draining."},
    },
)
async def automate(
    body: AutomateRequest,
    service: AutomationService = Depends(get_automation_service),
) -> EnqueueResponse:
    task = await service.submit(body.task)
    return EnqueueResponse(id=task.id, status=task.state)


@router.get(
    "/automate",
    response_model=TaskListResponse,
    response_model_exclude_none=True,
    summary="List automation tasks",
)
async def list_tasks(
    state: TaskState | None = Query(None, description="Only tasks in this state"),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    service: AutomationService = Depends(get_automation_service),
) -> TaskListResponse:
    tasks = await service.list_tasks(state=state, limit=limit, offset=offset)
    return TaskListResponse(tasks=tasks)


@router.get(
    "/automate/{task_id}",
    response_model=TaskStatusView,
    response_model_exclude_none=True,
    summary="Check task status",
    description=(
        "Returns the lifecycle state of a task. `result` is present once the task is "
        "COMPLETED and `error` once it is FAILED."
    ),
    responses={404: {"model": ErrorResponse, "description": "Unknown task id."}},
)
async def get_task(
    task_id: str,
    service: AutomationService = Depends(get_automation_service),
) -> TaskStatusView:
    return await service.get_status(task_id)


@router.delete(
    "/automate/{task_id}",
    response_model=CancelResponse,
    summary="Cancel a task",
    responses={
        404: {"model": ErrorResponse, "description": "Unknown task id."},
        409: {"model": ErrorResponse, "description": "Task already finished."},
    },
)
async def cancel_task(
    task_id: str,
    service: AutomationService = Depends(get_automation_service),
) -> CancelResponse:
    task = await service.cancel(task_id)
    return CancelResponse(id=task.id, state=task.state)


@router.get(
    "/status",
    response_model=StatusSummary,
    summary="Task counts per state",
)
async def status_summary(
    service: AutomationService = Depends(get_automation_service),
) -> StatusSummary:
    return await service.summary()


@health_router.get("/health", response_model=HealthResponse)
def health(service: AutomationService = Depends(get_automation_service)) -> HealthResponse:
    return HealthResponse(**service.health())
