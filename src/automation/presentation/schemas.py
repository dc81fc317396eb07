from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.automation.domain.models import TaskState, TaskStatusView


class AutomateRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    task: Any = Field(default=None, description="Definition of the automation task.")


class EnqueueResponse(BaseModel):
    id: str = Field(..., description="Task id")
    status: TaskState = Field(..., description="Initial task state")


class CancelResponse(BaseModel):
    id: str = Field(..., description="Task id")
    state: TaskState = Field(..., description="State after cancellation")


class TaskListResponse(BaseModel):
    tasks: list[TaskStatusView]


class HealthResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    status: str
    queue_depth: int
    in_flight: int


class ErrorResponse(BaseModel):
    error: str = Field(..., description="Error kind")
    message: str = Field(..., description="Human readable description")
