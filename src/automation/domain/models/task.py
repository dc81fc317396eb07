from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from src.automation.domain.models.task_state import TaskState


class TaskError(BaseModel):
    kind: str = Field(description="Error kind, e.g. ExecutorFailure or ShutdownTimeout.")
    message: str = Field(description="Human readable error description.")


class Task(BaseModel):
    id: str = Field(description="Unique task identifier.")
    definition: Any = Field(description="Opaque description of the work to run.")
    state: TaskState = Field(default=TaskState.PENDING, description="Lifecycle state.")
    created_at: datetime = Field(description="When the task was submitted.")
    started_at: datetime | None = Field(
        default=None, description="When the first execution attempt started."
    )
    finished_at: datetime | None = Field(
        default=None, description="When the task reached a terminal state."
    )
    result: Any | None = Field(
        default=None, description="Runner result, set only for COMPLETED tasks."
    )
    error: TaskError | None = Field(
        default=None, description="Failure or cancellation reason."
    )
    attempt: int = Field(default=0, description="Number of execution attempts started.")
