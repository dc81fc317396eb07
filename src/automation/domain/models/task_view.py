from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.automation.domain.models.task import Task, TaskError
from src.automation.domain.models.task_state import TaskState


class TaskStatusView(BaseModel):
    """External status representation of a single task."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(description="Unique task identifier.")
    state: TaskState = Field(description="Current lifecycle state.")
    created_at: datetime = Field(description="Submission time.")
    started_at: datetime | None = Field(default=None, description="First attempt start.")
    finished_at: datetime | None = Field(default=None, description="Terminal time.")
    attempt: int = Field(default=0, description="Execution attempts started.")
    result: Any | None = Field(default=None, description="Result when COMPLETED.")
    error: TaskError | None = Field(default=None, description="Error when FAILED.")

    @classmethod
    def from_task(cls, task: Task) -> "TaskStatusView":
        return cls(
            id=task.id,
            state=task.state,
            created_at=task.created_at,
            started_at=task.started_at,
            finished_at=task.finished_at,
            attempt=task.attempt,
            result=task.result,
            error=task.error,
        )


class StatusSummary(BaseModel):
    """Fleet-level task counts, one entry per state."""

    counts: dict[TaskState, int] = Field(description="Number of tasks per state.")
