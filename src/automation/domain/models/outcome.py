from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from src.automation.domain.models.task import TaskError
from src.automation.domain.models.task_state import TaskState

EXECUTOR_FAILURE = "ExecutorFailure"


class Outcome(BaseModel):
    """Result of a single execution attempt."""

    state: TaskState = Field(description="COMPLETED or FAILED.")
    result: Any | None = Field(default=None, description="Runner result on success.")
    error: TaskError | None = Field(default=None, description="Failure detail.")
    retryable: bool = Field(
        default=False, description="Whether the failure is transient and may be retried."
    )

    @classmethod
    def completed(cls, result: Any) -> Outcome:
        return cls(state=TaskState.COMPLETED, result=result)

    @classmethod
    def failed(cls, message: str, *, retryable: bool = False) -> Outcome:
        return cls(
            state=TaskState.FAILED,
            error=TaskError(kind=EXECUTOR_FAILURE, message=message),
            retryable=retryable,
        )

    @property
    def succeeded(self) -> bool:
        return self.state is TaskState.COMPLETED
