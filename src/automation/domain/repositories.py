from __future__ import annotations

from typing import Any, Protocol

from src.automation.domain.models.task import Task, TaskError
from src.automation.domain.models.task_state import TaskState


class TaskStore(Protocol):
    """Repository contract owning task records and their lifecycle."""

    async def create(self, definition: Any) -> Task:
        """Persist a new PENDING task and return it."""

    async def get(self, task_id: str) -> Task:
        """Return the task or raise ``TaskNotFoundError``."""

    async def transition(
        self,
        task_id: str,
        from_state: TaskState,
        to_state: TaskState,
        *,
        result: Any | None = None,
        error: TaskError | None = None,
    ) -> Task:
        """Atomically move ``task_id`` from ``from_state`` to ``to_state``."""

    async def begin_attempt(self, task_id: str) -> Task:
        """Increment the attempt counter of a RUNNING task."""

    async def list(
        self,
        *,
        state: TaskState | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Task]:
        """Return tasks ordered by creation time."""

    async def count_by_state(self) -> dict[TaskState, int]:
        """Return the number of tasks in every state."""


class ActionRunner(Protocol):
    """Capability that performs the work described by a task definition."""

    async def run(self, definition: Any) -> Any:
        """Run ``definition`` and return its raw result or raise ``ActionError``."""
