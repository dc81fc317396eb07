from __future__ import annotations

import inject

from src.automation.domain.models.task_state import TaskState
from src.automation.domain.models.task_view import StatusSummary, TaskStatusView
from src.automation.domain.repositories import TaskStore


class StatusReporter:
    """Read-only projection of the task store for status queries."""

    def __init__(self, store: TaskStore | None = None) -> None:
        self._store = store or inject.instance(TaskStore)

    async def status(self, task_id: str) -> TaskStatusView:
        """Return the external status of ``task_id``; raises ``TaskNotFoundError``."""
        task = await self._store.get(task_id)
        return TaskStatusView.from_task(task)

    async def summary(self) -> StatusSummary:
        """Return task counts for every lifecycle state."""
        return StatusSummary(counts=await self._store.count_by_state())

    async def list(
        self,
        *,
        state: TaskState | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[TaskStatusView]:
        tasks = await self._store.list(state=state, limit=limit, offset=offset)
        return [TaskStatusView.from_task(task) for task in tasks]
