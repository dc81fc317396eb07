from typing import Any, cast

import inject

from src.automation.application.dispatcher import Dispatcher
from src.automation.application.reporter import StatusReporter
from src.automation.domain.models import StatusSummary, Task, TaskState, TaskStatusView


class AutomationService:
    """Entry point used by the HTTP layer for automation tasks."""

    def __init__(
        self,
        dispatcher: Dispatcher | None = None,
        reporter: StatusReporter | None = None,
    ) -> None:
        self._dispatcher = dispatcher or cast(Dispatcher, inject.instance(Dispatcher))
        self._reporter = reporter or cast(StatusReporter, inject.instance(StatusReporter))

    async def submit(self, definition: Any) -> Task:
        """Queue a task for asynchronous execution and return its PENDING record."""
        return await self._dispatcher.submit(definition)

    async def cancel(self, task_id: str) -> Task:
        return await self._dispatcher.cancel(task_id)

    async def get_status(self, task_id: str) -> TaskStatusView:
        return await self._reporter.status(task_id)

    async def summary(self) -> StatusSummary:
        return await self._reporter.summary()

    async def list_tasks(
        self, *, state: TaskState | None = None, limit: int = 50, offset: int = 0
    ) -> list[TaskStatusView]:
        return await self._reporter.list(state=state, limit=limit, offset=offset)

    def health(self) -> dict[str, Any]:
        return {
            "status": "ok" if self._dispatcher.accepting else "draining",
            "queue_depth": self._dispatcher.queue_depth,
            "in_flight": self._dispatcher.in_flight,
        }
