from __future__ import annotations

import threading
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from src.automation.domain.exceptions import TaskNotFoundError, TransitionConflictError
from src.automation.domain.models.task import Task, TaskError
from src.automation.domain.models.task_state import TaskState, check_transition
from src.automation.domain.repositories import TaskStore


class InMemoryTaskStore(TaskStore):
    """Process-local task storage guarded by a single lock."""

    def __init__(self) -> None:
        self._tasks: dict[str, Task] = {}
        self._lock = threading.Lock()

    async def create(self, definition: Any) -> Task:
        task = Task(id=uuid4().hex, definition=definition, created_at=datetime.now(UTC))
        with self._lock:
            self._tasks[task.id] = task
        return task.model_copy(deep=True)

    async def get(self, task_id: str) -> Task:
        with self._lock:
            return self._require(task_id).model_copy(deep=True)

    async def transition(
        self,
        task_id: str,
        from_state: TaskState,
        to_state: TaskState,
        *,
        result: Any | None = None,
        error: TaskError | None = None,
    ) -> Task:
        check_transition(from_state, to_state)
        with self._lock:
            task = self._require(task_id)
            if task.state is not from_state:
                raise TransitionConflictError(task_id, from_state, task.state)
            now = datetime.now(UTC)
            update: dict[str, Any] = {"state": to_state}
            if to_state is TaskState.RUNNING:
                update["started_at"] = now
                update["attempt"] = 1
            else:
                update["finished_at"] = now
                if to_state is TaskState.COMPLETED:
                    update["result"] = result
                else:
                    update["error"] = error
            task = task.model_copy(update=update)
            self._tasks[task_id] = task
            return task.model_copy(deep=True)

    async def begin_attempt(self, task_id: str) -> Task:
        with self._lock:
            task = self._require(task_id)
            if task.state is not TaskState.RUNNING:
                raise TransitionConflictError(task_id, TaskState.RUNNING, task.state)
            task = task.model_copy(update={"attempt": task.attempt + 1})
            self._tasks[task_id] = task
            return task.model_copy(deep=True)

    async def list(
        self,
        *,
        state: TaskState | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Task]:
        with self._lock:
            tasks = [t for t in self._tasks.values() if state is None or t.state is state]
        tasks.sort(key=lambda t: t.created_at)
        return [t.model_copy(deep=True) for t in tasks[offset : offset + limit]]

    async def count_by_state(self) -> dict[TaskState, int]:
        counts = {state: 0 for state in TaskState}
        with self._lock:
            for task in self._tasks.values():
                counts[task.state] += 1
        return counts

    def _require(self, task_id: str) -> Task:
        task = self._tasks.get(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task
