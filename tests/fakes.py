from __future__ import annotations

import asyncio
from collections.abc import Iterable
from typing import Any

from src.automation.domain.models.task import Task, TaskError
from src.automation.domain.models.task_state import TERMINAL_STATES, TaskState
from src.automation.domain.repositories import TaskStore
from src.automation.infrastructure.memory.store import InMemoryTaskStore


class ScriptedRunner:
    """Runner replaying a fixed sequence of results or exceptions."""

    def __init__(self, *steps: Any) -> None:
        self._steps = list(steps)
        self.calls: list[Any] = []

    async def run(self, definition: Any) -> Any:
        self.calls.append(definition)
        step = self._steps.pop(0) if self._steps else {"ran": definition}
        if isinstance(step, BaseException):
            raise step
        return step


class BlockingRunner:
    """Runner that blocks until released, recording cancellation."""

    def __init__(self) -> None:
        self.started = asyncio.Event()
        self.release = asyncio.Event()
        self.cancelled = False
        self.calls: list[Any] = []

    async def run(self, definition: Any) -> Any:
        self.calls.append(definition)
        self.started.set()
        try:
            await self.release.wait()
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        return {"released": definition}


class RecordingStore(InMemoryTaskStore):
    """In-memory store that keeps a log of successful transitions."""

    def __init__(self) -> None:
        super().__init__()
        self.transitions: list[tuple[str, TaskState, TaskState]] = []

    async def transition(
        self,
        task_id: str,
        from_state: TaskState,
        to_state: TaskState,
        *,
        result: Any | None = None,
        error: TaskError | None = None,
    ) -> Task:
        task = await super().transition(
            task_id, from_state, to_state, result=result, error=error
        )
        self.transitions.append((task_id, from_state, to_state))
        return task


class SlowClaimStore(InMemoryTaskStore):
    """
    In-memory store whose PENDING -> RUNNING write commits immediately but
    returns only after ``claim_delay``, like a database round trip.
    """

    def __init__(self, claim_delay: float = 0.05) -> None:
        super().__init__()
        self.claim_delay = claim_delay

    async def transition(
        self,
        task_id: str,
        from_state: TaskState,
        to_state: TaskState,
        *,
        result: Any | None = None,
        error: TaskError | None = None,
    ) -> Task:
        task = await super().transition(
            task_id, from_state, to_state, result=result, error=error
        )
        if from_state is TaskState.PENDING and to_state is TaskState.RUNNING:
            await asyncio.sleep(self.claim_delay)
        return task


async def wait_for_state(
    store: TaskStore,
    task_id: str,
    states: Iterable[TaskState] = TERMINAL_STATES,
    timeout: float = 2.0,
) -> Task:
    """Poll the store until the task reaches one of ``states``."""
    wanted = set(states)
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while True:
        task = await store.get(task_id)
        if task.state in wanted:
            return task
        if loop.time() > deadline:
            raise AssertionError(f"Task {task_id} stuck in {task.state.value}")
        await asyncio.sleep(0.005)
