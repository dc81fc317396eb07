from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from src.automation.application.executor import TaskExecutor
from src.automation.domain.exceptions import (
    BackpressureError,
    InvalidDefinitionError,
    ShuttingDownError,
    TransitionConflictError,
)
from src.automation.domain.models.outcome import Outcome
from src.automation.domain.models.payloads import is_empty_definition
from src.automation.domain.models.task import Task, TaskError
from src.automation.domain.models.task_state import TaskState
from src.automation.domain.repositories import TaskStore

logger = logging.getLogger(__name__)

# How long aborted executions get to unwind once shutdown has cancelled them.
ABORT_GRACE_SEC = 1.0

CANCELLED_BY_REQUEST = TaskError(kind="Cancelled", message="Cancelled by request.")
CANCELLED_BY_SHUTDOWN = TaskError(
    kind="Cancelled", message="Dispatcher shut down before the task started."
)


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    base_delay: float = 0.2
    factor: float = 2.0
    max_delay: float = 5.0

    def delay_for(self, attempt: int) -> float:
        """Backoff to wait after failed attempt number ``attempt`` (1-based)."""
        return min(self.max_delay, self.base_delay * self.factor ** (attempt - 1))


class Dispatcher:
    """
    Accepts task submissions and drives them through a fixed pool of workers.

    Submissions go into one bounded FIFO queue. Workers claim a task with the
    PENDING -> RUNNING transition, so a task cancelled while queued is never
    executed. All state changes go through the task store.
    """

    def __init__(
        self,
        store: TaskStore,
        executor: TaskExecutor,
        *,
        queue_capacity: int = 100,
        concurrency: int = 4,
        retry_policy: RetryPolicy | None = None,
        shutdown_timeout: float = 30.0,
    ) -> None:
        if queue_capacity < 1:
            raise ValueError("queue_capacity must be at least 1")
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self._store = store
        self._executor = executor
        self._capacity = queue_capacity
        self._concurrency = concurrency
        self._retry = retry_policy or RetryPolicy()
        self._shutdown_timeout = shutdown_timeout
        self._queue: asyncio.Queue[str] = asyncio.Queue(maxsize=queue_capacity)
        # Slots held by submissions still waiting on the store.
        self._reserved = 0
        self._workers: list[asyncio.Task[None]] = []
        self._in_flight: dict[str, asyncio.Task[Outcome | None]] = {}
        self._accepting = True

    @property
    def queue_depth(self) -> int:
        return self._queue.qsize()

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    @property
    def accepting(self) -> bool:
        return self._accepting

    async def start(self) -> None:
        if self._workers:
            return
        self._workers = [
            asyncio.create_task(self._worker_loop(index), name=f"dispatcher-worker-{index}")
            for index in range(self._concurrency)
        ]
        logger.info(
            "Dispatcher started",
            extra={"concurrency": self._concurrency, "queue_capacity": self._capacity},
        )

    async def submit(self, definition: Any) -> Task:
        """Store a new PENDING task and enqueue it without waiting for a worker."""
        if is_empty_definition(definition):
            raise InvalidDefinitionError("Task definition is required.")
        if not self._accepting:
            raise ShuttingDownError()
        if self._queue.qsize() + self._reserved >= self._capacity:
            raise BackpressureError(self._capacity)

        self._reserved += 1
        try:
            task = await self._store.create(definition)
        finally:
            self._reserved -= 1

        if not self._accepting:
            await self._reject(task.id, CANCELLED_BY_SHUTDOWN)
            raise ShuttingDownError()
        self._queue.put_nowait(task.id)
        logger.info("Task submitted", extra={"task_id": task.id, "queue_depth": self.queue_depth})
        return task

    async def cancel(self, task_id: str) -> Task:
        """
        Cancel a PENDING or RUNNING task.

        A RUNNING task is marked CANCELLED first and its execution is then
        interrupted at the runner's next await point.
        """
        try:
            task = await self._store.transition(
                task_id, TaskState.PENDING, TaskState.CANCELLED, error=CANCELLED_BY_REQUEST
            )
            logger.info("Cancelled pending task", extra={"task_id": task_id})
            return task
        except TransitionConflictError as exc:
            if exc.actual is not TaskState.RUNNING:
                raise

        task = await self._store.transition(
            task_id, TaskState.RUNNING, TaskState.CANCELLED, error=CANCELLED_BY_REQUEST
        )
        execution = self._in_flight.get(task_id)
        if execution is not None:
            execution.cancel()
        logger.info("Cancelled running task", extra={"task_id": task_id})
        return task

    async def shutdown(self, timeout: float | None = None) -> None:
        """
        Drain the dispatcher.

        New submissions are refused, queued tasks become CANCELLED, and running
        tasks get ``timeout`` seconds to finish before they are marked FAILED
        with a ShutdownTimeout error.
        """
        timeout = self._shutdown_timeout if timeout is None else timeout
        self._accepting = False
        logger.info(
            "Dispatcher draining",
            extra={"queue_depth": self.queue_depth, "in_flight": self.in_flight},
        )
        await self._reject_queued()

        try:
            await asyncio.wait_for(self._queue.join(), timeout=timeout)
        except asyncio.TimeoutError:
            await self._abort_in_flight(timeout)
            try:
                await asyncio.wait_for(self._queue.join(), timeout=ABORT_GRACE_SEC)
            except asyncio.TimeoutError:
                logger.warning(
                    "Executions ignored cancellation; stopping workers anyway",
                    extra={"in_flight": self.in_flight},
                )

        for worker in self._workers:
            worker.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers = []
        logger.info("Dispatcher stopped")

    async def _worker_loop(self, index: int) -> None:
        while True:
            task_id = await self._queue.get()
            try:
                await self._process(task_id)
            except Exception:
                logger.exception(
                    "Worker failed while processing task",
                    extra={"task_id": task_id, "worker": index},
                )
            finally:
                self._queue.task_done()

    async def _process(self, task_id: str) -> None:
        if not self._accepting:
            await self._reject(task_id, CANCELLED_BY_SHUTDOWN)
            return

        # Registered before the claim is written so that cancel() and shutdown
        # can reach a task whose PENDING -> RUNNING write has not returned yet.
        execution = asyncio.create_task(self._claim_and_run(task_id))
        self._in_flight[task_id] = execution
        try:
            await asyncio.wait({execution})
        finally:
            self._in_flight.pop(task_id, None)

        if execution.cancelled():
            logger.info("Task execution interrupted", extra={"task_id": task_id})
            return
        if execution.exception() is not None:
            exc = execution.exception()
            logger.error(
                "Task execution crashed",
                extra={"task_id": task_id},
                exc_info=exc,
            )
            outcome: Outcome | None = Outcome(
                state=TaskState.FAILED,
                error=TaskError(kind="InternalError", message=f"{type(exc).__name__}: {exc}"),
            )
        else:
            outcome = execution.result()
        if outcome is None:
            return
        await self._finish(task_id, outcome)

    async def _claim_and_run(self, task_id: str) -> Outcome | None:
        # Shielded so an interrupted claim still completes its store write.
        claim = asyncio.shield(
            self._store.transition(task_id, TaskState.PENDING, TaskState.RUNNING)
        )
        try:
            task = await claim
        except TransitionConflictError as exc:
            logger.info(
                "Skipping task that is no longer pending",
                extra={"task_id": task_id, "state": exc.actual.value},
            )
            return None
        return await self._run_attempts(task)

    async def _run_attempts(self, task: Task) -> Outcome | None:
        while True:
            outcome = await self._executor.execute(task)
            if (
                outcome.succeeded
                or not outcome.retryable
                or task.attempt >= self._retry.max_attempts
            ):
                return outcome

            delay = self._retry.delay_for(task.attempt)
            logger.info(
                "Retrying task after transient failure",
                extra={"task_id": task.id, "attempt": task.attempt, "delay": delay},
            )
            await asyncio.sleep(delay)
            try:
                task = await self._store.begin_attempt(task.id)
            except TransitionConflictError as exc:
                logger.info(
                    "Abandoning retries",
                    extra={"task_id": task.id, "state": exc.actual.value},
                )
                return None

    async def _finish(self, task_id: str, outcome: Outcome) -> None:
        target = TaskState.COMPLETED if outcome.succeeded else TaskState.FAILED
        try:
            task = await self._store.transition(
                task_id,
                TaskState.RUNNING,
                target,
                result=outcome.result,
                error=outcome.error,
            )
        except TransitionConflictError as exc:
            logger.info(
                "Discarding outcome of task no longer running",
                extra={"task_id": task_id, "state": exc.actual.value},
            )
            return
        logger.info(
            "Task finished",
            extra={"task_id": task_id, "state": task.state.value, "attempt": task.attempt},
        )

    async def _reject(self, task_id: str, reason: TaskError) -> bool:
        try:
            await self._store.transition(
                task_id, TaskState.PENDING, TaskState.CANCELLED, error=reason
            )
        except TransitionConflictError:
            return False
        return True

    async def _reject_queued(self) -> None:
        while True:
            try:
                task_id = self._queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            try:
                await self._reject(task_id, CANCELLED_BY_SHUTDOWN)
            finally:
                self._queue.task_done()

    async def _abort_in_flight(self, timeout: float) -> None:
        error = TaskError(
            kind="ShutdownTimeout",
            message=f"Task did not finish within {timeout} seconds of shutdown.",
        )
        for task_id, execution in list(self._in_flight.items()):
            if await self._fail_or_reject(task_id, error):
                logger.warning("Task aborted by shutdown", extra={"task_id": task_id})
                execution.cancel()

    async def _fail_or_reject(self, task_id: str, error: TaskError) -> bool:
        """
        Fail a running task, or cancel one whose claim has not been written.

        Returns False only when the task was still PENDING, in which case the
        pending claim conflicts and the execution ends without running.
        """
        while True:
            try:
                await self._store.transition(
                    task_id, TaskState.RUNNING, TaskState.FAILED, error=error
                )
                return True
            except TransitionConflictError as exc:
                if exc.actual is not TaskState.PENDING:
                    return True
            if await self._reject(task_id, CANCELLED_BY_SHUTDOWN):
                return False
