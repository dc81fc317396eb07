from __future__ import annotations

import logging

from src.automation.domain.exceptions import ActionError
from src.automation.domain.models.outcome import Outcome
from src.automation.domain.models.task import Task
from src.automation.domain.repositories import ActionRunner

logger = logging.getLogger(__name__)


class TaskExecutor:
    """Runs one execution attempt of a task through the configured runner.

    The executor only reports; retries are decided by the dispatcher from
    ``Outcome.retryable``. Cancellation of the awaiting asyncio task is passed
    straight through to the runner.
    """

    def __init__(self, runner: ActionRunner) -> None:
        self._runner = runner

    @property
    def runner(self) -> ActionRunner:
        return self._runner

    async def execute(self, task: Task) -> Outcome:
        try:
            result = await self._runner.run(task.definition)
        except ActionError as exc:
            logger.warning(
                "Task attempt failed",
                extra={
                    "task_id": task.id,
                    "attempt": task.attempt,
                    "retryable": exc.retryable,
                    "reason": exc.message,
                },
            )
            return Outcome.failed(exc.message, retryable=exc.retryable)
        except Exception as exc:
            logger.exception(
                "Runner raised an unexpected error",
                extra={"task_id": task.id, "attempt": task.attempt},
            )
            return Outcome.failed(f"{type(exc).__name__}: {exc}")
        return Outcome.completed(result)
