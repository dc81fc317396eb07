from __future__ import annotations

import asyncio
import logging
from typing import Any

from celery import Celery
from celery.exceptions import TimeoutError as CeleryTimeoutError

from src.automation.domain.exceptions import ActionError

logger = logging.getLogger(__name__)


class CeleryActionRunner:
    """
    Forwards task definitions to a Celery worker and waits for the outcome.
    """

    def __init__(
        self,
        celery_app_instance: Celery,
        *,
        task_name: str = "automation.run",
        queue: str | None = None,
        result_timeout: float = 300.0,
        poll_interval: float = 0.5,
    ) -> None:
        self._celery_app = celery_app_instance
        self._task_name = task_name
        self._queue = queue
        self._result_timeout = result_timeout
        self._poll_interval = poll_interval

    async def run(self, definition: Any) -> Any:
        try:
            async_result = await asyncio.to_thread(
                self._celery_app.send_task,
                self._task_name,
                args=[{"definition": definition}],
                queue=self._queue,
            )
        except Exception as exc:
            raise ActionError(f"Could not reach Celery broker: {exc}", retryable=True) from exc

        try:
            return await self._wait_for_result(async_result)
        except CeleryTimeoutError as exc:
            raise ActionError(
                f"Celery task {async_result.id} produced no result in {self._result_timeout}s",
                retryable=True,
            ) from exc
        except asyncio.CancelledError:
            logger.info("Revoking cancelled Celery task", extra={"celery_id": async_result.id})
            async_result.revoke(terminate=True)
            raise
        except ActionError as exc:
            raise ActionError(
                f"Celery task {async_result.id} failed: {exc.message}",
                retryable=exc.retryable,
            ) from exc
        except Exception as exc:
            raise ActionError(f"Celery task {async_result.id} failed: {exc}") from exc

    async def _wait_for_result(self, async_result: Any) -> Any:
        # Polls instead of a blocking get() so cancellation frees the thread.
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._result_timeout
        while not await asyncio.to_thread(async_result.ready):
            if loop.time() >= deadline:
                raise CeleryTimeoutError(f"no result for {async_result.id}")
            await asyncio.sleep(self._poll_interval)
        return await asyncio.to_thread(
            async_result.get, timeout=self._poll_interval, propagate=True
        )
