from __future__ import annotations

import asyncio
from typing import Any


def describe_task(definition: Any) -> str:
    if isinstance(definition, str):
        return definition
    if isinstance(definition, dict):
        for key in ("name", "action", "command"):
            if key in definition:
                return str(definition[key])
    return str(definition)


class NoopRunner:
    """Runner that performs no work and acknowledges the task."""

    def __init__(self, delay: float = 0.0) -> None:
        self._delay = delay

    async def run(self, definition: Any) -> Any:
        if self._delay:
            await asyncio.sleep(self._delay)
        return {
            "message": f"Automated task: {describe_task(definition)}",
            "status": "success",
        }
