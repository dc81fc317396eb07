from __future__ import annotations

import asyncio
import logging
import os
from typing import Any

from pydantic import ValidationError

from src.automation.domain.exceptions import ActionError
from src.automation.domain.models.payloads import ShellCommandPayload

logger = logging.getLogger(__name__)

_OUTPUT_LIMIT = 64 * 1024


def parse_command(definition: Any) -> ShellCommandPayload:
    try:
        return ShellCommandPayload.from_definition(definition)
    except (ValidationError, ValueError) as exc:
        raise ActionError(f"Invalid shell command definition: {exc}") from exc


def command_env(payload: ShellCommandPayload) -> dict[str, str] | None:
    if not payload.env:
        return None
    return {**os.environ, **payload.env}


def truncate(output: bytes | str | None) -> str:
    if output is None:
        return ""
    if isinstance(output, bytes):
        output = output.decode("utf-8", errors="replace")
    return output[-_OUTPUT_LIMIT:]


class ShellCommandRunner:
    """Runs a task definition as a child process without a shell."""

    def __init__(self, timeout: float | None = 300.0) -> None:
        self._timeout = timeout

    async def run(self, definition: Any) -> Any:
        payload = parse_command(definition)
        timeout = payload.timeout or self._timeout
        try:
            process = await asyncio.create_subprocess_exec(
                *payload.command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=command_env(payload),
                cwd=payload.cwd,
            )
        except OSError as exc:
            raise ActionError(f"Could not start {payload.command[0]!r}: {exc}") from exc

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
        except asyncio.TimeoutError as exc:
            await self._terminate(process)
            raise ActionError(
                f"Command timed out after {timeout} seconds", retryable=True
            ) from exc
        except asyncio.CancelledError:
            logger.info("Terminating cancelled command", extra={"pid": process.pid})
            await self._terminate(process)
            raise

        if process.returncode != 0:
            raise ActionError(
                f"Command exited with status {process.returncode}: {truncate(stderr).strip()}"
            )
        return {
            "exit_code": process.returncode,
            "stdout": truncate(stdout),
            "stderr": truncate(stderr),
        }

    @staticmethod
    async def _terminate(process: asyncio.subprocess.Process) -> None:
        if process.returncode is not None:
            return
        process.terminate()
        try:
            await asyncio.wait_for(process.wait(), timeout=5.0)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
