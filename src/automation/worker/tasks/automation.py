import logging
import subprocess

from src.automation.domain.exceptions import ActionError, TransientActionError
from src.automation.infrastructure.celery.app import celery_app
from src.automation.infrastructure.runners.shell import command_env, parse_command, truncate
from src.setup.executor_config import get_executor_settings

logger = logging.getLogger(__name__)
_settings = get_executor_settings()


@celery_app.task(name="automation.run", bind=True)
def run_automation(self, message: dict) -> dict:
    """
    Execute a shell-command task definition on the worker host.
    """
    payload = parse_command(message["definition"])
    timeout = payload.timeout or _settings.SHELL_TIMEOUT_SEC
    logger.info(
        "Running automation command",
        extra={"celery_id": self.request.id, "command": payload.command[0]},
    )
    try:
        completed = subprocess.run(
            payload.command,
            capture_output=True,
            timeout=timeout,
            env=command_env(payload),
            cwd=payload.cwd,
            check=False,
        )
    except subprocess.TimeoutExpired as exc:
        raise TransientActionError(f"Command timed out after {timeout} seconds") from exc
    except OSError as exc:
        raise ActionError(f"Could not start {payload.command[0]!r}: {exc}") from exc

    if completed.returncode != 0:
        raise ActionError(
            f"Command exited with status {completed.returncode}: "
            f"{truncate(completed.stderr).strip()}"
        )
    return {
        "exit_code": completed.returncode,
        "stdout": truncate(completed.stdout),
        "stderr": truncate(completed.stderr),
    }
