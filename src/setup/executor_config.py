from typing import Literal

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class ExecutorSettings(BaseSettings):
    """Selects the action runner and its options."""
    EXECUTOR_BACKEND: Literal["noop", "shell", "http", "celery"] = "noop"
    NOOP_DELAY_SEC: float = 0.0
    SHELL_TIMEOUT_SEC: float = 300.0
    HTTP_TARGET_URL: str | None = None
    HTTP_TIMEOUT_SEC: float = 30.0
    CELERY_TASK_NAME: str = "automation.run"
    CELERY_QUEUE: str | None = None
    CELERY_RESULT_TIMEOUT_SEC: float = 300.0
    CELERY_POLL_INTERVAL_SEC: float = 0.5

    model_config = ConfigDict(env_file=".env", extra="ignore")


def get_executor_settings() -> ExecutorSettings:
    return ExecutorSettings()
