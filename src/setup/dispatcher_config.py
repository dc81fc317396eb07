from pydantic import ConfigDict, Field
from pydantic_settings import BaseSettings


class DispatcherSettings(BaseSettings):
    """Queue, worker pool and retry configuration."""
    QUEUE_CAPACITY: int = Field(default=100, ge=1)
    CONCURRENCY: int = Field(default=4, ge=1)
    MAX_ATTEMPTS: int = Field(default=3, ge=1)
    BACKOFF_BASE_SEC: float = 0.2
    BACKOFF_FACTOR: float = 2.0
    BACKOFF_CAP_SEC: float = 5.0
    SHUTDOWN_TIMEOUT_SEC: float = 30.0

    model_config = ConfigDict(env_file=".env", extra="ignore")


def get_dispatcher_settings() -> DispatcherSettings:
    return DispatcherSettings()
