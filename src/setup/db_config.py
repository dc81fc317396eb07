from typing import Literal

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class DatabaseSettings(BaseSettings):
    """Selects the task store backend."""
    STORE_BACKEND: Literal["memory", "database"] = "memory"
    DATABASE_URL: str | None = None
    DATABASE_ECHO: bool = False

    model_config = ConfigDict(env_file=".env", extra="ignore")


def get_database_settings() -> DatabaseSettings:
    return DatabaseSettings()  # type: ignore[call-arg]
