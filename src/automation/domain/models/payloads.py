from __future__ import annotations

import shlex
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def is_empty_definition(definition: Any) -> bool:
    """Return True for definitions that describe no work at all."""
    if definition is None:
        return True
    if isinstance(definition, str):
        return not definition.strip()
    if isinstance(definition, (dict, list)):
        return len(definition) == 0
    return False


class TaskPayload(BaseModel):
    """Marker/base class for runner-specific views of a task definition."""

    pass


class ShellCommandPayload(TaskPayload):
    command: list[str] = Field(description="Program and arguments to execute.")
    timeout: float | None = Field(default=None, description="Per-run timeout in seconds.")
    env: dict[str, str] | None = Field(default=None, description="Extra environment variables.")
    cwd: str | None = Field(default=None, description="Working directory.")

    @field_validator("command", mode="before")
    @classmethod
    def _split_command(cls, value: Any) -> Any:
        if isinstance(value, str):
            return shlex.split(value)
        return value

    @field_validator("command")
    @classmethod
    def _non_empty(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("command must not be empty")
        return value

    @classmethod
    def from_definition(cls, definition: Any) -> ShellCommandPayload:
        if isinstance(definition, str):
            return cls(command=definition)
        if isinstance(definition, list):
            return cls(command=[str(part) for part in definition])
        return cls.model_validate(definition)


class HttpCallPayload(TaskPayload):
    url: str = Field(description="Target URL.")
    method: str = Field(default="POST", description="HTTP method.")
    json_body: Any | None = Field(default=None, alias="json", description="JSON request body.")
    headers: dict[str, str] | None = Field(default=None, description="Extra request headers.")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_definition(cls, definition: Any, default_url: str | None = None) -> HttpCallPayload:
        if isinstance(definition, dict) and "url" in definition:
            return cls.model_validate(definition)
        if not default_url:
            raise ValueError("Definition has no url and no default HTTP target is configured.")
        return cls(url=default_url, method="POST", json_body={"task": definition})
