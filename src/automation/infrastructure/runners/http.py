from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from src.automation.domain.exceptions import ActionError
from src.automation.domain.models.payloads import HttpCallPayload

logger = logging.getLogger(__name__)


class HttpCallRunner:
    """Runs a task definition as an outbound HTTP request."""

    def __init__(
        self,
        *,
        default_url: str | None = None,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._default_url = default_url
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def run(self, definition: Any) -> Any:
        try:
            call = HttpCallPayload.from_definition(definition, self._default_url)
        except (ValidationError, ValueError) as exc:
            raise ActionError(f"Invalid HTTP call definition: {exc}") from exc

        try:
            response = await self._client.request(
                call.method.upper(),
                call.url,
                json=call.json_body,
                headers=call.headers,
            )
        except httpx.TransportError as exc:
            raise ActionError(f"{call.method} {call.url} failed: {exc}", retryable=True) from exc

        logger.debug(
            "HTTP call finished",
            extra={"url": call.url, "status_code": response.status_code},
        )
        if response.status_code >= 400:
            retryable = response.status_code == 429 or response.status_code >= 500
            raise ActionError(
                f"{call.method} {call.url} returned {response.status_code}",
                retryable=retryable,
            )
        return {"status_code": response.status_code, "body": _body(response)}

    async def close(self) -> None:
        await self._client.aclose()


def _body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text
