import asyncio
import json
import sys

import httpx
import pytest

from src.automation.domain.exceptions import ActionError
from src.automation.domain.models.payloads import (
    HttpCallPayload,
    ShellCommandPayload,
    is_empty_definition,
)
from src.automation.infrastructure.runners.http import HttpCallRunner
from src.automation.infrastructure.runners.noop import NoopRunner
from src.automation.infrastructure.runners.shell import ShellCommandRunner


@pytest.mark.parametrize(
    ("definition", "empty"),
    [
        (None, True),
        ("", True),
        ("  \n", True),
        ({}, True),
        ([], True),
        ("deploy-v2", False),
        ({"command": "ls"}, False),
        (0, False),
    ],
)
def test_is_empty_definition(definition, empty: bool) -> None:
    assert is_empty_definition(definition) is empty


def test_shell_payload_accepts_strings_lists_and_objects() -> None:
    assert ShellCommandPayload.from_definition("echo 'hello world'").command == [
        "echo",
        "hello world",
    ]
    assert ShellCommandPayload.from_definition(["ls", "-l"]).command == ["ls", "-l"]

    payload = ShellCommandPayload.from_definition({"command": "make deploy", "timeout": 5})
    assert payload.command == ["make", "deploy"]
    assert payload.timeout == 5


def test_http_payload_falls_back_to_default_target() -> None:
    call = HttpCallPayload.from_definition("deploy-v2", "http://ci.local/hooks")

    assert call.url == "http://ci.local/hooks"
    assert call.method == "POST"
    assert call.json_body == {"task": "deploy-v2"}

    with pytest.raises(ValueError):
        HttpCallPayload.from_definition("deploy-v2")


@pytest.mark.asyncio
async def test_noop_runner_acknowledges_task() -> None:
    result = await NoopRunner().run("deploy-v2")

    assert result == {"message": "Automated task: deploy-v2", "status": "success"}


@pytest.mark.asyncio
async def test_shell_runner_captures_output() -> None:
    runner = ShellCommandRunner(timeout=10)

    result = await runner.run([sys.executable, "-c", "print('deployed')"])

    assert result["exit_code"] == 0
    assert result["stdout"].strip() == "deployed"


@pytest.mark.asyncio
async def test_shell_runner_passes_extra_environment() -> None:
    runner = ShellCommandRunner(timeout=10)

    result = await runner.run(
        {
            "command": [sys.executable, "-c", "import os; print(os.environ['RELEASE'])"],
            "env": {"RELEASE": "v2"},
        }
    )

    assert result["stdout"].strip() == "v2"


@pytest.mark.asyncio
async def test_shell_runner_non_zero_exit_is_terminal() -> None:
    runner = ShellCommandRunner(timeout=10)

    with pytest.raises(ActionError) as excinfo:
        await runner.run(
            [sys.executable, "-c", "import sys; sys.stderr.write('nope'); sys.exit(3)"]
        )

    assert not excinfo.value.retryable
    assert "status 3" in excinfo.value.message
    assert "nope" in excinfo.value.message


@pytest.mark.asyncio
async def test_shell_runner_timeout_is_retryable() -> None:
    runner = ShellCommandRunner(timeout=0.2)

    with pytest.raises(ActionError) as excinfo:
        await runner.run([sys.executable, "-c", "import time; time.sleep(10)"])

    assert excinfo.value.retryable


@pytest.mark.asyncio
async def test_shell_runner_missing_program_fails() -> None:
    with pytest.raises(ActionError):
        await ShellCommandRunner().run("definitely-not-a-real-binary-xyz")


@pytest.mark.asyncio
async def test_shell_runner_cancellation_terminates_child() -> None:
    runner = ShellCommandRunner(timeout=30)
    run = asyncio.create_task(runner.run([sys.executable, "-c", "import time; time.sleep(30)"]))
    await asyncio.sleep(0.2)

    run.cancel()
    with pytest.raises(asyncio.CancelledError):
        await run


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_http_runner_posts_definition() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"pipeline": 17})

    runner = HttpCallRunner(default_url="http://ci.local/hooks", client=_client(handler))
    result = await runner.run("deploy-v2")
    await runner.close()

    assert result == {"status_code": 200, "body": {"pipeline": 17}}
    assert seen[0].method == "POST"
    assert json.loads(seen[0].content) == {"task": "deploy-v2"}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("status_code", "retryable"), [(500, True), (503, True), (429, True), (404, False), (400, False)]
)
async def test_http_runner_classifies_error_statuses(status_code: int, retryable: bool) -> None:
    runner = HttpCallRunner(client=_client(lambda request: httpx.Response(status_code)))

    with pytest.raises(ActionError) as excinfo:
        await runner.run({"url": "http://ci.local/deploy", "method": "put"})

    assert excinfo.value.retryable is retryable


@pytest.mark.asyncio
async def test_http_runner_transport_errors_are_retryable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    runner = HttpCallRunner(client=_client(handler))

    with pytest.raises(ActionError) as excinfo:
        await runner.run({"url": "http://ci.local/deploy"})

    assert excinfo.value.retryable
