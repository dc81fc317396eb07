from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

import inject
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from src.automation.domain.repositories import TaskStore
from src.automation.infrastructure.database.orm import DatabaseOrm
from src.automation.infrastructure.database.repositories import SqlTaskStore
from src.automation.infrastructure.memory.store import InMemoryTaskStore


@pytest_asyncio.fixture(params=["memory", "database"])
async def task_store(request: pytest.FixtureRequest, tmp_path) -> AsyncIterator[TaskStore]:
    """Each task store backend, ready for use."""
    if request.param == "memory":
        yield InMemoryTaskStore()
        return
    orm = DatabaseOrm(f"sqlite+aiosqlite:///{tmp_path / 'tasks.db'}")
    await orm.create_schema()
    yield SqlTaskStore(orm)
    await orm.dispose()


@pytest.fixture
def env_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    """Provide environment variables for the settings classes."""
    monkeypatch.setenv("APP_NAME", "Test API")
    monkeypatch.setenv("APP_VERSION", "0.1.0")
    monkeypatch.setenv("STORE_BACKEND", "memory")
    monkeypatch.setenv("EXECUTOR_BACKEND", "noop")


@pytest.fixture
def make_client(env_settings: None):
    """Build a TestClient whose services are wired through ``configure_di``."""
    from src.automation.presentation.main import create_app
    from src.setup.app_config import configure_di
    from src.setup.dispatcher_config import DispatcherSettings

    def _make(runner: Any, **dispatcher_overrides: Any) -> tuple[TestClient, InMemoryTaskStore]:
        store = InMemoryTaskStore()
        settings = DispatcherSettings(
            **{
                "QUEUE_CAPACITY": 10,
                "CONCURRENCY": 2,
                "BACKOFF_BASE_SEC": 0.001,
                "SHUTDOWN_TIMEOUT_SEC": 0.2,
                **dispatcher_overrides,
            }
        )
        configure_di(store=store, runner=runner, dispatcher_settings=settings)
        return TestClient(create_app()), store

    yield _make
    inject.clear()
