from __future__ import annotations

import logging

import inject

from src.automation.application.dispatcher import Dispatcher, RetryPolicy
from src.automation.application.executor import TaskExecutor
from src.automation.application.reporter import StatusReporter
from src.automation.domain.repositories import ActionRunner, TaskStore
from src.automation.infrastructure.database.orm import DatabaseOrm
from src.automation.infrastructure.database.repositories import SqlTaskStore
from src.automation.infrastructure.memory.store import InMemoryTaskStore
from src.automation.infrastructure.runners.http import HttpCallRunner
from src.automation.infrastructure.runners.noop import NoopRunner
from src.automation.infrastructure.runners.shell import ShellCommandRunner
from src.setup.db_config import DatabaseSettings, get_database_settings
from src.setup.dispatcher_config import DispatcherSettings, get_dispatcher_settings
from src.setup.executor_config import ExecutorSettings, get_executor_settings

logger = logging.getLogger(__name__)


def build_store(settings: DatabaseSettings | None = None) -> TaskStore:
    """Create the task store selected by ``STORE_BACKEND``."""
    if settings is None:
        settings = get_database_settings()
    if settings.STORE_BACKEND == "database":
        if not settings.DATABASE_URL:
            raise ValueError("DATABASE_URL is required when STORE_BACKEND=database")
        return SqlTaskStore(DatabaseOrm(settings.DATABASE_URL, echo=settings.DATABASE_ECHO))
    return InMemoryTaskStore()


def build_runner(settings: ExecutorSettings | None = None) -> ActionRunner:
    """Create the action runner selected by ``EXECUTOR_BACKEND``."""
    if settings is None:
        settings = get_executor_settings()
    backend = settings.EXECUTOR_BACKEND
    if backend == "shell":
        return ShellCommandRunner(timeout=settings.SHELL_TIMEOUT_SEC)
    if backend == "http":
        return HttpCallRunner(
            default_url=settings.HTTP_TARGET_URL, timeout=settings.HTTP_TIMEOUT_SEC
        )
    if backend == "celery":
        # Imported lazily: the celery app reads broker settings at import time.
        from src.automation.infrastructure.celery.app import celery_app
        from src.automation.infrastructure.celery.runner import CeleryActionRunner

        return CeleryActionRunner(
            celery_app,
            task_name=settings.CELERY_TASK_NAME,
            queue=settings.CELERY_QUEUE,
            result_timeout=settings.CELERY_RESULT_TIMEOUT_SEC,
            poll_interval=settings.CELERY_POLL_INTERVAL_SEC,
        )
    return NoopRunner(delay=settings.NOOP_DELAY_SEC)


def build_dispatcher(
    store: TaskStore,
    runner: ActionRunner,
    settings: DispatcherSettings | None = None,
) -> Dispatcher:
    if settings is None:
        settings = get_dispatcher_settings()
    return Dispatcher(
        store,
        TaskExecutor(runner),
        queue_capacity=settings.QUEUE_CAPACITY,
        concurrency=settings.CONCURRENCY,
        retry_policy=RetryPolicy(
            max_attempts=settings.MAX_ATTEMPTS,
            base_delay=settings.BACKOFF_BASE_SEC,
            factor=settings.BACKOFF_FACTOR,
            max_delay=settings.BACKOFF_CAP_SEC,
        ),
        shutdown_timeout=settings.SHUTDOWN_TIMEOUT_SEC,
    )


def configure_di(
    store: TaskStore | None = None,
    runner: ActionRunner | None = None,
    dispatcher_settings: DispatcherSettings | None = None,
) -> None:
    """Construct the service components and bind them into the injector."""
    store = store or build_store()
    runner = runner or build_runner()
    dispatcher = build_dispatcher(store, runner, dispatcher_settings)
    reporter = StatusReporter(store)

    def _config(binder: inject.Binder) -> None:
        binder.bind(TaskStore, store)
        binder.bind(ActionRunner, runner)
        binder.bind(Dispatcher, dispatcher)
        binder.bind(StatusReporter, reporter)

    inject.configure(_config, clear=True)
    logger.info(
        "Services configured",
        extra={"store": type(store).__name__, "runner": type(runner).__name__},
    )


async def start_services() -> None:
    store = inject.instance(TaskStore)
    if isinstance(store, SqlTaskStore):
        await store.orm.create_schema()
    await inject.instance(Dispatcher).start()


async def stop_services() -> None:
    await inject.instance(Dispatcher).shutdown()
    runner = inject.instance(ActionRunner)
    if isinstance(runner, HttpCallRunner):
        await runner.close()
    store = inject.instance(TaskStore)
    if isinstance(store, SqlTaskStore):
        await store.orm.dispose()
