import logging
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, Response

from src.automation.presentation.errors import register_exception_handlers
from src.automation.presentation.routes import health_router
from src.automation.presentation.routes import router as api_router
from src.setup.api_config import ApiSettings, get_api_settings
from src.setup.app_config import configure_di, start_services, stop_services
from src.setup.logging_config import configure_logging

logger = logging.getLogger("src.automation.access")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    await start_services()
    try:
        yield
    finally:
        await stop_services()


async def log_requests(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    started = time.perf_counter()
    response = await call_next(request)
    logger.info(
        "%s %s %s",
        request.method,
        request.url.path,
        response.status_code,
        extra={"duration_ms": round((time.perf_counter() - started) * 1000, 2)},
    )
    return response


def create_app(settings: ApiSettings | None = None) -> FastAPI:
    """Build the HTTP application; services must already be bound via ``configure_di``."""
    settings = settings or get_api_settings()
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="API-first DevOps automation with asynchronous task execution",
        lifespan=lifespan,
    )
    register_exception_handlers(app)
    app.middleware("http")(log_requests)
    app.include_router(api_router, prefix="/api")
    app.include_router(health_router, prefix="")
    return app


settings = get_api_settings()
configure_logging(settings.LOG_LEVEL)
configure_di()
app = create_app(settings)


def run() -> None:
    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_level=settings.LOG_LEVEL.lower())


if __name__ == "__main__":
    run()
