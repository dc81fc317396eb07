import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.automation.domain.exceptions import AutomationError
from src.automation.presentation.schemas import ErrorResponse

logger = logging.getLogger(__name__)

_STATUS_BY_KIND: dict[str, int] = {
    "InvalidDefinition": status.HTTP_400_BAD_REQUEST,
    "NotFound": status.HTTP_404_NOT_FOUND,
    "Conflict": status.HTTP_409_CONFLICT,
    "Backpressure": status.HTTP_503_SERVICE_UNAVAILABLE,
    "ShuttingDown": status.HTTP_503_SERVICE_UNAVAILABLE,
}

_KIND_BY_STATUS: dict[int, str] = {
    status.HTTP_404_NOT_FOUND: "NotFound",
    status.HTTP_405_METHOD_NOT_ALLOWED: "MethodNotAllowed",
}


def error_response(
    status_code: int, kind: str, message: str, headers: dict[str, str] | None = None
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=kind, message=message).model_dump(),
        headers=headers,
    )


async def automation_error_handler(request: Request, exc: AutomationError) -> JSONResponse:
    status_code = _STATUS_BY_KIND.get(exc.kind, status.HTTP_500_INTERNAL_SERVER_ERROR)
    logger.info(
        "Request rejected",
        extra={"path": request.url.path, "kind": exc.kind, "status_code": status_code},
    )
    headers = {"Retry-After": "1"} if exc.kind == "Backpressure" else None
    return error_response(status_code, exc.kind, str(exc), headers)


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = first.get("msg", "Invalid request")
    return error_response(
        status.HTTP_400_BAD_REQUEST,
        "InvalidDefinition",
        f"{location}: {message}" if location else message,
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    kind = _KIND_BY_STATUS.get(exc.status_code, "HttpError")
    return error_response(exc.status_code, kind, str(exc.detail), getattr(exc, "headers", None))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error", extra={"path": request.url.path})
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, "InternalError", "Internal server error"
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AutomationError, automation_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
