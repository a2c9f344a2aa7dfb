"""
Centralized exception handlers for FastAPI.

Every error leaves the service as {"error": {"code": ..., "message": ...}}.
Internal detail (SQL, driver messages, tracebacks) is logged, never returned.
"""

from typing import Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from railbook.core.exceptions import ServiceError, StorageError, Unauthenticated, InvalidToken
from railbook.core.logging import get_logger

logger = get_logger(__name__)


def error_response(status_code: int, code: str, message: str, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": code, "message": message}},
        headers=headers,
    )


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("service_error", code=exc.code)
    else:
        logger.info("request_rejected", code=exc.code, status_code=exc.status_code)

    headers = None
    if isinstance(exc, (Unauthenticated, InvalidToken)):
        headers = {"WWW-Authenticate": "Bearer"}
    return error_response(exc.status_code, exc.code, exc.message, headers)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        problems.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))
    message = "; ".join(problems) or "Invalid input"
    logger.info("request_rejected", code="INVALID_INPUT", status_code=400)
    return error_response(status.HTTP_400_BAD_REQUEST, "INVALID_INPUT", message)


async def storage_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("storage_error", error=str(exc), exc_info=exc)
    return error_response(StorageError.status_code, StorageError.code, StorageError.message)


async def general_500_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("unhandled_exception", error=str(exc), exc_info=exc)
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "INTERNAL_ERROR",
        "Internal server error",
    )


EXCEPTION_HANDLERS = {
    ServiceError: service_error_handler,
    RequestValidationError: validation_error_handler,
    SQLAlchemyError: storage_error_handler,
    Exception: general_500_exception_handler,
}


def register_exception_handlers(app):
    for exception_class, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exception_class, handler)
