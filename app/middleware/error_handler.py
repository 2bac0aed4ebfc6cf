"""
Error handlers

Maps the application error taxonomy, request validation failures and
storage errors onto structured JSON responses:

    {"error": {"category", "message", "timestamp", "path", ...details}}
"""

import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from app.core.exceptions import AppError, ErrorCategory

logger = logging.getLogger(__name__)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def handle_app_error(error: AppError, request: Request) -> JSONResponse:
    """Handle structured application errors"""

    if error.status_code >= 500:
        logger.error(
            f"Application error on {request.method} {request.url.path}: "
            f"{error.category} - {error.message}"
        )
    else:
        logger.info(
            f"Request rejected on {request.method} {request.url.path}: "
            f"{error.category} - {error.message}"
        )

    response_data = {
        "error": {
            "category": error.category,
            "message": error.message,
            "timestamp": _timestamp(),
            "path": request.url.path,
            **error.details,
        }
    }

    headers = {}
    if error.retry_after:
        headers["Retry-After"] = str(error.retry_after)

    return JSONResponse(
        status_code=error.status_code,
        content=response_data,
        headers=headers,
    )


def handle_validation_error(error: RequestValidationError, request: Request) -> JSONResponse:
    """Handle FastAPI request validation errors"""

    errors = []
    for err in error.errors():
        errors.append({
            "field": ".".join(str(loc) for loc in err["loc"]),
            "message": err["msg"],
            "type": err["type"],
        })

    logger.warning(f"Validation error on {request.url.path}: {errors}")

    return JSONResponse(
        status_code=400,
        content={
            "error": {
                "category": ErrorCategory.VALIDATION,
                "message": "Request validation failed",
                "timestamp": _timestamp(),
                "path": request.url.path,
                "validation_errors": errors,
            }
        },
    )


def handle_database_error(error: SQLAlchemyError, request: Request) -> JSONResponse:
    """Handle database errors"""

    is_connection_error = isinstance(error, OperationalError)

    if is_connection_error:
        category = ErrorCategory.SERVICE_UNAVAILABLE
        message = "Database temporarily unavailable. Please try again."
    else:
        category = ErrorCategory.INTERNAL
        message = "Database operation failed. Please try again."

    logger.error(
        f"Database error on {request.method} {request.url.path}: {type(error).__name__}",
        exc_info=True,
    )

    headers = {"Retry-After": "30"} if is_connection_error else {}

    return JSONResponse(
        status_code=503 if is_connection_error else 500,
        content={
            "error": {
                "category": category,
                "message": message,
                "timestamp": _timestamp(),
                "path": request.url.path,
            }
        },
        headers=headers,
    )


# Exception handlers for FastAPI
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return handle_app_error(exc, request)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return handle_validation_error(exc, request)


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    return handle_database_error(exc, request)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
