"""
FastAPI Exception Handlers for Secret Manager

Maps Secret Manager exceptions to Google-style HTTP error envelopes.

Author: LocalGSM Team
Date: 2026-10-19
"""

import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from localgsm.core.logging_config import log_with_context

from .exceptions import SecretManagerError
from .models import ErrorResponse

logger = logging.getLogger(__name__)


# HTTP status code to canonical status name
STATUS_NAMES = {
    status.HTTP_400_BAD_REQUEST: "INVALID_ARGUMENT",
    status.HTTP_401_UNAUTHORIZED: "UNAUTHENTICATED",
    status.HTTP_403_FORBIDDEN: "PERMISSION_DENIED",
    status.HTTP_404_NOT_FOUND: "NOT_FOUND",
    status.HTTP_405_METHOD_NOT_ALLOWED: "UNIMPLEMENTED",
    status.HTTP_409_CONFLICT: "ALREADY_EXISTS",
    status.HTTP_500_INTERNAL_SERVER_ERROR: "INTERNAL",
}


def error_response(code: int, message: str, status_name: str = None) -> JSONResponse:
    """
    Build a JSON error envelope response.

    Args:
        code: HTTP status code
        message: Human-readable message
        status_name: Canonical status (derived from code if omitted)

    Returns:
        JSONResponse with {"error": {"code", "message", "status"}}
    """
    status_name = status_name or STATUS_NAMES.get(code, "UNKNOWN")
    body = ErrorResponse.build(code=code, message=message, status=status_name)
    return JSONResponse(status_code=code, content=body.model_dump())


async def secret_manager_exception_handler(
    request: Request,
    exc: SecretManagerError
) -> JSONResponse:
    """
    Handle SecretManagerError exceptions.

    Args:
        request: FastAPI request
        exc: SecretManagerError instance

    Returns:
        JSONResponse with the error envelope
    """
    level = logging.ERROR if exc.code >= 500 else logging.WARNING
    log_with_context(
        logger,
        level,
        f"{request.method} {request.url.path} failed: {exc.status} {exc.message}",
        error_type=type(exc).__name__,
        status=exc.status,
        code=exc.code,
    )
    return error_response(exc.code, exc.message, exc.status)


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """
    Handle malformed request bodies and parameters.

    Args:
        request: FastAPI request
        exc: RequestValidationError instance

    Returns:
        400 INVALID_ARGUMENT envelope
    """
    message = "Invalid request body"
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        if location:
            message = f"Invalid request: {location}: {first.get('msg')}"
        else:
            message = f"Invalid request: {first.get('msg')}"

    logger.warning(f"{request.method} {request.url.path} rejected: {message}")
    return error_response(status.HTTP_400_BAD_REQUEST, message)


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException
) -> JSONResponse:
    """
    Render routing errors (unknown path, wrong method) as error envelopes.

    Args:
        request: FastAPI request
        exc: Starlette HTTPException

    Returns:
        JSONResponse with the error envelope
    """
    message = "Not found" if exc.status_code == status.HTTP_404_NOT_FOUND else str(exc.detail)
    return error_response(exc.status_code, message)


async def generic_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """
    Handle unexpected exceptions.

    Args:
        request: FastAPI request
        exc: Exception instance

    Returns:
        500 INTERNAL envelope
    """
    logger.error(
        f"Unexpected error on {request.method} {request.url.path}: {exc}",
        exc_info=exc,
    )
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal error")


def register_exception_handlers(app) -> None:
    """
    Register exception handlers with a FastAPI app.

    Args:
        app: FastAPI application
    """
    app.add_exception_handler(SecretManagerError, secret_manager_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
