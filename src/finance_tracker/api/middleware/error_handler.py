"""Global error handling.

All exceptions are converted to a JSON body with an ``error_code`` from the
error catalog and an appropriate HTTP status code. Categorization failures
additionally carry ``success: false`` and ``error`` so the web client can show
"could not categorize" and leave the previous category in place.
"""

import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from finance_tracker.config import settings
from finance_tracker.core.errors import get_error
from finance_tracker.core.exceptions import CategorizationError, CategoryCommitError

logger = logging.getLogger(__name__)


def _error_body(error_code: str, message: str | None = None) -> dict:
    error_info = get_error(error_code)
    return {
        "success": False,
        "error": message or error_info["user_message"],
        "errorCode": error_code,
        "message": error_info["message"],
        "userMessage": error_info["user_message"],
        "suggestion": error_info["suggestion"],
        "retryAllowed": error_info["retry_allowed"],
    }


async def handle_categorization_error(
    request: Request, exc: CategorizationError
) -> JSONResponse:
    """Handle categorization and transaction exceptions.

    Args:
        request: The incoming request
        exc: The categorization exception

    Returns:
        JSONResponse with error details from catalog
    """
    extra = {"error_code": exc.error_code, "path": request.url.path, "method": request.method}
    if settings.debug:
        extra["details"] = exc.details
    logger.error(f"Categorization error: {exc.error_code}", extra=extra)

    content = _error_body(exc.error_code)
    if isinstance(exc, CategoryCommitError):
        # The category was determined even though it was not saved.
        content["category"] = exc.category
        content["confidence"] = exc.confidence
        content["method"] = exc.method

    return JSONResponse(status_code=exc.http_status, content=content)


async def handle_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle Pydantic validation errors."""
    errors = exc.errors()
    error_messages = []
    for error in errors:
        field = ".".join(str(x) for x in error.get("loc", []))
        msg = error.get("msg", "Invalid value")
        error_messages.append(f"{field}: {msg}")

    extra = {"path": request.url.path, "method": request.method}
    if settings.debug:
        extra["errors"] = errors
    logger.warning(f"Validation error on {request.url.path}", extra=extra)

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body("VAL_001", " | ".join(error_messages)),
    )


async def handle_integrity_error(
    request: Request, exc: IntegrityError
) -> JSONResponse:
    """Handle database integrity errors."""
    # Do not log str(exc): it can include SQL + bound parameters.
    logger.error(
        f"Database integrity error on {request.url.path}",
        extra={"path": request.url.path, "method": request.method},
    )

    error_msg = str(exc).lower()
    if "unique" in error_msg or "duplicate" in error_msg:
        return JSONResponse(status_code=status.HTTP_409_CONFLICT, content=_error_body("DB_002"))
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=_error_body("DB_001")
    )


async def handle_database_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Handle any other database failure."""
    logger.error(
        f"Database error on {request.url.path}",
        extra={
            "error_type": type(exc).__name__,
            "path": request.url.path,
            "method": request.method,
        },
    )
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=_error_body("DB_001")
    )


async def handle_generic_error(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions without exposing internal details."""
    extra = {
        "error_type": type(exc).__name__,
        "path": request.url.path,
        "method": request.method,
    }
    # In non-debug: do not log str(exc) or traceback (may include descriptions).
    if settings.debug:
        logger.exception(f"Unexpected error on {request.url.path}", extra=extra)
    else:
        logger.error(f"Unexpected error on {request.url.path}", extra=extra)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=_error_body("SYS_001")
    )
