"""Error handling middleware.

Application errors become a transient notification payload; anything
unexpected is caught by the catch-all handler, which plays the role of the
top-level error boundary.
"""

import structlog
from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from oneclick.core.exceptions import AppException, NotFoundException, RouteRedirect

logger = structlog.get_logger(__name__)

DEFAULT_BACK_PATH = "/client-dashboard"


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """
    Handle custom application exceptions.

    Args:
        request: Request object
        exc: Application exception

    Returns:
        JSON error response
    """
    content: dict = {
        "error": exc.__class__.__name__,
        "message": exc.message,
        "path": str(request.url),
    }
    headers = None

    if isinstance(exc, NotFoundException):
        content["action"] = {
            "label": "Back to Dashboard",
            "path": exc.back_to or DEFAULT_BACK_PATH,
        }
    elif isinstance(exc, RouteRedirect):
        content["location"] = exc.location
        headers = {"Location": exc.location}

    if exc.status_code >= 500:
        logger.error("request_error", error=exc.__class__.__name__, message=exc.message)

    return JSONResponse(status_code=exc.status_code, content=content, headers=headers)


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    """Handle HTTP exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": "HTTPException",
            "message": exc.detail,
            "path": str(request.url),
        },
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """
    Handle validation errors.

    Args:
        request: Request object
        exc: Validation exception

    Returns:
        JSON error response with validation details
    """
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "ValidationError",
            "message": "Please fill in all required fields",
            "details": jsonable_errors(exc),
            "path": str(request.url),
        },
    )


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    """Validation error details with only JSON-safe values."""
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected exceptions.

    Replaces the whole response with a generic error panel whose only
    recovery action is a full reload.
    """
    logger.exception("unhandled_exception", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "InternalServerError",
            "message": "Something went wrong",
            "path": str(request.url),
            "action": {"label": "Reload Page", "type": "reload"},
        },
    )
