"""Exception handlers mapping service errors to JSON responses."""

from uuid import uuid4

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from auth_api.config import get_settings
from auth_api.exceptions import AuthApiError, ServerError, Unauthorized

logger = structlog.get_logger(__name__)


def _correlation_id(request: Request) -> str:
    return getattr(request.state, "correlation_id", None) or str(uuid4())


def _error_response(
    request: Request, status_code: int, content: dict, headers: dict | None = None
) -> JSONResponse:
    correlation_id = _correlation_id(request)
    content = {**content, "correlation_id": correlation_id}
    headers = {**(headers or {}), "X-Correlation-Id": correlation_id}
    return JSONResponse(status_code=status_code, content=content, headers=headers)


async def auth_api_error_handler(request: Request, exc: AuthApiError) -> JSONResponse:
    """Render ValidationError, Unauthorized and ServerError bodies."""
    headers = None

    if isinstance(exc, ServerError):
        content = exc.to_dict(include_error=get_settings().expose_error_details)
    else:
        content = exc.to_dict()

    if isinstance(exc, Unauthorized):
        headers = {"WWW-Authenticate": "Bearer"}

    return _error_response(request, exc.status_code, content, headers)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Turn pydantic request errors into the field-level 422 shape.

    ``{"message": ..., "errors": {"email": ["..."]}}``
    """
    errors: dict[str, list[str]] = {}
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ["unknown"])]
        field = ".".join(loc[1:]) if len(loc) > 1 else loc[0]
        errors.setdefault(field, []).append(error.get("msg", "Invalid value"))

    logger.warning("validation_error", fields=sorted(errors))

    return _error_response(
        request,
        422,
        {"message": "The given data was invalid.", "errors": errors},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("unhandled_exception", error=str(exc), exc_info=exc)
    return _error_response(request, 500, {"message": "Server Error"})


def setup_exception_handlers(app: FastAPI) -> None:
    """Register the global exception handlers on the app."""
    app.add_exception_handler(AuthApiError, auth_api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
