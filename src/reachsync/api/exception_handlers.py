"""Exception handlers that turn domain exceptions into JSON responses."""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from reachsync.domain.exceptions import (
    BindingConflictError,
    ConfigurationError,
    ProviderUnavailableError,
    ValidationError,
)

logger = logging.getLogger(__name__)

UNPROCESSABLE = 422


# Pydantic's exc.errors() can carry the raw body as bytes, which JSONResponse can't encode
def _sanitize_validation_errors(errors: list[dict[str, Any]]) -> list[dict[str, Any]]:
    def _sanitize_value(value: Any) -> Any:
        if isinstance(value, bytes):
            return value.decode("utf-8", errors="replace")
        if isinstance(value, dict):
            return {k: _sanitize_value(v) for k, v in value.items()}
        if isinstance(value, list | tuple):
            return [_sanitize_value(item) for item in value]
        if isinstance(value, Exception):
            return str(value)
        return value

    return [_sanitize_value(error) for error in errors]


# Hey future me, the sync endpoint speaks {success, error} to its callers, so the
# binding conflict handler answers in that shape instead of the usual {detail}.
def register_exception_handlers(app: FastAPI) -> None:
    """Register handlers for domain and request validation exceptions.

    Args:
        app: FastAPI application instance
    """

    @app.exception_handler(BindingConflictError)
    async def binding_conflict_handler(
        request: Request, exc: BindingConflictError
    ) -> JSONResponse:
        """Binding conflict -> 409 Conflict."""
        logger.warning(
            "Binding conflict at %s: %s",
            request.url.path,
            exc.message,
            extra={"path": request.url.path, "external_id": exc.external_id},
        )
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"success": False, "error": exc.message},
        )

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        """Domain validation -> 422."""
        logger.warning(
            "Validation error at %s: %s",
            request.url.path,
            exc.message,
            extra={"path": request.url.path, "error": exc.message},
        )
        return JSONResponse(
            status_code=UNPROCESSABLE,
            content={"success": False, "error": exc.message},
        )

    @app.exception_handler(ProviderUnavailableError)
    async def provider_unavailable_handler(
        request: Request, exc: ProviderUnavailableError
    ) -> JSONResponse:
        """Provider failure that escaped the orchestrator -> 502."""
        logger.error(
            "Provider unavailable at %s: %s",
            request.url.path,
            exc.reason,
            extra={"path": request.url.path, "reason": exc.reason},
        )
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"detail": exc.message},
        )

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(
        request: Request, exc: ConfigurationError
    ) -> JSONResponse:
        """Misconfiguration -> 503."""
        logger.error(
            "Configuration error at %s: %s",
            request.url.path,
            exc.message,
            extra={"path": request.url.path},
        )
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": exc.message},
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Malformed request body or query -> 422."""
        errors = _sanitize_validation_errors(list(exc.errors()))
        logger.warning(
            "Request validation error at %s",
            request.url.path,
            extra={"path": request.url.path, "errors": errors},
        )
        return JSONResponse(status_code=UNPROCESSABLE, content={"detail": errors})
