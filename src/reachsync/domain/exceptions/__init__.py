"""Domain exceptions."""

from typing import Any


class DomainException(Exception):
    """Base exception for all domain exceptions."""

    # Hey future me, message is stored as an attribute so handlers can read it without
    # parsing str(exception). Never raise this base class directly - use a subclass so
    # callers (and the FastAPI handlers) can catch precisely.
    def __init__(self, message: str, *args: Any) -> None:
        super().__init__(message, *args)
        self.message = message


class ValidationError(DomainException):
    """Input validation failed.

    HTTP Status: 422

    Example:
        raise ValidationError("Unknown time filter: 2y")
    """

    pass


class ConfigurationError(DomainException):
    """Application misconfiguration.

    Raised when required configuration is missing or invalid, e.g. a metric
    fallback table that points at an endpoint the catalog does not know.

    HTTP Status: 503 (Service Unavailable)
    """

    pass


class BindingConflictError(DomainException):
    """External artist is already bound to a different account.

    The only hard failure of a sync. Raised before any provider call or
    database write happens.

    HTTP Status: 409 (Conflict)
    """

    def __init__(self, external_id: str, account_id: str, bound_account_id: str) -> None:
        super().__init__(
            f"External artist {external_id} is already bound to another account"
        )
        self.external_id = external_id
        self.account_id = account_id
        self.bound_account_id = bound_account_id


class ProviderUnavailableError(DomainException):
    """External provider call could not produce a usable payload.

    Covers missing credentials, network failures, timeouts, non-2xx statuses
    and unparseable bodies. The fetch orchestrator catches this per endpoint and
    records ``reason`` on the endpoint result - it never aborts a batch.

    HTTP Status: 502 (Bad Gateway)
    """

    def __init__(
        self,
        message: str,
        reason: str,
        endpoint: str | None = None,
        http_status: int | None = None,
    ) -> None:
        super().__init__(message)
        self.reason = reason  # e.g. "timeout", "http_404", "missing_credentials"
        self.endpoint = endpoint
        self.http_status = http_status


__all__ = [
    "BindingConflictError",
    "ConfigurationError",
    "DomainException",
    "ProviderUnavailableError",
    "ValidationError",
]
