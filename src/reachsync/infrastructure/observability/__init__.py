"""Observability infrastructure for structured logging."""

from reachsync.infrastructure.observability.logger_template import (
    log_batch_summary,
    log_operation,
)
from reachsync.infrastructure.observability.logging import (
    configure_logging,
    get_correlation_id,
    set_correlation_id,
)
from reachsync.infrastructure.observability.middleware import RequestLoggingMiddleware

__all__ = [
    "RequestLoggingMiddleware",
    "configure_logging",
    "get_correlation_id",
    "log_batch_summary",
    "log_operation",
    "set_correlation_id",
]
