"""Shared core utilities: health/metrics endpoints and structured logging."""

from .health import ServiceHealth, HealthStatus
from .logging_config import (
    setup_logging,
    get_logger,
    RequestLoggingMiddleware,
    SecurityFilter,
    StructuredFormatter,
    set_request_context,
    generate_request_id,
    LoggerAdapter,
)

__all__ = [
    # Health checks
    "ServiceHealth",
    "HealthStatus",
    # Logging
    "setup_logging",
    "get_logger",
    "RequestLoggingMiddleware",
    "SecurityFilter",
    "StructuredFormatter",
    "set_request_context",
    "generate_request_id",
    "LoggerAdapter",
]
