"""Utility functions and helpers.

This module provides various utilities for campus-market:
- async_helpers: Error hierarchy, timeouts, cancellation
- security: Secret redaction, input validation
- logging: Structured logging with secret sanitization
- health: Health check utilities
"""

from campus_market.utils.async_helpers import (
    AccessDenied,
    CancellationToken,
    DocumentExists,
    MarketError,
    NotAuthenticated,
    NotFound,
    PreviewUpdateFailed,
    StoreUnavailable,
    ValidationFailed,
    with_timeout,
)
from campus_market.utils.health import (
    HealthChecker,
    HealthReport,
    HealthStatus,
)
from campus_market.utils.logging import (
    LogFormat,
    LogLevel,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    unbind_context,
)
from campus_market.utils.security import (
    RedactionError,
    SecretRedactor,
    SecurityError,
)

__all__ = [
    # Errors
    "AccessDenied",
    "CancellationToken",
    "DocumentExists",
    # Health
    "HealthChecker",
    "HealthReport",
    "HealthStatus",
    # Logging
    "LogFormat",
    "LogLevel",
    "MarketError",
    "NotAuthenticated",
    "NotFound",
    "PreviewUpdateFailed",
    # Security
    "RedactionError",
    "SecretRedactor",
    "SecurityError",
    "StoreUnavailable",
    "ValidationFailed",
    "bind_context",
    "clear_context",
    "configure_logging",
    "get_logger",
    "unbind_context",
    "with_timeout",
]
