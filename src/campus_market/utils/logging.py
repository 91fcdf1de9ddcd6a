"""Structured logging for campus-market.

structlog renders every event as JSON (production) or coloured console
lines (development). All string values pass through the secret redactor and
have control characters stripped before rendering. Chat message text is never
handed to the logger; events carry ids and lengths instead.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import MutableMapping
from enum import StrEnum
from functools import lru_cache
from pathlib import Path
from typing import Any, cast

import structlog
from structlog.typing import WrappedLogger

from campus_market.utils.security import SecretRedactor, sanitize_for_logging

SERVICE_NAME = "campus-market"


class LogFormat(StrEnum):
    """Log output format options."""

    JSON = "json"
    CONSOLE = "console"


class LogLevel(StrEnum):
    """Log level options."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@lru_cache(maxsize=1)
def _redactor() -> SecretRedactor:
    return SecretRedactor()


def sanitize_log_value(value: Any) -> Any:
    """Redact secrets from a log value, descending into dicts, lists and tuples."""
    if isinstance(value, str):
        return _redactor().redact(sanitize_for_logging(value))
    if isinstance(value, dict):
        return {key: sanitize_log_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return type(value)(sanitize_log_value(item) for item in value)
    return value


def secret_sanitizer(
    logger: logging.Logger,
    method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Structlog processor applying ``sanitize_log_value`` to the whole event."""
    return cast(MutableMapping[str, Any], sanitize_log_value(event_dict))


def add_context_processor(
    logger: logging.Logger,
    method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Stamp every event with the service name and version."""
    from campus_market._version import __version__

    event_dict["service"] = SERVICE_NAME
    event_dict["version"] = __version__
    return event_dict


def _processors(log_format: LogFormat) -> list[Any]:
    renderer: Any
    if log_format is LogFormat.JSON:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=True, exception_formatter=structlog.dev.plain_traceback
        )

    return [
        structlog.contextvars.merge_contextvars,
        add_context_processor,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        secret_sanitizer,
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        renderer,
    ]


def _handlers(level: int, file_path: Path | None) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]

    if file_path is not None:
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(file_path))
        except OSError as e:
            # Console output still works; report and carry on
            print(f"campus-market: cannot open log file {file_path}: {e}", file=sys.stderr)

    for handler in handlers:
        handler.setLevel(level)
    return handlers


def configure_logging(
    level: LogLevel | str = LogLevel.INFO,
    log_format: LogFormat | str = LogFormat.JSON,
    file_path: Path | str | None = None,
    file_enabled: bool = False,
) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        level: Minimum level to emit
        log_format: ``json`` for aggregation, ``console`` for development
        file_path: Log file, used only when ``file_enabled`` is set
        file_enabled: Also write events to ``file_path``

    Example:
        configure_logging(level="DEBUG", log_format="console")
    """
    level = LogLevel(level.upper()) if isinstance(level, str) else level
    log_format = LogFormat(log_format.lower()) if isinstance(log_format, str) else log_format
    numeric_level = logging.getLevelName(level.value)

    structlog.configure(
        processors=_processors(log_format),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    log_file = Path(file_path) if file_enabled and file_path else None
    logging.basicConfig(
        format="%(message)s",
        level=numeric_level,
        handlers=_handlers(numeric_level, log_file),
        force=True,
    )


def get_logger(name: str | None = None) -> WrappedLogger:
    return cast(WrappedLogger, structlog.get_logger(name))


def bind_context(**kwargs: Any) -> None:
    """Attach key/values to every later event in this context.

    Example:
        bind_context(thread_id="abc", user_id="u1")
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


class LogEventNames:
    """Event names emitted by campus-market, grouped by component."""

    # Authentication
    USER_SIGNED_IN = "user_signed_in"
    USER_SIGNED_OUT = "user_signed_out"
    SIGN_IN_REJECTED = "sign_in_rejected"

    # Contact workflow
    THREAD_FOUND = "thread_found"
    THREAD_CREATED = "thread_created"
    THREAD_CREATE_RACE = "thread_create_race"
    SELF_CONTACT = "self_contact"
    LISTING_NOT_ACTIVE = "listing_not_active"

    # Chat engine
    THREAD_NOT_FOUND = "thread_not_found"
    ACCESS_DENIED = "access_denied"
    MESSAGE_REJECTED = "message_rejected"
    MESSAGE_SENT = "message_sent"
    MESSAGE_SEND_ERROR = "message_send_error"
    PREVIEW_UPDATE_ERROR = "preview_update_error"
    PREVIEW_REBUILT = "preview_rebuilt"

    # Subscriptions
    SUBSCRIPTION_STARTED = "subscription_started"
    SUBSCRIPTION_CANCELLED = "subscription_cancelled"

    # Store
    STORE_ERROR = "store_error"

    # Health checks
    HEALTH_CHECK_START = "health_check_start"
    HEALTH_CHECK_COMPLETE = "health_check_complete"
