"""Async utilities and the error taxonomy shared by every component.

This module provides:
- Custom exceptions surfaced by the chat engine, contact workflow and stores
- Timeout wrappers for async operations
- Cooperative cancellation for live streams

Nothing in this package retries on failure: every error is reported once and
re-attempting is the caller's decision.
"""

from __future__ import annotations

import asyncio
import builtins
from collections.abc import Awaitable
from typing import TypeVar

import structlog

log = structlog.get_logger()

T = TypeVar("T")


# =============================================================================
# Custom Exceptions
# =============================================================================


class MarketError(Exception):
    """Base exception for all marketplace errors."""


class NotAuthenticated(MarketError):
    """No signed-in user is attempting a participant-only operation."""


class NotFound(MarketError):
    """A thread or document id does not resolve."""


class AccessDenied(MarketError):
    """The user is authenticated but not allowed to perform the operation."""


class ValidationFailed(MarketError):
    """Input was rejected before any store call was made."""


class StoreUnavailable(MarketError):
    """Transient network or backend failure on a store call."""


class PreviewUpdateFailed(StoreUnavailable):
    """The message was stored but the thread preview write failed.

    Attributes:
        message_id: Id of the message that was durably stored.
    """

    def __init__(self, message: str, message_id: str) -> None:
        super().__init__(message)
        self.message_id = message_id


class DocumentExists(MarketError):
    """A conditional create found the document id already taken."""


class TimeoutError(MarketError):
    """Operation timed out."""


# =============================================================================
# Timeouts and cancellation
# =============================================================================


async def with_timeout(
    coro: Awaitable[T],
    timeout: float,
    error_message: str | None = None,
) -> T:
    """Await ``coro`` for at most ``timeout`` seconds.

    Raises:
        TimeoutError: The marketplace ``TimeoutError``, carrying ``error_message``
            when given.
    """
    try:
        return await asyncio.wait_for(coro, timeout=timeout)
    except builtins.TimeoutError as e:
        log.warning("operation_timeout", timeout=timeout)
        raise TimeoutError(error_message or f"Operation timed out after {timeout}s") from e


class CancellationToken:
    """One-shot cancellation flag that can also be awaited.

    ``SnapshotStream`` holds one so that ``cancel()`` wakes a consumer blocked
    in ``next()`` as well as stopping later reads.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()
