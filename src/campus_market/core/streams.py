"""Cancellable snapshot streams on top of store subscriptions.

A store subscription pushes the full, ordered result set of a query on every
change. ``SnapshotStream`` turns those pushes into an async iterator with an
explicit ``cancel()``, so a view can consume them with ``async for`` and tear
the subscription down when it goes away.
"""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import Callable
from types import TracebackType
from typing import TYPE_CHECKING, Generic, TypeVar

import structlog

from campus_market.utils.async_helpers import CancellationToken, with_timeout
from campus_market.utils.logging import LogEventNames

if TYPE_CHECKING:
    from campus_market.interfaces.store import Subscription
    from campus_market.models.document import Document

log = structlog.get_logger()

T = TypeVar("T")


class SnapshotStream(Generic[T]):
    """Async iterator over refreshed query snapshots.

    Every store change enqueues one snapshot (already converted by
    ``transform``); nothing is diffed or merged. Cancelling stops delivery,
    drops undelivered snapshots and ends iteration.

    Example:
        stream = await engine.subscribe_messages(auth, thread_id)
        async with stream:
            async for messages in stream:
                render(messages)
    """

    def __init__(self, transform: Callable[[list[Document]], T], name: str) -> None:
        """Initialize the stream.

        Args:
            transform: Converts raw store documents into a snapshot value
            name: Label used in log events
        """
        self._transform = transform
        self._name = name
        self._queue: asyncio.Queue[T] = asyncio.Queue()
        self._held: deque[T] = deque()
        self._token = CancellationToken()
        self._subscription: Subscription | None = None
        self._latest: T | None = None
        self._received = 0

    def attach(self, subscription: Subscription) -> None:
        """Bind the store subscription this stream cancels."""
        self._subscription = subscription
        if self._token.is_cancelled:
            subscription.cancel()

    def push(self, documents: list[Document]) -> None:
        """Store callback: enqueue a refreshed snapshot."""
        if self._token.is_cancelled:
            return
        snapshot = self._transform(documents)
        self._latest = snapshot
        self._received += 1
        self._queue.put_nowait(snapshot)

    @property
    def latest(self) -> T | None:
        """The most recent snapshot received, delivered or not."""
        return self._latest

    @property
    def received(self) -> int:
        """Number of snapshots pushed so far."""
        return self._received

    @property
    def active(self) -> bool:
        return not self._token.is_cancelled

    def cancel(self) -> None:
        """Stop delivery and release the store subscription. Idempotent."""
        if self._token.is_cancelled:
            return
        self._token.cancel()
        if self._subscription is not None:
            self._subscription.cancel()
        self._held.clear()
        while not self._queue.empty():
            self._queue.get_nowait()
        log.debug(LogEventNames.SUBSCRIPTION_CANCELLED, stream=self._name)

    async def next(self, timeout: float | None = None) -> T:
        """Wait for the next snapshot.

        Args:
            timeout: Seconds to wait, or None to wait indefinitely

        Returns:
            The next undelivered snapshot

        Raises:
            StopAsyncIteration: If the stream is cancelled
            TimeoutError: If no snapshot arrives in time
        """
        if timeout is None:
            return await self._next()
        return await with_timeout(
            self._next(),
            timeout,
            f"No snapshot on {self._name} within {timeout}s",
        )

    async def wait_for(self, predicate: Callable[[T], bool], timeout: float) -> T:
        """Consume snapshots until one satisfies ``predicate``.

        Raises:
            StopAsyncIteration: If the stream is cancelled first
            TimeoutError: If no matching snapshot arrives in time
        """

        async def _wait() -> T:
            while True:
                snapshot = await self._next()
                if predicate(snapshot):
                    return snapshot

        return await with_timeout(
            _wait(),
            timeout,
            f"No matching snapshot on {self._name} within {timeout}s",
        )

    async def _next(self) -> T:
        if self._held:
            return self._held.popleft()
        if not self._queue.empty():
            return self._queue.get_nowait()
        if self._token.is_cancelled:
            raise StopAsyncIteration

        getter = asyncio.ensure_future(self._queue.get())
        cancelled = asyncio.ensure_future(self._token.wait())
        try:
            await asyncio.wait({getter, cancelled}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            if getter.done() and not getter.cancelled() and not self._token.is_cancelled:
                # Dequeued in the same tick the caller was cancelled
                self._held.append(getter.result())
            raise
        finally:
            cancelled.cancel()
            if not getter.done():
                getter.cancel()

        if getter.done() and not getter.cancelled():
            return getter.result()
        raise StopAsyncIteration

    def __aiter__(self) -> SnapshotStream[T]:
        return self

    async def __anext__(self) -> T:
        return await self._next()

    async def __aenter__(self) -> SnapshotStream[T]:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.cancel()
