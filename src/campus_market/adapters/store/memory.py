"""In-memory document store.

This module implements the DocumentStore protocol on plain dictionaries for
development, demos and tests. It mirrors the behaviour of a hosted store
closely enough for the chat core to rely on:

- Every call suspends once, like a network round trip
- ``SERVER_TIMESTAMP`` fields get the store's clock, which never goes
  backwards, and equal timestamps keep acceptance order
- Conditional creates fail with ``DocumentExists``
- Subscribers get the full ordered result set after every accepted write,
  delivered on the event loop rather than inside the writer's call
"""

from __future__ import annotations

import asyncio
import copy
import itertools
import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

import structlog

from ...interfaces.store import SnapshotCallback
from ...models.document import SERVER_TIMESTAMP, Document, FieldFilter, OrderBy, SortDirection
from ...utils.async_helpers import DocumentExists, NotFound

log = structlog.get_logger()


@dataclass
class _Record:
    seq: int
    data: dict[str, Any]


@dataclass
class _Watch:
    collection: str
    on_change: SnapshotCallback
    filters: tuple[FieldFilter, ...]
    order_by: OrderBy | None
    loop: asyncio.AbstractEventLoop
    active: bool = True


class InMemorySubscription:
    """Subscription handle returned by ``InMemoryDocumentStore.subscribe``."""

    def __init__(self, store: InMemoryDocumentStore, watch: _Watch) -> None:
        self._store = store
        self._watch = watch

    @property
    def active(self) -> bool:
        return self._watch.active

    def cancel(self) -> None:
        if self._watch.active:
            self._watch.active = False
            self._store._remove_watch(self._watch)


class InMemoryDocumentStore:
    """DocumentStore backed by process memory.

    Example:
        store = InMemoryDocumentStore()
        chat_id = await store.create("chats", {"participants": ["a", "b"]})
        doc = await store.get("chats", chat_id)
    """

    def __init__(
        self,
        clock: Callable[[], datetime] | None = None,
        latency: float = 0.0,
    ) -> None:
        """Initialize the store.

        Args:
            clock: Source of server time (defaults to UTC now)
            latency: Seconds each call sleeps to emulate a round trip
        """
        self._clock = clock or (lambda: datetime.now(UTC))
        self._latency = latency
        self._collections: dict[str, dict[str, _Record]] = {}
        self._seq = itertools.count()
        self._last_timestamp: datetime | None = None
        self._watches: list[_Watch] = []

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    async def _round_trip(self) -> None:
        await asyncio.sleep(self._latency)

    def _server_time(self) -> datetime:
        now = self._clock()
        if self._last_timestamp is not None and now < self._last_timestamp:
            now = self._last_timestamp
        self._last_timestamp = now
        return now

    def _resolve(self, data: dict[str, Any]) -> dict[str, Any]:
        # One timestamp per write, shared by every sentinel in it
        timestamp: datetime | None = None
        resolved: dict[str, Any] = {}
        for key, value in data.items():
            if value is SERVER_TIMESTAMP:
                if timestamp is None:
                    timestamp = self._server_time()
                value = timestamp
            resolved[key] = copy.deepcopy(value)
        return resolved

    def _select(
        self,
        collection: str,
        filters: Sequence[FieldFilter],
        order_by: OrderBy | None,
        limit: int | None = None,
    ) -> list[Document]:
        records = [
            (doc_id, record)
            for doc_id, record in self._collections.get(collection, {}).items()
            if all(f.matches(record.data) for f in filters)
        ]

        if order_by is None:
            records.sort(key=lambda item: item[1].seq)
        else:
            name = order_by.field

            def sort_key(item: tuple[str, _Record]) -> tuple[Any, ...]:
                value = item[1].data.get(name)
                return (value is not None, value, item[1].seq)

            records.sort(
                key=sort_key,
                reverse=order_by.direction is SortDirection.DESCENDING,
            )

        if limit is not None:
            records = records[:limit]
        return [Document(doc_id, copy.deepcopy(record.data)) for doc_id, record in records]

    def _notify(self, collection: str) -> None:
        for watch in list(self._watches):
            if watch.collection == collection:
                self._schedule(watch)

    def _schedule(self, watch: _Watch) -> None:
        snapshot = self._select(watch.collection, watch.filters, watch.order_by)
        watch.loop.call_soon(self._deliver, watch, snapshot)

    @staticmethod
    def _deliver(watch: _Watch, snapshot: list[Document]) -> None:
        if not watch.active:
            return
        watch.on_change(snapshot)

    def _remove_watch(self, watch: _Watch) -> None:
        if watch in self._watches:
            self._watches.remove(watch)

    # -------------------------------------------------------------------------
    # DocumentStore protocol
    # -------------------------------------------------------------------------

    async def get(self, collection: str, document_id: str) -> Document | None:
        await self._round_trip()
        record = self._collections.get(collection, {}).get(document_id)
        if record is None:
            return None
        return Document(document_id, copy.deepcopy(record.data))

    async def query(
        self,
        collection: str,
        filters: Sequence[FieldFilter] = (),
        order_by: OrderBy | None = None,
        limit: int | None = None,
    ) -> list[Document]:
        await self._round_trip()
        return self._select(collection, filters, order_by, limit)

    async def create(
        self,
        collection: str,
        data: dict[str, Any],
        document_id: str | None = None,
    ) -> str:
        await self._round_trip()
        documents = self._collections.setdefault(collection, {})

        if document_id is None:
            document_id = uuid.uuid4().hex[:20]
        elif document_id in documents:
            raise DocumentExists(f"{collection}/{document_id} already exists")

        documents[document_id] = _Record(seq=next(self._seq), data=self._resolve(data))
        log.debug("document_created", collection=collection, document_id=document_id)
        self._notify(collection)
        return document_id

    async def update(self, collection: str, document_id: str, data: dict[str, Any]) -> None:
        await self._round_trip()
        record = self._collections.get(collection, {}).get(document_id)
        if record is None:
            raise NotFound(f"{collection}/{document_id} not found")

        record.data.update(self._resolve(data))
        self._notify(collection)

    async def delete(self, collection: str, document_id: str) -> None:
        await self._round_trip()
        documents = self._collections.get(collection, {})
        if documents.pop(document_id, None) is not None:
            self._notify(collection)

    def subscribe(
        self,
        collection: str,
        on_change: SnapshotCallback,
        filters: Sequence[FieldFilter] = (),
        order_by: OrderBy | None = None,
    ) -> InMemorySubscription:
        watch = _Watch(
            collection=collection,
            on_change=on_change,
            filters=tuple(filters),
            order_by=order_by,
            loop=asyncio.get_running_loop(),
        )
        self._watches.append(watch)
        self._schedule(watch)  # Initial snapshot
        return InMemorySubscription(self, watch)

    async def ping(self) -> None:
        await self._round_trip()

    # -------------------------------------------------------------------------
    # Inspection helpers
    # -------------------------------------------------------------------------

    def count(self, collection: str) -> int:
        """Number of documents in a collection."""
        return len(self._collections.get(collection, {}))

    @property
    def subscriber_count(self) -> int:
        """Number of active subscriptions."""
        return len(self._watches)
