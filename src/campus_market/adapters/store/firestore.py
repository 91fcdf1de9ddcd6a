"""Google Cloud Firestore document store.

This module implements the DocumentStore protocol on top of the
google-cloud-firestore client.

Features:
- Blocking client calls run in worker threads via ``asyncio.to_thread``
- ``on_snapshot`` listeners are bridged onto the event loop
- Server timestamps map to ``firestore.SERVER_TIMESTAMP``
- Client-side retries are disabled; failures surface once as
  ``StoreUnavailable``
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence
from typing import Any, TypeVar

import structlog
from google.api_core import exceptions as gcp_exceptions
from google.cloud import firestore
from google.cloud.firestore import FieldFilter as FirestoreFieldFilter
from google.cloud.firestore import Query

from ...config.schema import FirestoreConfig
from ...interfaces.store import SnapshotCallback
from ...models.document import SERVER_TIMESTAMP, Document, FieldFilter, OrderBy, SortDirection
from ...utils.async_helpers import DocumentExists, NotFound, StoreUnavailable
from ...utils.logging import LogEventNames

log = structlog.get_logger()

T = TypeVar("T")

_DIRECTIONS = {
    SortDirection.ASCENDING: Query.ASCENDING,
    SortDirection.DESCENDING: Query.DESCENDING,
}


def _to_firestore(data: dict[str, Any]) -> dict[str, Any]:
    return {
        key: firestore.SERVER_TIMESTAMP if value is SERVER_TIMESTAMP else value
        for key, value in data.items()
    }


def _to_document(snapshot: Any) -> Document:
    return Document(snapshot.id, snapshot.to_dict() or {})


class FirestoreSubscription:
    """Wraps a Firestore ``Watch`` so cancelling stops delivery at once."""

    def __init__(self) -> None:
        self._watch: Any = None
        self._active = True

    def bind(self, watch: Any) -> None:
        self._watch = watch

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        if not self._active:
            return
        self._active = False
        if self._watch is not None:
            self._watch.unsubscribe()


class FirestoreDocumentStore:
    """DocumentStore backed by Cloud Firestore.

    Example:
        config = FirestoreConfig(project_id="campus-market-prod")
        store = FirestoreDocumentStore(config)
        await store.ping()
    """

    def __init__(self, config: FirestoreConfig, client: firestore.Client | None = None) -> None:
        """Initialize the adapter.

        Args:
            config: Firestore-specific configuration
            client: Pre-built client (mainly for tests)
        """
        self._config = config
        self._timeout = config.timeout
        if client is not None:
            self._client = client
        elif config.credentials_path is not None:
            self._client = firestore.Client.from_service_account_json(
                str(config.credentials_path),
                project=config.project_id,
                database=config.database,
            )
        else:
            self._client = firestore.Client(project=config.project_id, database=config.database)

        log.info(
            "firestore_client_initialized",
            project_id=config.project_id,
            database=config.database,
        )

    async def _call(self, operation: str, target: str, func: Callable[[], T]) -> T:
        """Run a blocking client call and translate its errors."""
        try:
            return await asyncio.to_thread(func)
        except gcp_exceptions.NotFound as e:
            raise NotFound(f"{target} not found") from e
        except gcp_exceptions.AlreadyExists as e:
            raise DocumentExists(f"{target} already exists") from e
        except (gcp_exceptions.GoogleAPICallError, gcp_exceptions.RetryError) as e:
            log.error(LogEventNames.STORE_ERROR, operation=operation, target=target, error=str(e))
            raise StoreUnavailable(f"Firestore {operation} failed for {target}: {e}") from e

    def _query(
        self,
        collection: str,
        filters: Sequence[FieldFilter],
        order_by: OrderBy | None,
        limit: int | None = None,
    ) -> Any:
        query: Any = self._client.collection(collection)
        for clause in filters:
            query = query.where(filter=FirestoreFieldFilter(clause.field, clause.op.value, clause.value))
        if order_by is not None:
            query = query.order_by(order_by.field, direction=_DIRECTIONS[order_by.direction])
        if limit is not None:
            query = query.limit(limit)
        return query

    async def get(self, collection: str, document_id: str) -> Document | None:
        ref = self._client.collection(collection).document(document_id)

        def _get() -> Document | None:
            snapshot = ref.get(retry=None, timeout=self._timeout)
            return _to_document(snapshot) if snapshot.exists else None

        return await self._call("get", f"{collection}/{document_id}", _get)

    async def query(
        self,
        collection: str,
        filters: Sequence[FieldFilter] = (),
        order_by: OrderBy | None = None,
        limit: int | None = None,
    ) -> list[Document]:
        query = self._query(collection, filters, order_by, limit)

        def _run() -> list[Document]:
            return [_to_document(s) for s in query.stream(retry=None, timeout=self._timeout)]

        return await self._call("query", collection, _run)

    async def create(
        self,
        collection: str,
        data: dict[str, Any],
        document_id: str | None = None,
    ) -> str:
        payload = _to_firestore(data)
        col = self._client.collection(collection)

        if document_id is None:

            def _add() -> str:
                _, ref = col.add(payload, retry=None, timeout=self._timeout)
                return str(ref.id)

            return await self._call("create", collection, _add)

        ref = col.document(document_id)

        def _create() -> str:
            ref.create(payload, retry=None, timeout=self._timeout)
            return document_id

        return await self._call("create", f"{collection}/{document_id}", _create)

    async def update(self, collection: str, document_id: str, data: dict[str, Any]) -> None:
        ref = self._client.collection(collection).document(document_id)
        payload = _to_firestore(data)
        await self._call(
            "update",
            f"{collection}/{document_id}",
            lambda: ref.update(payload, retry=None, timeout=self._timeout),
        )

    async def delete(self, collection: str, document_id: str) -> None:
        ref = self._client.collection(collection).document(document_id)
        await self._call(
            "delete",
            f"{collection}/{document_id}",
            lambda: ref.delete(retry=None, timeout=self._timeout),
        )

    def subscribe(
        self,
        collection: str,
        on_change: SnapshotCallback,
        filters: Sequence[FieldFilter] = (),
        order_by: OrderBy | None = None,
    ) -> FirestoreSubscription:
        loop = asyncio.get_running_loop()
        subscription = FirestoreSubscription()

        def _deliver(snapshot: list[Document]) -> None:
            if subscription.active:
                on_change(snapshot)

        def _on_snapshot(docs: list[Any], changes: Any, read_time: Any) -> None:
            # Runs on the listener thread
            snapshot = [_to_document(doc) for doc in docs]
            loop.call_soon_threadsafe(_deliver, snapshot)

        query = self._query(collection, filters, order_by)
        subscription.bind(query.on_snapshot(_on_snapshot))
        return subscription

    async def ping(self) -> None:
        query = self._client.collection("__ping__").limit(1)
        await self._call(
            "ping",
            "__ping__",
            lambda: list(query.stream(retry=None, timeout=self._timeout)),
        )
