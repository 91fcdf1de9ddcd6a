"""Abstract interface for document store integrations."""

from collections.abc import Callable, Sequence
from typing import Any, Protocol

from ..models.document import Document, FieldFilter, OrderBy

SnapshotCallback = Callable[[list[Document]], None]


class Subscription(Protocol):
    """Handle of a standing query subscription."""

    @property
    def active(self) -> bool:
        """True until ``cancel()`` is called."""
        ...

    def cancel(self) -> None:
        """
        Stop delivering snapshots.

        Idempotent. After this returns the callback is never invoked again.
        """
        ...


class DocumentStore(Protocol):
    """Abstract interface for collection-oriented document stores.

    This protocol defines the contract that all store adapters
    (in-memory, Firestore, etc.) must implement. Collections are
    slash-separated paths, so the messages of a thread live in
    ``"chats/<thread_id>/messages"``.

    Fields set to ``SERVER_TIMESTAMP`` are replaced with the store's clock
    at write time. Transport failures raise ``StoreUnavailable``; adapters
    never retry.
    """

    async def get(self, collection: str, document_id: str) -> Document | None:
        """
        Fetch a single document.

        Args:
            collection: Collection path
            document_id: Document identifier

        Returns:
            The document, or None if it does not exist

        Raises:
            StoreUnavailable: If the store cannot be reached
        """
        ...

    async def query(
        self,
        collection: str,
        filters: Sequence[FieldFilter] = (),
        order_by: OrderBy | None = None,
        limit: int | None = None,
    ) -> list[Document]:
        """
        Return the documents matching all filters.

        Without ``order_by`` the result order is whatever the store returns.

        Args:
            collection: Collection path
            filters: Clauses combined with AND
            order_by: Optional ordering
            limit: Maximum number of documents

        Returns:
            Matching documents

        Raises:
            StoreUnavailable: If the store cannot be reached
        """
        ...

    async def create(
        self,
        collection: str,
        data: dict[str, Any],
        document_id: str | None = None,
    ) -> str:
        """
        Create a document.

        Without ``document_id`` the store generates one. With an explicit id
        the create is conditional and fails if the id is taken.

        Args:
            collection: Collection path
            data: Document fields
            document_id: Optional caller-chosen id

        Returns:
            Id of the created document

        Raises:
            DocumentExists: If ``document_id`` is already taken
            StoreUnavailable: If the store cannot be reached
        """
        ...

    async def update(self, collection: str, document_id: str, data: dict[str, Any]) -> None:
        """
        Merge fields into an existing document.

        Raises:
            NotFound: If the document does not exist
            StoreUnavailable: If the store cannot be reached
        """
        ...

    async def delete(self, collection: str, document_id: str) -> None:
        """
        Delete a document. Deleting a missing document is not an error.

        Raises:
            StoreUnavailable: If the store cannot be reached
        """
        ...

    def subscribe(
        self,
        collection: str,
        on_change: SnapshotCallback,
        filters: Sequence[FieldFilter] = (),
        order_by: OrderBy | None = None,
    ) -> Subscription:
        """
        Start a standing query.

        ``on_change`` receives the full, ordered list of matching documents
        once initially and again after every change, on the event loop that
        created the subscription.

        Args:
            collection: Collection path
            on_change: Callback receiving each refreshed snapshot
            filters: Clauses combined with AND
            order_by: Optional ordering

        Returns:
            A handle whose ``cancel()`` stops delivery

        Example:
            sub = store.subscribe("chats/abc/messages", print, order_by=OrderBy("createdAt"))
            ...
            sub.cancel()
        """
        ...

    async def ping(self) -> None:
        """
        Check the store is reachable.

        Raises:
            StoreUnavailable: If the store cannot be reached
        """
        ...
