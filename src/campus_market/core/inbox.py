"""Inbox: the signed-in user's threads, newest activity first."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from campus_market.core.streams import SnapshotStream
from campus_market.models.document import FieldFilter, FilterOp
from campus_market.models.thread import ChatThread, ThreadSummary

if TYPE_CHECKING:
    from campus_market.config.schema import CollectionsConfig
    from campus_market.core.auth import AuthContext
    from campus_market.interfaces.store import DocumentStore
    from campus_market.models.document import Document


def _activity_key(summary: ThreadSummary) -> float:
    # Threads without any message sort last
    at: datetime | None = summary.last_message_at
    return at.timestamp() if at is not None else 0.0


def summarize(documents: list[Document], viewer_id: str) -> list[ThreadSummary]:
    """Project thread documents for a viewer, most recent activity first.

    Sorting happens client-side so the store only needs the single-field
    ``participants`` index.
    """
    summaries = [
        ThreadSummary.for_viewer(ChatThread.from_document(doc.id, doc.data), viewer_id)
        for doc in documents
    ]
    summaries.sort(key=_activity_key, reverse=True)
    return summaries


class Inbox:
    """Lists and streams the threads a user participates in.

    Unread is "the last message was not sent by me": there are no read
    receipts, so a thread stays unread until the viewer replies.
    """

    def __init__(self, store: DocumentStore, collections: CollectionsConfig) -> None:
        self._store = store
        self._chats = collections.chats

    def _filters(self, viewer_id: str) -> tuple[FieldFilter, ...]:
        return (FieldFilter("participants", FilterOp.ARRAY_CONTAINS, viewer_id),)

    async def list_threads(self, auth: AuthContext) -> list[ThreadSummary]:
        """Return the viewer's threads.

        Raises:
            NotAuthenticated: If nobody is signed in
            StoreUnavailable: If the store cannot be reached
        """
        viewer = auth.require_user()
        documents = await self._store.query(self._chats, filters=self._filters(viewer.uid))
        return summarize(documents, viewer.uid)

    async def subscribe_threads(self, auth: AuthContext) -> SnapshotStream[list[ThreadSummary]]:
        """Stream the viewer's threads, re-sorted on every change.

        Raises:
            NotAuthenticated: If nobody is signed in
        """
        viewer = auth.require_user()
        stream: SnapshotStream[list[ThreadSummary]] = SnapshotStream(
            lambda documents: summarize(documents, viewer.uid),
            name=f"inbox:{viewer.uid}",
        )
        stream.attach(
            self._store.subscribe(self._chats, stream.push, filters=self._filters(viewer.uid))
        )
        return stream

    async def unread_count(self, auth: AuthContext) -> int:
        """Number of the viewer's threads whose last message came from the other side."""
        return sum(1 for summary in await self.list_threads(auth) if summary.unread)
