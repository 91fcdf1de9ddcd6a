"""Chat engine: thread access, message send and live message streams.

This module implements the ChatEngine class that owns the thread lifecycle
after a thread exists:
1. Load a thread and gate access on participant membership
2. Stream the thread's messages, oldest first, on every change
3. Append a message, then refresh the thread's preview fields

The message write and the preview write are two separate store calls. A
reader may see the message before the preview changes, and if the second
write fails the preview stays stale until ``rebuild_preview`` recomputes it
from the message history.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from campus_market.core.streams import SnapshotStream
from campus_market.models.document import SERVER_TIMESTAMP, OrderBy, SortDirection
from campus_market.models.message import Message
from campus_market.models.thread import ChatThread
from campus_market.utils.async_helpers import (
    AccessDenied,
    NotFound,
    PreviewUpdateFailed,
    StoreUnavailable,
    ValidationFailed,
)
from campus_market.utils.logging import LogEventNames

if TYPE_CHECKING:
    from campus_market.config.schema import CollectionsConfig
    from campus_market.core.auth import AuthContext
    from campus_market.interfaces.store import DocumentStore
    from campus_market.models.document import Document

log = structlog.get_logger()

CREATED_AT = "createdAt"


def _to_messages(documents: list[Document]) -> list[Message]:
    return [Message.from_document(doc.id, doc.data) for doc in documents]


class ChatEngine:
    """Thread retrieval, authorization, message send and streaming.

    Responsibilities:
    - Resolve thread ids (``NotFound`` for unknown ids)
    - Deny non-participants before any message content is exposed
    - Validate and append messages with server-assigned timestamps
    - Keep the denormalized thread preview in step with the history

    Example:
        engine = ChatEngine(store, collections)
        thread = await engine.open_thread(auth, thread_id)
        stream = await engine.subscribe_messages(auth, thread_id)
        await engine.send_message(auth, thread_id, "Is it still available?")
    """

    def __init__(self, store: DocumentStore, collections: CollectionsConfig) -> None:
        """Initialize the ChatEngine.

        Args:
            store: Document store holding chats and their messages
            collections: Collection names
        """
        self._store = store
        self._chats = collections.chats
        self._messages = collections.messages

    def messages_path(self, thread_id: str) -> str:
        """Collection path of a thread's messages."""
        return f"{self._chats}/{thread_id}/{self._messages}"

    async def load_thread(self, thread_id: str) -> ChatThread:
        """Fetch a thread by id.

        Raises:
            NotFound: If no thread has this id
            StoreUnavailable: If the store cannot be reached
        """
        document = await self._store.get(self._chats, thread_id)
        if document is None:
            log.info(LogEventNames.THREAD_NOT_FOUND, thread_id=thread_id)
            raise NotFound(f"Chat {thread_id} not found")
        return ChatThread.from_document(document.id, document.data)

    @staticmethod
    def authorize_participant(thread: ChatThread, user_id: str) -> bool:
        """Return True iff ``user_id`` is one of the thread's participants."""
        return thread.has_participant(user_id)

    @staticmethod
    def is_unread(thread: ChatThread, viewer_id: str) -> bool:
        """Return True iff the thread's last message came from someone else.

        There are no read receipts: a thread stays unread for the viewer
        until they reply.
        """
        return thread.is_unread_for(viewer_id)

    async def open_thread(self, auth: AuthContext, thread_id: str) -> ChatThread:
        """Load a thread on behalf of the signed-in user.

        Raises:
            NotAuthenticated: If nobody is signed in
            NotFound: If no thread has this id
            AccessDenied: If the user is not a participant
        """
        user = auth.require_user()
        thread = await self.load_thread(thread_id)
        if not self.authorize_participant(thread, user.uid):
            log.warning(LogEventNames.ACCESS_DENIED, thread_id=thread_id, user_id=user.uid)
            raise AccessDenied(f"Not a participant of chat {thread_id}")
        return thread

    async def subscribe_messages(
        self, auth: AuthContext, thread_id: str
    ) -> SnapshotStream[list[Message]]:
        """Stream the thread's messages ordered by server timestamp.

        Each change yields the complete ordered list. Cancel the stream (or
        leave its ``async with`` block) when the view is torn down.

        Raises:
            NotAuthenticated: If nobody is signed in
            NotFound: If no thread has this id
            AccessDenied: If the user is not a participant
        """
        await self.open_thread(auth, thread_id)

        stream: SnapshotStream[list[Message]] = SnapshotStream(
            _to_messages, name=f"messages:{thread_id}"
        )
        subscription = self._store.subscribe(
            self.messages_path(thread_id),
            stream.push,
            order_by=OrderBy(CREATED_AT, SortDirection.ASCENDING),
        )
        stream.attach(subscription)
        log.debug(LogEventNames.SUBSCRIPTION_STARTED, thread_id=thread_id)
        return stream

    async def send_message(self, auth: AuthContext, thread_id: str, text: str) -> Message:
        """Append a message and update the thread preview.

        Args:
            auth: Context of the sending user
            thread_id: Target thread
            text: Message text; surrounding whitespace is trimmed

        Returns:
            The stored message (its ``created_at`` is resolved by the store
            and not known here)

        Raises:
            ValidationFailed: If the trimmed text is empty (nothing is written)
            NotAuthenticated: If nobody is signed in
            NotFound: If no thread has this id
            AccessDenied: If the sender is not a participant
            StoreUnavailable: If the message write fails
            PreviewUpdateFailed: If the message was stored but the preview
                write failed
        """
        trimmed = text.strip()
        if not trimmed:
            log.debug(LogEventNames.MESSAGE_REJECTED, thread_id=thread_id, reason="empty")
            raise ValidationFailed("Message text must not be empty")

        sender = auth.require_user()
        await self.open_thread(auth, thread_id)

        # Step 1: append the message
        sender_name = sender.resolved_name
        try:
            message_id = await self._store.create(
                self.messages_path(thread_id),
                {
                    "senderId": sender.uid,
                    "senderName": sender_name,
                    "text": trimmed,
                    CREATED_AT: SERVER_TIMESTAMP,
                },
            )
        except StoreUnavailable as e:
            log.warning(LogEventNames.MESSAGE_SEND_ERROR, thread_id=thread_id, error=str(e))
            raise

        # Step 2: refresh the preview as a separate write
        try:
            await self._store.update(
                self._chats,
                thread_id,
                {
                    "lastMessage": trimmed,
                    "lastMessageAt": SERVER_TIMESTAMP,
                    "lastMessageSenderId": sender.uid,
                },
            )
        except (StoreUnavailable, NotFound) as e:
            log.error(
                LogEventNames.PREVIEW_UPDATE_ERROR,
                thread_id=thread_id,
                message_id=message_id,
                error=str(e),
            )
            raise PreviewUpdateFailed(
                f"Message stored but chat preview not updated: {e}", message_id
            ) from e

        log.info(
            LogEventNames.MESSAGE_SENT,
            thread_id=thread_id,
            message_id=message_id,
            sender_id=sender.uid,
            length=len(trimmed),
        )
        return Message(
            id=message_id,
            sender_id=sender.uid,
            sender_name=sender_name,
            text=trimmed,
            created_at=None,
        )

    async def rebuild_preview(self, thread_id: str) -> ChatThread:
        """Recompute the preview fields from the last stored message.

        Repairs a thread whose preview write failed after its message was
        stored. A thread without messages gets its preview cleared.

        Raises:
            NotFound: If no thread has this id
            StoreUnavailable: If the store cannot be reached
        """
        await self.load_thread(thread_id)

        latest = await self._store.query(
            self.messages_path(thread_id),
            order_by=OrderBy(CREATED_AT, SortDirection.DESCENDING),
            limit=1,
        )
        if latest:
            last = Message.from_document(latest[0].id, latest[0].data)
            preview = {
                "lastMessage": last.text,
                "lastMessageAt": last.created_at,
                "lastMessageSenderId": last.sender_id,
            }
        else:
            preview = {"lastMessage": "", "lastMessageAt": None, "lastMessageSenderId": ""}

        await self._store.update(self._chats, thread_id, preview)
        log.info(
            LogEventNames.PREVIEW_REBUILT,
            thread_id=thread_id,
            has_messages=bool(latest),
        )
        return await self.load_thread(thread_id)
