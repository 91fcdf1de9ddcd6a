"""Core business logic components.

This module exports the main business logic classes:
- AuthContext: Explicit signed-in user state
- ContactWorkflow: Finds or creates the thread for a listing
- ChatEngine: Thread access, message send and message streams
- Inbox: The signed-in user's threads with unread flags
- MessageComposer: Draft handling around a send
- ChatService: Facade wiring the above onto one store
"""

from campus_market.core.auth import AuthContext
from campus_market.core.chat_engine import ChatEngine
from campus_market.core.composer import MessageComposer
from campus_market.core.contact import ContactWorkflow
from campus_market.core.inbox import Inbox
from campus_market.core.service import ChatService, create_service, create_store
from campus_market.core.streams import SnapshotStream

__all__ = [
    "AuthContext",
    "ChatEngine",
    "ChatService",
    "ContactWorkflow",
    "Inbox",
    "MessageComposer",
    "SnapshotStream",
    "create_service",
    "create_store",
]
