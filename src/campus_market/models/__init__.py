"""Data models and transfer objects."""

from .document import (
    SERVER_TIMESTAMP,
    Document,
    FieldFilter,
    FilterOp,
    OrderBy,
    SortDirection,
)
from .listing import ListingSnapshot, ListingStatus
from .message import Message
from .thread import ChatThread, ThreadState, ThreadSummary, derive_thread_id, is_unread
from .user import AuthState, AuthUser, resolve_display_name

__all__ = [
    # Store value types
    "SERVER_TIMESTAMP",
    "Document",
    "FieldFilter",
    "FilterOp",
    "OrderBy",
    "SortDirection",
    # User models
    "AuthState",
    "AuthUser",
    "resolve_display_name",
    # Listing models
    "ListingSnapshot",
    "ListingStatus",
    # Thread models
    "ChatThread",
    "ThreadState",
    "ThreadSummary",
    "derive_thread_id",
    "is_unread",
    # Message models
    "Message",
]
