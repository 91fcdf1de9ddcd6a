"""Data models for chat threads."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from .user import FALLBACK_NAME


class ThreadState(Enum):
    """Lifecycle of a thread as seen by the chat engine."""

    EMPTY = "empty"  # No message sent yet
    ACTIVE = "active"


def derive_thread_id(user_a: str, user_b: str, listing_id: str) -> str:
    """Derive the document id of the thread between two users for a listing.

    The participant pair is sorted first, so both sides compute the same id
    and creating the thread is idempotent.

    Args:
        user_a: One participant id
        user_b: The other participant id
        listing_id: Listing the conversation is about

    Returns:
        Hex SHA-256 of the canonical (listing, pair) key
    """
    first, second = sorted((user_a, user_b))
    key = f"{listing_id}\x1f{first}\x1f{second}"
    return hashlib.sha256(key.encode("utf-8")).hexdigest()


def is_unread(last_message_sender_id: str, viewer_id: str) -> bool:
    """A thread is unread when its last message came from someone else."""
    return bool(last_message_sender_id) and last_message_sender_id != viewer_id


@dataclass(frozen=True)
class ChatThread:
    """A conversation between two users about one listing."""

    id: str
    participants: tuple[str, ...]
    listing_id: str
    listing_title: str
    participant_names: dict[str, str] = field(default_factory=dict)
    participant_photos: dict[str, str | None] = field(default_factory=dict)

    # Preview fields, derived from the message history
    last_message: str = ""
    last_message_at: datetime | None = None
    last_message_sender_id: str = ""

    @property
    def state(self) -> ThreadState:
        """EMPTY until the first message preview is written."""
        return ThreadState.ACTIVE if self.last_message_sender_id else ThreadState.EMPTY

    def has_participant(self, user_id: str) -> bool:
        """Check membership regardless of participant order."""
        return user_id in self.participants

    def other_participant(self, user_id: str) -> str:
        """Return the participant that is not ``user_id`` ('' if none)."""
        for participant in self.participants:
            if participant != user_id:
                return participant
        return ""

    def display_name_for(self, user_id: str) -> str:
        return self.participant_names.get(user_id) or FALLBACK_NAME

    def photo_for(self, user_id: str) -> str | None:
        return self.participant_photos.get(user_id)

    def is_unread_for(self, viewer_id: str) -> bool:
        return is_unread(self.last_message_sender_id, viewer_id)

    def has_pair(self, user_a: str, user_b: str) -> bool:
        """Check the participant pair equals {user_a, user_b} as a multiset."""
        return sorted(self.participants) == sorted((user_a, user_b))

    @classmethod
    def from_document(cls, thread_id: str, data: dict[str, Any]) -> ChatThread:
        """Build a thread from stored document fields."""
        return cls(
            id=thread_id,
            participants=tuple(data.get("participants") or ()),
            listing_id=data.get("listingId", ""),
            listing_title=data.get("listingTitle", ""),
            participant_names=dict(data.get("participantNames") or {}),
            participant_photos=dict(data.get("participantPhotos") or {}),
            last_message=data.get("lastMessage") or "",
            last_message_at=data.get("lastMessageAt"),
            last_message_sender_id=data.get("lastMessageSenderId") or "",
        )

    def to_document(self) -> dict[str, Any]:
        """Serialize to stored document fields (the id is not a field)."""
        return {
            "participants": list(self.participants),
            "participantNames": dict(self.participant_names),
            "participantPhotos": dict(self.participant_photos),
            "listingId": self.listing_id,
            "listingTitle": self.listing_title,
            "lastMessage": self.last_message,
            "lastMessageAt": self.last_message_at,
            "lastMessageSenderId": self.last_message_sender_id,
        }


@dataclass(frozen=True)
class ThreadSummary:
    """One inbox row: a thread projected for a specific viewer."""

    thread_id: str
    other_user_id: str
    other_user_name: str
    other_user_photo: str | None
    listing_id: str
    listing_title: str
    last_message: str
    last_message_at: datetime | None
    unread: bool

    @classmethod
    def for_viewer(cls, thread: ChatThread, viewer_id: str) -> ThreadSummary:
        other = thread.other_participant(viewer_id)
        return cls(
            thread_id=thread.id,
            other_user_id=other,
            other_user_name=thread.display_name_for(other),
            other_user_photo=thread.photo_for(other),
            listing_id=thread.listing_id,
            listing_title=thread.listing_title,
            last_message=thread.last_message,
            last_message_at=thread.last_message_at,
            unread=thread.is_unread_for(viewer_id),
        )
