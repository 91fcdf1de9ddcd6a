"""Data models for chat messages."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class Message:
    """A message appended to a thread's message collection."""

    id: str
    sender_id: str
    sender_name: str
    text: str
    created_at: datetime | None  # Server-assigned

    @classmethod
    def from_document(cls, message_id: str, data: dict[str, Any]) -> "Message":
        return cls(
            id=message_id,
            sender_id=data.get("senderId", ""),
            sender_name=data.get("senderName", ""),
            text=data.get("text", ""),
            created_at=data.get("createdAt"),
        )
