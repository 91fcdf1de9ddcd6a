"""Data models for listing snapshots consumed by the contact workflow."""

from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class ListingStatus(StrEnum):
    """Listing lifecycle values stored in the ``status`` field."""

    ACTIVE = "active"
    RESERVED = "reserved"
    SOLD = "sold"


@dataclass(frozen=True)
class ListingSnapshot:
    """The listing fields captured when a buyer contacts the owner."""

    id: str
    owner_id: str
    title: str
    owner_display_name: str
    owner_photo_url: str | None = None
    status: str = ListingStatus.ACTIVE

    @property
    def is_active(self) -> bool:
        """Only active listings accept new contacts."""
        return self.status == ListingStatus.ACTIVE

    @classmethod
    def from_document(cls, listing_id: str, data: dict[str, Any]) -> "ListingSnapshot":
        """Build a snapshot from a stored listing document."""
        return cls(
            id=listing_id,
            owner_id=data["userId"],
            title=data.get("title", ""),
            owner_display_name=data.get("userDisplayName") or "",
            owner_photo_url=data.get("userPhotoURL"),
            status=data.get("status") or ListingStatus.ACTIVE,
        )
