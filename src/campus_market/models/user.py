"""Data models for authenticated users."""

from dataclasses import dataclass
from enum import Enum

FALLBACK_NAME = "User"


class AuthState(Enum):
    """Lifecycle state of an authentication context."""

    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"


@dataclass(frozen=True)
class AuthUser:
    """A user as yielded by the identity provider."""

    uid: str
    email: str | None = None
    display_name: str | None = None
    photo_url: str | None = None

    @property
    def resolved_name(self) -> str:
        """Display name, else the email local part, else "User"."""
        return resolve_display_name(self.display_name, self.email)


def resolve_display_name(
    display_name: str | None,
    email: str | None,
    fallback: str = FALLBACK_NAME,
) -> str:
    """Pick the name shown to other participants.

    Args:
        display_name: Profile display name, may be empty
        email: Account email, may be empty
        fallback: Used when neither of the above yields a name

    Returns:
        The first non-empty candidate
    """
    if display_name:
        return display_name
    if email:
        local_part = email.split("@")[0]
        if local_part:
            return local_part
    return fallback
