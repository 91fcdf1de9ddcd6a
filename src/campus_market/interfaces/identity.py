"""Abstract interface for identity provider integrations."""

from typing import Protocol

from ..models.user import AuthUser


class IdentityProvider(Protocol):
    """Abstract interface for the authentication backend.

    The provider authenticates users; the library only reads the signed-in
    user from it and asks it to end the session.
    """

    async def current_user(self) -> AuthUser | None:
        """
        Return the signed-in user.

        Returns:
            The user, or None when nobody is signed in
        """
        ...

    async def sign_out(self) -> None:
        """End the provider session."""
        ...
