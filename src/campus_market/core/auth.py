"""Explicit authentication context.

Every participant-only operation takes an ``AuthContext`` argument instead of
reading a process-wide "current user". The context moves through
UNAUTHENTICATED -> AUTHENTICATED(user) -> UNAUTHENTICATED on sign-out.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from campus_market.models.user import AuthState, AuthUser
from campus_market.utils.async_helpers import AccessDenied, NotAuthenticated
from campus_market.utils.logging import LogEventNames
from campus_market.utils.security import is_university_email

if TYPE_CHECKING:
    from campus_market.interfaces.identity import IdentityProvider

log = structlog.get_logger()


class AuthContext:
    """The signed-in user of one client session.

    Example:
        auth = AuthContext(allowed_email_domain="edu.rtu.lv")
        auth.sign_in(AuthUser(uid="u1", email="anna@edu.rtu.lv"))
        user = auth.require_user()
        auth.sign_out()
    """

    def __init__(
        self,
        user: AuthUser | None = None,
        allowed_email_domain: str | None = None,
    ) -> None:
        """Initialize the context.

        Args:
            user: Optional user to start signed in as
            allowed_email_domain: Restrict sign-in to this email domain;
                None accepts any address
        """
        self._allowed_domain = allowed_email_domain
        self._user: AuthUser | None = None
        if user is not None:
            self.sign_in(user)

    @property
    def state(self) -> AuthState:
        if self._user is None:
            return AuthState.UNAUTHENTICATED
        return AuthState.AUTHENTICATED

    @property
    def user(self) -> AuthUser | None:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None

    def sign_in(self, user: AuthUser) -> None:
        """Enter the AUTHENTICATED state.

        Raises:
            AccessDenied: If the user's email is outside the allowed domain
        """
        if self._allowed_domain and not is_university_email(user.email, self._allowed_domain):
            log.warning(LogEventNames.SIGN_IN_REJECTED, user_id=user.uid)
            raise AccessDenied(f"Only @{self._allowed_domain} email addresses are allowed.")

        self._user = user
        log.info(LogEventNames.USER_SIGNED_IN, user_id=user.uid)

    def sign_out(self) -> None:
        """Return to the UNAUTHENTICATED state."""
        if self._user is not None:
            log.info(LogEventNames.USER_SIGNED_OUT, user_id=self._user.uid)
        self._user = None

    async def refresh(self, provider: IdentityProvider) -> AuthUser | None:
        """Sync with the identity provider's current user.

        A user outside the allowed domain is signed out of the provider as
        well before ``AccessDenied`` propagates.

        Returns:
            The signed-in user, or None
        """
        user = await provider.current_user()
        if user is None:
            self.sign_out()
            return None

        try:
            self.sign_in(user)
        except AccessDenied:
            self.sign_out()
            await provider.sign_out()
            raise
        return user

    def require_user(self) -> AuthUser:
        """Return the signed-in user.

        Raises:
            NotAuthenticated: If nobody is signed in
        """
        if self._user is None:
            raise NotAuthenticated("Sign in to continue")
        return self._user
