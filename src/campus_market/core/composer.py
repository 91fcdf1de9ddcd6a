"""Draft handling for the message input of a thread view."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from campus_market.core.auth import AuthContext
    from campus_market.core.chat_engine import ChatEngine
    from campus_market.models.message import Message


class MessageComposer:
    """Holds the unsent text of one thread and never loses it on failure.

    ``submit()`` clears the draft before sending so the input is free while
    the send is in flight, and puts the text back if the send raises.

    Example:
        composer = MessageComposer(engine, auth, thread_id)
        composer.draft = "Can I pick it up tomorrow?"
        try:
            await composer.submit()
        except StoreUnavailable:
            show_inline_error()  # composer.draft holds the text again
    """

    def __init__(self, engine: ChatEngine, auth: AuthContext, thread_id: str) -> None:
        self._engine = engine
        self._auth = auth
        self._thread_id = thread_id
        self.draft = ""
        self._sending = False

    @property
    def is_sending(self) -> bool:
        return self._sending

    @property
    def can_submit(self) -> bool:
        """False for whitespace-only drafts or while a send is in flight."""
        return bool(self.draft.strip()) and not self._sending

    async def submit(self) -> Message | None:
        """Send the current draft.

        Returns:
            The sent message, or None if there was nothing to send

        Raises:
            Whatever ``ChatEngine.send_message`` raises; the draft is
            restored first.
        """
        if not self.can_submit:
            return None

        text = self.draft.strip()
        self.draft = ""
        self._sending = True
        try:
            return await self._engine.send_message(self._auth, self._thread_id, text)
        except Exception:
            self.draft = text
            raise
        finally:
            self._sending = False
