"""Contact workflow: find or create the chat thread for a listing.

Given a viewing user and a listing, returns the id of the one thread between
the viewer and the listing owner about that listing.

Thread ids are derived from the sorted participant pair and the listing id,
and the create is conditional on that id being free. Two concurrent calls
that both miss on the lookup therefore converge on the same document instead
of creating duplicates.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from campus_market.models.document import FieldFilter, FilterOp
from campus_market.models.thread import ChatThread, derive_thread_id
from campus_market.utils.async_helpers import DocumentExists, ValidationFailed
from campus_market.utils.logging import LogEventNames

if TYPE_CHECKING:
    from campus_market.config.schema import CollectionsConfig
    from campus_market.core.auth import AuthContext
    from campus_market.interfaces.store import DocumentStore
    from campus_market.models.listing import ListingSnapshot
    from campus_market.models.user import AuthUser

log = structlog.get_logger()


class ContactWorkflow:
    """Links listings to chat threads.

    Responsibilities:
    - Look up an existing thread for (viewer, owner, listing)
    - Otherwise create it under its deterministic id
    - Capture participant names/photos and the listing title at creation

    Example:
        contact = ContactWorkflow(store, collections)
        thread_id = await contact.get_or_create_thread(auth, listing)
    """

    def __init__(self, store: DocumentStore, collections: CollectionsConfig) -> None:
        """Initialize the workflow.

        Args:
            store: Document store holding the chats collection
            collections: Collection names
        """
        self._store = store
        self._chats = collections.chats

    async def get_or_create_thread(self, auth: AuthContext, listing: ListingSnapshot) -> str:
        """Return the thread id for the viewer and the listing owner.

        Args:
            auth: Context of the viewing user
            listing: Listing snapshot at contact time

        Returns:
            Id of the existing or newly created thread

        Raises:
            NotAuthenticated: If nobody is signed in
            ValidationFailed: If the listing is reserved or sold (nothing is read)
            StoreUnavailable: If the store cannot be reached
        """
        viewer = auth.require_user()

        if not listing.is_active:
            log.info(
                LogEventNames.LISTING_NOT_ACTIVE,
                listing_id=listing.id,
                status=str(listing.status),
            )
            raise ValidationFailed(f"Listing {listing.id} is {listing.status}, not active")

        if viewer.uid == listing.owner_id:
            # Permitted; the UI hides the contact button for owners
            log.warning(LogEventNames.SELF_CONTACT, user_id=viewer.uid, listing_id=listing.id)

        existing = await self.find_thread(viewer.uid, listing)
        if existing is not None:
            log.debug(LogEventNames.THREAD_FOUND, thread_id=existing, listing_id=listing.id)
            return existing

        thread = self._new_thread(viewer, listing)
        try:
            await self._store.create(self._chats, thread.to_document(), document_id=thread.id)
        except DocumentExists:
            # A concurrent contact created the same thread first
            log.info(LogEventNames.THREAD_CREATE_RACE, thread_id=thread.id, listing_id=listing.id)
            return thread.id

        log.info(
            LogEventNames.THREAD_CREATED,
            thread_id=thread.id,
            listing_id=listing.id,
            user_id=viewer.uid,
        )
        return thread.id

    async def find_thread(self, viewer_id: str, listing: ListingSnapshot) -> str | None:
        """Return the first stored thread for (viewer, owner, listing), if any.

        Threads are matched on the participant pair too, so an owner viewing
        their own listing does not pick up a buyer's thread.
        """
        documents = await self._store.query(
            self._chats,
            filters=(
                FieldFilter("participants", FilterOp.ARRAY_CONTAINS, viewer_id),
                FieldFilter("listingId", FilterOp.EQUAL, listing.id),
            ),
        )
        for document in documents:
            thread = ChatThread.from_document(document.id, document.data)
            if thread.has_pair(viewer_id, listing.owner_id):
                return thread.id
        return None

    @staticmethod
    def _new_thread(viewer: AuthUser, listing: ListingSnapshot) -> ChatThread:
        # Names and photos are snapshots; later profile edits do not propagate
        return ChatThread(
            id=derive_thread_id(viewer.uid, listing.owner_id, listing.id),
            participants=(viewer.uid, listing.owner_id),
            listing_id=listing.id,
            listing_title=listing.title,
            participant_names={
                viewer.uid: viewer.resolved_name,
                listing.owner_id: listing.owner_display_name,
            },
            participant_photos={
                viewer.uid: viewer.photo_url,
                listing.owner_id: listing.owner_photo_url,
            },
        )
