"""Service facade and factory.

``ChatService`` wires the chat components onto one document store, the way
a page or a request handler uses them. ``create_service`` builds the store
adapter named in the configuration.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from campus_market.core.auth import AuthContext
from campus_market.core.chat_engine import ChatEngine
from campus_market.core.composer import MessageComposer
from campus_market.core.contact import ContactWorkflow
from campus_market.core.inbox import Inbox
from campus_market.models.listing import ListingSnapshot
from campus_market.utils.async_helpers import NotFound

if TYPE_CHECKING:
    from campus_market.config.schema import MarketConfig
    from campus_market.interfaces.store import DocumentStore
    from campus_market.models.user import AuthUser

log = structlog.get_logger()


class ChatService:
    """Chat components sharing one store and one set of collection names.

    Example:
        service = await create_service(config)
        auth = service.new_auth_context()
        auth.sign_in(user)
        listing = await service.load_listing(listing_id)
        thread_id = await service.contact.get_or_create_thread(auth, listing)
    """

    def __init__(self, config: MarketConfig, store: DocumentStore) -> None:
        self._config = config
        self.store = store
        self.engine = ChatEngine(store, config.collections)
        self.contact = ContactWorkflow(store, config.collections)
        self.inbox = Inbox(store, config.collections)

    @property
    def config(self) -> MarketConfig:
        return self._config

    def new_auth_context(self, user: AuthUser | None = None) -> AuthContext:
        """Create an auth context restricted to the configured email domain.

        Raises:
            AccessDenied: If ``user`` is given and outside the domain
        """
        auth = AuthContext(allowed_email_domain=self._config.auth.allowed_email_domain)
        if user is not None:
            auth.sign_in(user)
        return auth

    def composer(self, auth: AuthContext, thread_id: str) -> MessageComposer:
        return MessageComposer(self.engine, auth, thread_id)

    async def load_listing(self, listing_id: str) -> ListingSnapshot:
        """Read a listing document into the snapshot the contact workflow needs.

        Raises:
            NotFound: If no listing has this id
            StoreUnavailable: If the store cannot be reached
        """
        document = await self.store.get(self._config.collections.listings, listing_id)
        if document is None:
            raise NotFound(f"Listing {listing_id} not found")
        return ListingSnapshot.from_document(document.id, document.data)


def create_store(config: MarketConfig) -> DocumentStore:
    """Instantiate the store adapter selected by ``config.store.provider``.

    Raises:
        ValueError: If the provider is not supported or lacks its settings
    """
    provider = config.store.provider

    if provider == "memory":
        from campus_market.adapters.store.memory import InMemoryDocumentStore

        return InMemoryDocumentStore()

    if provider == "firestore":
        if not config.store.firestore:
            raise ValueError("Firestore configuration required when provider is 'firestore'")

        from campus_market.adapters.store.firestore import FirestoreDocumentStore

        return FirestoreDocumentStore(config.store.firestore)

    raise ValueError(f"Unsupported store provider: {provider}")


async def create_service(config: MarketConfig) -> ChatService:
    """Build a ChatService with the configured store.

    Raises:
        ValueError: If the store configuration is invalid
    """
    store = create_store(config)
    log.info("chat_service_created", store_provider=config.store.provider)
    return ChatService(config, store)
