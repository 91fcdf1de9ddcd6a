"""Shared test fixtures for campus-market."""

from datetime import UTC, datetime, timedelta

import pytest

from campus_market.adapters.store.memory import InMemoryDocumentStore
from campus_market.config.schema import CollectionsConfig, MarketConfig
from campus_market.core.auth import AuthContext
from campus_market.core.chat_engine import ChatEngine
from campus_market.core.contact import ContactWorkflow
from campus_market.core.inbox import Inbox
from campus_market.models.listing import ListingSnapshot
from campus_market.models.user import AuthUser

DOMAIN = "edu.rtu.lv"


class TickingClock:
    """Deterministic server clock advancing one second per reading."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 3, 1, 9, 0, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        current = self.now
        self.now += timedelta(seconds=1)
        return current


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture
def store(clock: TickingClock) -> InMemoryDocumentStore:
    """In-memory store with a deterministic clock."""
    return InMemoryDocumentStore(clock=clock)


@pytest.fixture
def collections() -> CollectionsConfig:
    return CollectionsConfig()


@pytest.fixture
def config() -> MarketConfig:
    return MarketConfig()


@pytest.fixture
def owner() -> AuthUser:
    return AuthUser(
        uid="owner-1",
        email="liga.ozola@edu.rtu.lv",
        display_name="Liga Ozola",
        photo_url="https://photos.example/liga.png",
    )


@pytest.fixture
def buyer() -> AuthUser:
    return AuthUser(uid="buyer-1", email="janis.berzins@edu.rtu.lv", display_name="Janis Berzins")


@pytest.fixture
def stranger() -> AuthUser:
    return AuthUser(uid="stranger-1", email="peteris@edu.rtu.lv", display_name="Peteris")


@pytest.fixture
def owner_auth(owner: AuthUser) -> AuthContext:
    return AuthContext(owner, allowed_email_domain=DOMAIN)


@pytest.fixture
def buyer_auth(buyer: AuthUser) -> AuthContext:
    return AuthContext(buyer, allowed_email_domain=DOMAIN)


@pytest.fixture
def stranger_auth(stranger: AuthUser) -> AuthContext:
    return AuthContext(stranger, allowed_email_domain=DOMAIN)


@pytest.fixture
def listing(owner: AuthUser) -> ListingSnapshot:
    return ListingSnapshot(
        id="listing-42",
        owner_id=owner.uid,
        title="Calculus textbook, 3rd edition",
        owner_display_name="Liga Ozola",
        owner_photo_url=owner.photo_url,
    )


@pytest.fixture
def engine(store: InMemoryDocumentStore, collections: CollectionsConfig) -> ChatEngine:
    return ChatEngine(store, collections)


@pytest.fixture
def contact(store: InMemoryDocumentStore, collections: CollectionsConfig) -> ContactWorkflow:
    return ContactWorkflow(store, collections)


@pytest.fixture
def inbox(store: InMemoryDocumentStore, collections: CollectionsConfig) -> Inbox:
    return Inbox(store, collections)
