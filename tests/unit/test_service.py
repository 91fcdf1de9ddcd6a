"""Tests for the service facade, factory and command line entry point."""

from pathlib import Path
from unittest.mock import patch

import pytest

from campus_market.__main__ import main, parse_args
from campus_market.adapters.store.memory import InMemoryDocumentStore
from campus_market.config.schema import FirestoreConfig, MarketConfig, StoreConfig
from campus_market.core.composer import MessageComposer
from campus_market.core.service import ChatService, create_service, create_store
from campus_market.models.user import AuthUser
from campus_market.utils.async_helpers import AccessDenied, NotFound


class TestCreateStore:
    """Test store adapter selection."""

    def test_memory(self, config: MarketConfig):
        assert isinstance(create_store(config), InMemoryDocumentStore)

    def test_firestore(self):
        config = MarketConfig(
            store=StoreConfig(
                provider="firestore",
                firestore=FirestoreConfig(project_id="campus-market-test"),
            )
        )
        with patch("campus_market.adapters.store.firestore.FirestoreDocumentStore") as adapter:
            assert create_store(config) is adapter.return_value
        adapter.assert_called_once_with(config.store.firestore)

    def test_firestore_without_section(self):
        config = MarketConfig(store=StoreConfig(provider="firestore"))
        with pytest.raises(ValueError, match="Firestore configuration required"):
            create_store(config)


class TestChatService:
    """Test the facade end to end on the in-memory store."""

    @pytest.fixture
    async def service(self, config: MarketConfig) -> ChatService:
        return await create_service(config)

    async def test_contact_send_and_inbox(
        self, service: ChatService, owner: AuthUser, buyer: AuthUser
    ):
        await service.store.create(
            "listings",
            {
                "userId": owner.uid,
                "title": "Bike lock",
                "userDisplayName": "Liga Ozola",
                "userPhotoURL": None,
            },
            document_id="listing-7",
        )
        buyer_auth = service.new_auth_context(buyer)
        owner_auth = service.new_auth_context(owner)

        listing = await service.load_listing("listing-7")
        thread_id = await service.contact.get_or_create_thread(buyer_auth, listing)

        composer = service.composer(buyer_auth, thread_id)
        assert isinstance(composer, MessageComposer)
        composer.draft = "Still for sale?"
        await composer.submit()

        [summary] = await service.inbox.list_threads(owner_auth)
        assert summary.thread_id == thread_id
        assert summary.listing_title == "Bike lock"
        assert summary.last_message == "Still for sale?"
        assert summary.unread is True

    async def test_auth_context_uses_configured_domain(self, service: ChatService):
        auth = service.new_auth_context()
        assert not auth.is_authenticated
        with pytest.raises(AccessDenied):
            auth.sign_in(AuthUser(uid="x", email="x@example.com"))

    async def test_load_missing_listing(self, service: ChatService):
        with pytest.raises(NotFound, match="Listing nope not found"):
            await service.load_listing("nope")


class TestCommandLine:
    """Test the campus-market command."""

    def test_parse_args_defaults(self):
        args = parse_args([])
        assert args.config == Path("config/config.yaml")
        assert args.debug is False
        assert args.dry_run is False
        assert args.format == "console"

    def test_dry_run(self, tmp_path: Path):
        path = tmp_path / "config.yaml"
        path.write_text("logging:\n  format: console\n")
        assert main(["-c", str(path), "--dry-run"]) == 0

    def test_health_check_on_memory_store(self, tmp_path: Path):
        path = tmp_path / "config.yaml"
        path.write_text("store:\n  provider: memory\n")
        health_file = tmp_path / "health.json"

        assert main(["-c", str(path), "--health-file", str(health_file)]) == 0
        assert health_file.exists()

    def test_missing_config(self, tmp_path: Path):
        assert main(["-c", str(tmp_path / "missing.yaml")]) == 1

    def test_invalid_config(self, tmp_path: Path):
        path = tmp_path / "config.yaml"
        path.write_text("store:\n  provider: firestore\n")
        assert main(["-c", str(path)]) == 1
