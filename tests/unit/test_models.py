"""Tests for data models."""

from dataclasses import FrozenInstanceError
from datetime import UTC, datetime

import pytest

from campus_market.models import (
    SERVER_TIMESTAMP,
    AuthUser,
    ChatThread,
    FieldFilter,
    FilterOp,
    ListingSnapshot,
    ListingStatus,
    Message,
    ThreadState,
    ThreadSummary,
    derive_thread_id,
    is_unread,
    resolve_display_name,
)
from campus_market.models.document import _ServerTimestamp


def make_thread(**overrides) -> ChatThread:
    fields = {
        "id": "t1",
        "participants": ("buyer-1", "owner-1"),
        "listing_id": "listing-42",
        "listing_title": "Calculus textbook",
        "participant_names": {"buyer-1": "Janis", "owner-1": "Liga"},
        "participant_photos": {"buyer-1": None, "owner-1": "https://photos.example/liga.png"},
    }
    fields.update(overrides)
    return ChatThread(**fields)


class TestDeriveThreadId:
    """Test deterministic thread ids."""

    def test_order_independent(self):
        assert derive_thread_id("a", "b", "l1") == derive_thread_id("b", "a", "l1")

    def test_depends_on_listing(self):
        assert derive_thread_id("a", "b", "l1") != derive_thread_id("a", "b", "l2")

    def test_depends_on_pair(self):
        assert derive_thread_id("a", "b", "l1") != derive_thread_id("a", "c", "l1")

    def test_separator_prevents_ambiguity(self):
        assert derive_thread_id("ab", "c", "l") != derive_thread_id("a", "bc", "l")

    def test_hex_sha256(self):
        thread_id = derive_thread_id("a", "b", "l1")
        assert len(thread_id) == 64
        int(thread_id, 16)


class TestIsUnread:
    """Test the unread rule."""

    @pytest.mark.parametrize(
        "sender,viewer,expected",
        [
            ("owner-1", "buyer-1", True),
            ("buyer-1", "buyer-1", False),
            ("", "buyer-1", False),
        ],
    )
    def test_rule(self, sender: str, viewer: str, expected: bool):
        assert is_unread(sender, viewer) is expected


class TestChatThread:
    """Test ChatThread."""

    def test_new_thread_is_empty(self):
        thread = make_thread()
        assert thread.state is ThreadState.EMPTY
        assert thread.last_message == ""
        assert thread.last_message_at is None

    def test_active_after_preview(self):
        thread = make_thread(last_message="hello", last_message_sender_id="buyer-1")
        assert thread.state is ThreadState.ACTIVE

    def test_frozen(self):
        thread = make_thread()
        with pytest.raises(FrozenInstanceError):
            thread.last_message = "changed"  # type: ignore[misc]

    def test_participant_helpers(self):
        thread = make_thread()
        assert thread.has_participant("owner-1")
        assert not thread.has_participant("stranger-1")
        assert thread.other_participant("buyer-1") == "owner-1"
        assert thread.other_participant("owner-1") == "buyer-1"
        assert thread.display_name_for("owner-1") == "Liga"
        assert thread.display_name_for("ghost") == "User"
        assert thread.photo_for("buyer-1") is None

    def test_has_pair_is_order_independent(self):
        thread = make_thread()
        assert thread.has_pair("owner-1", "buyer-1")
        assert not thread.has_pair("owner-1", "owner-1")
        assert not thread.has_pair("owner-1", "stranger-1")

    def test_self_thread_pair(self):
        thread = make_thread(participants=("owner-1", "owner-1"))
        assert thread.has_pair("owner-1", "owner-1")
        assert thread.other_participant("owner-1") == ""

    def test_document_round_trip_uses_stored_field_names(self):
        at = datetime(2026, 3, 1, 9, 0, tzinfo=UTC)
        thread = make_thread(last_message="hi", last_message_at=at, last_message_sender_id="buyer-1")

        data = thread.to_document()

        assert data["participants"] == ["buyer-1", "owner-1"]
        assert data["listingId"] == "listing-42"
        assert data["lastMessageAt"] == at
        assert "id" not in data
        assert ChatThread.from_document("t1", data) == thread

    def test_from_sparse_document(self):
        thread = ChatThread.from_document("t9", {"participants": ["a", "b"]})
        assert thread.participants == ("a", "b")
        assert thread.listing_title == ""
        assert thread.participant_names == {}
        assert thread.state is ThreadState.EMPTY


class TestThreadSummary:
    """Test the per-viewer projection."""

    def test_for_buyer(self):
        thread = make_thread(last_message="still available?", last_message_sender_id="owner-1")
        summary = ThreadSummary.for_viewer(thread, "buyer-1")
        assert summary.other_user_id == "owner-1"
        assert summary.other_user_name == "Liga"
        assert summary.other_user_photo == "https://photos.example/liga.png"
        assert summary.unread is True

    def test_own_last_message_is_read(self):
        thread = make_thread(last_message="hi", last_message_sender_id="buyer-1")
        assert ThreadSummary.for_viewer(thread, "buyer-1").unread is False


class TestAuthUser:
    """Test user name resolution."""

    def test_display_name_wins(self):
        user = AuthUser(uid="u1", email="anna@edu.rtu.lv", display_name="Anna")
        assert user.resolved_name == "Anna"

    def test_email_local_part(self):
        assert AuthUser(uid="u1", email="anna.liepa@edu.rtu.lv").resolved_name == "anna.liepa"

    def test_fallback(self):
        assert AuthUser(uid="u1").resolved_name == "User"
        assert resolve_display_name("", "@edu.rtu.lv") == "User"
        assert resolve_display_name(None, None, fallback="Anonymous") == "Anonymous"


class TestListingSnapshot:
    """Test listing snapshots."""

    def test_from_document(self):
        listing = ListingSnapshot.from_document(
            "listing-42",
            {
                "userId": "owner-1",
                "title": "Desk lamp",
                "userDisplayName": "Liga",
                "userPhotoURL": None,
                "price": 5,
            },
        )
        assert listing.owner_id == "owner-1"
        assert listing.title == "Desk lamp"
        assert listing.owner_display_name == "Liga"
        assert listing.owner_photo_url is None
        assert listing.status == ListingStatus.ACTIVE
        assert listing.is_active

    def test_owner_is_required(self):
        with pytest.raises(KeyError):
            ListingSnapshot.from_document("listing-42", {"title": "Desk lamp"})

    def test_stored_status(self):
        listing = ListingSnapshot.from_document(
            "listing-42", {"userId": "owner-1", "title": "Desk lamp", "status": "sold"}
        )
        assert listing.status == ListingStatus.SOLD
        assert not listing.is_active


class TestMessage:
    """Test Message."""

    def test_from_document(self):
        at = datetime(2026, 3, 1, 9, 0, tzinfo=UTC)
        message = Message.from_document(
            "m1", {"senderId": "u1", "senderName": "Anna", "text": "hi", "createdAt": at}
        )
        assert message == Message(id="m1", sender_id="u1", sender_name="Anna", text="hi", created_at=at)


class TestStoreValueTypes:
    """Test filters and the server timestamp sentinel."""

    def test_server_timestamp_is_singleton(self):
        assert _ServerTimestamp() is SERVER_TIMESTAMP
        assert repr(SERVER_TIMESTAMP) == "SERVER_TIMESTAMP"

    def test_equal_filter(self):
        clause = FieldFilter("listingId", FilterOp.EQUAL, "l1")
        assert clause.matches({"listingId": "l1"})
        assert not clause.matches({"listingId": "l2"})
        assert not clause.matches({})

    def test_array_contains_filter(self):
        clause = FieldFilter("participants", FilterOp.ARRAY_CONTAINS, "u1")
        assert clause.matches({"participants": ["u1", "u2"]})
        assert not clause.matches({"participants": ["u2"]})
        assert not clause.matches({"participants": "u1"})
