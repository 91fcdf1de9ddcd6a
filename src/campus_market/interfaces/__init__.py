"""Protocol definitions for pluggable adapters."""

from .identity import IdentityProvider
from .store import DocumentStore, SnapshotCallback, Subscription

__all__ = ["DocumentStore", "IdentityProvider", "SnapshotCallback", "Subscription"]
