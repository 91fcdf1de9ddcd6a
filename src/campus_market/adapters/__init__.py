"""Concrete implementations of provider interfaces."""

from .store.firestore import FirestoreDocumentStore
from .store.memory import InMemoryDocumentStore

__all__ = [
    "FirestoreDocumentStore",
    "InMemoryDocumentStore",
]
