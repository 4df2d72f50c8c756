"""Test fixtures for the row store."""

from .store import InMemoryRowStore

__all__ = [
    "InMemoryRowStore",
]
