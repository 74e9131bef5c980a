"""Credential store backends.

- base.py: ``CredentialStore`` interface (unique-key lookup, upsert, delete)
- memory.py: in-process backend
- sql.py: SQLAlchemy backend with a unique constraint per (kind, key)
"""
from __future__ import annotations

from .base import CredentialStore
from .memory import InMemoryCredentialStore
from .sql import SqlCredentialStore


def create_store(database_url: str = "") -> CredentialStore:
    """Build the store selected by ``database_url`` (empty means in-memory)."""
    if not database_url:
        return InMemoryCredentialStore()
    store = SqlCredentialStore(database_url)
    store.create_all()
    return store


__all__ = [
    "CredentialStore",
    "InMemoryCredentialStore",
    "SqlCredentialStore",
    "create_store",
]
