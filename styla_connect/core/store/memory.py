"""In-process credential store (default backend, used by tests and the CLI)."""
from __future__ import annotations
import itertools
import threading
from typing import Any, Optional

from ..domain import Entity
from ..exceptions import DuplicateEntityError
from .base import CredentialStore, E, matches


class InMemoryCredentialStore(CredentialStore):
    """Dictionary-backed store with a unique index per kind.

    Records are copied on the way in and out so callers never share
    mutable state with the store.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._records: dict[str, dict[int, Entity]] = {}
        self._index: dict[str, dict[str, int]] = {}
        self._ids: dict[str, itertools.count] = {}
        self.writes = 0

    def find_by_unique_key(self, entity_type: type[E], key: str) -> Optional[E]:
        with self._lock:
            record_id = self._index.get(entity_type.kind, {}).get(key)
            if record_id is None:
                return None
            return self._records[entity_type.kind][record_id].copy()

    def find_all(self, entity_type: type[E], **criteria: Any) -> list[E]:
        with self._lock:
            records = self._records.get(entity_type.kind, {})
            return [
                record.copy()
                for _, record in sorted(records.items())
                if matches(record, criteria)
            ]

    def upsert(self, entity: E) -> E:
        kind = entity.kind
        key = entity.unique_key()
        with self._lock:
            records = self._records.setdefault(kind, {})
            index = self._index.setdefault(kind, {})
            existing_id = index.get(key)

            if entity.id is None:
                entity.id = existing_id if existing_id is not None else self._next_id(kind)
            elif existing_id is not None and existing_id != entity.id:
                raise DuplicateEntityError(f"{kind} with key '{key}' already exists (id={existing_id})")

            previous = records.get(entity.id)
            if previous is not None and previous.unique_key() != key:
                index.pop(previous.unique_key(), None)

            records[entity.id] = entity.copy()
            index[key] = entity.id
            self.writes += 1
            return entity

    def delete(self, entity: Entity) -> None:
        with self._lock:
            records = self._records.get(entity.kind, {})
            stored = records.pop(entity.id, None) if entity.id is not None else None
            if stored is None:
                return
            self._index[entity.kind].pop(stored.unique_key(), None)
            self.writes += 1

    def _next_id(self, kind: str) -> int:
        counter = self._ids.setdefault(kind, itertools.count(1))
        return next(counter)
