"""Credential store interface."""
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Optional, TypeVar

from ..domain import Entity

E = TypeVar("E", bound=Entity)


class CredentialStore(ABC):
    """Persistence for identities, roles, ACL filters, consumers, tokens and bindings.

    Records are addressed by their ``kind`` and ``unique_key()``. ``upsert``
    must be atomic with respect to the unique key: saving a record without an
    id whose unique key already exists updates the existing record in place
    instead of creating a duplicate.
    """

    @abstractmethod
    def find_by_unique_key(self, entity_type: type[E], key: str) -> Optional[E]:
        """Return the record with the given unique key, or None."""

    @abstractmethod
    def find_all(self, entity_type: type[E], **criteria: Any) -> list[E]:
        """Return records of a kind whose fields equal all given criteria.

        A criterion whose value is a list, tuple or set matches any member.
        """

    @abstractmethod
    def upsert(self, entity: E) -> E:
        """Insert or update a record; sets and returns ``entity`` with its id."""

    @abstractmethod
    def delete(self, entity: Entity) -> None:
        """Remove a record. Deleting a missing record is a no-op."""


def matches(entity: Entity, criteria: dict[str, Any]) -> bool:
    """Return True when every criterion matches the entity's attribute."""
    for name, expected in criteria.items():
        actual = getattr(entity, name)
        if isinstance(expected, (list, tuple, set, frozenset)):
            if actual not in expected:
                return False
        elif actual != expected:
            return False
    return True
