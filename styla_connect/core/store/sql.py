"""SQLAlchemy-backed credential store.

All record kinds share one table; the ``(kind, unique_key)`` unique
constraint makes concurrent double-submissions fail instead of creating
duplicate rows.
"""
from __future__ import annotations
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Generator, Optional

from sqlalchemy import JSON, Column, DateTime, Integer, String, UniqueConstraint, create_engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from ..domain import Entity
from ..exceptions import DuplicateEntityError, StoreError
from .base import CredentialStore, E, matches

Base = declarative_base()


class EntityRecord(Base):
    """Persistence for any :class:`Entity`."""

    __tablename__ = "connector_entity"
    __table_args__ = (
        UniqueConstraint("kind", "unique_key", name="uq_connector_entity_kind_key"),
    )

    record_id = Column(Integer, primary_key=True, autoincrement=True)
    kind = Column(String(64), nullable=False, index=True)
    unique_key = Column(String(255), nullable=False)
    payload = Column(JSON, nullable=False)
    created = Column(DateTime, default=datetime.now)
    updated = Column(DateTime, default=datetime.now, onupdate=datetime.now)


class SqlCredentialStore(CredentialStore):
    """Store records in any database SQLAlchemy can reach.

    Usage:
        store = SqlCredentialStore("sqlite:///connector.db")
        store.create_all()
    """

    def __init__(self, database_url: str, **engine_options: Any):
        self.engine = create_engine(database_url, **engine_options)
        self._session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)

    def create_all(self) -> None:
        """Create all tables in the database."""
        Base.metadata.create_all(self.engine)

    def drop_all(self) -> None:
        """Drop all tables in the database."""
        Base.metadata.drop_all(self.engine)

    @contextmanager
    def transaction(self) -> Generator[Session, None, None]:
        """Context manager for a session that commits on success."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except IntegrityError as exc:
            session.rollback()
            raise DuplicateEntityError(str(exc.orig)) from exc
        except SQLAlchemyError as exc:
            session.rollback()
            raise StoreError(str(exc)) from exc
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def find_by_unique_key(self, entity_type: type[E], key: str) -> Optional[E]:
        with self.transaction() as session:
            row = (
                session.query(EntityRecord)
                .filter_by(kind=entity_type.kind, unique_key=key)
                .first()
            )
            return _to_entity(entity_type, row) if row is not None else None

    def find_all(self, entity_type: type[E], **criteria: Any) -> list[E]:
        with self.transaction() as session:
            rows = (
                session.query(EntityRecord)
                .filter_by(kind=entity_type.kind)
                .order_by(EntityRecord.record_id)
                .all()
            )
            entities = [_to_entity(entity_type, row) for row in rows]
        return [entity for entity in entities if matches(entity, criteria)]

    def upsert(self, entity: E) -> E:
        key = entity.unique_key()
        payload = entity.to_record()
        payload.pop("id", None)

        with self.transaction() as session:
            existing = (
                session.query(EntityRecord)
                .filter_by(kind=entity.kind, unique_key=key)
                .first()
            )
            if entity.id is None:
                row = existing
            else:
                if existing is not None and existing.record_id != entity.id:
                    raise DuplicateEntityError(
                        f"{entity.kind} with key '{key}' already exists (id={existing.record_id})"
                    )
                row = session.get(EntityRecord, entity.id)
                if row is not None and row.kind != entity.kind:
                    raise StoreError(
                        f"Record id={entity.id} belongs to {row.kind}, not {entity.kind}"
                    )

            if row is None:
                row = EntityRecord(kind=entity.kind, record_id=entity.id)
                session.add(row)
            row.unique_key = key
            row.payload = payload
            session.flush()
            entity.id = row.record_id
        return entity

    def delete(self, entity: Entity) -> None:
        if entity.id is None:
            return
        with self.transaction() as session:
            row = session.get(EntityRecord, entity.id)
            if row is not None and row.kind == entity.kind:
                session.delete(row)


def _to_entity(entity_type: type[E], row: EntityRecord) -> E:
    return entity_type.from_record({**row.payload, "id": row.record_id})
