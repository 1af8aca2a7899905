"""Blob Storage - concrete key-value stores behind the BlobStorage protocol.

Invariants:
    - put/get/delete raise PersistenceError on failure, never driver exceptions
    - get returns None for absent keys; delete of an absent key succeeds
    - SqlBlobStorage commits every put/delete (one durable write per call)

Design Decisions:
    - SQLite file by default: durable across visits, zero external services
    - Sync engine: the state store is single-threaded and synchronous
    - Tables created on construction (ADR: one table, no migration history)
"""

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, select, text
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from calmish.core.errors import PersistenceError
from calmish.db.base import Base
from calmish.models.stored_blob import StoredBlob

logger = logging.getLogger(__name__)


class MemoryBlobStorage:
    """Process-local dict store. Used by tests and embedders without a disk."""

    def __init__(self, initial: dict[str, str] | None = None):
        self.blobs: dict[str, str] = dict(initial or {})

    def put(self, key: str, blob: str) -> None:
        self.blobs[key] = blob

    def get(self, key: str) -> str | None:
        return self.blobs.get(key)

    def delete(self, key: str) -> None:
        self.blobs.pop(key, None)


class SqlBlobStorage:
    """Durable blob store on any SQLAlchemy URL (SQLite by default)."""

    def __init__(self, url: str = "sqlite:///calmish.db", echo: bool = False):
        self.engine = create_engine(url, echo=echo)
        self._session_factory = sessionmaker(self.engine, expire_on_commit=False)
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            logger.error(f"Blob storage schema setup failed: {e}")
            raise PersistenceError("Schema setup failed", "init")

    @contextmanager
    def _session(self, operation: str) -> Iterator[Session]:
        """Provide session with auto-rollback, mapping driver errors."""
        session = self._session_factory()
        try:
            yield session
        except IntegrityError as e:
            session.rollback()
            logger.error(f"Storage integrity error: {e}")
            raise PersistenceError("Integrity constraint violated", operation)
        except OperationalError as e:
            session.rollback()
            logger.error(f"Storage operational error: {e}")
            raise PersistenceError("Connection or operational error", operation)
        except DBAPIError as e:
            session.rollback()
            logger.error(f"Storage driver error: {e}")
            raise PersistenceError("Database driver error", operation)
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"SQLAlchemy error: {e}")
            raise PersistenceError("Database operation failed", operation)
        finally:
            session.close()

    def put(self, key: str, blob: str) -> None:
        with self._session("put") as db:
            row = db.get(StoredBlob, key)
            if row is None:
                db.add(StoredBlob(key=key, blob=blob))
            else:
                row.blob = blob
            db.commit()

    def get(self, key: str) -> str | None:
        with self._session("get") as db:
            return db.scalar(select(StoredBlob.blob).where(StoredBlob.key == key))

    def delete(self, key: str) -> None:
        with self._session("delete") as db:
            row = db.get(StoredBlob, key)
            if row is not None:
                db.delete(row)
                db.commit()

    def health_check(self) -> bool:
        try:
            with self._session("health") as db:
                db.execute(text("SELECT 1"))
            return True
        except PersistenceError as e:
            logger.error(f"Storage health check failed: {e}")
            return False

    def dispose(self) -> None:
        self.engine.dispose()
