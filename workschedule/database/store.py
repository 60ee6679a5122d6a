# workschedule/database/store.py
"""
Persistent store: a versioned, transactional key-value store with four
named collections backed by SQLite.

Every logical write runs in exactly one transaction. A failure anywhere in
the transaction rolls the collection back to its previous state.
"""

import enum
import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any, TypeVar

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from workschedule.core.config import SCHEMA_VERSION
from workschedule.database.database import (
    COLLECTION_MODELS,
    DATABASE_URL,
    Collection,
    create_store_engine,
)
from workschedule.database.migrations import get_schema_version, upgrade

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StoreError(Exception):
    """Base error for the persistent store."""

    pass


class StoreUnavailable(StoreError):
    """The store cannot be opened. Nothing can be persisted in this session."""

    pass


class PersistenceError(StoreError):
    """A read, write or transaction failed. Stored state is unchanged."""

    pass


class TransactionMode(str, enum.Enum):
    READONLY = "readonly"
    READWRITE = "readwrite"


class CollectionTransaction:
    """
    Operations on one collection inside an open transaction.

    Values are the payload of a record: the shift id list for ``schedule``,
    the flag for ``specialDates`` and the stored value for ``settings`` and
    ``metadata``. Records are dicts with the key and the value field, for
    example ``{"date": "2024-01-15", "shifts": ["s1"]}``.
    """

    def __init__(self, session: Session, collection: Collection, mode: TransactionMode):
        self.session = session
        self.collection = collection
        self.mode = mode
        self.model = COLLECTION_MODELS[collection]

    def _check_writable(self) -> None:
        if self.mode is not TransactionMode.READWRITE:
            raise PersistenceError(f"Cannot write to {self.collection.value} in a read-only transaction")

    def _record(self, key: str, value: Any) -> dict[str, Any]:
        return {self.model.key_field: key, self.model.value_field: value}

    def get(self, key: str) -> Any | None:
        row = self.session.get(self.model, key)
        if row is None:
            return None
        return row.to_record()[self.model.value_field]

    def get_all(self) -> list[dict[str, Any]]:
        key_column = getattr(self.model, self.model.key_field)
        rows = self.session.query(self.model).order_by(key_column).all()
        return [row.to_record() for row in rows]

    def count(self) -> int:
        return self.session.query(self.model).count()

    def put(self, key: str, value: Any) -> None:
        """Insert or replace the record for ``key``."""
        self._check_writable()
        self.session.merge(self.model.from_record(self._record(key, value)))
        self.session.flush()

    def add(self, key: str, value: Any) -> None:
        """Insert a new record. Fails if ``key`` already exists."""
        self._check_writable()
        self.session.add(self.model.from_record(self._record(key, value)))
        self.session.flush()

    def delete(self, key: str) -> None:
        self._check_writable()
        row = self.session.get(self.model, key)
        if row is not None:
            self.session.delete(row)
            self.session.flush()

    def clear(self) -> int:
        """Delete every record of the collection. Returns the number removed."""
        self._check_writable()
        removed = self.session.query(self.model).delete()
        self.session.flush()
        return removed


class PersistentStore:
    """Transactional key-value store over a SQLite database."""

    def __init__(self, database_url: str = DATABASE_URL, engine: Engine | None = None):
        self.database_url = database_url
        self._engine = engine
        self._session_factory: sessionmaker | None = None

    @classmethod
    def in_memory(cls) -> "PersistentStore":
        """Store that lives only as long as the process."""
        return cls("sqlite://")

    @property
    def is_initialized(self) -> bool:
        return self._session_factory is not None

    @property
    def is_persistent(self) -> bool:
        return self.database_url not in ("sqlite://", "sqlite:///:memory:")

    def initialize(self) -> None:
        """
        Open the store and bring its schema to SCHEMA_VERSION.

        Safe to call repeatedly. Existing collections and their records are
        never dropped.

        Raises:
            StoreUnavailable: If the database cannot be opened or was written
                by a newer schema version
        """
        if self.is_initialized:
            return

        try:
            if self._engine is None:
                self._engine = create_store_engine(self.database_url)
            with self._engine.begin() as conn:
                current = get_schema_version(conn)
                if current > SCHEMA_VERSION:
                    raise StoreUnavailable(
                        f"Store schema version {current} is newer than supported version {SCHEMA_VERSION}"
                    )
                applied = upgrade(conn, current, SCHEMA_VERSION)
        except SQLAlchemyError as e:
            logger.exception("Failed to open store %s", self.database_url)
            raise StoreUnavailable(f"Could not open store {self.database_url}: {e}") from e

        self._session_factory = sessionmaker(bind=self._engine, autoflush=False, expire_on_commit=False)
        logger.info(
            "Store ready at %s (schema version %d, upgraded: %s)",
            self.database_url,
            SCHEMA_VERSION,
            applied or "none",
        )

    def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
        self._engine = None
        self._session_factory = None

    @contextmanager
    def transaction(
        self,
        collection: Collection | str,
        mode: TransactionMode | str = TransactionMode.READWRITE,
    ) -> Iterator[CollectionTransaction]:
        """
        Open a transaction on one collection.

        Commits when the block finishes, rolls back when it raises.

        Raises:
            StoreUnavailable: If the store has to be opened and cannot be
            PersistenceError: If the database rejects any step or the commit
        """
        collection = Collection(collection)
        mode = TransactionMode(mode)
        self.initialize()

        session = self._session_factory()
        tx = CollectionTransaction(session, collection, mode)
        try:
            yield tx
            if mode is TransactionMode.READWRITE:
                session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.exception("Transaction on %s failed, rolled back", collection.value)
            raise PersistenceError(f"Transaction on {collection.value} failed: {e}") from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def run_transaction(
        self,
        collection: Collection | str,
        mode: TransactionMode | str,
        body: Callable[[CollectionTransaction], T],
    ) -> T:
        """Run ``body`` inside one transaction and return its result."""
        with self.transaction(collection, mode) as tx:
            return body(tx)

    # === Single-step operations ===

    def get(self, collection: Collection | str, key: str) -> Any | None:
        with self.transaction(collection, TransactionMode.READONLY) as tx:
            return tx.get(key)

    def put(self, collection: Collection | str, key: str, value: Any) -> None:
        with self.transaction(collection, TransactionMode.READWRITE) as tx:
            tx.put(key, value)

    def get_all(self, collection: Collection | str) -> list[dict[str, Any]]:
        with self.transaction(collection, TransactionMode.READONLY) as tx:
            return tx.get_all()

    def clear(self, collection: Collection | str) -> None:
        with self.transaction(collection, TransactionMode.READWRITE) as tx:
            removed = tx.clear()
        logger.debug("Cleared %d records from %s", removed, Collection(collection).value)
