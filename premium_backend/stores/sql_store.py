"""
SQL-backed document store.

Persists documents in the ``documents`` table through SQLAlchemy. Every
write bumps a ``version`` column; cas_update() only commits when the version
it read is still current and retries otherwise, so concurrent workers sharing
one database cannot lose each other's updates.
"""

import copy
from datetime import datetime
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from premium_backend.models.document import DocumentRecord
from premium_backend.services.exceptions import PersistenceError
from premium_backend.stores.base import Document, DocumentStore, Mutator
from premium_backend.utils.logging_config import get_logger


logger = get_logger("stores")

DEFAULT_MAX_RETRIES = 10


class SqlDocumentStore(DocumentStore):
    """
    Document store on top of a SQLAlchemy session factory.

    Args:
        session_factory: sessionmaker bound to an engine whose schema was
            created with init_db()
        max_retries: Attempts before cas_update() gives up under contention
    """

    def __init__(self, session_factory: sessionmaker, max_retries: int = DEFAULT_MAX_RETRIES):
        self._session_factory = session_factory
        self.max_retries = max_retries

    @staticmethod
    def _find(session: Session, collection: str, key: str) -> Optional[DocumentRecord]:
        return (
            session.query(DocumentRecord)
            .filter(DocumentRecord.collection == collection, DocumentRecord.key == key)
            .first()
        )

    def get(self, collection: str, key: str) -> Optional[Document]:
        try:
            with self._session_factory() as session:
                record = self._find(session, collection, key)
                return copy.deepcopy(record.data) if record else None
        except SQLAlchemyError as e:
            logger.error(
                "Failed to read document",
                extra={"collection": collection, "key": key, "error": str(e)},
            )
            return None

    def put(
        self,
        collection: str,
        key: str,
        document: Document,
        owner_id: Optional[str] = None,
    ) -> None:
        def _replace(_current: Optional[Document]) -> Document:
            return document

        self._write(collection, key, _replace, owner_id, replace_owner=True)

    def delete(self, collection: str, key: str) -> bool:
        try:
            with self._session_factory() as session:
                deleted = (
                    session.query(DocumentRecord)
                    .filter(DocumentRecord.collection == collection, DocumentRecord.key == key)
                    .delete(synchronize_session=False)
                )
                session.commit()
                return deleted > 0
        except SQLAlchemyError as e:
            logger.error(
                "Failed to delete document",
                extra={"collection": collection, "key": key, "error": str(e)},
            )
            raise PersistenceError(f"Failed to delete {collection}/{key}: {e}") from e

    def list_all(self, collection: str) -> List[Document]:
        try:
            with self._session_factory() as session:
                records = (
                    session.query(DocumentRecord)
                    .filter(DocumentRecord.collection == collection)
                    .order_by(DocumentRecord.id)
                    .all()
                )
                return [copy.deepcopy(r.data) for r in records]
        except SQLAlchemyError as e:
            logger.error(
                "Failed to list documents",
                extra={"collection": collection, "error": str(e)},
            )
            return []

    def list_by_owner(self, collection: str, owner_id: str) -> List[Document]:
        try:
            with self._session_factory() as session:
                records = (
                    session.query(DocumentRecord)
                    .filter(
                        DocumentRecord.collection == collection,
                        DocumentRecord.owner_id == owner_id,
                    )
                    .order_by(DocumentRecord.id)
                    .all()
                )
                return [copy.deepcopy(r.data) for r in records]
        except SQLAlchemyError as e:
            logger.error(
                "Failed to list documents by owner",
                extra={"collection": collection, "owner_id": owner_id, "error": str(e)},
            )
            return []

    def cas_update(
        self,
        collection: str,
        key: str,
        mutate: Mutator,
        owner_id: Optional[str] = None,
    ) -> Optional[Document]:
        return self._write(collection, key, mutate, owner_id, replace_owner=owner_id is not None)

    def _write(
        self,
        collection: str,
        key: str,
        mutate: Mutator,
        owner_id: Optional[str],
        replace_owner: bool,
    ) -> Optional[Document]:
        for attempt in range(1, self.max_retries + 1):
            try:
                with self._session_factory() as session:
                    record = self._find(session, collection, key)
                    current = copy.deepcopy(record.data) if record else None

                    updated = mutate(copy.deepcopy(current))
                    if updated is None:
                        return current

                    if record is None:
                        session.add(DocumentRecord(
                            collection=collection,
                            key=key,
                            owner_id=owner_id,
                            data=copy.deepcopy(updated),
                            version=1,
                        ))
                        session.commit()
                        return updated

                    values = {
                        "data": copy.deepcopy(updated),
                        "version": record.version + 1,
                        "updated_at": datetime.utcnow(),
                    }
                    if replace_owner:
                        values["owner_id"] = owner_id

                    result = session.execute(
                        update(DocumentRecord)
                        .where(
                            DocumentRecord.id == record.id,
                            DocumentRecord.version == record.version,
                        )
                        .values(**values)
                    )
                    if result.rowcount == 1:
                        session.commit()
                        return updated
                    session.rollback()
            except IntegrityError:
                # Another writer inserted the same (collection, key) first
                pass
            except SQLAlchemyError as e:
                logger.error(
                    "Failed to write document",
                    extra={"collection": collection, "key": key, "error": str(e)},
                )
                raise PersistenceError(f"Failed to write {collection}/{key}: {e}") from e

            logger.debug(
                "Document write conflict, retrying",
                extra={"collection": collection, "key": key, "attempt": attempt},
            )

        raise PersistenceError(
            f"Gave up writing {collection}/{key} after {self.max_retries} conflicting attempts"
        )

    def close(self) -> None:
        bind = self._session_factory.kw.get("bind")
        if bind is not None:
            bind.dispose()
