"""
Document record model for the SQL-backed store.

Stores every collection (gifts, site-wide gift, notifications, persistent
announcement, developer actions) in one table of JSON documents, addressed by
``(collection, key)``.
"""

from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, JSON, String, UniqueConstraint

from premium_backend.models import Base


class DocumentRecord(Base):
    """
    One JSON document of a collection.

    Attributes:
        collection: Collection name (gifts, notifications, ...)
        key: Document key within the collection (user id, notification id, ...)
        owner_id: Optional owner tag used for per-owner listing
        data: The document itself
        version: Incremented on every write; used for optimistic concurrency

    Ordering:
        The autoincrement primary key records insertion order, which list
        queries preserve.
    """

    __tablename__ = "documents"

    id = Column(Integer, primary_key=True, autoincrement=True)

    collection = Column(String(64), nullable=False, index=True)
    key = Column(String(128), nullable=False)
    owner_id = Column(String(64), nullable=True, index=True)

    data = Column(JSON, nullable=False)
    version = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("collection", "key", name="uq_documents_collection_key"),
    )

    def __repr__(self) -> str:
        return f"<DocumentRecord(collection='{self.collection}', key='{self.key}', version={self.version})>"
