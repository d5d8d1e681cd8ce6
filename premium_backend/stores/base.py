"""
Abstract base class for document stores.

Defines the storage port every service talks to. Records are JSON-compatible
dicts addressed by ``(collection, key)`` and optionally tagged with an owner
id. Concrete stores keep documents in memory, in flat JSON files, or in a SQL
table.

Design Pattern: Strategy pattern for pluggable persistence backends
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional


Document = Dict[str, Any]

# Receives a private copy of the current document (None when absent) and
# returns the document to store, or None to leave the record untouched.
Mutator = Callable[[Optional[Document]], Optional[Document]]


# Collection names; also the JSON file stems for the file backend
GIFTS = "gifts"
SITE_WIDE_GIFT = "site_wide_gift"
NOTIFICATIONS = "notifications"
PERSISTENT_ANNOUNCEMENT = "persistent_announcement"
DEVELOPER_ACTIONS = "developer_actions"


class DocumentStore(ABC):
    """
    Abstract base class for document stores.

    Contract shared by every implementation:
        - Documents returned are copies; mutating them never changes the store.
        - ``list_all`` and ``list_by_owner`` return documents in insertion
          order. Overwriting a key keeps its original position.
        - ``cas_update`` is the only read-modify-write primitive. The mutator
          runs while the record is protected against concurrent writers; if
          the mutator raises, nothing is written and the exception propagates.
        - Failed writes raise PersistenceError.

    Methods:
        get(): Fetch one document
        put(): Insert or overwrite one document
        delete(): Remove one document
        list_all(): All documents of a collection
        list_by_owner(): Documents of a collection tagged with an owner id
        cas_update(): Atomic read-modify-write of one document
    """

    @abstractmethod
    def get(self, collection: str, key: str) -> Optional[Document]:
        """
        Fetch a document.

        Args:
            collection: Collection name
            key: Document key within the collection

        Returns:
            Copy of the document, or None when absent
        """
        pass

    @abstractmethod
    def put(
        self,
        collection: str,
        key: str,
        document: Document,
        owner_id: Optional[str] = None,
    ) -> None:
        """
        Insert or overwrite a document.

        Args:
            collection: Collection name
            key: Document key within the collection
            document: JSON-compatible dict
            owner_id: Optional owner tag used by list_by_owner()

        Raises:
            PersistenceError: If the write fails
        """
        pass

    @abstractmethod
    def delete(self, collection: str, key: str) -> bool:
        """
        Remove a document.

        Returns:
            True if a document was removed, False if it did not exist
        """
        pass

    @abstractmethod
    def list_all(self, collection: str) -> List[Document]:
        """Return every document of a collection in insertion order."""
        pass

    @abstractmethod
    def list_by_owner(self, collection: str, owner_id: str) -> List[Document]:
        """Return the documents of a collection tagged with ``owner_id``."""
        pass

    @abstractmethod
    def cas_update(
        self,
        collection: str,
        key: str,
        mutate: Mutator,
        owner_id: Optional[str] = None,
    ) -> Optional[Document]:
        """
        Atomically read, transform and write a single document.

        Args:
            collection: Collection name
            key: Document key within the collection
            mutate: Function applied to a copy of the current document
            owner_id: Owner tag applied when the document is written

        Returns:
            The stored document after the update (the unchanged current
            document when ``mutate`` returned None)

        Raises:
            PersistenceError: If the write fails or cannot be serialized
            Any exception raised by ``mutate`` (nothing is written)
        """
        pass

    def close(self) -> None:
        """Release backend resources. No-op by default."""
        pass
