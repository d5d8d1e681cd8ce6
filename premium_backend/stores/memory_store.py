"""
In-memory document store.

Keeps every collection in a plain dict guarded by a single lock. Used by the
test suite and for throwaway local runs (SB_STORAGE_BACKEND=memory); nothing
survives a restart.
"""

import copy
import threading
from typing import Dict, List, Optional, Tuple

from premium_backend.stores.base import Document, DocumentStore, Mutator


class InMemoryDocumentStore(DocumentStore):
    """
    Dict-backed document store.

    Thread Safety:
        All operations are protected by a threading.Lock so that concurrent
        FastAPI request handlers observe cas_update() as atomic.
    """

    def __init__(self):
        self._collections: Dict[str, Dict[str, Tuple[Optional[str], Document]]] = {}
        self._lock = threading.Lock()

    def _collection(self, name: str) -> Dict[str, Tuple[Optional[str], Document]]:
        return self._collections.setdefault(name, {})

    def get(self, collection: str, key: str) -> Optional[Document]:
        with self._lock:
            entry = self._collection(collection).get(key)
            return copy.deepcopy(entry[1]) if entry else None

    def put(
        self,
        collection: str,
        key: str,
        document: Document,
        owner_id: Optional[str] = None,
    ) -> None:
        with self._lock:
            self._collection(collection)[key] = (owner_id, copy.deepcopy(document))

    def delete(self, collection: str, key: str) -> bool:
        with self._lock:
            return self._collection(collection).pop(key, None) is not None

    def list_all(self, collection: str) -> List[Document]:
        with self._lock:
            return [copy.deepcopy(doc) for _, doc in self._collection(collection).values()]

    def list_by_owner(self, collection: str, owner_id: str) -> List[Document]:
        with self._lock:
            return [
                copy.deepcopy(doc)
                for owner, doc in self._collection(collection).values()
                if owner == owner_id
            ]

    def cas_update(
        self,
        collection: str,
        key: str,
        mutate: Mutator,
        owner_id: Optional[str] = None,
    ) -> Optional[Document]:
        with self._lock:
            records = self._collection(collection)
            entry = records.get(key)
            current = copy.deepcopy(entry[1]) if entry else None

            updated = mutate(copy.deepcopy(current))
            if updated is None:
                return current

            owner = owner_id if owner_id is not None else (entry[0] if entry else None)
            records[key] = (owner, copy.deepcopy(updated))
            return copy.deepcopy(updated)
