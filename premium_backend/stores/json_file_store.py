"""
Flat JSON file document store.

Each collection lives in ``<data_dir>/<collection>.json``
(gifts.json, notifications.json, site_wide_gift.json,
persistent_announcement.json, developer_actions.json) as one JSON object::

    {"<key>": {"owner_id": "<owner or null>", "data": {...document...}}}

Writes go to a temporary file in the same directory and are moved into place
with os.replace(), so a crash never leaves a half-written collection behind.
"""

import copy
import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from premium_backend.services.exceptions import PersistenceError
from premium_backend.stores.base import Document, DocumentStore, Mutator
from premium_backend.utils.logging_config import get_logger


logger = get_logger("stores")


class JsonFileDocumentStore(DocumentStore):
    """
    Document store persisted as one JSON file per collection.

    Read failures (unreadable or corrupt file) are logged and treated as an
    empty collection. Write paths re-read the file strictly and raise
    PersistenceError instead, so a corrupt file is never silently replaced.

    Thread Safety:
        A single re-entrant lock serializes every read-modify-write within the
        process. Running several worker processes against one data directory
        is not supported.
    """

    def __init__(self, data_dir: Union[str, Path]):
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()

    def _path(self, collection: str) -> Path:
        return self.data_dir / f"{collection}.json"

    def _load(self, collection: str, strict: bool = False) -> Dict[str, Dict[str, Any]]:
        path = self._path(collection)
        if not path.exists():
            return {}
        try:
            with path.open("r", encoding="utf-8") as fh:
                content = json.load(fh)
            if not isinstance(content, dict):
                raise ValueError("top-level JSON value is not an object")
            return content
        except (OSError, ValueError) as e:
            logger.error(
                "Failed to read collection file",
                extra={"collection": collection, "path": str(path), "error": str(e)},
            )
            if strict:
                raise PersistenceError(
                    f"Collection '{collection}' is unreadable: {e}"
                ) from e
            return {}

    def _save(self, collection: str, records: Dict[str, Dict[str, Any]]) -> None:
        path = self._path(collection)
        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{collection}.", suffix=".tmp", dir=str(self.data_dir)
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(records, fh, indent=2)
                    fh.flush()
                    os.fsync(fh.fileno())
                os.replace(tmp_name, path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except (OSError, TypeError, ValueError) as e:
            logger.error(
                "Failed to write collection file",
                extra={"collection": collection, "path": str(path), "error": str(e)},
            )
            raise PersistenceError(f"Failed to write collection '{collection}': {e}") from e

    def get(self, collection: str, key: str) -> Optional[Document]:
        with self._lock:
            entry = self._load(collection).get(key)
            return copy.deepcopy(entry["data"]) if entry else None

    def put(
        self,
        collection: str,
        key: str,
        document: Document,
        owner_id: Optional[str] = None,
    ) -> None:
        with self._lock:
            records = self._load(collection, strict=True)
            records[key] = {"owner_id": owner_id, "data": copy.deepcopy(document)}
            self._save(collection, records)

    def delete(self, collection: str, key: str) -> bool:
        with self._lock:
            records = self._load(collection, strict=True)
            if key not in records:
                return False
            del records[key]
            self._save(collection, records)
            return True

    def list_all(self, collection: str) -> List[Document]:
        with self._lock:
            return [copy.deepcopy(entry["data"]) for entry in self._load(collection).values()]

    def list_by_owner(self, collection: str, owner_id: str) -> List[Document]:
        with self._lock:
            return [
                copy.deepcopy(entry["data"])
                for entry in self._load(collection).values()
                if entry.get("owner_id") == owner_id
            ]

    def cas_update(
        self,
        collection: str,
        key: str,
        mutate: Mutator,
        owner_id: Optional[str] = None,
    ) -> Optional[Document]:
        with self._lock:
            records = self._load(collection, strict=True)
            entry = records.get(key)
            current = copy.deepcopy(entry["data"]) if entry else None

            updated = mutate(copy.deepcopy(current))
            if updated is None:
                return current

            owner = owner_id if owner_id is not None else (entry or {}).get("owner_id")
            records[key] = {"owner_id": owner, "data": copy.deepcopy(updated)}
            self._save(collection, records)
            return copy.deepcopy(updated)
