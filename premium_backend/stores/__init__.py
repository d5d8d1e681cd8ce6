"""
Document stores behind the DocumentStore port.

Stores:
- InMemoryDocumentStore: process-local dicts (tests, throwaway runs)
- JsonFileDocumentStore: one JSON file per collection under SB_DATA_DIR
- SqlDocumentStore: ``documents`` table via SQLAlchemy (SB_DB_URL)

Usage:
    >>> from premium_backend.stores import create_store
    >>> store = create_store(get_settings())
    >>> store.put("gifts", "123456789012345678", {"user_id": "...", "codes": []})
"""

from premium_backend.config.settings import AppSettings
from premium_backend.stores.base import (
    DEVELOPER_ACTIONS,
    GIFTS,
    NOTIFICATIONS,
    PERSISTENT_ANNOUNCEMENT,
    SITE_WIDE_GIFT,
    Document,
    DocumentStore,
    Mutator,
)
from premium_backend.stores.json_file_store import JsonFileDocumentStore
from premium_backend.stores.memory_store import InMemoryDocumentStore
from premium_backend.stores.sql_store import SqlDocumentStore


def create_store(settings: AppSettings) -> DocumentStore:
    """
    Build the document store selected by SB_STORAGE_BACKEND.

    Args:
        settings: Application settings

    Returns:
        Ready-to-use DocumentStore
    """
    if settings.storage_backend == "memory":
        return InMemoryDocumentStore()

    if settings.storage_backend == "sql":
        from premium_backend.db.database import create_db_engine, create_session_factory, init_db

        engine = create_db_engine(settings.database_url)
        init_db(engine)
        return SqlDocumentStore(create_session_factory(engine))

    return JsonFileDocumentStore(settings.data_dir)


__all__ = [
    "DEVELOPER_ACTIONS",
    "GIFTS",
    "NOTIFICATIONS",
    "PERSISTENT_ANNOUNCEMENT",
    "SITE_WIDE_GIFT",
    "Document",
    "DocumentStore",
    "Mutator",
    "InMemoryDocumentStore",
    "JsonFileDocumentStore",
    "SqlDocumentStore",
    "create_store",
]
