"""
Database helpers for the SQL document store.
"""

from premium_backend.db.database import create_db_engine, create_session_factory, init_db

__all__ = ["create_db_engine", "create_session_factory", "init_db"]
