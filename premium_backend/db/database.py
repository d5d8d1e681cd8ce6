"""
Database connection and session management.

This module provides SQLAlchemy engine configuration for the SQL document
store (SB_STORAGE_BACKEND=sql). SQLite and PostgreSQL URLs are supported.
"""

from pathlib import Path

from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker


# Load environment variables from a .env file at the project root
env_path = Path(__file__).parent.parent.parent / '.env'
if env_path.exists():
    load_dotenv(dotenv_path=env_path)


def create_db_engine(database_url: str) -> Engine:
    """
    Create an engine with parameters suited to the database dialect.

    Args:
        database_url: SQLAlchemy URL (sqlite:///... or postgresql://...)

    Returns:
        Configured Engine
    """
    if database_url.startswith("sqlite"):
        # SQLite doesn't support pool_size, max_overflow, or pool_recycle
        if ":memory:" in database_url or database_url == "sqlite://":
            from sqlalchemy.pool import StaticPool
            return create_engine(
                database_url,
                connect_args={'check_same_thread': False},
                poolclass=StaticPool,
                echo=False,
                future=True
            )
        return create_engine(
            database_url,
            connect_args={'check_same_thread': False},
            echo=False,
            future=True
        )

    return create_engine(
        database_url,
        pool_size=10,
        max_overflow=5,
        pool_pre_ping=True,    # Verify connections before checkout
        pool_recycle=3600,     # Recycle connections after 1 hour
        echo=False,
        future=True
    )


def create_session_factory(engine: Engine) -> sessionmaker:
    """Session factory bound to ``engine`` (SQLAlchemy 2.0 style)."""
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=engine,
        future=True
    )


def init_db(engine: Engine) -> None:
    """
    Create the documents table if it does not exist.

    The schema is a single table, created on startup.
    """
    from premium_backend.models import Base
    Base.metadata.create_all(bind=engine)
