"""
Pytest configuration and fixtures for premium backend tests.

Provides shared fixtures for:
- Document stores (memory, JSON file, SQLite)
- A controllable clock
- Admin gate and services wired to a shared store
- FastAPI TestClient with dependency overrides
"""

import os
from datetime import datetime, timedelta

import pytest

# Set test environment variables before importing app modules
os.environ["SB_STORAGE_BACKEND"] = "memory"
os.environ["SB_RATE_LIMIT_ENABLED"] = "false"
os.environ["SB_DEVELOPER_ID"] = "1362553254117904496"
os.environ.pop("SB_ADMIN_IDS", None)
os.environ.pop("SB_COMPANION_BOT_URL", None)
os.environ.pop("SB_WEBHOOK_URL", None)

from premium_backend.db.database import create_db_engine, create_session_factory, init_db
from premium_backend.services.admin_gate import SingleDeveloperGate
from premium_backend.services.audit_service import AuditService
from premium_backend.services.gift_service import GiftService
from premium_backend.services.key_issuer import KeyIssuer
from premium_backend.services.notification_service import NotificationService
from premium_backend.stores.json_file_store import JsonFileDocumentStore
from premium_backend.stores.memory_store import InMemoryDocumentStore
from premium_backend.stores.sql_store import SqlDocumentStore


DEVELOPER_ID = "1362553254117904496"
USER_U = "111111111111111111"
USER_V = "222222222222222222"
START_TIME = datetime(2025, 3, 1, 12, 0, 0)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = START_TIME):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


# ============================================================================
# Store Fixtures
# ============================================================================


@pytest.fixture
def memory_store():
    """Fresh in-memory document store."""
    return InMemoryDocumentStore()


@pytest.fixture
def file_store(tmp_path):
    """JSON-file document store rooted in a temporary directory."""
    return JsonFileDocumentStore(tmp_path / "data")


@pytest.fixture
def sql_store():
    """SQL document store on an in-memory SQLite database."""
    engine = create_db_engine("sqlite:///:memory:")
    init_db(engine)
    store = SqlDocumentStore(create_session_factory(engine))
    yield store
    store.close()


@pytest.fixture(params=["memory", "file", "sql"])
def any_store(request, tmp_path):
    """Each document store implementation in turn."""
    if request.param == "memory":
        yield InMemoryDocumentStore()
    elif request.param == "file":
        yield JsonFileDocumentStore(tmp_path / "data")
    else:
        engine = create_db_engine("sqlite:///:memory:")
        init_db(engine)
        store = SqlDocumentStore(create_session_factory(engine))
        yield store
        store.close()


@pytest.fixture(params=["memory", "file", "sql"])
def threaded_store(request, tmp_path):
    """
    Each document store implementation, safe to share between threads.

    The SQL variant uses a SQLite file so every thread gets its own connection.
    """
    if request.param == "memory":
        yield InMemoryDocumentStore()
    elif request.param == "file":
        yield JsonFileDocumentStore(tmp_path / "data")
    else:
        engine = create_db_engine(f"sqlite:///{tmp_path / 'premium.db'}")
        init_db(engine)
        store = SqlDocumentStore(create_session_factory(engine))
        yield store
        store.close()


# ============================================================================
# Service Fixtures
# ============================================================================


@pytest.fixture
def clock():
    """Controllable clock starting at START_TIME."""
    return FakeClock()


@pytest.fixture
def admin_gate():
    return SingleDeveloperGate(DEVELOPER_ID)


@pytest.fixture
def audit_service(memory_store, clock):
    return AuditService(store=memory_store, clock=clock)


@pytest.fixture
def notification_service(memory_store, admin_gate, audit_service, clock):
    """NotificationService with a small retention bound for eviction tests."""
    return NotificationService(
        store=memory_store,
        admin_gate=admin_gate,
        audit=audit_service,
        clock=clock,
        retention=10,
        repeat_interval=timedelta(minutes=15),
    )


@pytest.fixture
def gift_service(memory_store, admin_gate, notification_service, audit_service, clock):
    """GiftService sharing the store and feed of notification_service."""
    return GiftService(
        store=memory_store,
        admin_gate=admin_gate,
        key_issuer=KeyIssuer(clock=clock),
        notifications=notification_service,
        audit=audit_service,
        clock=clock,
    )


# ============================================================================
# API Fixtures
# ============================================================================


@pytest.fixture
def test_client(memory_store, clock):
    """Create a test client for the FastAPI application."""
    from fastapi.testclient import TestClient

    from premium_backend.api.dependencies import get_clock, get_delivery_service, get_store
    from premium_backend.main import app

    app.dependency_overrides[get_store] = lambda: memory_store
    app.dependency_overrides[get_delivery_service] = lambda: None
    app.dependency_overrides[get_clock] = lambda: clock

    with TestClient(app) as client:
        yield client

    # Clear overrides
    app.dependency_overrides.clear()
