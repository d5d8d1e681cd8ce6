"""
Time helpers shared by services and stores.

All timestamps are naive UTC datetimes, serialized as ISO 8601 with a
trailing ``Z``.
"""

from datetime import datetime
from typing import Callable, Optional


Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Current time as a naive UTC datetime (patched by freezegun in tests)."""
    return datetime.utcnow()


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """Serialize a naive UTC datetime, e.g. ``2025-01-01T12:00:00Z``."""
    return value.isoformat() + "Z" if value else None


def from_iso(value: Optional[str]) -> Optional[datetime]:
    """Parse a timestamp produced by :func:`to_iso`."""
    if not value:
        return None
    if value.endswith("Z"):
        value = value[:-1]
    return datetime.fromisoformat(value)
