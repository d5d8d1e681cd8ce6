"""
Models for the premium gift backend.

This module provides the SQLAlchemy declarative base (used by the SQL
document store) and the domain records persisted as documents.
"""

from sqlalchemy.orm import declarative_base

# All ORM models inherit from this Base class
Base = declarative_base()


# Import ORM models here so they are registered with Base.metadata
from premium_backend.models.document import DocumentRecord

from premium_backend.models.records import (
    AccessCode,
    CodeSource,
    DeveloperAction,
    Duration,
    Notification,
    NotificationType,
    PersistentAnnouncement,
    SiteWideGift,
)

__all__ = [
    "Base",
    "DocumentRecord",
    "AccessCode",
    "CodeSource",
    "DeveloperAction",
    "Duration",
    "Notification",
    "NotificationType",
    "PersistentAnnouncement",
    "SiteWideGift",
]
