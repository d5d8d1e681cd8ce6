"""
Service layer for business logic.

This module exports all service classes for use in API endpoints.
"""

from premium_backend.services.exceptions import (
    ServiceError,
    ForbiddenError,
    NotFoundError,
    ConflictError,
    AlreadyClaimedError,
    ValidationError,
    PersistenceError,
    UpstreamDeliveryError,
)
from premium_backend.services.admin_gate import AdminGate, AllowListGate, SingleDeveloperGate
from premium_backend.services.key_issuer import CodeKind, KeyIssuer, is_premium_code, parse_duration
from premium_backend.services.audit_service import AuditService
from premium_backend.services.delivery_service import DeliveryReport, DeliveryService
from premium_backend.services.notification_service import NotificationService
from premium_backend.services.gift_service import GiftService

__all__ = [
    "ServiceError",
    "ForbiddenError",
    "NotFoundError",
    "ConflictError",
    "AlreadyClaimedError",
    "ValidationError",
    "PersistenceError",
    "UpstreamDeliveryError",
    "AdminGate",
    "AllowListGate",
    "SingleDeveloperGate",
    "CodeKind",
    "KeyIssuer",
    "is_premium_code",
    "parse_duration",
    "AuditService",
    "DeliveryReport",
    "DeliveryService",
    "NotificationService",
    "GiftService",
]
