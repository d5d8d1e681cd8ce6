"""
Shared FastAPI dependencies.

The document store and the delivery client are created once in the
application lifespan and kept on ``app.state``; services are cheap wrappers
built per request around them. Tests override ``get_store``,
``get_delivery_service`` and ``get_clock``.
"""

from datetime import timedelta
from typing import Optional

from fastapi import Depends, Request

from premium_backend.config.settings import AppSettings, get_settings
from premium_backend.services.admin_gate import AdminGate, AllowListGate, SingleDeveloperGate
from premium_backend.services.audit_service import AuditService
from premium_backend.services.delivery_service import DeliveryService
from premium_backend.services.gift_service import GiftService
from premium_backend.services.key_issuer import KeyIssuer
from premium_backend.services.notification_service import NotificationService
from premium_backend.stores.base import DocumentStore
from premium_backend.utils.clock import Clock, utcnow


def get_store(request: Request) -> DocumentStore:
    """Document store created at startup."""
    return request.app.state.store


def get_delivery_service(request: Request) -> Optional[DeliveryService]:
    """Outbound delivery client created at startup (None when not configured)."""
    return getattr(request.app.state, "delivery", None)


def get_clock() -> Clock:
    return utcnow


def get_admin_gate(settings: AppSettings = Depends(get_settings)) -> AdminGate:
    """Allow-list gate when SB_ADMIN_IDS is set, otherwise the single developer id."""
    if settings.admin_ids_list:
        return AllowListGate(settings.admin_ids_list)
    return SingleDeveloperGate(settings.developer_id)


def get_audit_service(
    store: DocumentStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
) -> AuditService:
    return AuditService(store=store, clock=clock)


def get_notification_service(
    store: DocumentStore = Depends(get_store),
    admin_gate: AdminGate = Depends(get_admin_gate),
    audit: AuditService = Depends(get_audit_service),
    delivery: Optional[DeliveryService] = Depends(get_delivery_service),
    clock: Clock = Depends(get_clock),
    settings: AppSettings = Depends(get_settings),
) -> NotificationService:
    """Create NotificationService bound to the shared store."""
    return NotificationService(
        store=store,
        admin_gate=admin_gate,
        audit=audit,
        delivery=delivery,
        clock=clock,
        retention=settings.notification_retention,
        repeat_interval=timedelta(minutes=settings.repeat_interval_minutes),
    )


def get_gift_service(
    store: DocumentStore = Depends(get_store),
    admin_gate: AdminGate = Depends(get_admin_gate),
    notifications: NotificationService = Depends(get_notification_service),
    audit: AuditService = Depends(get_audit_service),
    delivery: Optional[DeliveryService] = Depends(get_delivery_service),
    clock: Clock = Depends(get_clock),
) -> GiftService:
    """Create GiftService bound to the shared store."""
    return GiftService(
        store=store,
        admin_gate=admin_gate,
        key_issuer=KeyIssuer(clock=clock),
        notifications=notifications,
        audit=audit,
        delivery=delivery,
        clock=clock,
    )
