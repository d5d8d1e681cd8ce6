"""
Notification feed service.

Provides business logic for:
- Appending claim/trial/announcement entries to a capped feed (FIFO eviction)
- Developer announcements, optionally persistent
- Re-posting the persistent announcement after an idle interval
- Deleting the most recent announcement

The repeating announcement has no background timer. ``list_notifications()``
checks ``due_for_repeat()`` on every read and, when due, re-posts the message
and advances the timer. Reading the feed is therefore not side-effect free.
"""

import dataclasses
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional

from premium_backend.models.records import Notification, NotificationType, PersistentAnnouncement
from premium_backend.services.admin_gate import AdminGate
from premium_backend.services.audit_service import AuditService
from premium_backend.services.delivery_service import DeliveryReport, DeliveryService
from premium_backend.services.exceptions import NotFoundError, ValidationError
from premium_backend.stores.base import NOTIFICATIONS, PERSISTENT_ANNOUNCEMENT, DocumentStore
from premium_backend.utils.clock import Clock, utcnow
from premium_backend.utils.logging_config import get_logger


logger = get_logger("services")


PERSISTENT_KEY = "current"
DEFAULT_RETENTION = 500
DEFAULT_REPEAT_INTERVAL = timedelta(minutes=15)
MIN_ANNOUNCEMENT_LENGTH = 5
DEFAULT_ANNOUNCEMENT_TITLE = "Developer Announcement"
REPEATING_PREFIX = "(Repeating)"
SYSTEM_AUTHOR = "system"


def due_for_repeat(
    state: Optional[PersistentAnnouncement],
    now: datetime,
    interval: timedelta = DEFAULT_REPEAT_INTERVAL,
) -> bool:
    """True when an active persistent announcement was last sent more than ``interval`` ago."""
    if state is None or not state.is_active or state.last_sent is None:
        return False
    return now - state.last_sent > interval


def advance(state: PersistentAnnouncement, now: datetime) -> PersistentAnnouncement:
    """Return ``state`` with the repeat timer reset to ``now``."""
    return dataclasses.replace(state, last_sent=now)


@dataclass
class AnnouncementResult:
    """Outcome of announce(): the feed entry plus delivery warnings."""
    notification: Notification
    persistent: bool
    delivery: DeliveryReport


class NotificationService:
    """
    Service for the developer notification feed.

    Args:
        store: Document store holding notifications and the persistent state
        admin_gate: Policy for admin-only operations
        audit: Optional audit log for developer actions
        delivery: Optional outbound delivery (webhook) for announcements
        clock: Callable returning the current naive UTC datetime
        retention: Max entries kept in the feed
        repeat_interval: Idle interval before the persistent announcement repeats
    """

    def __init__(
        self,
        store: DocumentStore,
        admin_gate: AdminGate,
        audit: Optional[AuditService] = None,
        delivery: Optional[DeliveryService] = None,
        clock: Clock = utcnow,
        retention: int = DEFAULT_RETENTION,
        repeat_interval: timedelta = DEFAULT_REPEAT_INTERVAL,
    ):
        if retention < 1:
            raise ValueError("retention must be at least 1")
        self.store = store
        self.admin_gate = admin_gate
        self.audit = audit
        self.delivery = delivery
        self.clock = clock
        self.retention = retention
        self.repeat_interval = repeat_interval

    # ========================================================================
    # Feed
    # ========================================================================

    def append(
        self,
        notification_type: NotificationType,
        message: str,
        author: str,
        title: str = "",
        repeating: bool = False,
    ) -> Notification:
        """
        Insert a feed entry and evict the oldest entries beyond the retention bound.

        Returns:
            The stored Notification (id and timestamp assigned)
        """
        notification = Notification(
            id=str(uuid.uuid4()),
            type=notification_type,
            title=title,
            message=message,
            author=author,
            timestamp=self.clock(),
            repeating=repeating,
        )
        self.store.put(NOTIFICATIONS, notification.id, notification.to_dict(), owner_id=author)
        self._evict()
        return notification

    def _evict(self) -> None:
        entries = self.store.list_all(NOTIFICATIONS)
        excess = len(entries) - self.retention
        if excess <= 0:
            return
        for doc in entries[:excess]:
            self.store.delete(NOTIFICATIONS, doc["id"])
        logger.debug("Evicted notifications", extra={"count": excess})

    def list_notifications(self) -> List[Notification]:
        """
        Return the feed, newest first.

        Re-posts the persistent announcement first if it is due. Entries with
        equal timestamps are ordered newest-inserted first.
        """
        self._repeat_if_due()

        entries = [Notification.from_dict(doc) for doc in self.store.list_all(NOTIFICATIONS)]
        entries.reverse()
        entries.sort(key=lambda n: n.timestamp, reverse=True)
        return entries

    def _repeat_if_due(self) -> Optional[Notification]:
        now = self.clock()
        if not due_for_repeat(self.get_persistent_state(), now, self.repeat_interval):
            return None

        claimed = {}

        def _advance(current):
            state = PersistentAnnouncement.from_dict(current) if current else None
            if not due_for_repeat(state, now, self.repeat_interval):
                return None
            claimed["state"] = state
            return advance(state, now).to_dict()

        # Only the reader that advances the timer re-posts the message
        self.store.cas_update(PERSISTENT_ANNOUNCEMENT, PERSISTENT_KEY, _advance)
        state = claimed.get("state")
        if state is None:
            return None

        for doc in self.store.list_all(NOTIFICATIONS):
            earlier_repeat = doc.get("repeating") and doc.get("message") == state.message
            if earlier_repeat or doc["id"] == state.notification_id:
                self.store.delete(NOTIFICATIONS, doc["id"])

        notification = self.append(
            NotificationType.ANNOUNCEMENT,
            state.message,
            author=SYSTEM_AUTHOR,
            title=f"{REPEATING_PREFIX} {state.title}".strip(),
            repeating=True,
        )
        logger.info("Repeated persistent announcement", extra={"notification_id": notification.id})
        return notification

    # ========================================================================
    # Announcements
    # ========================================================================

    def get_persistent_state(self) -> Optional[PersistentAnnouncement]:
        doc = self.store.get(PERSISTENT_ANNOUNCEMENT, PERSISTENT_KEY)
        return PersistentAnnouncement.from_dict(doc) if doc else None

    def announce(
        self,
        admin_id: str,
        message: str,
        persistent: bool = False,
        title: Optional[str] = None,
    ) -> AnnouncementResult:
        """
        Post a developer announcement.

        A persistent announcement installs (or overwrites) the repeating
        singleton. A non-persistent one deactivates any active repeating
        announcement.

        Args:
            admin_id: Caller id, must pass the admin gate
            message: Announcement text (at least 5 characters once stripped)
            persistent: Whether the message should repeat
            title: Optional title (defaults to "Developer Announcement")

        Raises:
            ForbiddenError: If the caller is not an admin
            ValidationError: If the message is too short
        """
        self.admin_gate.require(admin_id)

        text = (message or "").strip()
        if len(text) < MIN_ANNOUNCEMENT_LENGTH:
            raise ValidationError(
                f"Message must be at least {MIN_ANNOUNCEMENT_LENGTH} characters",
                field="message",
            )
        heading = (title or "").strip() or DEFAULT_ANNOUNCEMENT_TITLE

        if not persistent:
            self._deactivate_persistent()

        notification = self.append(NotificationType.ANNOUNCEMENT, text, author=admin_id, title=heading)

        if persistent:
            state = PersistentAnnouncement(
                message=text,
                title=heading,
                last_sent=notification.timestamp,
                is_active=True,
                notification_id=notification.id,
            )
            self.store.put(PERSISTENT_ANNOUNCEMENT, PERSISTENT_KEY, state.to_dict())

        if self.audit:
            self.audit.record("announce", admin_id, message=text)

        report = self.delivery.announcement(heading, text) if self.delivery else DeliveryReport()

        logger.info(
            "Announcement posted",
            extra={"notification_id": notification.id, "persistent": persistent},
        )
        return AnnouncementResult(notification=notification, persistent=persistent, delivery=report)

    def _deactivate_persistent(self, message: Optional[str] = None) -> bool:
        """Deactivate the repeating announcement (only if it carries ``message``, when given)."""
        changed = {}

        def _off(current):
            if not current or not current.get("is_active"):
                return None
            if message is not None and current.get("message") != message:
                return None
            current["is_active"] = False
            changed["done"] = True
            return current

        self.store.cas_update(PERSISTENT_ANNOUNCEMENT, PERSISTENT_KEY, _off)
        if changed:
            logger.info("Persistent announcement deactivated")
        return bool(changed)

    def delete_last_announcement(self, admin_id: str) -> Notification:
        """
        Remove the most recently inserted announcement.

        If it carried the active persistent message, persistence is turned off.

        Raises:
            ForbiddenError: If the caller is not an admin
            NotFoundError: If the feed holds no announcement
        """
        self.admin_gate.require(admin_id)

        for doc in reversed(self.store.list_all(NOTIFICATIONS)):
            if doc.get("type") != NotificationType.ANNOUNCEMENT.value:
                continue

            self.store.delete(NOTIFICATIONS, doc["id"])
            removed = Notification.from_dict(doc)
            self._deactivate_persistent(message=removed.message)

            if self.audit:
                self.audit.record(
                    "delete_announcement", admin_id, target_id=removed.id, message=removed.message
                )
            logger.info("Deleted announcement", extra={"notification_id": removed.id})
            return removed

        raise NotFoundError("Announcement")
