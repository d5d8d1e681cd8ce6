"""
Developer action audit log.

Appends one DeveloperAction document per admin operation. Nothing reads the
log in-band; it exists for after-the-fact review of who sent, cleared or
announced what.
"""

import uuid
from typing import Optional

from premium_backend.models.records import DeveloperAction
from premium_backend.services.exceptions import PersistenceError
from premium_backend.stores.base import DEVELOPER_ACTIONS, DocumentStore
from premium_backend.utils.clock import Clock, utcnow
from premium_backend.utils.logging_config import get_logger


logger = get_logger("services")


class AuditService:
    """Records developer actions in the ``developer_actions`` collection."""

    def __init__(self, store: DocumentStore, clock: Clock = utcnow):
        self.store = store
        self.clock = clock

    def record(
        self,
        action: str,
        initiated_by: str,
        target_id: Optional[str] = None,
        message: Optional[str] = None,
        duration: Optional[str] = None,
    ) -> Optional[DeveloperAction]:
        """
        Append an audit entry.

        The primary operation has already been committed when this runs, so a
        failed audit write is logged rather than raised.

        Returns:
            The stored DeveloperAction, or None if the write failed
        """
        entry = DeveloperAction(
            id=str(uuid.uuid4()),
            action=action,
            initiated_by=initiated_by,
            target_id=target_id,
            message=message,
            duration=duration,
            timestamp=self.clock(),
        )
        try:
            self.store.put(DEVELOPER_ACTIONS, entry.id, entry.to_dict(), owner_id=initiated_by)
        except PersistenceError as e:
            logger.error(
                "Failed to record developer action",
                extra={"action": action, "initiated_by": initiated_by, "error": str(e)},
            )
            return None
        return entry
