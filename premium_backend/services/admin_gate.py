"""
Admin authorization for mutating operations.

Authorization is a pluggable policy behind the AdminGate interface. The
default policy grants admin rights to exactly one principal, the developer
id configured with ``SB_DEVELOPER_ID``.

Usage:
    from premium_backend.services.admin_gate import SingleDeveloperGate

    gate = SingleDeveloperGate(settings.developer_id)
    gate.require(caller_id)   # raises ForbiddenError for anyone else
"""

import hmac
from abc import ABC, abstractmethod
from typing import Iterable, Optional, Set

from premium_backend.services.exceptions import ForbiddenError
from premium_backend.utils.logging_config import get_logger


logger = get_logger("services")


class AdminGate(ABC):
    """Policy deciding whether a caller may perform admin operations."""

    @abstractmethod
    def authorize(self, caller_id: Optional[str]) -> bool:
        """Return True if ``caller_id`` holds admin rights."""
        pass

    def require(self, caller_id: Optional[str]) -> None:
        """
        Raise ForbiddenError unless ``caller_id`` is authorized.

        Services call this before touching the store, so a rejected call
        never leaves a partial write behind.
        """
        if not self.authorize(caller_id):
            logger.warning("Admin check failed", extra={"caller_id": caller_id})
            raise ForbiddenError(caller_id)


class SingleDeveloperGate(AdminGate):
    """Grants admin rights to exactly one developer id."""

    def __init__(self, developer_id: str):
        if not developer_id:
            raise ValueError("developer_id is required")
        self.developer_id = developer_id

    def authorize(self, caller_id: Optional[str]) -> bool:
        if not caller_id:
            return False
        return hmac.compare_digest(
            str(caller_id).strip().encode("utf-8"),
            self.developer_id.encode("utf-8"),
        )


class AllowListGate(AdminGate):
    """Grants admin rights to any id of a fixed set."""

    def __init__(self, admin_ids: Iterable[str]):
        self.admin_ids: Set[str] = {a.strip() for a in admin_ids if a and a.strip()}

    def authorize(self, caller_id: Optional[str]) -> bool:
        return bool(caller_id) and str(caller_id).strip() in self.admin_ids
