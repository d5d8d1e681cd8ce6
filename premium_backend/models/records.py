"""
Domain records stored as documents.

Each record converts to and from the JSON-compatible dict kept by the
document stores. Timestamps are naive UTC datetimes serialized with a
trailing ``Z``.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional

from premium_backend.utils.clock import from_iso, to_iso


class Duration(Enum):
    """
    Canonical trial/premium durations.

    Values are the only encoding persisted or returned by the API.
    """
    ONE_DAY = "1D"
    THREE_DAYS = "3D"
    SEVEN_DAYS = "7D"
    FOURTEEN_DAYS = "14D"
    THIRTY_DAYS = "30D"

    @property
    def days(self) -> int:
        return int(self.value[:-1])

    @property
    def delta(self) -> timedelta:
        return timedelta(days=self.days)

    @property
    def label(self) -> str:
        """Human-readable label, e.g. ``7 days``."""
        return "1 day" if self.days == 1 else f"{self.days} days"

    @classmethod
    def from_value(cls, value: Any) -> Optional["Duration"]:
        """
        Normalize a duration token.

        Accepts the canonical values (``7D``), any casing (``7d``) and the
        legacy spellings (``7 days``, ``1 day``, ``1 month``).

        Returns:
            Matching Duration, or None for null/unrecognized values
        """
        if isinstance(value, Duration):
            return value
        if not isinstance(value, str):
            return None
        token = value.strip().upper()
        if token in _LEGACY_DURATIONS:
            return _LEGACY_DURATIONS[token]
        match = re.fullmatch(r"(\d+)\s*(D|DAY|DAYS)", token)
        if match:
            token = f"{int(match.group(1))}D"
        for member in cls:
            if member.value == token:
                return member
        return None


_LEGACY_DURATIONS = {
    "1 MONTH": Duration.THIRTY_DAYS,
    "1M": Duration.THIRTY_DAYS,
    "MONTH": Duration.THIRTY_DAYS,
}


class CodeSource(Enum):
    """How an access code reached its holder."""
    TRIAL = "trial"
    PREMIUM = "premium"
    TRANSFER = "transfer"
    # Transient listing entry for the active site-wide gift; never persisted
    SITE_WIDE = "site_wide"


class NotificationType(Enum):
    """Notification categories shown in the feed."""
    CLAIM = "claim"
    ANNOUNCEMENT = "announcement"
    TRIAL = "trial"


@dataclass
class AccessCode:
    """
    A redeemable premium or trial code.

    Attributes:
        code: Formatted token (SB-PREM-XXXXXXXXXX or SB-TRIAL-<DURATION>-<WORD>)
        duration: Canonical duration, None for transferred/legacy premium codes
        issued_at: When the code was minted
        expires_at: Expiry, None when the duration is unknown
        redeemed: Whether the code has been claimed
        redeemed_by: User id that claimed it
        redeemed_at: When it was claimed
    """
    code: str
    duration: Optional[Duration]
    issued_at: datetime
    expires_at: Optional[datetime] = None
    redeemed: bool = False
    redeemed_by: Optional[str] = None
    redeemed_at: Optional[datetime] = None
    title: str = ""
    description: str = ""
    sent_by: Optional[str] = None
    source: CodeSource = CodeSource.TRIAL

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "duration": self.duration.value if self.duration else None,
            "issued_at": to_iso(self.issued_at),
            "expires_at": to_iso(self.expires_at),
            "redeemed": self.redeemed,
            "redeemed_by": self.redeemed_by,
            "redeemed_at": to_iso(self.redeemed_at),
            "title": self.title,
            "description": self.description,
            "sent_by": self.sent_by,
            "source": self.source.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AccessCode":
        return cls(
            code=data["code"],
            duration=Duration.from_value(data.get("duration")),
            issued_at=from_iso(data.get("issued_at")),
            expires_at=from_iso(data.get("expires_at")),
            redeemed=bool(data.get("redeemed", False)),
            redeemed_by=data.get("redeemed_by"),
            redeemed_at=from_iso(data.get("redeemed_at")),
            title=data.get("title", ""),
            description=data.get("description", ""),
            sent_by=data.get("sent_by"),
            source=CodeSource(data.get("source", CodeSource.TRIAL.value)),
        )


@dataclass
class SiteWideGift:
    """
    The single gift claimable once by every user.

    ``code`` is None once an admin has cleared the gift; no claim can match
    a cleared gift.
    """
    id: str
    code: Optional[str]
    duration: Optional[Duration]
    title: str
    description: str
    sent_by: str
    created_at: datetime
    claimed_users: List[str] = field(default_factory=list)

    @property
    def is_active(self) -> bool:
        return self.code is not None

    def is_claimed_by(self, user_id: Optional[str]) -> bool:
        return user_id is not None and user_id in self.claimed_users

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "code": self.code,
            "duration": self.duration.value if self.duration else None,
            "title": self.title,
            "description": self.description,
            "sent_by": self.sent_by,
            "created_at": to_iso(self.created_at),
            "claimed_users": list(self.claimed_users),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SiteWideGift":
        return cls(
            id=data["id"],
            code=data.get("code"),
            duration=Duration.from_value(data.get("duration")),
            title=data.get("title", ""),
            description=data.get("description", ""),
            sent_by=data.get("sent_by", ""),
            created_at=from_iso(data.get("created_at")),
            claimed_users=list(data.get("claimed_users", [])),
        )


@dataclass
class Notification:
    """An entry of the notification feed."""
    id: str
    type: NotificationType
    title: str
    message: str
    author: str
    timestamp: datetime
    repeating: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "title": self.title,
            "message": self.message,
            "author": self.author,
            "timestamp": to_iso(self.timestamp),
            "repeating": self.repeating,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Notification":
        return cls(
            id=data["id"],
            type=NotificationType(data["type"]),
            title=data.get("title", ""),
            message=data.get("message", ""),
            author=data.get("author", ""),
            timestamp=from_iso(data.get("timestamp")),
            repeating=bool(data.get("repeating", False)),
        )


@dataclass
class PersistentAnnouncement:
    """State of the repeating announcement singleton."""
    message: str
    title: str
    last_sent: Optional[datetime]
    is_active: bool
    # Feed entry of the admin's original post, replaced by the first repeat
    notification_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "title": self.title,
            "last_sent": to_iso(self.last_sent),
            "is_active": self.is_active,
            "notification_id": self.notification_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PersistentAnnouncement":
        return cls(
            message=data.get("message", ""),
            title=data.get("title", ""),
            last_sent=from_iso(data.get("last_sent")),
            is_active=bool(data.get("is_active", False)),
            notification_id=data.get("notification_id"),
        )


@dataclass
class DeveloperAction:
    """Append-only audit entry for an admin operation."""
    id: str
    action: str
    initiated_by: str
    target_id: Optional[str]
    timestamp: datetime
    message: Optional[str] = None
    duration: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "action": self.action,
            "initiated_by": self.initiated_by,
            "target_id": self.target_id,
            "message": self.message,
            "duration": self.duration,
            "timestamp": to_iso(self.timestamp),
        }
