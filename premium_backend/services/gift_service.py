"""
Gift service for trial distribution, transfers and redemption.

Provides business logic for:
- Sending trials to one user (personal gift) or to everyone (site-wide gift)
- Transferring premium codes between users
- Listing a user's unredeemed gifts
- Redeeming personal codes and the site-wide gift (one premium key per claimer)
- Clearing the site-wide gift

Storage layout:
- ``gifts/<user_id>``: ``{"user_id": ..., "codes": [AccessCode, ...]}``
- ``site_wide_gift/active``: the single SiteWideGift (code null once cleared)

``SB-TRIAL-`` codes come from a 10-word list per tier. A new site-wide code
never equals an unredeemed personal code and a new personal code never
equals the active site-wide code.

Every read-modify-write goes through DocumentStore.cas_update(), so two
concurrent claims of the same code cannot both succeed.
"""

import re
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Set

from premium_backend.models.records import AccessCode, CodeSource, Duration, NotificationType, SiteWideGift
from premium_backend.services.admin_gate import AdminGate
from premium_backend.services.audit_service import AuditService
from premium_backend.services.delivery_service import DeliveryReport, DeliveryService
from premium_backend.services.exceptions import (
    AlreadyClaimedError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from premium_backend.services.key_issuer import CodeKind, KeyIssuer, is_premium_code, parse_duration
from premium_backend.services.notification_service import NotificationService
from premium_backend.stores.base import GIFTS, SITE_WIDE_GIFT, DocumentStore
from premium_backend.utils.clock import Clock, to_iso, utcnow
from premium_backend.utils.logging_config import get_logger


logger = get_logger("services")


USER_ID_PATTERN = re.compile(r"^\d{16,20}$")
BROADCAST_TARGETS = {"all", "everyone"}
SITE_WIDE_KEY = "active"


def is_user_id(value: Any) -> bool:
    """Discord snowflake shape: 16 to 20 digits."""
    return isinstance(value, str) and bool(USER_ID_PATTERN.match(value))


def is_broadcast_target(value: Any) -> bool:
    """``all`` / ``everyone`` in any casing."""
    return isinstance(value, str) and value.strip().lower() in BROADCAST_TARGETS


def trial_title(duration: Duration) -> str:
    return f"Free Premium Trial ({duration.label})"


@dataclass
class SendResult:
    """Outcome of send_trial()."""
    access_code: AccessCode
    target_id: str
    site_wide: bool
    delivery: DeliveryReport


@dataclass
class RedeemResult:
    """Outcome of redeem()."""
    code: str
    expires_at: Optional[datetime]
    site_wide: bool
    delivery: DeliveryReport


class GiftService:
    """
    Service for personal and site-wide gifts.

    Args:
        store: Document store for gifts and the site-wide gift
        admin_gate: Policy for admin-only operations
        key_issuer: Code minting
        notifications: Feed receiving trial and claim entries
        audit: Optional audit log for developer actions
        delivery: Optional outbound delivery (companion bot, webhook)
        clock: Callable returning the current naive UTC datetime
    """

    def __init__(
        self,
        store: DocumentStore,
        admin_gate: AdminGate,
        key_issuer: Optional[KeyIssuer] = None,
        notifications: Optional[NotificationService] = None,
        audit: Optional[AuditService] = None,
        delivery: Optional[DeliveryService] = None,
        clock: Clock = utcnow,
    ):
        self.store = store
        self.admin_gate = admin_gate
        self.key_issuer = key_issuer or KeyIssuer(clock=clock)
        self.notifications = notifications
        self.audit = audit
        self.delivery = delivery
        self.clock = clock

    # ========================================================================
    # Sending
    # ========================================================================

    def send_trial(self, admin_id: str, target_id: str, duration: Any) -> SendResult:
        """
        Send a trial code to one user or to everyone.

        ``all``/``everyone`` (any casing) replaces the site-wide gift and posts
        a broadcast notification. A user id replaces any unredeemed trial of
        the same duration in that user's list.

        Args:
            admin_id: Caller id, must pass the admin gate
            target_id: User id (16-20 digits) or broadcast sentinel
            duration: Duration token (canonical or legacy)

        Returns:
            SendResult with the new code

        Raises:
            ForbiddenError: If the caller is not an admin
            ValidationError: If the duration or target id is malformed
            ConflictError: If every trial code of the tier is already in use
        """
        self.admin_gate.require(admin_id)

        resolved = parse_duration(duration)
        target = (target_id or "").strip()

        if is_broadcast_target(target):
            return self._send_site_wide(admin_id, resolved)

        if not is_user_id(target):
            raise ValidationError("Invalid target user id", field="target_id")
        return self._send_personal(admin_id, target, resolved)

    def _send_site_wide(self, admin_id: str, duration: Duration) -> SendResult:
        # Redeeming tries the site-wide gift first, so it must not shadow a personal code
        access_code = self.key_issuer.issue(
            duration, CodeKind.TRIAL, exclude=self._pending_personal_codes()
        )
        access_code.title = trial_title(duration)
        access_code.description = f"Claim your free premium trial for {duration.label}."
        access_code.sent_by = admin_id

        gift = SiteWideGift(
            id=str(uuid.uuid4()),
            code=access_code.code,
            duration=duration,
            title=access_code.title,
            description=access_code.description,
            sent_by=admin_id,
            created_at=access_code.issued_at,
            claimed_users=[],
        )
        self.store.put(SITE_WIDE_GIFT, SITE_WIDE_KEY, gift.to_dict())

        if self.notifications:
            self.notifications.append(
                NotificationType.TRIAL,
                f"The developer sent a free {duration.label} premium trial to everyone!",
                author=admin_id,
                title=gift.title,
            )
        if self.audit:
            self.audit.record("send_trial", admin_id, target_id="all", duration=duration.value)

        report = (
            self.delivery.gift_sent("all", gift.code, duration.value, site_wide=True)
            if self.delivery else DeliveryReport()
        )

        logger.info(
            "Site-wide trial sent",
            extra={"gift_id": gift.id, "duration": duration.value},
        )
        return SendResult(access_code=access_code, target_id="all", site_wide=True, delivery=report)

    def _send_personal(self, admin_id: str, target: str, duration: Duration) -> SendResult:
        site_wide = self.get_site_wide_gift()
        reserved = {site_wide.code} if site_wide and site_wide.is_active else set()
        issued: Dict[str, AccessCode] = {}

        def _apply(current):
            doc = current or {"user_id": target, "codes": []}
            codes = [AccessCode.from_dict(c) for c in doc.get("codes", [])]

            # Replace, not accumulate: drop the previous unredeemed trial of this duration
            codes = [
                c for c in codes
                if c.redeemed or c.source != CodeSource.TRIAL or c.duration != duration
            ]

            access_code = self.key_issuer.issue(
                duration, CodeKind.TRIAL, exclude=reserved | {c.code for c in codes}
            )
            access_code.title = trial_title(duration)
            access_code.description = f"A free {duration.label} premium trial from the developer."
            access_code.sent_by = admin_id
            codes.append(access_code)

            issued["code"] = access_code
            doc["codes"] = [c.to_dict() for c in codes]
            return doc

        self.store.cas_update(GIFTS, target, _apply, owner_id=target)
        access_code = issued["code"]

        if self.audit:
            self.audit.record("send_trial", admin_id, target_id=target, duration=duration.value)

        report = (
            self.delivery.gift_sent(target, access_code.code, duration.value, site_wide=False)
            if self.delivery else DeliveryReport()
        )

        logger.info(
            "Personal trial sent",
            extra={"target_id": target, "duration": duration.value},
        )
        return SendResult(access_code=access_code, target_id=target, site_wide=False, delivery=report)

    def _pending_personal_codes(self) -> Set[str]:
        """Unredeemed codes held in any user's personal list."""
        return {
            entry["code"]
            for doc in self.store.list_all(GIFTS)
            for entry in doc.get("codes", [])
            if not entry.get("redeemed")
        }

    # ========================================================================
    # Transfer
    # ========================================================================

    def transfer(self, giver_id: str, recipient_id: str, code: str) -> AccessCode:
        """
        Give a copy of a premium code to another user.

        Args:
            giver_id: User handing the code over
            recipient_id: Receiving user id (16-20 digits)
            code: Premium code (SB-PREM- prefix, 18 characters)

        Returns:
            The AccessCode added to the recipient's list

        Raises:
            ValidationError: Malformed ids, self-transfer or malformed code
            ConflictError: If the recipient already holds the code
        """
        giver = (giver_id or "").strip()
        recipient = (recipient_id or "").strip()
        normalized = (code or "").strip().upper()

        if not giver:
            raise ValidationError("Giver id is required", field="giver_id")
        if not is_user_id(recipient):
            raise ValidationError("Invalid recipient id", field="recipient_id")
        if giver == recipient:
            raise ValidationError("You cannot transfer a code to yourself", field="recipient_id")
        if not is_premium_code(normalized):
            raise ValidationError("Invalid premium code format", field="code")

        now = self.clock()
        added: Dict[str, AccessCode] = {}

        def _apply(current):
            doc = current or {"user_id": recipient, "codes": []}
            if any(c.get("code") == normalized for c in doc.get("codes", [])):
                raise ConflictError("Recipient already has this code")

            access_code = AccessCode(
                code=normalized,
                duration=None,
                issued_at=now,
                expires_at=None,
                title="Premium Key",
                description=f"Premium key gifted by {giver}.",
                sent_by=giver,
                source=CodeSource.TRANSFER,
            )
            doc.setdefault("codes", []).append(access_code.to_dict())
            added["code"] = access_code
            return doc

        self.store.cas_update(GIFTS, recipient, _apply, owner_id=recipient)

        if self.delivery:
            self.delivery.code_transferred(giver, recipient, normalized)

        logger.info("Premium code transferred", extra={"giver_id": giver, "recipient_id": recipient})
        return added["code"]

    # ========================================================================
    # Listing
    # ========================================================================

    def get_site_wide_gift(self) -> Optional[SiteWideGift]:
        doc = self.store.get(SITE_WIDE_GIFT, SITE_WIDE_KEY)
        return SiteWideGift.from_dict(doc) if doc else None

    def list_visible(self, user_id: Optional[str] = None) -> List[SiteWideGift]:
        """The active site-wide gift, unless ``user_id`` has already claimed it."""
        gift = self.get_site_wide_gift()
        if gift is None or not gift.is_active or gift.is_claimed_by(user_id):
            return []
        return [gift]

    def list_unredeemed(self, user_id: str) -> List[AccessCode]:
        """
        Unredeemed codes of a user, site-wide gift first.

        The site-wide entry is synthesized for the listing (source
        ``site_wide``) and is not stored in the user's list.

        Raises:
            ValidationError: If ``user_id`` is not 16-20 digits
        """
        if not is_user_id(user_id):
            raise ValidationError("Invalid user id", field="user_id")

        doc = self.store.get(GIFTS, user_id) or {}
        visible = self.list_visible(user_id)
        shadowed = {gift.code for gift in visible}
        codes = [
            AccessCode.from_dict(c)
            for c in doc.get("codes", [])
            if not c.get("redeemed") and c.get("code") not in shadowed
        ]

        for gift in visible:
            codes.insert(0, AccessCode(
                code=gift.code,
                duration=gift.duration,
                issued_at=gift.created_at,
                expires_at=None,
                title=gift.title,
                description=gift.description,
                sent_by=gift.sent_by,
                source=CodeSource.SITE_WIDE,
            ))
        return codes

    # ========================================================================
    # Redemption
    # ========================================================================

    def redeem(
        self,
        user_id: str,
        code: Optional[str] = None,
        gift_id: Optional[str] = None,
    ) -> RedeemResult:
        """
        Redeem the site-wide gift or one of the user's personal codes.

        The site-wide gift is matched first (by code or gift id). Claiming it
        mints a premium key for the claimer, stored redeemed in their list and
        returned with an expiry counted from the claim time. A personal code
        is redeemed as is.

        Raises:
            ValidationError: Malformed user id or neither code nor gift id given
            NotFoundError: No matching gift or code
            AlreadyClaimedError: Already redeemed by this user
        """
        user = (user_id or "").strip()
        if not is_user_id(user):
            raise ValidationError("Invalid user id", field="user_id")

        normalized = code.strip().upper() if code and code.strip() else None
        gift_ref = gift_id.strip() if gift_id and gift_id.strip() else None
        if normalized is None and gift_ref is None:
            raise ValidationError("A code or gift id is required", field="code")

        try:
            result = self._redeem_site_wide(user, normalized, gift_ref)
        except AlreadyClaimedError:
            # A personal code equal to the site-wide one stays redeemable after the claim
            if normalized is None or not self._holds_code(user, normalized):
                raise
            result = None
        if result is not None:
            return result

        if normalized is None:
            raise NotFoundError("Gift", gift_ref)
        return self._redeem_personal(user, normalized)

    def _redeem_site_wide(
        self, user_id: str, code: Optional[str], gift_id: Optional[str]
    ) -> Optional[RedeemResult]:
        matched: Dict[str, SiteWideGift] = {}

        def _claim(current):
            if not current:
                return None
            gift = SiteWideGift.from_dict(current)
            if not gift.is_active:
                return None
            if not ((code and gift.code == code) or (gift_id and gift.id == gift_id)):
                return None
            if gift.is_claimed_by(user_id):
                raise AlreadyClaimedError(gift.code)
            gift.claimed_users.append(user_id)
            matched["gift"] = gift
            return gift.to_dict()

        self.store.cas_update(SITE_WIDE_GIFT, SITE_WIDE_KEY, _claim)
        gift = matched.get("gift")
        if gift is None:
            return None

        key = self._issue_claim_key(user_id, gift)
        report = self._after_claim(user_id, key.code, gift.title, key.expires_at)
        logger.info("Site-wide gift claimed", extra={"gift_id": gift.id, "user_id": user_id})
        return RedeemResult(code=key.code, expires_at=key.expires_at, site_wide=True, delivery=report)

    def _issue_claim_key(self, user_id: str, gift: SiteWideGift) -> AccessCode:
        """Mint the claimer's own premium key, stored already redeemed in their list."""
        now = self.clock()
        minted: Dict[str, AccessCode] = {}

        def _append(current):
            doc = current or {"user_id": user_id, "codes": []}
            held = {entry.get("code") for entry in doc.get("codes", [])}

            key = self.key_issuer.issue(gift.duration, CodeKind.PREMIUM, exclude=held)
            key.title = gift.title
            key.description = gift.description
            key.sent_by = gift.sent_by
            key.redeemed = True
            key.redeemed_by = user_id
            key.redeemed_at = now

            doc.setdefault("codes", []).append(key.to_dict())
            minted["key"] = key
            return doc

        self.store.cas_update(GIFTS, user_id, _append, owner_id=user_id)
        return minted["key"]

    def _holds_code(self, user_id: str, code: str) -> bool:
        doc = self.store.get(GIFTS, user_id) or {}
        return any(entry.get("code") == code for entry in doc.get("codes", []))

    def _redeem_personal(self, user_id: str, code: str) -> RedeemResult:
        now = self.clock()
        matched: Dict[str, AccessCode] = {}

        def _mark(current):
            for entry in (current or {}).get("codes", []):
                if entry.get("code") != code:
                    continue
                if entry.get("redeemed"):
                    raise AlreadyClaimedError(code)
                entry["redeemed"] = True
                entry["redeemed_by"] = user_id
                entry["redeemed_at"] = to_iso(now)
                matched["code"] = AccessCode.from_dict(entry)
                return current
            raise NotFoundError("Gift code", code)

        self.store.cas_update(GIFTS, user_id, _mark, owner_id=user_id)
        access_code = matched["code"]

        report = self._after_claim(user_id, access_code.code, access_code.title, access_code.expires_at)
        logger.info("Personal gift redeemed", extra={"user_id": user_id})
        return RedeemResult(
            code=access_code.code,
            expires_at=access_code.expires_at,
            site_wide=False,
            delivery=report,
        )

    def _after_claim(
        self, user_id: str, code: str, title: str, expires_at: Optional[datetime]
    ) -> DeliveryReport:
        if self.notifications:
            self.notifications.append(
                NotificationType.CLAIM,
                f"User {user_id} claimed {title or 'a gift'}.",
                author=user_id,
                title="Gift Claimed",
            )
        if self.delivery:
            return self.delivery.gift_claimed(user_id, code, to_iso(expires_at))
        return DeliveryReport()

    # ========================================================================
    # Admin
    # ========================================================================

    def clear_global(self, admin_id: str) -> bool:
        """
        Clear the site-wide gift so it can no longer be listed or claimed.

        Returns:
            True if an active gift was cleared, False if none was active

        Raises:
            ForbiddenError: If the caller is not an admin
        """
        self.admin_gate.require(admin_id)
        cleared = {}

        def _clear(current):
            if not current or current.get("code") is None:
                return None
            current["code"] = None
            cleared["done"] = True
            return current

        self.store.cas_update(SITE_WIDE_GIFT, SITE_WIDE_KEY, _clear)

        if self.audit:
            self.audit.record("clear_global", admin_id, target_id="all")

        logger.info("Site-wide gift cleared", extra={"was_active": bool(cleared)})
        return bool(cleared)
