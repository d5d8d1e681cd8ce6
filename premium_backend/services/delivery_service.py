"""
Outbound delivery to the companion bot and the Discord webhook.

Delivery is fire-and-forget: it runs after the primary state change has been
committed, never raises to the caller, and reports failures as
UpstreamDeliveryError entries in the returned DeliveryReport (and the
``delivery`` log).

Requests are blocking (httpx.Client). Callers run in FastAPI's threadpool.

Targets:
- Companion bot: ``POST {SB_COMPANION_BOT_URL}/api/notify`` with a bearer token,
  so the bot can DM the recipient or refresh its premium cache.
- Discord webhook: ``POST {SB_WEBHOOK_URL}`` with ``{"content": ...}`` for
  site-wide announcements.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from premium_backend import __version__
from premium_backend.services.exceptions import UpstreamDeliveryError
from premium_backend.utils.logging_config import get_logger


logger = get_logger("delivery")

COMPANION_NOTIFY_PATH = "/api/notify"
USER_AGENT = f"SB-Premium-Backend/{__version__}"
DISCORD_CONTENT_LIMIT = 2000


@dataclass
class DeliveryReport:
    """Outcome of one fan-out; ``errors`` is empty when every target succeeded."""
    delivered: List[str] = field(default_factory=list)
    errors: List[UpstreamDeliveryError] = field(default_factory=list)

    @property
    def warnings(self) -> List[str]:
        return [e.message for e in self.errors]

    def merge(self, other: "DeliveryReport") -> "DeliveryReport":
        self.delivered.extend(other.delivered)
        self.errors.extend(other.errors)
        return self


class DeliveryService:
    """
    HTTP client for companion-bot and webhook notifications.

    Targets with an empty URL are skipped silently.

    Args:
        companion_bot_url: Base URL of the companion bot ("" disables it)
        companion_bot_token: Bearer token for the companion bot
        webhook_url: Discord webhook URL ("" disables it)
        timeout: Request timeout in seconds
        transport: Optional httpx transport (tests use httpx.MockTransport)
    """

    def __init__(
        self,
        companion_bot_url: str = "",
        companion_bot_token: str = "",
        webhook_url: str = "",
        timeout: float = 5.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.companion_bot_url = companion_bot_url.rstrip("/")
        self.webhook_url = webhook_url

        headers = {
            "User-Agent": USER_AGENT,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if companion_bot_token:
            headers["Authorization"] = f"Bearer {companion_bot_token}"

        self._client = httpx.Client(headers=headers, timeout=timeout, transport=transport)

    @property
    def enabled(self) -> bool:
        return bool(self.companion_bot_url or self.webhook_url)

    def close(self) -> None:
        self._client.close()

    # ========================================================================
    # Events
    # ========================================================================

    def gift_sent(
        self,
        target_id: str,
        code: str,
        duration: Optional[str],
        site_wide: bool,
    ) -> DeliveryReport:
        """Tell the companion bot about a new gift; broadcast site-wide ones."""
        report = self._notify_companion({
            "event": "gift_sent",
            "target_id": target_id,
            "code": code,
            "duration": duration,
            "site_wide": site_wide,
        })
        if site_wide:
            label = f" ({duration})" if duration else ""
            report.merge(self._post_webhook(
                f"A free premium trial{label} is available for everyone. Claim it before it's gone!"
            ))
        return report

    def gift_claimed(self, user_id: str, code: str, expires_at: Optional[str]) -> DeliveryReport:
        """Ask the companion bot to activate premium for ``user_id``."""
        return self._notify_companion({
            "event": "gift_claimed",
            "user_id": user_id,
            "code": code,
            "expires_at": expires_at,
        })

    def code_transferred(self, giver_id: str, recipient_id: str, code: str) -> DeliveryReport:
        """Tell the companion bot a premium code changed hands."""
        return self._notify_companion({
            "event": "code_transferred",
            "giver_id": giver_id,
            "recipient_id": recipient_id,
            "code": code,
        })

    def announcement(self, title: str, message: str) -> DeliveryReport:
        """Post a developer announcement to the webhook."""
        content = f"**{title}**\n{message}" if title else message
        return self._post_webhook(content)

    # ========================================================================
    # Transport
    # ========================================================================

    def _notify_companion(self, payload: Dict[str, Any]) -> DeliveryReport:
        if not self.companion_bot_url:
            return DeliveryReport()
        return self._post(
            "companion_bot",
            f"{self.companion_bot_url}{COMPANION_NOTIFY_PATH}",
            payload,
        )

    def _post_webhook(self, content: str) -> DeliveryReport:
        if not self.webhook_url:
            return DeliveryReport()
        return self._post(
            "webhook",
            self.webhook_url,
            {"content": content[:DISCORD_CONTENT_LIMIT]},
        )

    def _post(self, target: str, url: str, payload: Dict[str, Any]) -> DeliveryReport:
        report = DeliveryReport()
        try:
            response = self._client.post(url, json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            error = UpstreamDeliveryError(target, f"HTTP {e.response.status_code}")
        except httpx.HTTPError as e:
            error = UpstreamDeliveryError(target, str(e) or type(e).__name__)
        else:
            report.delivered.append(target)
            logger.debug("Delivered", extra={"target": target, "event": payload.get("event")})
            return report

        logger.warning(
            "Outbound delivery failed",
            extra={"target": target, "event": payload.get("event"), "error": error.message},
        )
        report.errors.append(error)
        return report
