"""
Key issuer for premium and trial access codes.

Code formats:
- Premium: ``SB-PREM-`` + 10 upper-case hex characters (18 characters total)
- Trial:   ``SB-TRIAL-<DURATION>-<WORD>``, WORD drawn from the tier's word list

Callers pass the codes already in use as ``exclude``. Trial words are drawn
only from the unused ones, so a tier with all ten words taken cannot be
issued and raises ConflictError.
"""

import re
import secrets
import uuid
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Set

from premium_backend.models.records import AccessCode, CodeSource, Duration
from premium_backend.services.exceptions import ConflictError, ValidationError
from premium_backend.utils.clock import Clock, utcnow


PREMIUM_PREFIX = "SB-PREM-"
PREMIUM_CODE_LENGTH = 18
TRIAL_PREFIX = "SB-TRIAL-"

TRIAL_WORDS: Dict[Duration, List[str]] = {
    Duration.ONE_DAY: [
        "SPARK", "FLASH", "BLINK", "EMBER", "GLINT",
        "PULSE", "DASH", "FLICK", "ZAP", "JOLT",
    ],
    Duration.THREE_DAYS: [
        "BREEZE", "RIPPLE", "DRIFT", "ECHO", "GLOW",
        "WAVE", "TIDE", "MIST", "HAZE", "SWIFT",
    ],
    Duration.SEVEN_DAYS: [
        "NOVA", "COMET", "ORBIT", "LUNAR", "SOLAR",
        "AURORA", "ZENITH", "METEOR", "PRISM", "NEBULA",
    ],
    Duration.FOURTEEN_DAYS: [
        "TITAN", "SUMMIT", "FALCON", "THUNDER", "VORTEX",
        "PHOENIX", "GRIFFIN", "CITADEL", "RAPTOR", "MONSOON",
    ],
    Duration.THIRTY_DAYS: [
        "LEGEND", "MYTHIC", "EMPIRE", "DYNASTY", "SOVEREIGN",
        "COLOSSUS", "PARAGON", "ODYSSEY", "INFINITY", "MONARCH",
    ],
}


class CodeKind(Enum):
    """Which code format the caller wants."""
    PREMIUM = "premium"
    TRIAL = "trial"


def parse_duration(value: Any) -> Duration:
    """
    Normalize a duration at the API/service boundary.

    Args:
        value: Canonical (``7D``) or legacy (``7 days``) duration token

    Returns:
        Canonical Duration

    Raises:
        ValidationError: If the value is not a recognized duration
    """
    duration = Duration.from_value(value)
    if duration is None:
        allowed = ", ".join(d.value for d in Duration)
        raise ValidationError(
            f"Invalid duration '{value}'. Allowed values: {allowed}",
            field="duration",
        )
    return duration


def is_premium_code(code: Any) -> bool:
    """Check the premium format: ``SB-PREM-`` prefix, 18 characters total."""
    return (
        isinstance(code, str)
        and code.startswith(PREMIUM_PREFIX)
        and len(code) == PREMIUM_CODE_LENGTH
    )


class KeyIssuer:
    """
    Mints access codes with their expiry.

    Args:
        clock: Callable returning the current naive UTC datetime
    """

    def __init__(self, clock: Clock = utcnow):
        self.clock = clock

    def issue(
        self,
        duration: Any,
        kind: CodeKind = CodeKind.PREMIUM,
        exclude: Iterable[str] = (),
    ) -> AccessCode:
        """
        Mint a new code.

        Unrecognized durations are not an error: the code is issued with
        ``expires_at = None`` (no expiry).

        Args:
            duration: Duration token (Duration, canonical or legacy string, or None)
            kind: PREMIUM or TRIAL format
            exclude: Codes already in use; the new code is never one of them

        Returns:
            Unsaved AccessCode

        Raises:
            ConflictError: If every trial word of the tier is excluded
        """
        resolved = Duration.from_value(duration)
        taken = set(exclude)
        now = self.clock()

        if kind == CodeKind.TRIAL:
            code = self._trial_code(resolved, duration, taken)
            source = CodeSource.TRIAL
        else:
            code = self._premium_code(taken)
            source = CodeSource.PREMIUM

        return AccessCode(
            code=code,
            duration=resolved,
            issued_at=now,
            expires_at=now + resolved.delta if resolved else None,
            source=source,
        )

    @staticmethod
    def _premium_code(taken: Set[str]) -> str:
        while True:
            code = PREMIUM_PREFIX + uuid.uuid4().hex[:10].upper()
            if code not in taken:
                return code

    @staticmethod
    def _trial_code(resolved: Optional[Duration], raw: Any, taken: Set[str]) -> str:
        if resolved is not None:
            prefix = f"{TRIAL_PREFIX}{resolved.value}-"
            words = TRIAL_WORDS[resolved]
        else:
            label = re.sub(r"[^0-9A-Z]", "", str(raw or "").upper()) or "OPEN"
            prefix = f"{TRIAL_PREFIX}{label}-"
            words = [w for tier in TRIAL_WORDS.values() for w in tier]

        candidates = [prefix + w for w in words if prefix + w not in taken]
        if not candidates:
            raise ConflictError(f"Every {prefix}* trial code is already in use")
        return secrets.choice(candidates)
