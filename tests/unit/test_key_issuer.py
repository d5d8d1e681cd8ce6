"""
Unit tests for the key issuer.

Tests KeyIssuer and helpers for:
- Premium and trial code formats for every duration
- Expiry computation from the injected clock
- Skipping codes already in use
- Unknown durations (no expiry, fallback label)
- Duration normalization at the boundary
"""

import re
from datetime import datetime, timedelta

import pytest

from premium_backend.models.records import CodeSource, Duration
from premium_backend.services.exceptions import ConflictError, ValidationError
from premium_backend.services.key_issuer import (
    PREMIUM_PREFIX,
    TRIAL_WORDS,
    CodeKind,
    KeyIssuer,
    is_premium_code,
    parse_duration,
)


NOW = datetime(2025, 3, 1, 12, 0, 0)


@pytest.fixture
def issuer():
    return KeyIssuer(clock=lambda: NOW)


class TestPremiumCodes:
    """Tests for premium code minting."""

    def test_premium_code_format(self, issuer):
        """Premium codes are SB-PREM- plus 10 upper-case hex characters."""
        access_code = issuer.issue(Duration.SEVEN_DAYS, CodeKind.PREMIUM)

        assert access_code.code.startswith(PREMIUM_PREFIX)
        assert len(access_code.code) == 18
        assert re.fullmatch(r"SB-PREM-[0-9A-F]{10}", access_code.code)
        assert access_code.source == CodeSource.PREMIUM
        assert is_premium_code(access_code.code)

    def test_premium_is_default_kind(self, issuer):
        assert issuer.issue("30D").code.startswith(PREMIUM_PREFIX)

    def test_premium_codes_differ(self, issuer):
        codes = {issuer.issue("1D").code for _ in range(50)}
        assert len(codes) == 50


class TestTrialCodes:
    """Tests for trial code minting."""

    @pytest.mark.parametrize("duration", list(Duration))
    def test_trial_code_for_every_duration(self, issuer, duration):
        """Every canonical duration yields SB-TRIAL-<DURATION>-<WORD> from its tier."""
        access_code = issuer.issue(duration, CodeKind.TRIAL)

        prefix = f"SB-TRIAL-{duration.value}-"
        assert access_code.code.startswith(prefix)
        assert access_code.code[len(prefix):] in TRIAL_WORDS[duration]
        assert access_code.duration == duration
        assert access_code.source == CodeSource.TRIAL

    @pytest.mark.parametrize("duration", list(Duration))
    def test_expiry_from_clock(self, issuer, duration):
        access_code = issuer.issue(duration, CodeKind.TRIAL)

        assert access_code.issued_at == NOW
        assert access_code.expires_at == NOW + timedelta(days=duration.days)
        assert access_code.redeemed is False

    def test_each_tier_has_ten_words(self):
        assert set(TRIAL_WORDS) == set(Duration)
        for words in TRIAL_WORDS.values():
            assert len(words) == 10
            assert len(set(words)) == 10

    def test_legacy_duration_token(self, issuer):
        """Legacy spellings are normalized before formatting."""
        access_code = issuer.issue("7 days", CodeKind.TRIAL)

        assert access_code.code.startswith("SB-TRIAL-7D-")
        assert access_code.duration == Duration.SEVEN_DAYS

    def test_excluded_codes_are_skipped(self, issuer):
        words = TRIAL_WORDS[Duration.SEVEN_DAYS]
        taken = [f"SB-TRIAL-7D-{w}" for w in words[:-1]]

        access_code = issuer.issue(Duration.SEVEN_DAYS, CodeKind.TRIAL, exclude=taken)

        assert access_code.code == f"SB-TRIAL-7D-{words[-1]}"

    def test_every_word_excluded_raises_conflict(self, issuer):
        taken = {f"SB-TRIAL-1D-{w}" for w in TRIAL_WORDS[Duration.ONE_DAY]}

        with pytest.raises(ConflictError):
            issuer.issue(Duration.ONE_DAY, CodeKind.TRIAL, exclude=taken)


class TestUnknownDurations:
    """Unknown durations are issued without expiry."""

    def test_unknown_trial_duration(self, issuer):
        access_code = issuer.issue("2W", CodeKind.TRIAL)

        all_words = {w for words in TRIAL_WORDS.values() for w in words}
        assert access_code.code.startswith("SB-TRIAL-2W-")
        assert access_code.code.split("-")[-1] in all_words
        assert access_code.duration is None
        assert access_code.expires_at is None

    def test_null_duration(self, issuer):
        trial = issuer.issue(None, CodeKind.TRIAL)
        premium = issuer.issue(None, CodeKind.PREMIUM)

        assert trial.code.startswith("SB-TRIAL-OPEN-")
        assert trial.expires_at is None
        assert is_premium_code(premium.code)
        assert premium.expires_at is None

    def test_label_keeps_alphanumerics_only(self, issuer):
        access_code = issuer.issue("six weeks!", CodeKind.TRIAL)
        assert access_code.code.startswith("SB-TRIAL-SIXWEEKS-")


class TestDurationParsing:
    """Tests for boundary normalization of duration tokens."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("1D", Duration.ONE_DAY),
            ("3d", Duration.THREE_DAYS),
            (" 7D ", Duration.SEVEN_DAYS),
            ("1 day", Duration.ONE_DAY),
            ("14 days", Duration.FOURTEEN_DAYS),
            ("30 days", Duration.THIRTY_DAYS),
            ("1 month", Duration.THIRTY_DAYS),
            (Duration.THREE_DAYS, Duration.THREE_DAYS),
        ],
    )
    def test_parse_known_values(self, value, expected):
        assert parse_duration(value) == expected

    @pytest.mark.parametrize("value", ["2D", "forever", "", None, 7])
    def test_parse_unknown_values(self, value):
        with pytest.raises(ValidationError) as exc_info:
            parse_duration(value)

        assert exc_info.value.field == "duration"
        assert exc_info.value.status_code == 400

    def test_labels(self):
        assert Duration.ONE_DAY.label == "1 day"
        assert Duration.SEVEN_DAYS.label == "7 days"
        assert Duration.THIRTY_DAYS.delta == timedelta(days=30)


class TestPremiumShape:
    """Tests for is_premium_code()."""

    @pytest.mark.parametrize(
        "code,expected",
        [
            ("SB-PREM-0123456789", True),
            ("SB-PREM-ABCDEF0123", True),
            ("SB-PREM-123", False),
            ("SB-PREM-0123456789A", False),
            ("SB-TRIAL-7D-NOVA", False),
            ("", False),
            (None, False),
        ],
    )
    def test_premium_shape(self, code, expected):
        assert is_premium_code(code) is expected
