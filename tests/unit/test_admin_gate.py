"""
Unit tests for admin authorization policies and the audit log.
"""

from datetime import datetime
from unittest.mock import Mock

import pytest

from premium_backend.services.admin_gate import AllowListGate, SingleDeveloperGate
from premium_backend.services.audit_service import AuditService
from premium_backend.services.exceptions import ForbiddenError, PersistenceError
from premium_backend.stores.base import DEVELOPER_ACTIONS


DEVELOPER_ID = "1362553254117904496"


class TestSingleDeveloperGate:
    """Tests for the default single-developer policy."""

    def test_developer_is_authorized(self):
        gate = SingleDeveloperGate(DEVELOPER_ID)
        assert gate.authorize(DEVELOPER_ID) is True

    def test_surrounding_whitespace_is_ignored(self):
        gate = SingleDeveloperGate(DEVELOPER_ID)
        assert gate.authorize(f" {DEVELOPER_ID} ") is True

    @pytest.mark.parametrize("caller", ["", None, "111111111111111111", DEVELOPER_ID[:-1]])
    def test_others_are_rejected(self, caller):
        gate = SingleDeveloperGate(DEVELOPER_ID)
        assert gate.authorize(caller) is False

    def test_require_raises_forbidden(self):
        gate = SingleDeveloperGate(DEVELOPER_ID)

        with pytest.raises(ForbiddenError) as exc_info:
            gate.require("111111111111111111")

        assert exc_info.value.status_code == 403
        assert exc_info.value.caller_id == "111111111111111111"

    def test_require_passes_for_developer(self):
        SingleDeveloperGate(DEVELOPER_ID).require(DEVELOPER_ID)

    def test_empty_developer_id_rejected(self):
        with pytest.raises(ValueError):
            SingleDeveloperGate("")


class TestAllowListGate:
    """Tests for the allow-list policy (SB_ADMIN_IDS)."""

    def test_members_are_authorized(self):
        gate = AllowListGate(["1", " 2 ", ""])

        assert gate.authorize("1") is True
        assert gate.authorize("2") is True
        assert gate.authorize("3") is False
        assert gate.authorize(None) is False


class TestAuditService:
    """Tests for the developer action log."""

    def test_record_stores_action(self, memory_store):
        now = datetime(2025, 3, 1, 12, 0, 0)
        audit = AuditService(memory_store, clock=lambda: now)

        entry = audit.record("send_trial", DEVELOPER_ID, target_id="all", duration="7D")

        stored = memory_store.get(DEVELOPER_ACTIONS, entry.id)
        assert stored["action"] == "send_trial"
        assert stored["target_id"] == "all"
        assert stored["duration"] == "7D"
        assert stored["timestamp"] == "2025-03-01T12:00:00Z"
        assert memory_store.list_by_owner(DEVELOPER_ACTIONS, DEVELOPER_ID) == [stored]

    def test_failed_write_is_logged_not_raised(self):
        store = Mock()
        store.put.side_effect = PersistenceError("disk full")
        audit = AuditService(store)

        assert audit.record("announce", DEVELOPER_ID, message="hello") is None
        store.put.assert_called_once()
