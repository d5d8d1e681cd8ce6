"""
Unit tests for NotificationService.

Tests the notification feed for:
- Append, ordering and retention eviction
- Announcements (admin only, minimum length, default title)
- Lazy re-posting of the persistent announcement
- Deleting the latest announcement
"""

from datetime import datetime, timedelta
from unittest.mock import Mock

import pytest
from freezegun import freeze_time

from premium_backend.models.records import NotificationType, PersistentAnnouncement
from premium_backend.services.admin_gate import SingleDeveloperGate
from premium_backend.services.delivery_service import DeliveryReport
from premium_backend.services.exceptions import ForbiddenError, NotFoundError, ValidationError
from premium_backend.services.notification_service import (
    DEFAULT_ANNOUNCEMENT_TITLE,
    NotificationService,
    advance,
    due_for_repeat,
)
from premium_backend.stores.base import DEVELOPER_ACTIONS, NOTIFICATIONS, PERSISTENT_ANNOUNCEMENT
from premium_backend.stores.memory_store import InMemoryDocumentStore


DEVELOPER_ID = "1362553254117904496"
USER_U = "111111111111111111"
T0 = datetime(2025, 3, 1, 12, 0, 0)


def announcements(feed):
    return [n for n in feed if n.type == NotificationType.ANNOUNCEMENT]


class TestRepeatSchedule:
    """Tests for the pure due_for_repeat()/advance() helpers."""

    def test_not_due_without_state(self):
        assert due_for_repeat(None, T0) is False

    def test_not_due_when_inactive(self):
        state = PersistentAnnouncement("hello world", "t", T0, is_active=False)
        assert due_for_repeat(state, T0 + timedelta(hours=1)) is False

    def test_due_strictly_after_interval(self):
        state = PersistentAnnouncement("hello world", "t", T0, is_active=True)

        assert due_for_repeat(state, T0 + timedelta(minutes=15)) is False
        assert due_for_repeat(state, T0 + timedelta(minutes=15, seconds=1)) is True

    def test_custom_interval(self):
        state = PersistentAnnouncement("hello world", "t", T0, is_active=True)
        assert due_for_repeat(state, T0 + timedelta(minutes=2), timedelta(minutes=1)) is True

    def test_advance_resets_timer(self):
        state = PersistentAnnouncement("hello world", "t", T0, is_active=True)
        later = T0 + timedelta(minutes=20)

        advanced = advance(state, later)

        assert advanced.last_sent == later
        assert state.last_sent == T0
        assert due_for_repeat(advanced, later) is False


class TestFeed:
    """Tests for append and listing."""

    def test_append_assigns_id_and_timestamp(self, notification_service, clock):
        entry = notification_service.append(NotificationType.CLAIM, "claimed", author=USER_U)

        assert entry.id
        assert entry.timestamp == clock.now
        assert entry.repeating is False

    def test_newest_first(self, notification_service, clock):
        notification_service.append(NotificationType.CLAIM, "first", author=USER_U)
        clock.advance(minutes=1)
        notification_service.append(NotificationType.TRIAL, "second", author=DEVELOPER_ID)

        feed = notification_service.list_notifications()

        assert [n.message for n in feed] == ["second", "first"]

    def test_equal_timestamps_newest_inserted_first(self, notification_service):
        for i in range(3):
            notification_service.append(NotificationType.CLAIM, f"m{i}", author=USER_U)

        feed = notification_service.list_notifications()

        assert [n.message for n in feed] == ["m2", "m1", "m0"]

    def test_retention_evicts_oldest(self, notification_service, memory_store, clock):
        for i in range(12):
            notification_service.append(NotificationType.CLAIM, f"m{i}", author=USER_U)
            clock.advance(seconds=1)

        feed = notification_service.list_notifications()

        assert len(feed) == 10
        assert len(memory_store.list_all(NOTIFICATIONS)) == 10
        assert feed[-1].message == "m2"
        assert feed[0].message == "m11"

    def test_retention_must_be_positive(self, memory_store, admin_gate):
        with pytest.raises(ValueError):
            NotificationService(memory_store, admin_gate, retention=0)


class TestAnnounce:
    """Tests for developer announcements."""

    def test_non_admin_forbidden(self, notification_service, memory_store):
        with pytest.raises(ForbiddenError):
            notification_service.announce(USER_U, "Hello everyone", persistent=True)

        assert memory_store.list_all(NOTIFICATIONS) == []
        assert memory_store.get(PERSISTENT_ANNOUNCEMENT, "current") is None

    @pytest.mark.parametrize("message", ["", "hey", "   hi   ", None])
    def test_short_message_rejected(self, notification_service, memory_store, message):
        with pytest.raises(ValidationError) as exc_info:
            notification_service.announce(DEVELOPER_ID, message)

        assert exc_info.value.field == "message"
        assert memory_store.list_all(NOTIFICATIONS) == []

    def test_announcement_entry(self, notification_service):
        result = notification_service.announce(DEVELOPER_ID, "  Server maintenance tonight  ")

        assert result.persistent is False
        assert result.notification.message == "Server maintenance tonight"
        assert result.notification.title == DEFAULT_ANNOUNCEMENT_TITLE
        assert result.notification.author == DEVELOPER_ID
        assert result.notification.type == NotificationType.ANNOUNCEMENT

    def test_custom_title(self, notification_service):
        result = notification_service.announce(DEVELOPER_ID, "New features!", title="Update")
        assert result.notification.title == "Update"

    def test_persistent_installs_state(self, notification_service, clock):
        notification_service.announce(DEVELOPER_ID, "Vote for the bot", persistent=True, title="Vote")

        state = notification_service.get_persistent_state()
        assert state.is_active is True
        assert state.message == "Vote for the bot"
        assert state.title == "Vote"
        assert state.last_sent == clock.now

    def test_non_persistent_deactivates_state(self, notification_service, clock):
        notification_service.announce(DEVELOPER_ID, "Vote for the bot", persistent=True)
        notification_service.announce(DEVELOPER_ID, "One-off message")

        assert notification_service.get_persistent_state().is_active is False

        clock.advance(hours=1)
        feed = notification_service.list_notifications()
        assert not any(n.repeating for n in feed)

    def test_announce_is_audited(self, notification_service, memory_store):
        notification_service.announce(DEVELOPER_ID, "Audited message")

        actions = memory_store.list_all(DEVELOPER_ACTIONS)
        assert [a["action"] for a in actions] == ["announce"]
        assert actions[0]["message"] == "Audited message"

    def test_announcement_delivered(self, memory_store, admin_gate, clock):
        delivery = Mock()
        delivery.announcement.return_value = DeliveryReport(delivered=["webhook"])
        service = NotificationService(memory_store, admin_gate, delivery=delivery, clock=clock)

        result = service.announce(DEVELOPER_ID, "Webhook message", title="News")

        delivery.announcement.assert_called_once_with("News", "Webhook message")
        assert result.delivery.warnings == []


class TestRepeatingAnnouncement:
    """Lazy re-posting of the persistent announcement on read."""

    def test_not_repeated_before_interval(self, notification_service, clock):
        notification_service.announce(DEVELOPER_ID, "Vote for the bot", persistent=True)
        clock.advance(minutes=15)

        feed = notification_service.list_notifications()

        assert len(feed) == 1
        assert feed[0].repeating is False

    def test_repeated_once_after_interval(self, notification_service, clock):
        notification_service.announce(DEVELOPER_ID, "Vote for the bot", persistent=True, title="Vote")
        clock.advance(minutes=16)

        feed = notification_service.list_notifications()

        entries = announcements(feed)
        assert len(entries) == 1
        assert entries[0].repeating is True
        assert entries[0].title == "(Repeating) Vote"
        assert entries[0].author == "system"
        assert entries[0].message == "Vote for the bot"
        assert entries[0].timestamp == clock.now
        assert notification_service.get_persistent_state().last_sent == clock.now

    def test_second_read_does_not_duplicate(self, notification_service, clock):
        notification_service.announce(DEVELOPER_ID, "Vote for the bot", persistent=True)
        clock.advance(minutes=16)

        first = notification_service.list_notifications()
        second = notification_service.list_notifications()

        assert [n.id for n in first] == [n.id for n in second]
        assert len(announcements(second)) == 1

    def test_repeats_again_after_next_interval(self, notification_service, clock):
        notification_service.announce(DEVELOPER_ID, "Vote for the bot", persistent=True)
        clock.advance(minutes=16)
        first = announcements(notification_service.list_notifications())[0]
        clock.advance(minutes=16)

        feed = notification_service.list_notifications()

        entries = announcements(feed)
        assert len(entries) == 1
        assert entries[0].id != first.id

    def test_other_entries_kept(self, notification_service, clock):
        notification_service.append(NotificationType.CLAIM, "claimed", author=USER_U)
        notification_service.announce(DEVELOPER_ID, "Other news here")
        notification_service.announce(DEVELOPER_ID, "Vote for the bot", persistent=True)
        clock.advance(minutes=30)

        feed = notification_service.list_notifications()

        assert [n.message for n in feed] == ["Vote for the bot", "Other news here", "claimed"]
        assert feed[0].repeating is True

    def test_plain_post_with_same_text_survives_repeat(self, notification_service, clock):
        """Only the persistent post and earlier repeats are replaced."""
        notification_service.announce(DEVELOPER_ID, "Vote for the bot")
        clock.advance(minutes=1)
        persistent = notification_service.announce(DEVELOPER_ID, "Vote for the bot", persistent=True)
        clock.advance(minutes=16)

        feed = notification_service.list_notifications()

        entries = announcements(feed)
        assert [(n.message, n.repeating) for n in entries] == [
            ("Vote for the bot", True),
            ("Vote for the bot", False),
        ]
        assert persistent.notification.id not in [n.id for n in entries]
        assert notification_service.get_persistent_state().notification_id == persistent.notification.id

    def test_shared_store_readers_post_once(self, memory_store, clock):
        """Two service instances on one store re-post the message only once."""
        gate = SingleDeveloperGate(DEVELOPER_ID)
        reader_a = NotificationService(memory_store, gate, clock=clock)
        reader_b = NotificationService(memory_store, gate, clock=clock)
        reader_a.announce(DEVELOPER_ID, "Vote for the bot", persistent=True)
        clock.advance(minutes=20)

        reader_a.list_notifications()
        feed = reader_b.list_notifications()

        assert len(announcements(feed)) == 1

    def test_with_frozen_time(self, memory_store, admin_gate):
        """The default clock follows freezegun."""
        service = NotificationService(memory_store, admin_gate)

        with freeze_time("2025-01-01 12:00:00") as frozen:
            service.announce(DEVELOPER_ID, "Vote for the bot", persistent=True)
            frozen.tick(timedelta(minutes=16))

            feed = service.list_notifications()

        assert feed[0].repeating is True
        assert feed[0].timestamp == datetime(2025, 1, 1, 12, 16, 0)


class TestDeleteLastAnnouncement:
    """Tests for delete_last_announcement()."""

    def test_no_announcement_not_found_without_mutation(self, notification_service, memory_store):
        notification_service.append(NotificationType.CLAIM, "claimed", author=USER_U)
        before = memory_store.list_all(NOTIFICATIONS)

        with pytest.raises(NotFoundError) as exc_info:
            notification_service.delete_last_announcement(DEVELOPER_ID)

        assert exc_info.value.status_code == 404
        assert memory_store.list_all(NOTIFICATIONS) == before
        assert memory_store.list_all(DEVELOPER_ACTIONS) == []

    def test_deletes_newest_announcement(self, notification_service, clock):
        notification_service.announce(DEVELOPER_ID, "First announcement")
        clock.advance(minutes=1)
        notification_service.announce(DEVELOPER_ID, "Second announcement")
        clock.advance(minutes=1)
        notification_service.append(NotificationType.CLAIM, "claimed", author=USER_U)

        removed = notification_service.delete_last_announcement(DEVELOPER_ID)

        assert removed.message == "Second announcement"
        feed = notification_service.list_notifications()
        assert [n.message for n in feed] == ["claimed", "First announcement"]

    def test_deleting_persistent_message_deactivates(self, notification_service, clock):
        notification_service.announce(DEVELOPER_ID, "Vote for the bot", persistent=True)

        notification_service.delete_last_announcement(DEVELOPER_ID)

        assert notification_service.get_persistent_state().is_active is False
        clock.advance(hours=1)
        assert notification_service.list_notifications() == []

    def test_deleting_other_message_keeps_persistence(self, notification_service, memory_store):
        notification_service.announce(DEVELOPER_ID, "Vote for the bot", persistent=True)
        state = memory_store.get(PERSISTENT_ANNOUNCEMENT, "current")
        notification_service.append(
            NotificationType.ANNOUNCEMENT, "Unrelated note", author=DEVELOPER_ID
        )

        removed = notification_service.delete_last_announcement(DEVELOPER_ID)

        assert removed.message == "Unrelated note"
        assert memory_store.get(PERSISTENT_ANNOUNCEMENT, "current") == state

    def test_delete_is_audited(self, notification_service, memory_store):
        notification_service.announce(DEVELOPER_ID, "To be removed")

        removed = notification_service.delete_last_announcement(DEVELOPER_ID)

        actions = [
            a for a in memory_store.list_all(DEVELOPER_ACTIONS) if a["action"] == "delete_announcement"
        ]
        assert len(actions) == 1
        assert actions[0]["target_id"] == removed.id

    def test_non_admin_forbidden(self, notification_service, memory_store):
        notification_service.announce(DEVELOPER_ID, "Stays in place")
        before = memory_store.list_all(NOTIFICATIONS)

        with pytest.raises(ForbiddenError):
            notification_service.delete_last_announcement(USER_U)

        assert memory_store.list_all(NOTIFICATIONS) == before
