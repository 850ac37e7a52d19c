"""Tests for chatapi.services.messages: send, keyset listing, edit window and soft delete."""

import unittest
import uuid
from datetime import UTC, datetime, timedelta

from chatapi.models import Message
from chatapi.services.errors import (
    EditWindowExpiredError,
    ForbiddenError,
    MessageNotFoundError,
    RoomNotFoundError,
)
from chatapi.services.messages import MessageService, _load_message
from chatapi.services.rooms import RoomService, latest_visible_message
from tests.support import DatabaseTestCase


class MessageTestCase(DatabaseTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.messages = MessageService(self.settings)
        self.alice = self.make_user("Alice")
        self.bob = self.make_user("Bob")
        self.outsider = self.make_user("Carol")
        self.room_id = RoomService(self.settings).create_room(
            self.db, self.alice.id, "Team", True, [self.bob.id]
        ).room.id

    def backdate(self, message: Message, minutes: float) -> None:
        message.created_at = datetime.now(UTC) - timedelta(minutes=minutes)
        self.db.commit()


class TestSendMessage(MessageTestCase):
    def test_member_sends_message(self) -> None:
        message = self.messages.send_message(self.db, self.room_id, self.bob.id, "hello")
        self.assertEqual(message.content, "hello")
        self.assertEqual(message.sender.name, "Bob")
        self.assertIsNone(message.deleted_at)

    def test_outsider_forbidden(self) -> None:
        with self.assertRaises(ForbiddenError):
            self.messages.send_message(self.db, self.room_id, self.outsider.id, "hello")

    def test_missing_room_not_found(self) -> None:
        with self.assertRaises(RoomNotFoundError):
            self.messages.send_message(self.db, uuid.uuid4(), self.alice.id, "hello")


class TestListMessages(MessageTestCase):
    def setUp(self) -> None:
        super().setUp()
        base = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)
        self.times = [base + timedelta(minutes=i) for i in range(5)]
        for i, created_at in enumerate(self.times):
            self.db.add(
                Message(
                    room_id=self.room_id,
                    user_id=self.alice.id,
                    content=f"m{i}",
                    created_at=created_at,
                    updated_at=created_at,
                )
            )
        self.db.commit()

    def test_newest_first_with_cursor(self) -> None:
        first = self.messages.list_messages(self.db, self.room_id, self.bob.id, page_size=2)
        self.assertEqual([m.content for m in first.messages], ["m4", "m3"])
        self.assertEqual(first.next_cursor, self.times[3])

        second = self.messages.list_messages(
            self.db, self.room_id, self.bob.id, before=first.next_cursor, page_size=2
        )
        self.assertEqual([m.content for m in second.messages], ["m2", "m1"])

        last = self.messages.list_messages(
            self.db, self.room_id, self.bob.id, before=second.next_cursor, page_size=2
        )
        self.assertEqual([m.content for m in last.messages], ["m0"])
        self.assertIsNone(last.next_cursor)

    def test_naive_cursor_treated_as_utc(self) -> None:
        page = self.messages.list_messages(
            self.db, self.room_id, self.bob.id, before=self.times[2].replace(tzinfo=None)
        )
        self.assertEqual([m.content for m in page.messages], ["m1", "m0"])

    def test_page_size_is_clamped(self) -> None:
        page = self.messages.list_messages(self.db, self.room_id, self.bob.id, page_size=1000)
        self.assertEqual(page.page_size, self.settings.MESSAGE_PAGE_SIZE_MAX)
        self.assertEqual(len(page.messages), 5)

    def test_outsider_forbidden(self) -> None:
        with self.assertRaises(ForbiddenError):
            self.messages.list_messages(self.db, self.room_id, self.outsider.id)


class TestListMessagesSharedTimestamp(MessageTestCase):
    def test_id_cursor_walks_messages_with_equal_timestamps(self) -> None:
        created_at = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)
        for content in ("a", "b", "c"):
            self.db.add(
                Message(
                    room_id=self.room_id,
                    user_id=self.alice.id,
                    content=content,
                    created_at=created_at,
                    updated_at=created_at,
                )
            )
        self.db.commit()

        seen = []
        before, before_id = None, None
        for _ in range(5):
            page = self.messages.list_messages(
                self.db, self.room_id, self.bob.id, before=before, page_size=1, before_id=before_id
            )
            seen.extend(m.content for m in page.messages)
            if page.next_cursor is None:
                break
            self.assertEqual(page.next_cursor, created_at)
            before, before_id = page.next_cursor, page.next_cursor_id

        self.assertEqual(sorted(seen), ["a", "b", "c"])


class TestEditMessage(MessageTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.message = self.messages.send_message(self.db, self.room_id, self.bob.id, "draft")

    def test_sender_edits_within_window(self) -> None:
        self.backdate(self.message, 4)
        edited = self.messages.edit_message(self.db, self.message.id, self.bob.id, "final")
        self.assertEqual(edited.content, "final")
        self.assertGreater(edited.updated_at, edited.created_at)

    def test_edit_after_window_rejected(self) -> None:
        self.backdate(self.message, 6)
        with self.assertRaises(EditWindowExpiredError):
            self.messages.edit_message(self.db, self.message.id, self.bob.id, "too late")
        self.db.expire_all()
        self.assertEqual(self.messages.get_message(self.db, self.message.id, self.bob.id).content, "draft")

    def test_other_member_cannot_edit(self) -> None:
        with self.assertRaises(ForbiddenError):
            self.messages.edit_message(self.db, self.message.id, self.alice.id, "mine now")

    def test_outsider_cannot_edit(self) -> None:
        with self.assertRaises(ForbiddenError):
            self.messages.edit_message(self.db, self.message.id, self.outsider.id, "hi")

    def test_missing_message_not_found(self) -> None:
        with self.assertRaises(MessageNotFoundError):
            self.messages.edit_message(self.db, uuid.uuid4(), self.bob.id, "hi")


class TestDeleteMessage(MessageTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.message = self.messages.send_message(self.db, self.room_id, self.bob.id, "oops")

    def test_soft_delete_hides_message_everywhere(self) -> None:
        self.messages.delete_message(self.db, self.message.id, self.bob.id)

        with self.assertRaises(MessageNotFoundError):
            self.messages.get_message(self.db, self.message.id, self.bob.id)
        listed = self.messages.list_messages(self.db, self.room_id, self.alice.id)
        self.assertEqual(listed.messages, [])
        self.assertIsNone(latest_visible_message(self.db, self.room_id))
        with self.assertRaises(MessageNotFoundError):
            self.messages.edit_message(self.db, self.message.id, self.bob.id, "undo")
        with self.assertRaises(MessageNotFoundError):
            self.messages.delete_message(self.db, self.message.id, self.bob.id)

        # The row itself is kept.
        stored = _load_message(self.db, self.message.id, include_deleted=True)
        self.assertIsNotNone(stored.deleted_at)
        self.assertEqual(stored.content, "oops")

    def test_only_sender_may_delete(self) -> None:
        with self.assertRaises(ForbiddenError):
            self.messages.delete_message(self.db, self.message.id, self.alice.id)
        self.assertEqual(self.messages.get_message(self.db, self.message.id, self.alice.id).id, self.message.id)


if __name__ == "__main__":
    unittest.main()
