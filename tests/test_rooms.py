"""Tests for chatapi.services.rooms: transactional creation, listing and updates."""

import unittest
import uuid
from datetime import UTC, datetime, timedelta
from unittest.mock import patch

from sqlalchemy import event, func, select
from sqlalchemy.exc import IntegrityError

from chatapi.models import ChatRoom, RoomMember
from chatapi.schemas.room import UpdateRoomRequest
from chatapi.services.errors import (
    ForbiddenError,
    InternalError,
    RoomNotFoundError,
    UnknownMemberError,
    ValidationFailedError,
)
from chatapi.services.messages import MessageService
from chatapi.services.rooms import RoomService
from tests.support import DatabaseTestCase


class RoomTestCase(DatabaseTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.rooms = RoomService(self.settings)
        self.alice = self.make_user("Alice")
        self.bob = self.make_user("Bob")

    def count(self, model) -> int:
        return self.db.scalar(select(func.count()).select_from(model))


class TestCreateRoom(RoomTestCase):
    def test_creator_is_member_and_duplicates_collapse(self) -> None:
        detail = self.rooms.create_room(
            self.db, self.alice.id, "Team", True, [self.bob.id, self.bob.id, self.alice.id]
        )
        member_ids = [m.user_id for m in detail.members]
        self.assertEqual(sorted(member_ids), sorted([self.alice.id, self.bob.id]))
        self.assertEqual(detail.room.name, "Team")
        self.assertTrue(detail.room.is_group_chat)
        self.assertIsNone(detail.last_message)

    def test_room_with_no_listed_members_has_only_creator(self) -> None:
        detail = self.rooms.create_room(self.db, self.alice.id, "Solo", False, [])
        self.assertEqual([m.user_id for m in detail.members], [self.alice.id])

    def test_unknown_member_rejects_whole_room(self) -> None:
        with self.assertRaises(UnknownMemberError):
            self.rooms.create_room(self.db, self.alice.id, "Team", True, [uuid.uuid4()])
        self.assertEqual(self.count(ChatRoom), 0)
        self.assertEqual(self.count(RoomMember), 0)

    def test_membership_failure_leaves_no_room(self) -> None:
        failure = IntegrityError("INSERT INTO room_members", {}, Exception("boom"))
        with patch("chatapi.services.rooms._add_memberships", side_effect=failure):
            with self.assertRaises(InternalError):
                self.rooms.create_room(self.db, self.alice.id, "Team", True, [self.bob.id])
        self.assertEqual(self.count(ChatRoom), 0)
        self.assertEqual(self.count(RoomMember), 0)


class TestGetRoom(RoomTestCase):
    def test_member_sees_room(self) -> None:
        created = self.rooms.create_room(self.db, self.alice.id, "Team", True, [self.bob.id])
        detail = self.rooms.get_room(self.db, created.room.id, self.bob.id)
        self.assertEqual(detail.room.id, created.room.id)
        self.assertEqual(len(detail.members), 2)

    def test_non_member_forbidden_and_missing_room_not_found(self) -> None:
        created = self.rooms.create_room(self.db, self.alice.id, "Private", False, [])
        with self.assertRaises(ForbiddenError):
            self.rooms.get_room(self.db, created.room.id, self.bob.id)
        with self.assertRaises(RoomNotFoundError):
            self.rooms.get_room(self.db, uuid.uuid4(), self.alice.id)


class TestListRooms(RoomTestCase):
    def test_lists_only_own_rooms_most_recent_first(self) -> None:
        older = self.rooms.create_room(self.db, self.alice.id, "Older", False, [self.bob.id])
        newer = self.rooms.create_room(self.db, self.alice.id, "Newer", False, [])
        self.rooms.create_room(self.db, self.bob.id, "Bob only", False, [])
        base = datetime(2026, 1, 1, tzinfo=UTC)
        older.room.updated_at = base
        newer.room.updated_at = base + timedelta(minutes=1)
        self.db.commit()

        page = self.rooms.list_rooms(self.db, self.alice.id)
        self.assertEqual([e.room.name for e in page.entries], ["Newer", "Older"])
        self.assertEqual([e.member_count for e in page.entries], [1, 2])
        self.assertEqual(page.total, 2)

        # A new message moves its room to the top.
        MessageService(self.settings).send_message(self.db, older.room.id, self.bob.id, "hi")
        page = self.rooms.list_rooms(self.db, self.alice.id)
        self.assertEqual(page.entries[0].room.name, "Older")
        self.assertEqual(page.entries[0].last_message.content, "hi")

    def test_last_messages_loaded_without_per_room_queries(self) -> None:
        messages = MessageService(self.settings)

        def statements_for_listing() -> int:
            executed = []

            def record(conn, cursor, statement, parameters, context, executemany) -> None:
                executed.append(statement)

            self.db.expire_all()
            event.listen(self.engine, "before_cursor_execute", record)
            try:
                self.rooms.list_rooms(self.db, self.alice.id)
            finally:
                event.remove(self.engine, "before_cursor_execute", record)
            return len(executed)

        first = self.rooms.create_room(self.db, self.alice.id, "Room 0", False, [self.bob.id])
        messages.send_message(self.db, first.room.id, self.alice.id, "hello 0")
        one_room = statements_for_listing()

        for i in range(1, 4):
            room = self.rooms.create_room(self.db, self.alice.id, f"Room {i}", False, [])
            messages.send_message(self.db, room.room.id, self.alice.id, f"hello {i}")
        self.assertEqual(statements_for_listing(), one_room)

    def test_last_message_skips_deleted_and_other_rooms(self) -> None:
        messages = MessageService(self.settings)
        first = self.rooms.create_room(self.db, self.alice.id, "First", False, [])
        second = self.rooms.create_room(self.db, self.alice.id, "Second", False, [])
        messages.send_message(self.db, first.room.id, self.alice.id, "kept")
        removed = messages.send_message(self.db, first.room.id, self.alice.id, "removed")
        messages.delete_message(self.db, removed.id, self.alice.id)

        page = self.rooms.list_rooms(self.db, self.alice.id)
        by_name = {e.room.name: e.last_message for e in page.entries}
        self.assertEqual(by_name["First"].content, "kept")
        self.assertIsNone(by_name["Second"])

    def test_pagination_reports_total(self) -> None:
        for i in range(3):
            self.rooms.create_room(self.db, self.alice.id, f"Room {i}", False, [])
        page = self.rooms.list_rooms(self.db, self.alice.id, page=2, page_size=2)
        self.assertEqual(len(page.entries), 1)
        self.assertEqual((page.page, page.page_size, page.total), (2, 2, 3))


class TestUpdateRoom(RoomTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.room_id = self.rooms.create_room(
            self.db, self.alice.id, "Team", True, [self.bob.id]
        ).room.id

    def test_member_renames_room(self) -> None:
        detail = self.rooms.update_room(
            self.db, self.room_id, self.bob.id, UpdateRoomRequest(name="Renamed")
        )
        self.assertEqual(detail.room.name, "Renamed")

    def test_omitted_name_is_left_untouched(self) -> None:
        detail = self.rooms.update_room(self.db, self.room_id, self.bob.id, UpdateRoomRequest())
        self.assertEqual(detail.room.name, "Team")

    def test_explicit_null_name_rejected(self) -> None:
        with self.assertRaises(ValidationFailedError):
            self.rooms.update_room(
                self.db, self.room_id, self.bob.id, UpdateRoomRequest(name=None)
            )

    def test_non_member_cannot_update(self) -> None:
        outsider = self.make_user("Carol")
        with self.assertRaises(ForbiddenError):
            self.rooms.update_room(
                self.db, self.room_id, outsider.id, UpdateRoomRequest(name="Hijacked")
            )


if __name__ == "__main__":
    unittest.main()
