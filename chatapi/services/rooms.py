"""Room service: transactional room creation, listing and membership-gated reads/updates."""

import logging
import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from chatapi.models import ChatRoom, Message, RoomMember, User
from chatapi.schemas.room import UpdateRoomRequest
from chatapi.services.errors import (
    RoomNotFoundError,
    UnknownMemberError,
    ValidationFailedError,
)
from chatapi.services.membership import require_member
from chatapi.services.transactions import transaction

if TYPE_CHECKING:
    from chatapi.core.config import Settings

logger = logging.getLogger(__name__)


@dataclass
class RoomDetail:
    room: ChatRoom
    members: list[RoomMember]
    last_message: Message | None


@dataclass
class RoomListEntry:
    room: ChatRoom
    member_count: int
    last_message: Message | None


@dataclass
class RoomPage:
    entries: list[RoomListEntry]
    page: int
    page_size: int
    total: int


def latest_visible_message(db: Session, room_id: uuid.UUID) -> Message | None:
    """Most recent message in the room that has not been soft-deleted."""
    return db.scalars(
        select(Message)
        .where(Message.room_id == room_id, Message.deleted_at.is_(None))
        .order_by(Message.created_at.desc(), Message.id.desc())
        .limit(1)
    ).first()


def latest_visible_messages(db: Session, room_ids: list[uuid.UUID]) -> dict[uuid.UUID, Message]:
    """Most recent non-deleted message per room, for many rooms in one query."""
    if not room_ids:
        return {}
    ranked = (
        select(
            Message.id,
            func.row_number()
            .over(
                partition_by=Message.room_id,
                order_by=(Message.created_at.desc(), Message.id.desc()),
            )
            .label("position"),
        )
        .where(Message.room_id.in_(room_ids), Message.deleted_at.is_(None))
        .subquery()
    )
    latest = db.scalars(
        select(Message).join(ranked, Message.id == ranked.c.id).where(ranked.c.position == 1)
    ).all()
    return {message.room_id: message for message in latest}


def _add_memberships(db: Session, room_id: uuid.UUID, member_ids: list[uuid.UUID]) -> None:
    db.add_all([RoomMember(room_id=room_id, user_id=user_id) for user_id in member_ids])
    db.flush()


class RoomService:
    """Chat room operations. Every read and update is gated by membership."""

    def __init__(self, settings: "Settings") -> None:
        self.settings = settings

    def create_room(
        self,
        db: Session,
        creator_id: uuid.UUID,
        name: str,
        is_group_chat: bool,
        member_ids: list[uuid.UUID],
    ) -> RoomDetail:
        """
        Create a room together with its initial memberships.

        The member set is the creator plus member_ids, deduplicated. If any of
        them is not an existing user, raises UnknownMemberError before writing
        anything. The room row and all membership rows are committed together
        or not at all.
        """
        members = list(dict.fromkeys([creator_id, *member_ids]))

        with transaction(db, "create chat room"):
            found = db.scalar(
                select(func.count()).select_from(User).where(User.id.in_(members))
            )
            if found != len(members):
                raise UnknownMemberError()
            room = ChatRoom(name=name, is_group_chat=is_group_chat)
            db.add(room)
            db.flush()
            _add_memberships(db, room.id, members)
            detail = self._load_detail(db, room.id)

        logger.info(
            "Chat room created: room_id=%s creator=%s members=%s",
            detail.room.id,
            creator_id,
            len(members),
        )
        return detail

    def get_room(self, db: Session, room_id: uuid.UUID, user_id: uuid.UUID) -> RoomDetail:
        with transaction(db, "load chat room"):
            require_member(db, room_id, user_id)
            return self._load_detail(db, room_id)

    def list_rooms(
        self,
        db: Session,
        user_id: uuid.UUID,
        page: int = 1,
        page_size: int | None = None,
    ) -> RoomPage:
        """Rooms the user belongs to, most recently active first."""
        page = max(page, 1)
        page_size = self._clamp_page_size(page_size)

        with transaction(db, "list chat rooms"):
            rooms = db.scalars(
                select(ChatRoom)
                .join(RoomMember, RoomMember.room_id == ChatRoom.id)
                .where(RoomMember.user_id == user_id)
                .order_by(ChatRoom.updated_at.desc(), ChatRoom.id)
                .offset((page - 1) * page_size)
                .limit(page_size)
            ).all()
            total = db.scalar(
                select(func.count()).select_from(RoomMember).where(RoomMember.user_id == user_id)
            )
            room_ids = [r.id for r in rooms]
            counts: dict[uuid.UUID, int] = {}
            if room_ids:
                counts = dict(
                    db.execute(
                        select(RoomMember.room_id, func.count())
                        .where(RoomMember.room_id.in_(room_ids))
                        .group_by(RoomMember.room_id)
                    ).all()
                )
            last_messages = latest_visible_messages(db, room_ids)
            entries = [
                RoomListEntry(
                    room=room,
                    member_count=counts.get(room.id, 0),
                    last_message=last_messages.get(room.id),
                )
                for room in rooms
            ]

        return RoomPage(entries=entries, page=page, page_size=page_size, total=total or 0)

    def update_room(
        self,
        db: Session,
        room_id: uuid.UUID,
        user_id: uuid.UUID,
        update: UpdateRoomRequest,
    ) -> RoomDetail:
        """Apply the fields present in update. Any member may rename a room."""
        with transaction(db, "update chat room"):
            require_member(db, room_id, user_id)
            room = db.get(ChatRoom, room_id)
            if room is None:
                raise RoomNotFoundError()
            if "name" in update.model_fields_set:
                if update.name is None:
                    raise ValidationFailedError("Room name cannot be null.")
                room.name = update.name
            db.flush()
            detail = self._load_detail(db, room_id)

        logger.info("Chat room updated: room_id=%s by=%s", room_id, user_id)
        return detail

    def _load_detail(self, db: Session, room_id: uuid.UUID) -> RoomDetail:
        room = db.scalars(
            select(ChatRoom)
            .where(ChatRoom.id == room_id)
            .options(selectinload(ChatRoom.members))
            .execution_options(populate_existing=True)
        ).first()
        if room is None:
            raise RoomNotFoundError()
        return RoomDetail(
            room=room,
            members=list(room.members),
            last_message=latest_visible_message(db, room_id),
        )

    def _clamp_page_size(self, page_size: int | None) -> int:
        if page_size is None:
            return self.settings.ROOM_PAGE_SIZE_DEFAULT
        return max(1, min(page_size, self.settings.ROOM_PAGE_SIZE_MAX))
