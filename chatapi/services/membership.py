"""
Membership authorizer: who may see and act on a room.

Every room- and message-scoped operation calls require_member inside the same
transaction as the work it gates, so a membership removed concurrently cannot
slip between the check and the write.
"""

import logging
import uuid

from sqlalchemy import delete, exists, select
from sqlalchemy.orm import Session

from chatapi.models import ChatRoom, RoomMember, User
from chatapi.services.errors import (
    AlreadyMemberError,
    ForbiddenError,
    MemberNotFoundError,
    RoomNotFoundError,
    UserNotFoundError,
)
from chatapi.services.transactions import transaction

logger = logging.getLogger(__name__)


def is_member(db: Session, room_id: uuid.UUID, user_id: uuid.UUID) -> bool:
    """True if a membership row exists for (room_id, user_id)."""
    return bool(
        db.scalar(
            select(
                exists().where(RoomMember.room_id == room_id, RoomMember.user_id == user_id)
            )
        )
    )


def require_member(db: Session, room_id: uuid.UUID, user_id: uuid.UUID) -> None:
    """
    Gate for room-scoped work.

    Raises ForbiddenError when the room exists but user_id is not a member and
    RoomNotFoundError when the room does not exist. Room existence is not hidden.
    """
    if is_member(db, room_id, user_id):
        return
    if db.get(ChatRoom, room_id) is None:
        raise RoomNotFoundError()
    raise ForbiddenError("You are not a member of this room.")


def add_member(
    db: Session,
    room_id: uuid.UUID,
    actor_id: uuid.UUID,
    user_id: uuid.UUID,
) -> RoomMember:
    """
    Add user_id to the room on behalf of actor_id (who must be a member).

    Raises UserNotFoundError for an unknown user and AlreadyMemberError when a
    membership row exists, including when a concurrent add wins the
    (room_id, user_id) unique constraint.
    """
    with transaction(db, "add member", on_conflict=AlreadyMemberError):
        require_member(db, room_id, actor_id)
        if db.get(User, user_id) is None:
            raise UserNotFoundError()
        if is_member(db, room_id, user_id):
            raise AlreadyMemberError()
        member = RoomMember(room_id=room_id, user_id=user_id)
        db.add(member)
        db.flush()
    logger.info("Member added: room_id=%s user_id=%s by=%s", room_id, user_id, actor_id)
    return member


def remove_member(
    db: Session,
    room_id: uuid.UUID,
    actor_id: uuid.UUID,
    user_id: uuid.UUID,
) -> None:
    """Remove user_id from the room on behalf of actor_id (who must be a member)."""
    with transaction(db, "remove member"):
        require_member(db, room_id, actor_id)
        result = db.execute(
            delete(RoomMember).where(
                RoomMember.room_id == room_id, RoomMember.user_id == user_id
            )
        )
        if result.rowcount == 0:
            raise MemberNotFoundError()
    logger.info("Member removed: room_id=%s user_id=%s by=%s", room_id, user_id, actor_id)
