"""
Message service: send, list, read, edit and soft-delete.

Membership is checked in the same transaction as the read or write it gates.
Edit and delete additionally require the requester to be the sender, and edit
is only allowed within MESSAGE_EDIT_WINDOW_MINUTES of creation.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session

from chatapi.models import ChatRoom, Message
from chatapi.services.errors import (
    EditWindowExpiredError,
    ForbiddenError,
    MessageNotFoundError,
)
from chatapi.services.membership import require_member
from chatapi.services.transactions import transaction

if TYPE_CHECKING:
    from chatapi.core.config import Settings

logger = logging.getLogger(__name__)


@dataclass
class MessagePage:
    messages: list[Message]
    page_size: int
    next_cursor: datetime | None
    next_cursor_id: uuid.UUID | None = None


def _load_message(
    db: Session,
    message_id: uuid.UUID,
    include_deleted: bool = False,
    for_update: bool = False,
) -> Message:
    """
    Resolve a message by id.

    Soft-deleted rows are only returned with include_deleted=True; no HTTP
    route passes it.
    """
    stmt = select(Message).where(Message.id == message_id)
    if not include_deleted:
        stmt = stmt.where(Message.deleted_at.is_(None))
    if for_update:
        stmt = stmt.with_for_update(of=Message)
    message = db.scalars(stmt).first()
    if message is None:
        raise MessageNotFoundError()
    return message


class MessageService:
    def __init__(self, settings: "Settings") -> None:
        self.settings = settings

    @property
    def edit_window(self) -> timedelta:
        return timedelta(minutes=self.settings.MESSAGE_EDIT_WINDOW_MINUTES)

    def send_message(
        self,
        db: Session,
        room_id: uuid.UUID,
        sender_id: uuid.UUID,
        content: str,
        file_url: str | None = None,
    ) -> Message:
        """Insert a message into a room the sender belongs to."""
        now = datetime.now(UTC)
        with transaction(db, "send message"):
            require_member(db, room_id, sender_id)
            message = Message(
                room_id=room_id,
                user_id=sender_id,
                content=content,
                file_url=file_url,
                created_at=now,
                updated_at=now,
            )
            db.add(message)
            # Room activity drives room list ordering.
            room = db.get(ChatRoom, room_id)
            room.updated_at = now
            db.flush()
            db.refresh(message)

        logger.info(
            "Message sent: message_id=%s room_id=%s sender=%s", message.id, room_id, sender_id
        )
        return message

    def list_messages(
        self,
        db: Session,
        room_id: uuid.UUID,
        requester_id: uuid.UUID,
        before: datetime | None = None,
        page_size: int | None = None,
        before_id: uuid.UUID | None = None,
    ) -> MessagePage:
        """
        Visible messages newest first, keyset-paginated on (created_at, id).

        before is exclusive: only messages created strictly earlier are returned.
        With before_id as well, messages sharing the before timestamp but with a
        smaller id are included, so equal timestamps never straddle a page gap.
        """
        page_size = self._clamp_page_size(page_size)
        if before is not None and before.tzinfo is None:
            before = before.replace(tzinfo=UTC)

        with transaction(db, "list messages"):
            require_member(db, room_id, requester_id)
            stmt = select(Message).where(
                Message.room_id == room_id,
                Message.deleted_at.is_(None),
            )
            if before is not None and before_id is not None:
                stmt = stmt.where(
                    or_(
                        Message.created_at < before,
                        and_(Message.created_at == before, Message.id < before_id),
                    )
                )
            elif before is not None:
                stmt = stmt.where(Message.created_at < before)
            messages = list(
                db.scalars(
                    stmt.order_by(Message.created_at.desc(), Message.id.desc()).limit(page_size)
                ).all()
            )

        if len(messages) < page_size:
            return MessagePage(messages=messages, page_size=page_size, next_cursor=None)
        oldest = messages[-1]
        return MessagePage(
            messages=messages,
            page_size=page_size,
            next_cursor=oldest.created_at,
            next_cursor_id=oldest.id,
        )

    def get_message(
        self, db: Session, message_id: uuid.UUID, requester_id: uuid.UUID
    ) -> Message:
        with transaction(db, "load message"):
            message = _load_message(db, message_id)
            require_member(db, message.room_id, requester_id)
        return message

    def edit_message(
        self,
        db: Session,
        message_id: uuid.UUID,
        requester_id: uuid.UUID,
        content: str,
    ) -> Message:
        """
        Replace a message's content.

        Raises MessageNotFoundError for absent or deleted messages,
        ForbiddenError for non-members and non-senders, and
        EditWindowExpiredError once the edit window has passed.
        """
        now = datetime.now(UTC)
        with transaction(db, "update message"):
            message = _load_message(db, message_id, for_update=True)
            require_member(db, message.room_id, requester_id)
            self._require_sender(message, requester_id, "update")
            if now - message.created_at >= self.edit_window:
                raise EditWindowExpiredError(
                    f"Messages can only be edited within "
                    f"{self.settings.MESSAGE_EDIT_WINDOW_MINUTES} minutes."
                )
            message.content = content
            message.updated_at = now
            db.flush()

        logger.info("Message edited: message_id=%s", message_id)
        return message

    def delete_message(
        self, db: Session, message_id: uuid.UUID, requester_id: uuid.UUID
    ) -> None:
        """Soft-delete: the row stays, deleted_at hides it from every read path."""
        now = datetime.now(UTC)
        with transaction(db, "delete message"):
            message = _load_message(db, message_id, for_update=True)
            require_member(db, message.room_id, requester_id)
            self._require_sender(message, requester_id, "delete")
            message.deleted_at = now
            message.updated_at = now
            db.flush()

        logger.info("Message deleted: message_id=%s", message_id)

    def _require_sender(self, message: Message, requester_id: uuid.UUID, verb: str) -> None:
        if message.user_id != requester_id:
            raise ForbiddenError(f"You can only {verb} your own messages.")

    def _clamp_page_size(self, page_size: int | None) -> int:
        if page_size is None:
            return self.settings.MESSAGE_PAGE_SIZE_DEFAULT
        return max(1, min(page_size, self.settings.MESSAGE_PAGE_SIZE_MAX))
