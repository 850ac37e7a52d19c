"""ORM model for chat rooms."""

import uuid

from sqlalchemy import Boolean, Column, String, Uuid
from sqlalchemy.orm import relationship

from chatapi.models.base import Base, UTCDateTime, utcnow


class ChatRoom(Base):
    """A direct or group conversation. Rooms are never hard-deleted."""

    __tablename__ = "chat_rooms"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False)
    is_group_chat = Column(Boolean, nullable=False, default=False)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow)

    members = relationship(
        "RoomMember",
        back_populates="room",
        order_by="RoomMember.joined_at",
        lazy="selectin",
    )
