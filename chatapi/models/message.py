"""ORM model for chat messages."""

import uuid

from sqlalchemy import Column, ForeignKey, Index, Text, Uuid
from sqlalchemy.orm import relationship

from chatapi.models.base import Base, UTCDateTime, utcnow


class Message(Base):
    """
    A message in a room. Visible only while deleted_at is NULL.

    user_id is the sender; only the sender may edit or delete.
    """

    __tablename__ = "messages"
    __table_args__ = (Index("ix_messages_room_id_created_at", "room_id", "created_at"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    room_id = Column(Uuid, ForeignKey("chat_rooms.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    content = Column(Text, nullable=False)
    file_url = Column(Text, nullable=True)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow)
    deleted_at = Column(UTCDateTime, nullable=True)

    sender = relationship("User", lazy="joined", innerjoin=True)
