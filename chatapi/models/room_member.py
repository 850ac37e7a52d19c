"""ORM model for room membership rows."""

from sqlalchemy import Column, ForeignKey, Integer, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from chatapi.models.base import Base, UTCDateTime, utcnow


class RoomMember(Base):
    """
    (room, user) membership.

    The unique constraint on (room_id, user_id) is the final arbiter for
    concurrent adds; a violation means the user is already a member.
    """

    __tablename__ = "room_members"
    __table_args__ = (
        UniqueConstraint("room_id", "user_id", name="uq_room_members_room_id_user_id"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    room_id = Column(Uuid, ForeignKey("chat_rooms.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    joined_at = Column(UTCDateTime, nullable=False, default=utcnow)

    room = relationship("ChatRoom", back_populates="members")
    user = relationship("User", lazy="joined", innerjoin=True)
