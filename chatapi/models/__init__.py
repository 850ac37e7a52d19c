"""SQLAlchemy ORM models."""

from chatapi.models.base import Base
from chatapi.models.chat_room import ChatRoom
from chatapi.models.message import Message
from chatapi.models.room_member import RoomMember
from chatapi.models.user import User

__all__ = ["Base", "ChatRoom", "Message", "RoomMember", "User"]
