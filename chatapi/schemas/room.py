"""Request/response schemas for chat room endpoints."""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class CreateRoomRequest(BaseModel):
    """Room to create. The creator is always a member, listed or not."""

    name: str = Field(..., min_length=1, max_length=100)
    is_group_chat: bool = False
    member_ids: list[uuid.UUID] = Field(default_factory=list, max_length=100)


class UpdateRoomRequest(BaseModel):
    """Partial room update; omitted fields are left untouched."""

    name: str | None = Field(default=None, min_length=1, max_length=100)


class AddMemberRequest(BaseModel):
    user_id: uuid.UUID


class RoomMemberInfo(BaseModel):
    user_id: uuid.UUID
    name: str
    email: str
    joined_at: datetime


class LastMessageInfo(BaseModel):
    id: uuid.UUID
    content: str
    sender_id: uuid.UUID
    sender_name: str
    created_at: datetime


class RoomResponse(BaseModel):
    """Room with its members and most recent visible message."""

    id: uuid.UUID
    name: str
    is_group_chat: bool
    created_at: datetime
    updated_at: datetime
    members: list[RoomMemberInfo]
    last_message: LastMessageInfo | None = None


class RoomListItem(BaseModel):
    id: uuid.UUID
    name: str
    is_group_chat: bool
    created_at: datetime
    updated_at: datetime
    member_count: int
    last_message: LastMessageInfo | None = None


class PageInfo(BaseModel):
    page: int
    page_size: int
    total: int


class RoomListResponse(BaseModel):
    rooms: list[RoomListItem]
    pagination: PageInfo
