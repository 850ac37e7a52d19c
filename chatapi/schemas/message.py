"""Request/response schemas for message endpoints."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class SendMessageRequest(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)
    file_url: str | None = Field(default=None, max_length=2048)


class UpdateMessageRequest(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)


class SenderInfo(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    profile_image_url: str | None = None


class MessageResponse(BaseModel):
    """A visible message joined with its sender."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    room_id: uuid.UUID
    content: str
    file_url: str | None = None
    sender: SenderInfo
    created_at: datetime
    updated_at: datetime


class MessageListResponse(BaseModel):
    """
    Newest-first page of messages.

    next_cursor and next_cursor_id identify the oldest message in the page; pass
    them as `before` and `before_id` to fetch the next (older) page. Both are
    None when this is the last page.
    """

    messages: list[MessageResponse]
    page_size: int
    next_cursor: datetime | None = None
    next_cursor_id: uuid.UUID | None = None
