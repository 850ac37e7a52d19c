"""Message endpoints: room-scoped send and list, message-scoped read, edit and delete."""

import uuid
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from chatapi.api.deps import get_message_service
from chatapi.api.v1.auth import CurrentUserDep
from chatapi.core.database import get_db
from chatapi.schemas.auth import MessageOnlyResponse
from chatapi.schemas.message import (
    MessageListResponse,
    MessageResponse,
    SendMessageRequest,
    UpdateMessageRequest,
)
from chatapi.services.messages import MessageService

router = APIRouter()

MessageServiceDep = Annotated[MessageService, Depends(get_message_service)]


@router.post(
    "/chatrooms/{room_id}/messages",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
def send_message(
    room_id: uuid.UUID,
    body: SendMessageRequest,
    user: CurrentUserDep,
    messages: MessageServiceDep,
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    message = messages.send_message(db, room_id, user.id, body.content, body.file_url)
    return MessageResponse.model_validate(message)


@router.get("/chatrooms/{room_id}/messages", response_model=MessageListResponse)
def list_messages(
    room_id: uuid.UUID,
    user: CurrentUserDep,
    messages: MessageServiceDep,
    db: Annotated[Session, Depends(get_db)],
    before: Annotated[datetime | None, Query()] = None,
    page_size: Annotated[int | None, Query(ge=1, le=100)] = None,
    before_id: Annotated[uuid.UUID | None, Query()] = None,
) -> MessageListResponse:
    """
    Newest-first page of messages in the room.

    To page backwards, pass the previous response's next_cursor as `before`
    and next_cursor_id as `before_id`.
    """
    page = messages.list_messages(
        db, room_id, user.id, before=before, page_size=page_size, before_id=before_id
    )
    return MessageListResponse(
        messages=[MessageResponse.model_validate(m) for m in page.messages],
        page_size=page.page_size,
        next_cursor=page.next_cursor,
        next_cursor_id=page.next_cursor_id,
    )


@router.get("/messages/{message_id}", response_model=MessageResponse)
def get_message(
    message_id: uuid.UUID,
    user: CurrentUserDep,
    messages: MessageServiceDep,
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    return MessageResponse.model_validate(messages.get_message(db, message_id, user.id))


@router.put("/messages/{message_id}", response_model=MessageResponse)
def edit_message(
    message_id: uuid.UUID,
    body: UpdateMessageRequest,
    user: CurrentUserDep,
    messages: MessageServiceDep,
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    """Replace the content of your own message. Only allowed shortly after sending."""
    message = messages.edit_message(db, message_id, user.id, body.content)
    return MessageResponse.model_validate(message)


@router.delete("/messages/{message_id}", response_model=MessageOnlyResponse)
def delete_message(
    message_id: uuid.UUID,
    user: CurrentUserDep,
    messages: MessageServiceDep,
    db: Annotated[Session, Depends(get_db)],
) -> MessageOnlyResponse:
    messages.delete_message(db, message_id, user.id)
    return MessageOnlyResponse(message="Message deleted.")
