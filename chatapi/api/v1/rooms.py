"""Chat room endpoints: create, list, read, rename and manage members."""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from chatapi.api.deps import get_room_service
from chatapi.api.v1.auth import CurrentUserDep
from chatapi.core.database import get_db
from chatapi.models import Message
from chatapi.schemas.auth import MessageOnlyResponse
from chatapi.schemas.room import (
    AddMemberRequest,
    CreateRoomRequest,
    LastMessageInfo,
    PageInfo,
    RoomListItem,
    RoomListResponse,
    RoomMemberInfo,
    RoomResponse,
    UpdateRoomRequest,
)
from chatapi.services import membership
from chatapi.services.rooms import RoomDetail, RoomService

router = APIRouter()

RoomServiceDep = Annotated[RoomService, Depends(get_room_service)]


def _last_message_info(message: Message | None) -> LastMessageInfo | None:
    if message is None:
        return None
    return LastMessageInfo(
        id=message.id,
        content=message.content,
        sender_id=message.user_id,
        sender_name=message.sender.name,
        created_at=message.created_at,
    )


def _room_response(detail: RoomDetail) -> RoomResponse:
    room = detail.room
    return RoomResponse(
        id=room.id,
        name=room.name,
        is_group_chat=room.is_group_chat,
        created_at=room.created_at,
        updated_at=room.updated_at,
        members=[
            RoomMemberInfo(
                user_id=m.user_id,
                name=m.user.name,
                email=m.user.email,
                joined_at=m.joined_at,
            )
            for m in detail.members
        ],
        last_message=_last_message_info(detail.last_message),
    )


@router.post("", response_model=RoomResponse, status_code=status.HTTP_201_CREATED)
def create_room(
    body: CreateRoomRequest,
    user: CurrentUserDep,
    rooms: RoomServiceDep,
    db: Annotated[Session, Depends(get_db)],
) -> RoomResponse:
    """
    Create a room. The caller is always a member; member_ids may repeat or
    include the caller. Unknown member ids reject the whole request.
    """
    detail = rooms.create_room(db, user.id, body.name, body.is_group_chat, body.member_ids)
    return _room_response(detail)


@router.get("", response_model=RoomListResponse)
def list_rooms(
    user: CurrentUserDep,
    rooms: RoomServiceDep,
    db: Annotated[Session, Depends(get_db)],
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int | None, Query(ge=1, le=100)] = None,
) -> RoomListResponse:
    """Rooms the caller belongs to, most recently active first."""
    result = rooms.list_rooms(db, user.id, page=page, page_size=page_size)
    return RoomListResponse(
        rooms=[
            RoomListItem(
                id=entry.room.id,
                name=entry.room.name,
                is_group_chat=entry.room.is_group_chat,
                created_at=entry.room.created_at,
                updated_at=entry.room.updated_at,
                member_count=entry.member_count,
                last_message=_last_message_info(entry.last_message),
            )
            for entry in result.entries
        ],
        pagination=PageInfo(page=result.page, page_size=result.page_size, total=result.total),
    )


@router.get("/{room_id}", response_model=RoomResponse)
def get_room(
    room_id: uuid.UUID,
    user: CurrentUserDep,
    rooms: RoomServiceDep,
    db: Annotated[Session, Depends(get_db)],
) -> RoomResponse:
    return _room_response(rooms.get_room(db, room_id, user.id))


@router.put("/{room_id}", response_model=RoomResponse)
def update_room(
    room_id: uuid.UUID,
    body: UpdateRoomRequest,
    user: CurrentUserDep,
    rooms: RoomServiceDep,
    db: Annotated[Session, Depends(get_db)],
) -> RoomResponse:
    return _room_response(rooms.update_room(db, room_id, user.id, body))


@router.post(
    "/{room_id}/members",
    response_model=MessageOnlyResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_member(
    room_id: uuid.UUID,
    body: AddMemberRequest,
    user: CurrentUserDep,
    db: Annotated[Session, Depends(get_db)],
) -> MessageOnlyResponse:
    membership.add_member(db, room_id, user.id, body.user_id)
    return MessageOnlyResponse(message="Member added.")


@router.delete("/{room_id}/members/{user_id}", response_model=MessageOnlyResponse)
def remove_member(
    room_id: uuid.UUID,
    user_id: uuid.UUID,
    user: CurrentUserDep,
    db: Annotated[Session, Depends(get_db)],
) -> MessageOnlyResponse:
    membership.remove_member(db, room_id, user.id, user_id)
    return MessageOnlyResponse(message="Member removed.")
