"""Pydantic request/response schemas."""

from chatapi.schemas.auth import (
    AuthResponse,
    CurrentUser,
    LoginRequest,
    RefreshResponse,
    RegisterRequest,
    UserInfo,
)
from chatapi.schemas.health import HealthResponse
from chatapi.schemas.message import (
    MessageListResponse,
    MessageResponse,
    SendMessageRequest,
    UpdateMessageRequest,
)
from chatapi.schemas.profile import UpdateProfileRequest, UserSearchResponse
from chatapi.schemas.room import (
    AddMemberRequest,
    CreateRoomRequest,
    RoomListResponse,
    RoomResponse,
    UpdateRoomRequest,
)

__all__ = [
    "AddMemberRequest",
    "AuthResponse",
    "CreateRoomRequest",
    "CurrentUser",
    "HealthResponse",
    "LoginRequest",
    "MessageListResponse",
    "MessageResponse",
    "RefreshResponse",
    "RegisterRequest",
    "RoomListResponse",
    "RoomResponse",
    "SendMessageRequest",
    "UpdateMessageRequest",
    "UpdateProfileRequest",
    "UpdateRoomRequest",
    "UserInfo",
    "UserSearchResponse",
]
