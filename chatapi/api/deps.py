"""Service providers for route dependencies. Each is built from the process settings."""

from typing import Annotated

from fastapi import Depends

from chatapi.core.config import Settings, get_settings
from chatapi.services.messages import MessageService
from chatapi.services.profiles import ProfileService
from chatapi.services.rooms import RoomService
from chatapi.services.sessions import SessionManager

SettingsDep = Annotated[Settings, Depends(get_settings)]


def get_session_manager(settings: SettingsDep) -> SessionManager:
    return SessionManager(settings)


def get_room_service(settings: SettingsDep) -> RoomService:
    return RoomService(settings)


def get_message_service(settings: SettingsDep) -> MessageService:
    return MessageService(settings)


def get_profile_service(settings: SettingsDep) -> ProfileService:
    return ProfileService(settings)
