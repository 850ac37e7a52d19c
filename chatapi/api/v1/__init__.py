"""API v1 routes."""

from fastapi import APIRouter

from chatapi.api.v1 import auth, health, messages, profile, rooms, users

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(profile.router, prefix="/profile", tags=["profile"])
router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(rooms.router, prefix="/chatrooms", tags=["chatrooms"])
router.include_router(messages.router, tags=["messages"])
