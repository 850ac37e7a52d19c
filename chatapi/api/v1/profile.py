"""Profile endpoints for the authenticated user: read, partial update and avatar upload."""

from typing import Annotated

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session

from chatapi.api.deps import get_profile_service
from chatapi.api.v1.auth import CurrentUserDep
from chatapi.core.database import get_db
from chatapi.schemas.auth import UserInfo
from chatapi.schemas.profile import AvatarUploadResponse, UpdateProfileRequest
from chatapi.services.profiles import ProfileService

router = APIRouter()

ProfileServiceDep = Annotated[ProfileService, Depends(get_profile_service)]


@router.get("", response_model=UserInfo)
def get_profile(
    user: CurrentUserDep,
    profiles: ProfileServiceDep,
    db: Annotated[Session, Depends(get_db)],
) -> UserInfo:
    return UserInfo.model_validate(profiles.get_profile(db, user.id))


@router.put("", response_model=UserInfo)
def update_profile(
    body: UpdateProfileRequest,
    user: CurrentUserDep,
    profiles: ProfileServiceDep,
    db: Annotated[Session, Depends(get_db)],
) -> UserInfo:
    """
    Update name, bio or profile_image_url.

    Only fields present in the body change. Send "" to store an empty bio and
    null to clear it; omit a field to keep it.
    """
    return UserInfo.model_validate(profiles.update_profile(db, user.id, body))


@router.post("/avatar", response_model=AvatarUploadResponse)
async def upload_avatar(
    user: CurrentUserDep,
    profiles: ProfileServiceDep,
    db: Annotated[Session, Depends(get_db)],
    avatar: Annotated[UploadFile, File(description="JPEG, PNG, GIF or WebP image")],
) -> AvatarUploadResponse:
    """Upload a new avatar (multipart form field `avatar`). The image type is read from its bytes."""
    # One byte past the limit is enough to reject oversized uploads.
    data = await avatar.read(profiles.settings.AVATAR_MAX_BYTES + 1)
    await avatar.close()
    url = profiles.upload_avatar(db, user.id, data)
    return AvatarUploadResponse(profile_image_url=url)
