"""Request/response schemas for profile and user search endpoints."""

import uuid

from pydantic import BaseModel, ConfigDict, Field


class UpdateProfileRequest(BaseModel):
    """
    Partial profile update.

    Only fields present in the request body are applied (model_fields_set), so
    an empty string is a value and an omitted field is left untouched.
    """

    name: str | None = Field(default=None, min_length=2, max_length=50)
    bio: str | None = Field(default=None, max_length=500)
    profile_image_url: str | None = Field(default=None, max_length=2048)


class AvatarUploadResponse(BaseModel):
    profile_image_url: str
    message: str = "Avatar uploaded."


class UserSearchResult(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    email: str
    profile_image_url: str | None = None


class UserSearchResponse(BaseModel):
    users: list[UserSearchResult]
    total: int
