"""Request/response schemas for auth endpoints."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class RegisterRequest(BaseModel):
    """New account details."""

    name: str = Field(..., min_length=2, max_length=50, description="Display name")
    email: EmailStr = Field(..., description="Email address (case-insensitive)")
    password: str = Field(..., min_length=8, max_length=128, description="Password")


class LoginRequest(BaseModel):
    """Credentials for login."""

    email: EmailStr = Field(..., description="Email address")
    password: str = Field(..., min_length=1, max_length=128, description="Password")


class UserInfo(BaseModel):
    """Public user fields (never credentials)."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    email: str
    profile_image_url: str | None = None
    bio: str | None = None
    created_at: datetime
    updated_at: datetime


class AuthResponse(BaseModel):
    """
    Access token plus the authenticated user.

    The refresh token is never part of a response body; it is set as an
    HTTP-only cookie.
    """

    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(..., description="Access token lifetime in seconds")
    user: UserInfo


class RefreshResponse(BaseModel):
    """New access token issued from the refresh cookie."""

    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(..., description="Access token lifetime in seconds")


class MessageOnlyResponse(BaseModel):
    message: str


class CurrentUser(BaseModel):
    """Authenticated principal for dependency injection."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    email: str
