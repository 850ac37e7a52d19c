"""Profile reads and partial updates, user search, and avatar upload."""

import logging
import time
import uuid
from typing import TYPE_CHECKING, Protocol

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from chatapi.models import User
from chatapi.schemas.profile import UpdateProfileRequest
from chatapi.services.errors import (
    InvalidAvatarError,
    UserNotFoundError,
    ValidationFailedError,
)
from chatapi.services.transactions import transaction

if TYPE_CHECKING:
    from chatapi.core.config import Settings

logger = logging.getLogger(__name__)

SEARCH_LIMIT_DEFAULT = 10
SEARCH_LIMIT_MAX = 50

# Fields that may be set to null explicitly; name is required on every user.
_NULLABLE_PROFILE_FIELDS = frozenset({"bio", "profile_image_url"})


class AvatarStore(Protocol):
    """Object storage for avatars: given validated image bytes, return a stable URL."""

    def save(self, user_id: uuid.UUID, data: bytes, content_type: str, extension: str) -> str:
        ...


class SimulatedAvatarStore:
    """Builds the URL an object store would serve; the bytes are not persisted."""

    def __init__(self, base_url: str) -> None:
        self.base_url = base_url.rstrip("/")

    def save(self, user_id: uuid.UUID, data: bytes, content_type: str, extension: str) -> str:
        return f"{self.base_url}/avatar_{user_id}_{int(time.time())}{extension}"


def sniff_image_type(data: bytes) -> tuple[str, str] | None:
    """Return (content_type, extension) from magic bytes, or None if not an allowed image."""
    if data.startswith(b"\xff\xd8\xff"):
        return "image/jpeg", ".jpg"
    if data.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png", ".png"
    if data.startswith((b"GIF87a", b"GIF89a")):
        return "image/gif", ".gif"
    if len(data) >= 12 and data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp", ".webp"
    return None


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class ProfileService:
    def __init__(self, settings: "Settings", avatar_store: AvatarStore | None = None) -> None:
        self.settings = settings
        self.avatar_store = avatar_store or SimulatedAvatarStore(settings.AVATAR_BASE_URL)

    def get_profile(self, db: Session, user_id: uuid.UUID) -> User:
        with transaction(db, "load profile"):
            user = db.get(User, user_id)
            if user is None:
                raise UserNotFoundError()
        return user

    def update_profile(
        self, db: Session, user_id: uuid.UUID, update: UpdateProfileRequest
    ) -> User:
        """
        Apply only the fields present in the request.

        An empty string is stored as given; a field absent from the request is
        left untouched. name cannot be cleared.
        """
        changes = {field: getattr(update, field) for field in update.model_fields_set}
        with transaction(db, "update profile"):
            user = db.get(User, user_id)
            if user is None:
                raise UserNotFoundError()
            for field, value in changes.items():
                if value is None and field not in _NULLABLE_PROFILE_FIELDS:
                    raise ValidationFailedError(f"{field} cannot be null.")
                setattr(user, field, value)
            db.flush()
        if changes:
            logger.info("Profile updated: user_id=%s fields=%s", user_id, sorted(changes))
        return user

    def search_users(
        self, db: Session, query: str, limit: int = SEARCH_LIMIT_DEFAULT
    ) -> tuple[list[User], int]:
        """Case-insensitive substring match on name or email. Returns (users, total)."""
        limit = max(1, min(limit, SEARCH_LIMIT_MAX))
        pattern = f"%{_escape_like(query.strip().lower())}%"
        condition = or_(
            func.lower(User.name).like(pattern, escape="\\"),
            User.email.like(pattern, escape="\\"),
        )
        with transaction(db, "search users"):
            total = db.scalar(select(func.count()).select_from(User).where(condition))
            users = list(
                db.scalars(select(User).where(condition).order_by(User.name, User.id).limit(limit))
            )
        return users, total or 0

    def upload_avatar(self, db: Session, user_id: uuid.UUID, data: bytes) -> str:
        """
        Validate image bytes, store them and point the user's profile at the URL.

        Raises InvalidAvatarError for empty, oversized or non-image uploads.
        """
        if not data:
            raise InvalidAvatarError("Avatar file is empty.")
        if len(data) > self.settings.AVATAR_MAX_BYTES:
            raise InvalidAvatarError(
                f"File size must not exceed {self.settings.AVATAR_MAX_BYTES // (1024 * 1024)} MB."
            )
        sniffed = sniff_image_type(data)
        if sniffed is None:
            raise InvalidAvatarError("Unsupported file type (JPEG, PNG, GIF or WebP only).")
        content_type, extension = sniffed

        url = self.avatar_store.save(user_id, data, content_type, extension)
        with transaction(db, "update avatar"):
            user = db.get(User, user_id)
            if user is None:
                raise UserNotFoundError()
            user.profile_image_url = url
            db.flush()
        logger.info("Avatar updated: user_id=%s content_type=%s", user_id, content_type)
        return url
