"""ORM model for user accounts and their session credentials."""

import uuid

from sqlalchemy import Column, String, Text, Uuid

from chatapi.models.base import Base, UTCDateTime, utcnow


def normalize_email(email: str) -> str:
    """Canonical form used for storage and lookup (case-insensitive uniqueness)."""
    return email.strip().lower()


class User(Base):
    """
    User account.

    password_hash is a bcrypt hash. refresh_token_hash is the hex SHA-256 of the
    current refresh token; it and refresh_token_expires_at are set or cleared
    together and are only written by the session manager.
    """

    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(50), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    profile_image_url = Column(Text, nullable=True)
    bio = Column(Text, nullable=True)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow)
    refresh_token_hash = Column(String(64), nullable=True, unique=True)
    refresh_token_expires_at = Column(UTCDateTime, nullable=True)

    def __repr__(self) -> str:
        # Credential columns stay out of reprs and logs.
        return f"<User id={self.id} email={self.email!r}>"
