"""Password hashing, JWT access tokens and refresh-token primitives."""

import base64
import hashlib
import secrets
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

import bcrypt
import jwt

from chatapi.services.errors import TokenInvalidError

if TYPE_CHECKING:
    from chatapi.core.config import Settings

# Min/max lengths for name and password validation (input validation).
NAME_MIN_LEN = 2
NAME_MAX_LEN = 50
PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128

# 64 random bytes = 512 bits of entropy per refresh token.
REFRESH_TOKEN_BYTES = 64

_REQUIRED_CLAIMS = ["sub", "email", "exp", "iat", "iss"]


@dataclass(frozen=True)
class AccessTokenClaims:
    """Verified identity carried by an access token."""

    user_id: uuid.UUID
    email: str
    issued_at: datetime
    expires_at: datetime


def hash_password(plain_password: str, rounds: int = 12) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    # bcrypt has a 72-byte limit; truncate to avoid errors (validation already limits length).
    pw_bytes = plain_password.encode("utf-8")[:72]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash."""
    pw_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def create_access_token(
    settings: "Settings",
    user_id: uuid.UUID,
    email: str,
    now: datetime | None = None,
) -> str:
    """Create a signed JWT with sub (user id), email, iss, iat and exp."""
    now = now or datetime.now(UTC)
    payload: dict[str, Any] = {
        "sub": str(user_id),
        "email": email,
        "iss": settings.JWT_ISSUER,
        "iat": now,
        "exp": now + timedelta(minutes=settings.JWT_EXPIRE_MINUTES),
    }
    return jwt.encode(
        payload,
        settings.JWT_SECRET.get_secret_value(),
        algorithm=settings.JWT_ALGORITHM,
    )


def decode_access_token(settings: "Settings", token: str) -> AccessTokenClaims:
    """
    Verify signature, expiry and issuer and return the token's claims.

    Raises TokenInvalidError for every failure (malformed, expired, bad signature,
    wrong issuer, missing or malformed claims) without saying which.
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET.get_secret_value(),
            algorithms=[settings.JWT_ALGORITHM],
            issuer=settings.JWT_ISSUER,
            leeway=settings.JWT_LEEWAY_SECONDS,
            options={"require": _REQUIRED_CLAIMS},
        )
        return AccessTokenClaims(
            user_id=uuid.UUID(str(payload["sub"])),
            email=str(payload["email"]),
            issued_at=datetime.fromtimestamp(payload["iat"], UTC),
            expires_at=datetime.fromtimestamp(payload["exp"], UTC),
        )
    except (jwt.PyJWTError, ValueError, TypeError, KeyError) as e:
        raise TokenInvalidError() from e


def generate_refresh_token() -> str:
    """Return a new opaque refresh token. The caller must never persist it."""
    return base64.urlsafe_b64encode(secrets.token_bytes(REFRESH_TOKEN_BYTES)).decode("ascii")


def hash_refresh_token(token: str) -> str:
    """One-way hash stored server-side; lookups compare this value exactly."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def refresh_token_expiry(settings: "Settings", now: datetime | None = None) -> datetime:
    """Absolute expiry for a refresh token issued at now."""
    now = now or datetime.now(UTC)
    return now + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)


def check_refresh_token_state(
    token_hash: str | None,
    expires_at: datetime | None,
    now: datetime | None = None,
) -> None:
    """
    Validate a refresh-token write before it reaches the store.

    Hash and expiry are set together or cleared together; a set expiry must lie
    in the future. Raises ValueError on violation.
    """
    if token_hash is None and expires_at is None:
        return
    if token_hash is None:
        raise ValueError("refresh token expiry requires refresh token")
    if expires_at is None:
        raise ValueError("refresh token requires expiry time")
    if not token_hash:
        raise ValueError("refresh token hash must be non-empty")
    now = now or datetime.now(UTC)
    if expires_at <= now:
        raise ValueError("refresh token expiry must be in the future")
