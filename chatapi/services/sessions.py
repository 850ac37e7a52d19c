"""
Session manager: registration, login, refresh-token rotation and logout.

The plaintext refresh token only ever leaves this module as a return value;
the store holds its SHA-256 hash plus an absolute expiry. At most one refresh
token is valid per user: login and rotation overwrite, logout and expiry clear.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from functools import lru_cache
from typing import TYPE_CHECKING

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from chatapi.core.security import (
    AccessTokenClaims,
    check_refresh_token_state,
    create_access_token,
    decode_access_token,
    generate_refresh_token,
    hash_password,
    hash_refresh_token,
    refresh_token_expiry,
    verify_password,
)
from chatapi.models.user import User, normalize_email
from chatapi.services.errors import (
    EmailTakenError,
    InvalidCredentialsError,
    RefreshTokenNotFoundError,
    TokenExpiredError,
)
from chatapi.services.transactions import transaction

if TYPE_CHECKING:
    from chatapi.core.config import Settings

logger = logging.getLogger(__name__)


@lru_cache
def _dummy_password_hash(rounds: int) -> str:
    # Verified against when the email is unknown so both failure paths cost the same.
    return hash_password("dummy-password-for-timing", rounds)


@dataclass(frozen=True)
class SessionResult:
    """A freshly issued access token plus the refresh token that accompanies it."""

    user: User
    access_token: str
    refresh_token: str
    refresh_expires_at: datetime


class SessionManager:
    """Issues, verifies, rotates and revokes credentials for one configuration."""

    def __init__(self, settings: "Settings") -> None:
        self.settings = settings

    def verify_access_token(self, token: str) -> AccessTokenClaims:
        """Return the token's principal or raise TokenInvalidError."""
        return decode_access_token(self.settings, token)

    def register(self, db: Session, name: str, email: str, password: str) -> SessionResult:
        """
        Create a user and start its first session.

        Raises EmailTakenError if the (normalized) email is already registered,
        including when a concurrent registration wins the unique constraint.
        """
        email = normalize_email(email)
        # Hash before opening the transaction: bcrypt is deliberately slow.
        password_hash = hash_password(password, self.settings.BCRYPT_ROUNDS)
        refresh_token = generate_refresh_token()
        now = datetime.now(UTC)
        expires_at = refresh_token_expiry(self.settings, now)

        with transaction(db, "create user", on_conflict=EmailTakenError):
            existing = db.scalar(select(User.id).where(User.email == email))
            if existing is not None:
                raise EmailTakenError()
            user = User(name=name, email=email, password_hash=password_hash)
            self._write_refresh_token(user, hash_refresh_token(refresh_token), expires_at, now)
            db.add(user)
            db.flush()
            user_id = user.id

        logger.info("User registered: user_id=%s", user_id)
        return SessionResult(
            user=user,
            access_token=create_access_token(self.settings, user_id, email, now),
            refresh_token=refresh_token,
            refresh_expires_at=expires_at,
        )

    def login(self, db: Session, email: str, password: str) -> SessionResult:
        """
        Verify credentials and replace the user's refresh token.

        Raises InvalidCredentialsError for an unknown email and for a wrong
        password alike.
        """
        email = normalize_email(email)
        with transaction(db, "look up user"):
            row = db.execute(
                select(User.id, User.password_hash).where(User.email == email)
            ).first()

        # No transaction is open while bcrypt runs.
        if row is None:
            verify_password(password, _dummy_password_hash(self.settings.BCRYPT_ROUNDS))
            logger.info("Login failed")
            raise InvalidCredentialsError()
        if not verify_password(password, row.password_hash):
            logger.info("Login failed: user_id=%s", row.id)
            raise InvalidCredentialsError()

        refresh_token = generate_refresh_token()
        now = datetime.now(UTC)
        expires_at = refresh_token_expiry(self.settings, now)
        with transaction(db, "store refresh token"):
            user = db.get(User, row.id, with_for_update=True)
            if user is None:
                raise InvalidCredentialsError()
            self._write_refresh_token(user, hash_refresh_token(refresh_token), expires_at, now)
            user_email = user.email

        logger.info("User logged in: user_id=%s", row.id)
        return SessionResult(
            user=user,
            access_token=create_access_token(self.settings, row.id, user_email, now),
            refresh_token=refresh_token,
            refresh_expires_at=expires_at,
        )

    def rotate_refresh_token(self, db: Session, current_token: str) -> SessionResult:
        """
        Exchange a refresh token for a new access token and a new refresh token.

        The lookup, expiry check and overwrite run in one transaction with the
        user row locked, so of two concurrent calls with the same token the
        second sees the new hash and fails with RefreshTokenNotFoundError.
        An expired token is cleared before TokenExpiredError is raised.
        """
        if not current_token:
            raise RefreshTokenNotFoundError()
        current_hash = hash_refresh_token(current_token)
        new_token = generate_refresh_token()
        now = datetime.now(UTC)
        new_expires_at = refresh_token_expiry(self.settings, now)
        expired = False

        with transaction(db, "rotate refresh token"):
            user = db.scalars(
                select(User).where(User.refresh_token_hash == current_hash).with_for_update()
            ).first()
            if user is None:
                raise RefreshTokenNotFoundError()
            stored_expiry = user.refresh_token_expires_at
            if stored_expiry is None or stored_expiry <= now:
                self._clear_refresh_token(user)
                expired = True
            else:
                self._write_refresh_token(user, hash_refresh_token(new_token), new_expires_at, now)
            user_id = user.id
            user_email = user.email

        if expired:
            logger.warning("Expired refresh token presented and cleared: user_id=%s", user_id)
            raise TokenExpiredError()

        logger.info("Refresh token rotated: user_id=%s", user_id)
        return SessionResult(
            user=user,
            access_token=create_access_token(self.settings, user_id, user_email, now),
            refresh_token=new_token,
            refresh_expires_at=new_expires_at,
        )

    def revoke_refresh_token(self, db: Session, token: str | None) -> bool:
        """
        Clear the refresh token of whichever user holds it.

        Idempotent: unknown, already revoked or empty tokens are not an error.
        Returns True when a stored token was cleared.
        """
        if not token:
            return False
        token_hash = hash_refresh_token(token)
        with transaction(db, "revoke refresh token"):
            result = db.execute(
                update(User)
                .where(User.refresh_token_hash == token_hash)
                .values(refresh_token_hash=None, refresh_token_expires_at=None)
            )
        revoked = result.rowcount > 0
        if revoked:
            logger.info("Refresh token revoked")
        return revoked

    def _write_refresh_token(
        self,
        user: User,
        token_hash: str,
        expires_at: datetime,
        now: datetime,
    ) -> None:
        check_refresh_token_state(token_hash, expires_at, now)
        user.refresh_token_hash = token_hash
        user.refresh_token_expires_at = expires_at

    def _clear_refresh_token(self, user: User) -> None:
        user.refresh_token_hash = None
        user.refresh_token_expires_at = None
        check_refresh_token_state(user.refresh_token_hash, user.refresh_token_expires_at)
