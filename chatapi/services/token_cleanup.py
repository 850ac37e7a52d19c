"""Expired refresh-token cleanup: clear hash and expiry for tokens past their expiry."""

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import func
from sqlalchemy.orm import Session

from chatapi.models import User

if TYPE_CHECKING:
    from chatapi.core.config import Settings

logger = logging.getLogger(__name__)


def run_token_cleanup(session: Session, settings: "Settings", dry_run: bool = False) -> int:
    """
    Clear every stored refresh token whose expiry has passed.

    Returns the number of users whose token was cleared (or, with dry_run, would
    be). Idempotent: safe to run repeatedly. Rotation already rejects expired
    tokens; this only reclaims the stored hashes.
    """
    if not settings.TOKEN_CLEANUP_ENABLED:
        logger.info("Token cleanup is disabled (TOKEN_CLEANUP_ENABLED=false); skipping.")
        return 0

    now = datetime.now(timezone.utc)
    expired = User.refresh_token_expires_at <= now
    if dry_run:
        return session.query(func.count(User.id)).filter(expired).scalar() or 0

    cleared_count = (
        session.query(User)
        .filter(expired)
        .update(
            {User.refresh_token_hash: None, User.refresh_token_expires_at: None},
            synchronize_session=False,
        )
    )
    session.commit()

    if cleared_count > 0:
        logger.info(
            "Token cleanup run: cutoff=%s, tokens_cleared=%s",
            now.isoformat(),
            cleared_count,
        )
    return cleared_count
