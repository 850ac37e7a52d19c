"""
Cron entrypoint that clears expired refresh tokens:

  python -m chatapi.token_cleanup            # clear
  python -m chatapi.token_cleanup --dry-run  # only count

Hourly: 0 * * * * cd /srv/chatapi && .venv/bin/python -m chatapi.token_cleanup
"""

import argparse
import logging
import sys

from dotenv import load_dotenv

from chatapi.core.config import get_settings
from chatapi.core.database import SessionLocal, get_engine
from chatapi.services.token_cleanup import run_token_cleanup

logger = logging.getLogger("chatapi.token_cleanup")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Clear refresh tokens past their expiry.")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report how many tokens have expired without clearing them",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%SZ",
    )
    load_dotenv()
    settings = get_settings()
    db = SessionLocal(bind=get_engine(settings))
    try:
        count = run_token_cleanup(db, settings, dry_run=args.dry_run)
    except Exception:
        logger.exception("Refresh token cleanup failed")
        return 1
    finally:
        db.close()
    verb = "expired" if args.dry_run else "cleared"
    logger.info("Refresh token cleanup finished: %s=%s", verb, count)
    return 0


if __name__ == "__main__":
    sys.exit(main())
