"""PostgreSQL connection and session management."""

from collections.abc import Generator, Iterator
from contextlib import contextmanager
from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from sqlalchemy import Engine, create_engine, text
from sqlalchemy.orm import Session, sessionmaker

from chatapi.core.config import Settings, get_settings

# Bound to the engine per session so importing this module never connects.
SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False)


@lru_cache
def _engine_for(database_url: str, echo: bool) -> Engine:
    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=90,
        pool_recycle=3600,
        echo=echo,
    )


def get_engine(settings: Settings) -> Engine:
    """Pooled engine for the given settings; one engine per DATABASE_URL per process."""
    return _engine_for(settings.DATABASE_URL, settings.DEBUG)


def get_db(
    settings: Annotated[Settings, Depends(get_settings)],
) -> Generator[Session, None, None]:
    """Dependency that yields a DB session on the app's database and closes it when done."""
    db = SessionLocal(bind=get_engine(settings))
    try:
        yield db
    finally:
        db.close()


@contextmanager
def atomic(db: Session) -> Iterator[Session]:
    """Run a block as one transaction: commit on success, roll back on any error."""
    try:
        yield db
        db.commit()
    except BaseException:
        db.rollback()
        raise


def check_db_connected(db: Session) -> bool:
    """Run a trivial query to verify the database is reachable."""
    try:
        db.execute(text("SELECT 1"))
        return True
    except Exception:
        return False
