"""Transaction scope for service operations with storage-error translation."""

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from chatapi.core.database import atomic
from chatapi.services.errors import ChatServiceError, InternalError

logger = logging.getLogger(__name__)


@contextmanager
def transaction(
    db: Session,
    action: str,
    on_conflict: Callable[[], ChatServiceError] | None = None,
) -> Iterator[Session]:
    """
    Run a block as one transaction and keep raw storage errors inside the service.

    A unique-constraint violation becomes on_conflict() when given; any other
    SQLAlchemy failure is logged and raised as InternalError. Service errors
    raised inside the block roll the transaction back and propagate unchanged.
    """
    try:
        with atomic(db):
            yield db
    except IntegrityError as e:
        if on_conflict is not None:
            raise on_conflict() from e
        logger.exception("Integrity failure during %s", action)
        raise InternalError(f"Failed to {action}.", cause=e) from e
    except SQLAlchemyError as e:
        logger.exception("Storage failure during %s", action)
        raise InternalError(f"Failed to {action}.", cause=e) from e
