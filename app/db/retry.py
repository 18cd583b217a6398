import time
from typing import Callable, TypeVar

from loguru import logger
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from app.core.config import settings
from app.core.errors import StorageConflictError

T = TypeVar("T")

# Lock timeouts, serialization failures and version-check misses; business errors are never retried.
RETRYABLE_ERRORS = (StaleDataError, OperationalError)


def with_conflict_retry(db: Session, operation: str, fn: Callable[[], T], **context) -> T:
    """Run `fn` in a SAVEPOINT, retrying transient storage conflicts with backoff.

    The enclosing transaction survives a failed attempt; only the savepoint is
    rolled back, so `fn` must re-read whatever it decides on.
    """
    attempts = max(1, settings.STORAGE_RETRY_ATTEMPTS)
    for attempt in range(1, attempts + 1):
        try:
            with db.begin_nested():
                return fn()
        except RETRYABLE_ERRORS as e:
            if attempt == attempts:
                logger.warning("{} gave up after {} attempts: {} {}", operation, attempts, type(e).__name__, context)
                raise StorageConflictError(
                    f"Concurrent update conflict during {operation}, please retry", **context
                ) from e
            delay = settings.STORAGE_RETRY_BACKOFF_SECONDS * (2 ** (attempt - 1))
            logger.debug("{} conflict on attempt {} ({}), retrying in {:.3f}s", operation, attempt, type(e).__name__, delay)
            time.sleep(delay)
    raise AssertionError("unreachable")
