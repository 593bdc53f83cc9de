"""Retry with exponential backoff for transient store errors (1x, 2x, 4x the base delay)."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from academy_billing.core.config import settings
from academy_billing.core.exceptions import TransientStoreError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_transient(exc: BaseException) -> bool:
    if isinstance(exc, (TransientStoreError, OperationalError, StaleDataError)):
        return True
    return isinstance(exc, DBAPIError) and bool(exc.connection_invalidated)


async def with_retries(
    operation: Callable[[], Awaitable[T]],
    *,
    description: str,
    max_attempts: Optional[int] = None,
    backoff_seconds: Optional[float] = None,
) -> T:
    """
    Run `operation` until it succeeds or the attempt budget is spent.

    `operation` must open and finish its own transaction so a retry starts clean.
    Non-transient errors propagate immediately; the last transient error is raised
    as TransientStoreError.
    """
    attempts = max_attempts or settings.billing_max_retries
    base = settings.billing_retry_backoff_seconds if backoff_seconds is None else backoff_seconds

    for attempt in range(attempts):
        try:
            return await operation()
        except Exception as exc:
            if not is_transient(exc):
                raise
            if attempt == attempts - 1:
                raise TransientStoreError(f"{description} failed after {attempts} attempts: {exc}") from exc
            delay = base * (2 ** attempt)
            logger.warning("%s hit a transient store error (attempt %d/%d), retrying in %.2fs: %s",
                           description, attempt + 1, attempts, delay, exc)
            await asyncio.sleep(delay)
    raise TransientStoreError(f"{description} was not attempted")
