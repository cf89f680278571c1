"""
Optimistic-lock replay for ledger units of work.

Wallet and SystemWallet rows carry a ``version`` column (SQLAlchemy
``version_id_col``), so every UPDATE is a compare-and-set. When two
requests touch the same wallet, the loser gets ``StaleDataError`` on
flush; the whole unit of work is rolled back and run again against
fresh rows.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from src.config import settings
from src.services.exceptions import LedgerConflictError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# IntegrityError covers two requests lazily creating the same wallet row
RETRYABLE_ERRORS = (StaleDataError, OperationalError, IntegrityError)


async def run_with_retry(
    db: AsyncSession,
    func: Callable[[], Awaitable[T]],
    *,
    attempts: Optional[int] = None,
    backoff_base: Optional[float] = None,
) -> T:
    """
    Run ``func`` and commit, replaying it on version conflicts.

    ``func`` must do all of its reads inside the call so a replay sees the
    rows as they are after the competing commit.

    Args:
        db: Session the unit of work runs in
        func: Coroutine factory performing the reads and writes
        attempts: Total tries (defaults to settings.ledger_retry_attempts)
        backoff_base: First backoff in seconds, doubled per retry

    Returns:
        Whatever ``func`` returned on the successful attempt

    Raises:
        LedgerConflictError: every attempt lost the race
    """
    attempts = attempts or settings.ledger_retry_attempts
    if backoff_base is None:
        backoff_base = settings.ledger_retry_backoff

    for attempt in range(attempts):
        try:
            result = await func()
            await db.commit()
            return result
        except RETRYABLE_ERRORS as exc:
            await db.rollback()
            if attempt >= attempts - 1:
                logger.error(f"Ledger write failed after {attempts} attempts: {exc}")
                raise LedgerConflictError(
                    "Wallet was modified concurrently, please retry"
                ) from exc
            logger.warning(
                f"Ledger write conflict (attempt {attempt + 1}/{attempts}): "
                f"{exc.__class__.__name__}"
            )
            await asyncio.sleep(backoff_base * (2 ** attempt))

    raise LedgerConflictError("Wallet was modified concurrently, please retry")
