"""Retry logic with exponential backoff and jitter

Used for the out-of-band EXP award:
1. Only retries transient database errors (connection drops, serialization
   failures, deadlocks)
2. Uses exponential backoff with jitter to prevent thundering herd
3. Gives up after max retries to avoid infinite loops

A failed award rolls back completely, so replaying it is safe. The one
exception is a connection lost during COMMIT: the server may already have
committed, so CommitUncertainError is never retried.
"""

import asyncio
import random
import logging
from typing import Callable, Any, Optional, TypeVar
from functools import wraps

import psycopg
from psycopg import errors as pg_errors

from ruang_tenang.exceptions import CommitUncertainError

logger = logging.getLogger(__name__)

T = TypeVar('T')

# Retry configuration
MAX_RETRIES = 3
BASE_DELAY = 0.5  # seconds
MAX_DELAY = 10.0  # seconds
JITTER = 0.1  # 10% random jitter

_TRANSIENT_DB_ERRORS = (
    psycopg.OperationalError,
    pg_errors.SerializationFailure,
    pg_errors.DeadlockDetected,
)


def is_retryable_error(exc: BaseException) -> bool:
    """
    Determine if error is transient and should be retried.

    Wrapped errors (AwardFailedError, DatabaseError) are judged by their cause.

    Retryable errors:
    - Connection failures (psycopg.OperationalError)
    - Serialization failures and deadlocks

    Non-retryable errors:
    - Commit failures with an unknown outcome (CommitUncertainError)
    - Unknown activity / configuration errors
    - Missing users
    - Constraint violations and programming errors
    """
    seen = set()
    current: Optional[BaseException] = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, CommitUncertainError):
            return False
        if isinstance(current, _TRANSIENT_DB_ERRORS):
            return True
        current = getattr(current, "cause", None) or current.__cause__

    return False


def calculate_backoff(attempt: int) -> float:
    """
    Calculate exponential backoff delay with jitter.

    Formula: delay = min(BASE_DELAY * (2 ** attempt), MAX_DELAY) + jitter
    Jitter is random value between -10% and +10% of delay

    Example:
        Attempt 0: ~0.5s
        Attempt 1: ~1s
        Attempt 2: ~2s
    """
    delay = min(BASE_DELAY * (2 ** attempt), MAX_DELAY)

    jitter_amount = random.uniform(-JITTER * delay, JITTER * delay)
    final_delay = delay + jitter_amount

    return max(final_delay, 0.0)


async def retry_with_backoff(
    func: Callable[..., T],
    *args: Any,
    max_retries: int = MAX_RETRIES,
    on_retry: Optional[Callable[[int, BaseException], None]] = None,
    **kwargs: Any
) -> T:
    """
    Retry async function with exponential backoff.

    Only retries transient errors. Gives up after max_retries attempts.

    Args:
        func: Async function to retry
        max_retries: Maximum number of retry attempts (default: 3)
        on_retry: Called with (attempt, error) before each retry
        *args, **kwargs: Arguments to pass to func

    Returns:
        Result from func

    Raises:
        Last exception if all retries exhausted or non-retryable error

    Example:
        result = await retry_with_backoff(engine.award_exp, 42, "chat_ai", max_retries=3)
    """
    name = getattr(func, "__name__", repr(func))

    for attempt in range(max_retries + 1):
        try:
            return await func(*args, **kwargs)

        except Exception as e:
            if attempt == max_retries:
                if max_retries:
                    logger.error(f"[RETRY] All {max_retries} retries exhausted for {name}")
                raise

            if not is_retryable_error(e):
                logger.warning(
                    f"[RETRY] Non-retryable error for {name}: "
                    f"{type(e).__name__}: {e}"
                )
                raise

            backoff = calculate_backoff(attempt)

            if on_retry:
                on_retry(attempt, e)

            logger.info(
                f"[RETRY] Attempt {attempt + 1}/{max_retries} for {name} "
                f"after {backoff:.2f}s (error: {type(e).__name__})"
            )

            await asyncio.sleep(backoff)

    raise RuntimeError("Retry logic failed unexpectedly")


def with_retry(max_retries: int = MAX_RETRIES) -> Callable:
    """
    Decorator to add retry logic to async functions.

    Example:
        @with_retry(max_retries=3)
        async def award():
            ...
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            return await retry_with_backoff(func, *args, max_retries=max_retries, **kwargs)
        return wrapper
    return decorator
