"""Resilience patterns for database-backed background work

Retry logic with exponential backoff for transient database failures.
"""

from ruang_tenang.resilience.retry import (
    retry_with_backoff,
    with_retry,
    is_retryable_error,
    calculate_backoff,
)

__all__ = [
    "retry_with_backoff",
    "with_retry",
    "is_retryable_error",
    "calculate_backoff",
]
