"""Retry decisions and backoff for Notion requests.

Two independent policies exist:

* :func:`should_retry` / :func:`compute_backoff` -- transport level,
  exponential, disabled unless ``retry_max_attempts > 1``.
* :func:`retry_fixed` -- a fixed-delay wrapper around a whole operation,
  used for the discovery search.
"""

from __future__ import annotations

import random
import time
from collections.abc import Callable
from typing import TypeVar

import httpx

from docimport.errors import (
    NotionInternalError,
    NotionNetworkError,
    NotionRateLimitError,
    NotionRetryExhaustedError,
)
from docimport.observability import get_logger

log = get_logger("docimport.notion.retries")

T = TypeVar("T")

RETRYABLE_STATUSES: frozenset[int] = frozenset({429, 500, 502, 503, 504})

_RETRYABLE_EXCEPTIONS: tuple[type[Exception], ...] = (
    httpx.TimeoutException,
    httpx.NetworkError,
)

TRANSIENT_ERRORS: tuple[type[Exception], ...] = (
    NotionNetworkError,
    NotionInternalError,
    NotionRateLimitError,
    NotionRetryExhaustedError,
)
"""Errors that :func:`retry_fixed` retries by default."""


def should_retry(
    status_code: int | None,
    exception: Exception | None,
    attempt: int,
    max_attempts: int,
) -> bool:
    """Decide whether a request should be retried.

    Parameters
    ----------
    status_code:
        HTTP status of the response, or ``None`` when no response arrived.
    exception:
        The transport exception, or ``None`` if a response was received.
    attempt:
        The current attempt number (0-indexed).
    max_attempts:
        Maximum total attempts allowed (including the initial request).
    """
    if attempt + 1 >= max_attempts:
        return False

    if exception is not None:
        return isinstance(exception, _RETRYABLE_EXCEPTIONS)

    if status_code is not None:
        return status_code in RETRYABLE_STATUSES

    return False


def compute_backoff(
    attempt: int,
    base: float = 1.0,
    maximum: float = 30.0,
    jitter: bool = True,
    retry_after: float | None = None,
) -> float:
    """Delay before the next transport retry.

    A server ``Retry-After`` wins; otherwise ``base * 2^attempt`` capped at
    *maximum*.  Jitter scales the result to 50-100 %.
    """
    if retry_after is not None:
        delay = retry_after
    else:
        delay = min(base * (2 ** attempt), maximum)

    if jitter:
        delay *= 0.5 + random.random() * 0.5

    return delay


def retry_fixed(
    operation: Callable[[], T],
    attempts: int,
    delay: float,
    retry_on: tuple[type[Exception], ...] = TRANSIENT_ERRORS,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Run *operation* up to *attempts* times, sleeping *delay* in between.

    The first successful call returns immediately.  Errors outside
    *retry_on* propagate at once; the last retryable error propagates when
    the attempts run out.
    """
    for attempt in range(attempts):
        try:
            return operation()
        except retry_on as exc:
            if attempt + 1 >= attempts:
                raise
            log.warning(
                "operation failed, retrying",
                extra={"extra_fields": {
                    "op": "retry_fixed", "attempt": attempt + 1,
                    "attempts": attempts, "error": str(exc),
                }},
            )
            sleep(delay)
    raise ValueError(f"attempts must be >= 1, got {attempts}")
