"""Retry policy for calls to the search engine.

Transient transport failures are retried with exponential backoff; anything
else, and the last transient failure once attempts run out, propagates to the
caller unchanged.
"""

import logging
from collections.abc import Callable
from typing import TypeVar

from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def resilient_external_call(
    max_attempts: int = 3,
    min_wait: float = 1,
    max_wait: float = 10,
    retry_on: tuple[type[Exception], ...] = (Exception,),
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Build a retry decorator for a synchronous external call.

    Args:
        max_attempts: Total attempts including the first call.
        min_wait: Lower bound of the backoff in seconds.
        max_wait: Upper bound of the backoff in seconds.
        retry_on: Exception types considered transient.

    Example:
        >>> retrying = resilient_external_call(max_attempts=2, retry_on=(ConnectionError,))
        >>> retrying(client.indices.refresh)(index="content")
    """
    return retry(
        reraise=True,
        retry=retry_if_exception_type(retry_on),
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(min=min_wait, max=max_wait),
        before_sleep=before_sleep_log(logger, logging.WARNING),
    )


__all__ = ["resilient_external_call"]
