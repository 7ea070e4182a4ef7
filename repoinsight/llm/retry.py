"""Bounded-attempt retry with exponential backoff for generation calls."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional, Tuple, Type, TypeVar

from ..errors import GenerationError
from ..logging import get_logger
from ..progress import CancellationToken

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_INITIAL_DELAY = 1.0
DEFAULT_MAX_DELAY = 5.0

_logger = get_logger("retry")


def backoff_delay(
    attempt: int,
    *,
    initial_delay: float = DEFAULT_INITIAL_DELAY,
    max_delay: float = DEFAULT_MAX_DELAY,
) -> float:
    """Seconds to wait after failed ``attempt`` (1-based) before the next one."""
    return min(initial_delay * (2 ** (attempt - 1)), max_delay)


async def with_retry(
    action: Callable[[], Awaitable[T]],
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    *,
    initial_delay: float = DEFAULT_INITIAL_DELAY,
    max_delay: float = DEFAULT_MAX_DELAY,
    retryable: Tuple[Type[BaseException], ...] = (GenerationError,),
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    label: Optional[str] = None,
    token: Optional[CancellationToken] = None,
) -> T:
    """Await ``action`` until it succeeds or ``max_attempts`` is exhausted.

    The last attempt's exception is re-raised as-is. Exceptions outside
    ``retryable`` propagate immediately. A cancelled ``token`` raises
    :class:`RunCancelled` before the next attempt, including after a backoff
    sleep.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    attempt = 1
    while True:
        if token is not None:
            token.raise_if_cancelled()
        try:
            return await action()
        except retryable as exc:
            if attempt >= max_attempts:
                _logger.error(
                    "%s failed after %d attempt(s): %s", label or "Action", attempt, exc
                )
                raise
            delay = backoff_delay(attempt, initial_delay=initial_delay, max_delay=max_delay)
            _logger.warning(
                "%s attempt %d/%d failed (%s); retrying in %.1fs",
                label or "Action",
                attempt,
                max_attempts,
                exc,
                delay,
            )
            await sleep(delay)
            attempt += 1


__all__ = ["backoff_delay", "with_retry"]
