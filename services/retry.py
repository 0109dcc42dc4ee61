"""Retry executor — bounded retries with capped exponential backoff.

Retries are blind: every failure kind is retried the same way, except
:class:`ConfigurationError`, which can never succeed on a later attempt.
Stages that want a different policy pick a different budget, not different
logic.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from errors.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRY_BASE_DELAY = 0.6  # seconds, doubles each attempt
RETRY_MAX_DELAY = 4.0  # seconds


def backoff_delay(
    attempt_index: int,
    base: float = RETRY_BASE_DELAY,
    cap: float = RETRY_MAX_DELAY,
) -> float:
    """``min(cap, base * 2**attempt_index)`` — non-decreasing and capped."""
    return min(cap, base * (2 ** attempt_index))


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_retries: int = 2,
    *,
    base_delay: float | None = None,
    max_delay: float | None = None,
    label: str = "operation",
) -> T:
    """Run *operation* once, then up to *max_retries* more times on failure.

    On exhaustion the last exception is re-raised unchanged so callers can
    still inspect its original kind.
    """
    base = RETRY_BASE_DELAY if base_delay is None else base_delay
    cap = RETRY_MAX_DELAY if max_delay is None else max_delay
    attempts = max_retries + 1

    for attempt in range(attempts):
        try:
            return await operation()
        except ConfigurationError:
            raise
        except Exception as exc:
            if attempt + 1 >= attempts:
                logger.warning(
                    "%s failed on final attempt %d/%d: %s",
                    label, attempt + 1, attempts, exc,
                )
                raise
            delay = backoff_delay(attempt, base, cap)
            logger.warning(
                "%s failed (attempt %d/%d): %s — retrying in %.1fs",
                label, attempt + 1, attempts, exc, delay,
            )
            await asyncio.sleep(delay)

    raise AssertionError("unreachable")  # pragma: no cover
