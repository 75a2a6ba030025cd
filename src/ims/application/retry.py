"""Retry of optimistic-concurrency conflicts.

Only ConcurrentModificationError is retried: it means the data changed
under us, so re-running the whole unit of work (re-read, re-validate,
re-write) can succeed. Every other error propagates on the first attempt.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TypeVar

from ims.domain.exceptions import ConcurrentModificationError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def run_with_retry(
    func: Callable[[], T],
    *,
    attempts: int = 3,
    backoff_base: float = 0.05,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Call ``func``; on a conflict, back off exponentially and try again."""
    for attempt in range(attempts):
        try:
            return func()
        except ConcurrentModificationError as exc:
            if attempt >= attempts - 1:
                raise
            delay = backoff_base * (2 ** attempt)
            logger.warning(
                "Concurrent modification (attempt %d of %d), retrying in %.2fs: %s",
                attempt + 1, attempts, delay, exc,
            )
            sleep(delay)
    raise ValueError("attempts must be at least 1")
