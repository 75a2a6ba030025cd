"""Composition root: wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from datetime import timedelta, tzinfo
from zoneinfo import ZoneInfo

from ims.domain.service.stock_reversal import ReversalStrategy
from ims.infrastructure.config import get_settings
from ims.infrastructure.persistence.json_unit_of_work import JsonUnitOfWork


def unit_of_work() -> JsonUnitOfWork:
    return JsonUnitOfWork(get_settings().DATA_DIR)


def local_timezone() -> tzinfo:
    return ZoneInfo(get_settings().TIMEZONE)


def cancellation_window() -> timedelta:
    return timedelta(hours=get_settings().CANCELLATION_WINDOW_HOURS)


def reversal_strategy() -> ReversalStrategy:
    return ReversalStrategy(get_settings().REVERSAL_STRATEGY)


def retry_options() -> dict:
    settings = get_settings()
    return {
        "retry_attempts": settings.RETRY_ATTEMPTS,
        "retry_backoff": settings.RETRY_BACKOFF_SECONDS,
    }
