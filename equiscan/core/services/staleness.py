"""Refresh staleness policy."""

from __future__ import annotations

import math

from equiscan.core.models import ScraperStatus
from equiscan.core.providers.base import now_ms

HOUR_MS = 60 * 60 * 1000
DEFAULT_WINDOW_HOURS = 24


def hours_until_next_run(
    last_update: int,
    now: int,
    window_hours: int = DEFAULT_WINDOW_HOURS,
) -> int:
    """Whole hours from ``now`` until ``last_update + window``, truncated toward zero.

    Negative once the window has elapsed.
    """
    next_allowed = last_update + window_hours * HOUR_MS
    return math.trunc((next_allowed - now) / HOUR_MS)


def should_refresh(
    last_update: int,
    status: ScraperStatus,
    now: int | None = None,
    window_hours: int = DEFAULT_WINDOW_HOURS,
) -> bool:
    """Decide whether a refresh cycle should run.

    Args:
        last_update: epoch milliseconds of the last successful run, 0 if never run
        status: the provider's current status
        now: epoch milliseconds; the current wall clock when omitted
        window_hours: staleness window

    A refresh is due when the provider never ran, when less than one hour
    of the window remains, or when more than one hour remains but the
    previous run did not finish.
    """
    if last_update == 0:
        return True

    if now is None:
        now = now_ms()

    remaining = hours_until_next_run(last_update, now, window_hours)
    if remaining < 1:
        return True
    return remaining > 1 and status != ScraperStatus.FINISHED
