from __future__ import annotations

from datetime import date
from typing import Callable

Clock = Callable[[], date]


def system_today() -> date:
    """Return the local calendar date."""
    return date.today()


def fixed_clock(value: date) -> Clock:
    """Build a clock that always answers *value*."""

    def _clock() -> date:
        return value

    return _clock
