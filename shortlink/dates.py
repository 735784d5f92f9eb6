"""Date helpers."""

from __future__ import annotations

from datetime import date, timedelta
from typing import TypeVar

__all__ = ["date_range"]

D = TypeVar("D", bound=date)


def date_range(start: D, end: D) -> list[D]:
    """Every day from ``start`` to ``end`` inclusive, one day apart."""
    days: list[D] = []
    current = start
    step = timedelta(days=1)
    while current <= end:
        days.append(current)
        current = current + step
    return days