from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta
from typing import Any, Optional


def normalize_day(value: Any) -> Optional[date]:
    """Strip time of day from ``value`` and return the local calendar day.

    Accepts ``date``, ``datetime`` (aware values are converted to local time
    first) and ISO strings. Empty values give ``None``.
    """

    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone()
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if len(text) == 10:
            return date.fromisoformat(text)
        return normalize_day(datetime.fromisoformat(text.replace("Z", "+00:00")))
    raise ValueError(f"Unsupported date value: {value!r}")


def ordered(first: date, second: date) -> tuple[date, date]:
    return (second, first) if second < first else (first, second)


def month_key(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def month_grid(year: int, month: int) -> list[tuple[date, bool]]:
    """Day cells for a Sunday-first month view, padded to 35 or 42 cells."""

    first = date(year, month, 1)
    days_in_month = calendar.monthrange(year, month)[1]
    # date.weekday() is Monday=0; the grid starts on Sunday.
    leading = (first.weekday() + 1) % 7
    cells = [(first - timedelta(days=leading - index), False) for index in range(leading)]
    cells.extend((date(year, month, day), True) for day in range(1, days_in_month + 1))
    total = 42 if len(cells) > 35 else 35
    last = date(year, month, days_in_month)
    cells.extend((last + timedelta(days=offset), False) for offset in range(1, total - len(cells) + 1))
    return cells
