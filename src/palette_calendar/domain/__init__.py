"""Domain models for the shared palette calendar."""

from __future__ import annotations

from .dates import month_grid, month_key, normalize_day, shift_month
from .enums import FormatCommand, MemberRole
from .models import (
    DEFAULT_LEGEND_COLOR,
    UNKNOWN_LEGEND,
    AllowedUser,
    CalendarEvent,
    CalendarInfo,
    Identity,
    Legend,
    MonthlyMemo,
    utc_timestamp,
)

__all__ = [
    "AllowedUser",
    "CalendarEvent",
    "CalendarInfo",
    "DEFAULT_LEGEND_COLOR",
    "FormatCommand",
    "Identity",
    "Legend",
    "MemberRole",
    "MonthlyMemo",
    "UNKNOWN_LEGEND",
    "month_grid",
    "month_key",
    "normalize_day",
    "shift_month",
    "utc_timestamp",
]
