"""Repositories for the calendar's document collections."""

from __future__ import annotations

from .calendars import CalendarRepository
from .events import EventRepository
from .legends import LegendRepository
from .memos import MemoRepository

__all__ = ["CalendarRepository", "EventRepository", "LegendRepository", "MemoRepository"]
