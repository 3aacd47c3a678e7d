from __future__ import annotations

from ..domain.dates import month_key
from .documents import join_path

CALENDARS = "calendars"


def calendar_path(calendar_id: str) -> str:
    return join_path(CALENDARS, calendar_id)


def legends_path(calendar_id: str) -> str:
    return join_path(CALENDARS, calendar_id, "legends")


def legend_path(calendar_id: str, legend_id: str) -> str:
    return join_path(legends_path(calendar_id), legend_id)


def events_path(calendar_id: str) -> str:
    return join_path(CALENDARS, calendar_id, "events")


def event_path(calendar_id: str, event_id: str) -> str:
    return join_path(events_path(calendar_id), event_id)


def memos_path(calendar_id: str) -> str:
    return join_path(CALENDARS, calendar_id, "monthlyMemos")


def memo_path(calendar_id: str, year: int, month: int) -> str:
    return join_path(memos_path(calendar_id), month_key(year, month))


def allowed_users_path(calendar_id: str) -> str:
    return join_path(CALENDARS, calendar_id, "allowedUsers")


def allowed_user_path(calendar_id: str, uid: str) -> str:
    return join_path(allowed_users_path(calendar_id), uid)
