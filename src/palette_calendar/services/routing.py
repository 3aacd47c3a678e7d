from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import urlparse

from ..data.repositories import CalendarRepository
from ..domain import CalendarInfo, Identity

logger = logging.getLogger(__name__)

CALENDAR_PREFIX = "/c/"


def resolve_calendar_id(path: str, identity: Optional[Identity]) -> Optional[str]:
    """Map a URL path to a calendar id.

    ``/c/{id}`` selects ``id``; any other path resolves to the identity's own
    calendar, or ``None`` when nobody is signed in.
    """

    route = urlparse(path).path if "://" in path else path
    if route.startswith(CALENDAR_PREFIX):
        calendar_id = route[len(CALENDAR_PREFIX) :].split("/")[0]
        if calendar_id:
            return calendar_id
    return identity.uid if identity is not None else None


def share_url(base_url: str, calendar_id: str) -> str:
    return f"{base_url.rstrip('/')}{CALENDAR_PREFIX}{calendar_id}"


def ensure_own_calendar(calendars: CalendarRepository, identity: Identity, *, name: str = "") -> CalendarInfo:
    existing = calendars.fetch(identity.uid)
    if existing is not None:
        return existing
    title = name or f"{identity.display_name or identity.uid}'s calendar"
    logger.info("Creating default calendar for %s", identity.uid)
    return calendars.create(title, identity, calendar_id=identity.uid)
