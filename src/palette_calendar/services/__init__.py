"""Application services orchestrating data access and the sync engine."""

from __future__ import annotations

from .access import AccessDeniedError, AccessGrant, AccessPolicy, AccessService
from .context import ServiceContext, build_store
from .routing import ensure_own_calendar, resolve_calendar_id, share_url
from .session import CalendarSession

__all__ = [
    "AccessDeniedError",
    "AccessGrant",
    "AccessPolicy",
    "AccessService",
    "CalendarSession",
    "ServiceContext",
    "build_store",
    "ensure_own_calendar",
    "resolve_calendar_id",
    "share_url",
]
