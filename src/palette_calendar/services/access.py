from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from ..data.documents import PaletteError
from ..data.repositories import CalendarRepository
from ..domain import Identity

logger = logging.getLogger(__name__)


class AccessDeniedError(PaletteError):
    """Raised when an identity is not a member of the requested calendar."""


class AccessPolicy:
    """Owner/viewer capability check applied to every mutating entry point."""

    @staticmethod
    def is_owner(identity: Optional[Identity], owner_id: Optional[str]) -> bool:
        if identity is None or not identity.uid or not owner_id:
            return False
        return identity.uid == owner_id


@dataclass(frozen=True)
class AccessGrant:
    authorized: bool
    is_owner: bool
    display_name: str

    @classmethod
    def denied(cls, identity: Optional[Identity] = None) -> "AccessGrant":
        return cls(authorized=False, is_owner=False, display_name=identity.display_name if identity else "")


@dataclass(slots=True)
class AccessService:
    calendars: CalendarRepository

    def resolve(self, calendar_id: str, identity: Optional[Identity]) -> AccessGrant:
        if identity is None:
            return AccessGrant.denied()
        info = self.calendars.fetch(calendar_id)
        if info is None:
            logger.info("Calendar %s does not exist", calendar_id)
            return AccessGrant.denied(identity)
        is_owner = AccessPolicy.is_owner(identity, info.creator_uid)
        member = self.calendars.member(calendar_id, identity.uid)
        if member is None and not is_owner:
            return AccessGrant.denied(identity)
        display_name = (member.name if member else "") or identity.display_name
        return AccessGrant(authorized=True, is_owner=is_owner, display_name=display_name)
