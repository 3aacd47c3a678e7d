from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional
from uuid import uuid4

from ...domain import AllowedUser, CalendarInfo, Identity, MemberRole, utc_timestamp
from ..documents import DocumentStore
from ..paths import allowed_user_path, calendar_path

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CalendarRepository:
    store: DocumentStore

    def fetch(self, calendar_id: str) -> Optional[CalendarInfo]:
        record = self.store.get(calendar_path(calendar_id))
        if record is None:
            return None
        return CalendarInfo.from_record(calendar_id, record)

    def member(self, calendar_id: str, uid: str) -> Optional[AllowedUser]:
        record = self.store.get(allowed_user_path(calendar_id, uid))
        if record is None:
            return None
        return AllowedUser.from_record(uid, record)

    def create(self, name: str, owner: Identity, *, calendar_id: Optional[str] = None) -> CalendarInfo:
        """Create a calendar and register ``owner`` as its admin member."""

        identifier = calendar_id or uuid4().hex[:20]
        info = CalendarInfo(
            id=identifier,
            name=name.strip(),
            created_by=owner.display_name,
            creator_uid=owner.uid,
            created_at=utc_timestamp(),
        )
        self.store.set(calendar_path(identifier), info.to_record())
        admin = AllowedUser(uid=owner.uid, name=owner.display_name, email=owner.email, role=MemberRole.ADMIN)
        self.store.set(allowed_user_path(identifier, owner.uid), admin.to_record())
        logger.info("Created calendar %s (%s) for %s", identifier, info.name, owner.uid)
        return info
