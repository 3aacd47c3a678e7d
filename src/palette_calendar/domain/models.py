from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional

from .dates import month_key, normalize_day
from .enums import MemberRole

DEFAULT_LEGEND_COLOR = "#d3d3d3"


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def _optional_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


@dataclass(frozen=True, slots=True)
class Identity:
    uid: str
    display_name: str = ""
    email: str = ""


@dataclass(frozen=True, slots=True)
class Legend:
    id: str
    name: str
    color: str = DEFAULT_LEGEND_COLOR

    @classmethod
    def from_record(cls, legend_id: str, record: Dict[str, Any]) -> "Legend":
        return cls(
            id=str(legend_id),
            name=str(record.get("name") or ""),
            color=record.get("color") or DEFAULT_LEGEND_COLOR,
        )

    def to_record(self) -> Dict[str, Any]:
        return {"name": self.name, "color": self.color}


# Rendered in place of a legend that no longer exists.
UNKNOWN_LEGEND = Legend(id="", name="?", color="#ccc")


@dataclass(frozen=True, slots=True)
class CalendarEvent:
    id: str
    start_date: Optional[date]
    end_date: Optional[date]
    legend_id: Optional[str]
    memo: str = ""
    created_by: str = ""
    created_at: Optional[str] = None

    @classmethod
    def from_record(cls, event_id: str, record: Dict[str, Any]) -> "CalendarEvent":
        return cls(
            id=str(event_id),
            start_date=normalize_day(record.get("startDate")),
            end_date=normalize_day(record.get("endDate")),
            legend_id=_optional_str(record.get("legendId")),
            memo=record.get("memo") or "",
            created_by=record.get("createdBy") or "",
            created_at=record.get("createdAt"),
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "startDate": self.start_date.isoformat() if self.start_date else None,
            "endDate": self.end_date.isoformat() if self.end_date else None,
            "legendId": self.legend_id,
            "memo": self.memo,
            "createdBy": self.created_by,
            "createdAt": self.created_at,
        }

    def covers(self, day: date) -> bool:
        if self.start_date is None or self.end_date is None:
            return False
        return self.start_date <= day <= self.end_date


@dataclass(frozen=True, slots=True)
class MonthlyMemo:
    year: int
    month: int
    content: str = ""

    @property
    def key(self) -> str:
        return month_key(self.year, self.month)


@dataclass(frozen=True, slots=True)
class CalendarInfo:
    id: str
    name: str
    created_by: str
    creator_uid: Optional[str]
    created_at: Optional[str] = None

    @classmethod
    def from_record(cls, calendar_id: str, record: Dict[str, Any]) -> "CalendarInfo":
        return cls(
            id=str(calendar_id),
            name=str(record.get("name") or ""),
            created_by=record.get("createdBy") or "",
            creator_uid=record.get("creatorUid"),
            created_at=record.get("createdAt"),
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "createdBy": self.created_by,
            "creatorUid": self.creator_uid,
            "createdAt": self.created_at,
        }


@dataclass(frozen=True, slots=True)
class AllowedUser:
    uid: str
    name: str
    email: str = ""
    role: MemberRole = MemberRole.MEMBER

    @classmethod
    def from_record(cls, uid: str, record: Dict[str, Any]) -> "AllowedUser":
        raw_role = record.get("role") or MemberRole.MEMBER
        try:
            role = MemberRole(raw_role)
        except ValueError:
            role = MemberRole.MEMBER
        return cls(
            uid=str(record.get("uid") or uid),
            name=record.get("name") or "",
            email=record.get("email") or "",
            role=role,
        )

    def to_record(self) -> Dict[str, Any]:
        return {"name": self.name, "email": self.email, "uid": self.uid, "role": self.role.value}
