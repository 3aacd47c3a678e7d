from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Optional

from ...domain import CalendarEvent, utc_timestamp
from ..documents import DocumentStore
from ..paths import event_path, events_path


@dataclass(slots=True)
class EventRepository:
    store: DocumentStore

    def list_for_calendar(self, calendar_id: str) -> list[CalendarEvent]:
        records = self.store.list(events_path(calendar_id))
        events = [CalendarEvent.from_record(event_id, record) for event_id, record in records.items()]
        return sorted(events, key=lambda event: (event.start_date or date.min, event.id))

    def create(
        self,
        calendar_id: str,
        *,
        start: date,
        end: date,
        legend_id: str,
        created_by: str,
        memo: str = "",
    ) -> str:
        payload = {
            "startDate": start.isoformat(),
            "endDate": end.isoformat(),
            "legendId": str(legend_id),
            "memo": memo,
            "createdBy": created_by,
            "createdAt": utc_timestamp(),
        }
        return self.store.add(events_path(calendar_id), payload)

    def update(self, calendar_id: str, event_id: str, changes: Dict[str, Any]) -> None:
        self.store.update(event_path(calendar_id, event_id), changes)

    def move(self, calendar_id: str, event_id: str, *, start: date, end: date) -> None:
        self.update(calendar_id, event_id, {"startDate": start.isoformat(), "endDate": end.isoformat()})

    def set_memo(self, calendar_id: str, event_id: str, memo: str) -> None:
        self.update(calendar_id, event_id, {"memo": memo})

    def set_legend(self, calendar_id: str, event_id: str, legend_id: str) -> None:
        self.update(calendar_id, event_id, {"legendId": str(legend_id)})

    def delete(self, calendar_id: str, event_id: str) -> None:
        self.store.delete(event_path(calendar_id, event_id))

    def fetch(self, calendar_id: str, event_id: str) -> Optional[CalendarEvent]:
        record = self.store.get(event_path(calendar_id, event_id))
        if record is None:
            return None
        return CalendarEvent.from_record(event_id, record)
