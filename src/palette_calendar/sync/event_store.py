from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Mapping, Tuple

from ..domain import UNKNOWN_LEGEND, CalendarEvent, Legend, month_grid, normalize_day

logger = logging.getLogger(__name__)

Occupant = Tuple[CalendarEvent, Legend]


@dataclass
class EventStore:
    """Latest legends and events snapshot for one calendar.

    Both collections are replaced wholesale on every channel delivery and
    queries are recomputed on demand.
    """

    legends: Dict[str, Legend] = field(default_factory=dict)
    events: Dict[str, CalendarEvent] = field(default_factory=dict)

    def replace_legends(self, records: Mapping[str, Mapping[str, Any]]) -> None:
        self.legends = {
            legend_id: Legend.from_record(legend_id, dict(record)) for legend_id, record in records.items()
        }

    def replace_events(self, records: Mapping[str, Mapping[str, Any]]) -> None:
        events: Dict[str, CalendarEvent] = {}
        for event_id, record in records.items():
            try:
                events[event_id] = CalendarEvent.from_record(event_id, dict(record))
            except ValueError as exc:
                logger.warning("Skipping event %s with unreadable dates: %s", event_id, exc)
        self.events = events

    def clear(self) -> None:
        self.legends = {}
        self.events = {}

    def resolve_legend(self, legend_id: Any) -> Legend:
        if legend_id is None:
            return UNKNOWN_LEGEND
        return self.legends.get(str(legend_id), UNKNOWN_LEGEND)

    def has_legend(self, legend_id: Any) -> bool:
        return legend_id is not None and str(legend_id) in self.legends

    def sorted_legends(self) -> List[Legend]:
        return sorted(self.legends.values(), key=lambda legend: (legend.name.lower(), legend.id))

    def occupancy(self, day: Any) -> List[Occupant]:
        target = normalize_day(day)
        if target is None:
            return []
        covering = [event for event in self.events.values() if event.covers(target)]
        covering.sort(key=lambda event: (event.start_date, event.end_date, event.id))
        return [(event, self.resolve_legend(event.legend_id)) for event in covering]

    def events_for_legend(self, legend_id: Any) -> List[CalendarEvent]:
        return [event for event in self.events.values() if event.legend_id == str(legend_id)]

    def month_view(self, year: int, month: int) -> List[Tuple[date, bool, List[Occupant]]]:
        return [(day, in_month, self.occupancy(day)) for day, in_month in month_grid(year, month)]
