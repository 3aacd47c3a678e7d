from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from ...domain import DEFAULT_LEGEND_COLOR, Legend
from ..documents import DocumentStore
from ..paths import event_path, events_path, legend_path, legends_path

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class LegendRepository:
    store: DocumentStore

    def list_for_calendar(self, calendar_id: str) -> list[Legend]:
        records = self.store.list(legends_path(calendar_id))
        legends = [Legend.from_record(legend_id, record) for legend_id, record in records.items()]
        return sorted(legends, key=lambda legend: legend.name.lower())

    def add(self, calendar_id: str, *, name: str, color: str = DEFAULT_LEGEND_COLOR) -> Legend:
        payload = {"name": name.strip(), "color": color or DEFAULT_LEGEND_COLOR}
        legend_id = self.store.add(legends_path(calendar_id), payload)
        return Legend.from_record(legend_id, payload)

    def delete_cascade(self, calendar_id: str, legend_id: Any) -> int:
        """Delete the legend and every event tagged with it in one batch."""

        legend_id = str(legend_id)
        tagged = self.store.query(events_path(calendar_id), "legendId", legend_id)
        paths = [event_path(calendar_id, event_id) for event_id in tagged]
        paths.append(legend_path(calendar_id, legend_id))
        self.store.delete_many(paths)
        logger.info("Deleted legend %s with %d events", legend_id, len(tagged))
        return len(tagged)
