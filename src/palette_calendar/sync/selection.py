from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Optional, Union

from ..domain import CalendarEvent, normalize_day
from ..domain.dates import ordered

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class AwaitingEnd:
    start: date


@dataclass(frozen=True)
class AwaitingLegend:
    start: date
    end: date


SelectionState = Union[Idle, AwaitingEnd, AwaitingLegend]


@dataclass(frozen=True)
class CreateEvent:
    start: date
    end: date
    legend_id: str


@dataclass(frozen=True)
class UpdateEventDates:
    event_id: str
    start: date
    end: date


Intent = Union[CreateEvent, UpdateEventDates]

IDLE = Idle()


class SelectionStateMachine:
    """Two-click date-range gesture shared by "create" and "move event".

    The first click anchors the range; the second orders both endpoints and
    either opens the legend prompt or, while an event is being moved,
    yields the new dates for that event.
    """

    def __init__(self) -> None:
        self._state: SelectionState = IDLE
        self._edit_target: Optional[CalendarEvent] = None

    @property
    def state(self) -> SelectionState:
        return self._state

    @property
    def edit_target(self) -> Optional[CalendarEvent]:
        return self._edit_target

    @property
    def editing(self) -> bool:
        return self._edit_target is not None

    @property
    def prompt_open(self) -> bool:
        return isinstance(self._state, AwaitingLegend)

    @property
    def selection_range(self) -> tuple[Optional[date], Optional[date]]:
        state = self._state
        if isinstance(state, AwaitingEnd):
            return state.start, None
        if isinstance(state, AwaitingLegend):
            return state.start, state.end
        return None, None

    def is_selected(self, day: Any) -> bool:
        target = normalize_day(day)
        start, end = self.selection_range
        if target is None or start is None:
            return False
        if end is None:
            return target == start
        return start <= target <= end

    def click(self, day: Any) -> Optional[UpdateEventDates]:
        target = normalize_day(day)
        if target is None:
            return None
        state = self._state
        if isinstance(state, AwaitingEnd):
            start, end = ordered(state.start, target)
            if self._edit_target is not None:
                intent = UpdateEventDates(event_id=self._edit_target.id, start=start, end=end)
                self._reset()
                logger.debug("Selection moved event %s to %s..%s", intent.event_id, start, end)
                return intent
            self._state = AwaitingLegend(start=start, end=end)
            return None
        # Idle, or a stale complete range: start over from this day.
        self._state = AwaitingEnd(start=target)
        return None

    def choose_legend(self, legend_id: Any) -> Optional[CreateEvent]:
        state = self._state
        if not isinstance(state, AwaitingLegend):
            return None
        self._state = IDLE
        return CreateEvent(start=state.start, end=state.end, legend_id=str(legend_id))

    def cancel(self) -> None:
        self._reset()

    def start_edit(self, event: CalendarEvent) -> None:
        self._edit_target = event
        self._state = IDLE

    def _reset(self) -> None:
        self._state = IDLE
        self._edit_target = None
