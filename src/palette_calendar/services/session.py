from __future__ import annotations

import logging
from datetime import date
from typing import Any, Callable, List, Optional, Tuple

from ..data.paths import events_path, legends_path
from ..domain import DEFAULT_LEGEND_COLOR, CalendarEvent, Identity, Legend, shift_month
from ..sync.channel import Subscription, SyncChannel
from ..sync.confirm import ConfirmGate, ConfirmRequest
from ..sync.event_store import EventStore, Occupant
from ..sync.memo_buffer import MemoSyncBuffer
from ..sync.selection import CreateEvent, SelectionStateMachine, UpdateEventDates
from .access import AccessDeniedError, AccessGrant, AccessPolicy
from .context import ServiceContext

logger = logging.getLogger(__name__)

WriteErrorHook = Callable[[str, Exception], None]


class CalendarSession:
    """All live state for one viewer of one calendar.

    Owns the subscriptions, the event projection, the selection gesture, the
    memo buffer for the current month and the modal flags. Mutations are
    gated on owner capability; local UI state changes for everyone.
    """

    def __init__(
        self,
        context: ServiceContext,
        calendar_id: str,
        identity: Identity,
        *,
        owner_id: Optional[str],
        display_name: Optional[str] = None,
        anchor: Optional[date] = None,
        on_change: Optional[Callable[["CalendarSession"], None]] = None,
        on_write_error: Optional[WriteErrorHook] = None,
    ) -> None:
        self.context = context
        self.calendar_id = calendar_id
        self.identity = identity
        self.owner_id = owner_id
        self.display_name = display_name or identity.display_name
        self.is_owner = AccessPolicy.is_owner(identity, owner_id)
        self.on_change = on_change
        self.on_write_error = on_write_error

        today = anchor or date.today()
        self.year, self.month = today.year, today.month

        self.channel = SyncChannel(context.store)
        self.event_store = EventStore()
        self.selection = SelectionStateMachine()
        self.confirm_gate = ConfirmGate()
        self.memo: Optional[MemoSyncBuffer] = None
        self._subscriptions: List[Subscription] = []
        self._opened = False

        self.selected_event: Optional[CalendarEvent] = None
        self.event_memo_draft = ""
        self._event_detail_open = False
        self._legend_panel_open = False

    @classmethod
    def open_for(
        cls,
        context: ServiceContext,
        calendar_id: str,
        identity: Identity,
        **kwargs: Any,
    ) -> "CalendarSession":
        """Resolve access for ``identity`` and open a session, or raise."""

        grant: AccessGrant = context.access.resolve(calendar_id, identity)
        if not grant.authorized:
            raise AccessDeniedError(f"{identity.uid} is not a member of calendar {calendar_id}")
        info = context.calendars.fetch(calendar_id)
        session = cls(
            context,
            calendar_id,
            identity,
            owner_id=info.creator_uid if info else None,
            display_name=grant.display_name,
            **kwargs,
        )
        return session.open()

    # ------------------------------------------------------------------ lifecycle

    def open(self) -> "CalendarSession":
        if self._opened:
            return self
        self._opened = True
        self._subscriptions.append(self.channel.subscribe_collection(legends_path(self.calendar_id), self._on_legends))
        self._subscriptions.append(self.channel.subscribe_collection(events_path(self.calendar_id), self._on_events))
        self._arm_memo()
        return self

    def close(self) -> None:
        if self.memo is not None:
            self.memo.close()
            self.memo = None
        for subscription in self._subscriptions:
            subscription.dispose()
        self._subscriptions.clear()
        self.channel.close()
        self.event_store.clear()
        self.confirm_gate.dismiss()
        self._opened = False

    def __enter__(self) -> "CalendarSession":
        return self.open()

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _arm_memo(self) -> None:
        sync = self.context.settings.sync
        self.memo = MemoSyncBuffer(
            store=self.context.store,
            channel=self.channel,
            scheduler=self.context.scheduler,
            runner=self.context.runner,
            calendar_id=self.calendar_id,
            year=self.year,
            month=self.month,
            can_edit=self.is_owner,
            debounce_ms=sync.memo_debounce_ms,
            saving_indicator_ms=sync.saving_indicator_ms,
            on_update=lambda _buffer: self._changed(),
            on_write_error=self._memo_write_failed,
        ).open()

    # ------------------------------------------------------------------ projections

    def _on_legends(self, records: dict) -> None:
        self.event_store.replace_legends(records)
        self._changed()

    def _on_events(self, records: dict) -> None:
        self.event_store.replace_events(records)
        if self.selected_event is not None:
            self.selected_event = self.event_store.events.get(self.selected_event.id, self.selected_event)
        self._changed()

    @property
    def legends(self) -> List[Legend]:
        return self.event_store.sorted_legends()

    @property
    def events(self) -> List[CalendarEvent]:
        return list(self.event_store.events.values())

    def occupancy(self, day: Any) -> List[Occupant]:
        return self.event_store.occupancy(day)

    @property
    def visible_months(self) -> List[Tuple[int, int]]:
        return [(self.year, self.month), shift_month(self.year, self.month, 1)]

    def change_month(self, delta: int) -> None:
        if self.memo is not None:
            self.memo.close()
            self.memo = None
        self.year, self.month = shift_month(self.year, self.month, delta)
        if self._opened:
            self._arm_memo()
        self._changed()

    # ------------------------------------------------------------------ modal flags

    @property
    def legend_prompt_open(self) -> bool:
        return self.is_owner and self.selection.prompt_open

    @property
    def event_detail_open(self) -> bool:
        return self._event_detail_open and self.selected_event is not None

    @property
    def legend_panel_open(self) -> bool:
        return self.is_owner and self._legend_panel_open

    @property
    def pending_confirmation(self) -> Optional[ConfirmRequest]:
        return self.confirm_gate.pending

    # ------------------------------------------------------------------ selection gesture

    def click_day(self, day: Any) -> None:
        intent = self.selection.click(day)
        if isinstance(intent, UpdateEventDates):
            self._dispatch_update(intent)
            self.selected_event = None
        self._changed()

    def choose_legend(self, legend_id: str) -> None:
        intent = self.selection.choose_legend(legend_id)
        if intent is not None:
            self._dispatch_create(intent)
        self._changed()

    def cancel_selection(self) -> None:
        self.selection.cancel()
        self._changed()

    def _dispatch_create(self, intent: CreateEvent) -> None:
        if not self.event_store.has_legend(intent.legend_id):
            logger.warning("Dropping new event for unknown legend %s", intent.legend_id)
            return
        self._write(
            "create event",
            self.context.events.create,
            self.calendar_id,
            start=intent.start,
            end=intent.end,
            legend_id=intent.legend_id,
            created_by=self.display_name,
        )

    def _dispatch_update(self, intent: UpdateEventDates) -> None:
        self._write(
            "move event",
            self.context.events.move,
            self.calendar_id,
            intent.event_id,
            start=intent.start,
            end=intent.end,
        )

    # ------------------------------------------------------------------ event detail

    def open_event(self, event: CalendarEvent | str) -> None:
        if isinstance(event, str):
            found = self.event_store.events.get(event)
            if found is None:
                return
            event = found
        self.selected_event = event
        self.event_memo_draft = event.memo
        self._event_detail_open = True
        self._changed()

    def close_event_detail(self) -> None:
        self._event_detail_open = False
        self._changed()

    def set_event_memo_draft(self, text: str) -> None:
        if not self.is_owner:
            return
        self.event_memo_draft = text

    def save_event_memo(self) -> bool:
        event = self.selected_event
        if event is None:
            return False

        def _saved(_result: Any) -> None:
            self._event_detail_open = False
            self.selected_event = None
            self._changed()

        return self._write(
            "save event memo",
            self.context.events.set_memo,
            self.calendar_id,
            event.id,
            self.event_memo_draft,
            on_success=_saved,
        )

    def reassign_legend(self, legend_id: str) -> bool:
        event = self.selected_event
        if event is None or not self.event_store.has_legend(legend_id):
            return False
        return self._write("reassign legend", self.context.events.set_legend, self.calendar_id, event.id, legend_id)

    def request_delete_event(self) -> Optional[ConfirmRequest]:
        event = self.selected_event
        if event is None or not self._allowed("delete event"):
            return None

        def _delete() -> None:
            def _deleted(_result: Any) -> None:
                self._event_detail_open = False
                self.selected_event = None
                self._changed()

            self._write("delete event", self.context.events.delete, self.calendar_id, event.id, on_success=_deleted)

        request = self.confirm_gate.request("Delete event", "Delete this event permanently?", _delete)
        self._changed()
        return request

    def start_edit_event(self) -> None:
        event = self.selected_event
        if event is None:
            return
        self.selection.start_edit(event)
        self._event_detail_open = False
        self._changed()

    # ------------------------------------------------------------------ legends

    def open_legend_panel(self) -> None:
        self._legend_panel_open = True
        self._changed()

    def close_legend_panel(self) -> None:
        self._legend_panel_open = False
        self._changed()

    def add_legend(self, name: str, color: str = DEFAULT_LEGEND_COLOR) -> bool:
        if not name.strip():
            return False
        return self._write("add legend", self.context.legends.add, self.calendar_id, name=name, color=color)

    def request_delete_legend(self, legend_id: str) -> Optional[ConfirmRequest]:
        if not self._allowed("delete legend"):
            return None

        def _delete() -> None:
            self._write("delete legend", self.context.legends.delete_cascade, self.calendar_id, legend_id)

        request = self.confirm_gate.request(
            "Delete legend",
            "Delete this legend? Every event tagged with it is deleted too.",
            _delete,
        )
        self._changed()
        return request

    # ------------------------------------------------------------------ confirmation

    def confirm(self) -> bool:
        confirmed = self.confirm_gate.confirm()
        self._changed()
        return confirmed

    def dismiss_confirm(self) -> None:
        self.confirm_gate.dismiss()
        self._changed()

    # ------------------------------------------------------------------ writes

    def _allowed(self, action: str) -> bool:
        if not self.is_owner:
            logger.debug("Ignoring %s on %s: %s is not the owner", action, self.calendar_id, self.identity.uid)
            return False
        return True

    def _write(self, action: str, fn: Callable[..., Any], *args: Any, on_success=None, **kwargs: Any) -> bool:
        if not self._allowed(action):
            return False
        self.context.runner.submit(
            fn,
            *args,
            on_success=on_success,
            on_error=lambda exc: self._report_write_error(action, exc),
            **kwargs,
        )
        return True

    def _report_write_error(self, action: str, exc: Exception) -> None:
        logger.error("Failed to %s on calendar %s: %s", action, self.calendar_id, exc)
        if self.on_write_error is not None:
            self.on_write_error(action, exc)

    def _memo_write_failed(self, exc: Exception) -> None:
        if self.on_write_error is not None:
            self.on_write_error("save memo", exc)

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change(self)
