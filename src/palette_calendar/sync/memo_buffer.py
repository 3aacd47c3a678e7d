from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

from ..data.documents import DocumentStore
from ..data.paths import memo_path
from ..domain import FormatCommand
from .channel import Subscription, SyncChannel
from .scheduler import Runner, Scheduler, TimerHandle

logger = logging.getLogger(__name__)

DEBOUNCE_MS = 1500
SAVING_INDICATOR_MS = 500


class MemoSyncBuffer:
    """Collaboratively edited memo for one calendar month.

    Remote snapshots overwrite the visible content unless the local editor
    has focus; local edits are coalesced by a single debounce timer into one
    merge-write of the month's memo document. A buffer without edit rights
    is read-only and always mirrors the remote content.
    """

    def __init__(
        self,
        *,
        store: DocumentStore,
        channel: SyncChannel,
        scheduler: Scheduler,
        runner: Runner,
        calendar_id: str,
        year: int,
        month: int,
        can_edit: bool,
        debounce_ms: int = DEBOUNCE_MS,
        saving_indicator_ms: int = SAVING_INDICATOR_MS,
        on_update: Optional[Callable[["MemoSyncBuffer"], None]] = None,
        on_write_error: Optional[Callable[[Exception], None]] = None,
    ) -> None:
        self.store = store
        self.channel = channel
        self.scheduler = scheduler
        self.runner = runner
        self.calendar_id = calendar_id
        self.year = year
        self.month = month
        self.can_edit = can_edit
        self.debounce_ms = debounce_ms
        self.saving_indicator_ms = saving_indicator_ms
        self.on_update = on_update
        self.on_write_error = on_write_error

        self.remote_content = ""
        self.content = ""
        self.focused = False
        self.loading = True
        self.saving = False
        self._save_timer: Optional[TimerHandle] = None
        self._saving_timer: Optional[TimerHandle] = None
        self._writes_in_flight = 0
        self._subscription: Optional[Subscription] = None
        self._closed = False

    @property
    def path(self) -> str:
        return memo_path(self.calendar_id, self.year, self.month)

    @property
    def save_pending(self) -> bool:
        return self._save_timer is not None and self._save_timer.active

    @property
    def closed(self) -> bool:
        return self._closed

    def open(self) -> "MemoSyncBuffer":
        if self._subscription is None and not self._closed:
            self._subscription = self.channel.subscribe_document(self.path, self._on_remote)
        return self

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._subscription is not None:
            self._subscription.dispose()
            self._subscription = None
        for timer in (self._save_timer, self._saving_timer):
            if timer is not None:
                timer.cancel()
        self._save_timer = None
        self._saving_timer = None

    # ------------------------------------------------------------------ remote side

    def _on_remote(self, data: Optional[Dict[str, Any]]) -> None:
        self.remote_content = (data or {}).get("content") or ""
        self.loading = False
        if not self.can_edit or not self.focused:
            self.content = self.remote_content
        self._changed()

    # ------------------------------------------------------------------ local side

    def focus(self) -> None:
        if self._closed or not self.can_edit:
            return
        self.focused = True

    def blur(self) -> None:
        if self._closed:
            return
        self.focused = False
        if self.save_pending or self._writes_in_flight:
            return
        if self.content != self.remote_content:
            self.content = self.remote_content
            self._changed()

    def edit(self, text: str) -> bool:
        if self._closed or not self.can_edit:
            logger.debug("Ignoring memo edit for %s: read-only", self.path)
            return False
        self.content = text
        self._schedule_save()
        self._changed()
        return True

    def apply_format(self, command: FormatCommand | str, start: int, end: int) -> bool:
        """Toggle ``command`` on the ``[start, end)`` slice of the content."""

        if self._closed or not self.can_edit:
            return False
        command = FormatCommand(command)
        start, end = max(0, start), min(len(self.content), end)
        if start >= end:
            return False
        self.content = _toggle_tag(self.content, command.tag, start, end)
        self._schedule_save()
        self._changed()
        return True

    def _schedule_save(self) -> None:
        if self._save_timer is not None:
            self._save_timer.cancel()
        self._save_timer = self.scheduler.call_later(self.debounce_ms, self._save)

    def _save(self) -> None:
        self._save_timer = None
        if self._closed:
            return
        payload = {"content": self.content}
        self.saving = True
        if self._saving_timer is not None:
            self._saving_timer.cancel()
            self._saving_timer = None
        self._writes_in_flight += 1
        self._changed()
        logger.debug("Saving memo %s (%d chars)", self.path, len(payload["content"]))
        self.runner.submit(
            self.store.set,
            self.path,
            payload,
            merge=True,
            on_success=lambda _result: self._write_acknowledged(payload["content"]),
            on_error=self._write_finished,
        )

    def _write_acknowledged(self, content: str) -> None:
        # Polling backends report the write on a later tick; until then the
        # acknowledged payload is the freshest remote value.
        self.remote_content = content
        self._write_finished(None)

    def _write_finished(self, error: Optional[Exception]) -> None:
        self._writes_in_flight = max(0, self._writes_in_flight - 1)
        if error is not None:
            logger.error("Saving memo %s failed: %s", self.path, error)
            if self.on_write_error is not None:
                self.on_write_error(error)
        if self._closed:
            return
        if self._saving_timer is not None:
            self._saving_timer.cancel()
        self._saving_timer = self.scheduler.call_later(self.saving_indicator_ms, self._clear_saving)

    def _clear_saving(self) -> None:
        self._saving_timer = None
        if self._writes_in_flight:
            return
        self.saving = False
        self._changed()

    def _changed(self) -> None:
        if self.on_update is not None:
            self.on_update(self)


def _toggle_tag(content: str, tag: str, start: int, end: int) -> str:
    opening, closing = f"<{tag}>", f"</{tag}>"
    selected = content[start:end]
    if selected.startswith(opening) and selected.endswith(closing) and len(selected) >= len(opening + closing):
        inner = selected[len(opening) : len(selected) - len(closing)]
        return content[:start] + inner + content[end:]
    if content[max(0, start - len(opening)) : start] == opening and content[end : end + len(closing)] == closing:
        return content[: start - len(opening)] + selected + content[end + len(closing) :]
    return content[:start] + opening + selected + closing + content[end:]
