from __future__ import annotations

import heapq
import itertools
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Protocol, Tuple

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    @property
    def active(self) -> bool: ...

    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Single-shot timers on the UI thread."""

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> TimerHandle: ...


class Runner(Protocol):
    """Executes blocking store calls and reports back on the UI thread."""

    def submit(
        self,
        fn: Callable[..., Any],
        *args: Any,
        on_success: Optional[Callable[[Any], None]] = None,
        on_error: Optional[Callable[[Exception], None]] = None,
        **kwargs: Any,
    ) -> Any: ...


@dataclass(eq=False)
class ManualTimer:
    due_ms: int
    callback: Callable[[], None]
    active: bool = True

    def cancel(self) -> None:
        self.active = False


@dataclass
class ManualScheduler:
    """Virtual-clock scheduler; time only moves when :meth:`advance` is called."""

    now_ms: int = 0
    _queue: List[Tuple[int, int, ManualTimer]] = field(default_factory=list)
    _sequence: Any = field(default_factory=itertools.count)

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(due_ms=self.now_ms + max(0, int(delay_ms)), callback=callback)
        heapq.heappush(self._queue, (timer.due_ms, next(self._sequence), timer))
        return timer

    def advance(self, delta_ms: int) -> None:
        target = self.now_ms + delta_ms
        while self._queue and self._queue[0][0] <= target:
            due, _, timer = heapq.heappop(self._queue)
            self.now_ms = due
            if not timer.active:
                continue
            timer.active = False
            timer.callback()
        self.now_ms = target

    def pending(self) -> int:
        return sum(1 for _, _, timer in self._queue if timer.active)


class InlineRunner:
    """Runs work synchronously on the calling thread."""

    def submit(
        self,
        fn: Callable[..., Any],
        *args: Any,
        on_success: Optional[Callable[[Any], None]] = None,
        on_error: Optional[Callable[[Exception], None]] = None,
        **kwargs: Any,
    ) -> None:
        try:
            result = fn(*args, **kwargs)
        except Exception as exc:  # noqa: BLE001
            if on_error is None:
                logger.exception("Background task %s failed", getattr(fn, "__name__", fn))
                return
            on_error(exc)
        else:
            if on_success is not None:
                on_success(result)
