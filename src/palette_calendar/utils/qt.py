from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from typing import Any, Callable, Optional

from PyQt6.QtCore import QObject, QRunnable, QThreadPool, QTimer, pyqtSignal


class StoreCallSignals(QObject):
    succeeded = pyqtSignal(object)
    failed = pyqtSignal(Exception)


class _StoreCall(QRunnable):
    def __init__(self, call: Callable[[], Any], signals: StoreCallSignals) -> None:
        super().__init__()
        self.call = call
        self.signals = signals

    def run(self) -> None:  # noqa: D401
        try:
            result = self.call()
        except Exception as exc:  # noqa: BLE001
            self.signals.failed.emit(exc)
            return
        self.signals.succeeded.emit(result)


@dataclass(eq=False)
class PendingCall:
    signals: StoreCallSignals
    done: bool = False


class TaskRunner:
    """Runs blocking store calls on the Qt thread pool.

    Callbacks are delivered through queued signals, so they run on the
    thread that submitted the call (the GUI thread in the app).
    """

    def __init__(self, *, max_threads: Optional[int] = None) -> None:
        self.pool = QThreadPool.globalInstance()
        if max_threads is not None:
            self.pool.setMaxThreadCount(max_threads)
        self._pending: set[PendingCall] = set()

    @property
    def in_flight(self) -> int:
        return len(self._pending)

    def submit(
        self,
        fn: Callable[..., Any],
        *args: Any,
        on_success: Optional[Callable[[Any], None]] = None,
        on_error: Optional[Callable[[Exception], None]] = None,
        **kwargs: Any,
    ) -> PendingCall:
        signals = StoreCallSignals()
        pending = PendingCall(signals=signals)
        # The signals object must outlive the worker.
        self._pending.add(pending)
        signals.succeeded.connect(lambda _result: self._settle(pending))
        signals.failed.connect(lambda _exc: self._settle(pending))
        if on_success:
            signals.succeeded.connect(on_success)
        if on_error:
            signals.failed.connect(on_error)
        self.pool.start(_StoreCall(partial(fn, *args, **kwargs), signals))
        return pending

    def _settle(self, pending: PendingCall) -> None:
        pending.done = True
        self._pending.discard(pending)

    def wait(self, timeout_ms: int = -1) -> bool:
        return self.pool.waitForDone(timeout_ms)


class QtTimerHandle:
    def __init__(self, timer: QTimer, owner: "QtScheduler") -> None:
        self._timer = timer
        self._owner = owner

    @property
    def active(self) -> bool:
        return self._timer.isActive()

    def cancel(self) -> None:
        self._timer.stop()
        self._owner._release(self)


class QtScheduler:
    """Single-shot timers on the Qt event loop of the calling thread."""

    def __init__(self) -> None:
        self._live: set[QtTimerHandle] = set()

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> QtTimerHandle:
        timer = QTimer()
        timer.setSingleShot(True)
        handle = QtTimerHandle(timer, self)

        def _fire() -> None:
            self._release(handle)
            callback()

        timer.timeout.connect(_fire)
        self._live.add(handle)
        timer.start(max(0, int(delay_ms)))
        return handle

    def pending(self) -> int:
        return sum(1 for handle in self._live if handle.active)

    def _release(self, handle: QtTimerHandle) -> None:
        self._live.discard(handle)
