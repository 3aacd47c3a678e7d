from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConfirmRequest:
    title: str
    message: str
    on_confirm: Callable[[], None]


class ConfirmGate:
    """Holds at most one destructive action awaiting explicit confirmation."""

    def __init__(self) -> None:
        self._pending: Optional[ConfirmRequest] = None

    @property
    def pending(self) -> Optional[ConfirmRequest]:
        return self._pending

    @property
    def is_open(self) -> bool:
        return self._pending is not None

    def request(self, title: str, message: str, on_confirm: Callable[[], None]) -> ConfirmRequest:
        if self._pending is not None:
            logger.debug("Replacing pending confirmation %r", self._pending.title)
        self._pending = ConfirmRequest(title=title, message=message, on_confirm=on_confirm)
        return self._pending

    def confirm(self) -> bool:
        request, self._pending = self._pending, None
        if request is None:
            return False
        request.on_confirm()
        return True

    def dismiss(self) -> None:
        self._pending = None
