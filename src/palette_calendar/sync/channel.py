from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from ..data.documents import DocumentStore, Unwatch, is_collection_path, split_path

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[Any], None]
ErrorHook = Callable[[str, Exception], None]


class Subscription:
    """Handle for one live watch; disposing it is idempotent and final."""

    def __init__(self, path: str, on_change: ChangeCallback, on_error: Optional[ErrorHook] = None) -> None:
        self.path = path
        self._on_change = on_change
        self._on_error = on_error
        self._unwatch: Optional[Unwatch] = None
        self._disposed = False
        self._on_dispose: Optional[Callable[["Subscription"], None]] = None
        self.last_value: Any = None

    @property
    def active(self) -> bool:
        return not self._disposed

    def _attach(self, unwatch: Unwatch) -> None:
        if self._disposed:
            unwatch()
            return
        self._unwatch = unwatch

    def _deliver(self, snapshot: Any) -> None:
        # Late deliveries from a transport that already had the change in flight.
        if self._disposed:
            return
        self.last_value = snapshot
        self._on_change(snapshot)

    def _fail(self, exc: Exception) -> None:
        if self._disposed:
            return
        logger.warning("Subscription to %s failed, keeping last known value: %s", self.path, exc)
        if self._on_error is not None:
            self._on_error(self.path, exc)

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        unwatch, self._unwatch = self._unwatch, None
        if unwatch is not None:
            unwatch()
        if self._on_dispose is not None:
            self._on_dispose(self)

    __call__ = dispose

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.dispose()


class SyncChannel:
    """Opens and tears down watches on the shared document store.

    Collection paths deliver the complete ``{id: data}`` contents, document
    paths deliver the document data or ``None``. Errors are logged and never
    clear the consumer's projection.
    """

    def __init__(self, store: DocumentStore, *, on_error: Optional[ErrorHook] = None) -> None:
        self.store = store
        self.on_error = on_error
        self._subscriptions: List[Subscription] = []

    def subscribe(self, path: str, on_change: ChangeCallback) -> Subscription:
        if is_collection_path(path):
            return self.subscribe_collection(path, on_change)
        return self.subscribe_document(path, on_change)

    def subscribe_collection(self, path: str, on_change: Callable[[Dict[str, Dict[str, Any]]], None]) -> Subscription:
        def _convert(snapshot: Any) -> None:
            on_change({str(doc_id): dict(data or {}) for doc_id, data in (snapshot or {}).items()})

        return self._open(path, _convert)

    def subscribe_document(self, path: str, on_change: Callable[[Optional[Dict[str, Any]]], None]) -> Subscription:
        def _convert(snapshot: Any) -> None:
            on_change(dict(snapshot) if snapshot is not None else None)

        return self._open(path, _convert)

    def _open(self, path: str, on_change: ChangeCallback) -> Subscription:
        normalized = "/".join(split_path(path))
        subscription = Subscription(normalized, on_change, self.on_error)
        subscription._on_dispose = self._forget
        self._subscriptions.append(subscription)
        logger.debug("Subscribing to %s", normalized)
        try:
            unwatch = self.store.watch(normalized, subscription._deliver, subscription._fail)
        except Exception as exc:  # noqa: BLE001
            subscription._fail(exc)
            return subscription
        subscription._attach(unwatch)
        return subscription

    def _forget(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)
        logger.debug("Disposed subscription to %s", subscription.path)

    @property
    def active_paths(self) -> list[str]:
        return [subscription.path for subscription in self._subscriptions]

    def close(self) -> None:
        for subscription in list(self._subscriptions):
            subscription.dispose()
