from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, Optional, Protocol, Union

Record = Dict[str, Any]
CollectionSnapshot = Dict[str, Record]
Snapshot = Union[CollectionSnapshot, Optional[Record]]
SnapshotCallback = Callable[[Snapshot], None]
ErrorCallback = Callable[[Exception], None]
Unwatch = Callable[[], None]


class PaletteError(RuntimeError):
    """Base class for errors raised by the calendar data layer."""


class StoreError(PaletteError):
    """Raised when the backing document store rejects an operation."""


class InvalidPathError(PaletteError, ValueError):
    """Raised when a path does not address a collection or a document."""


class DocumentNotFoundError(StoreError, KeyError):
    """Raised when updating a document that does not exist."""


def split_path(path: str) -> list[str]:
    segments = [segment for segment in path.strip("/").split("/") if segment]
    if not segments:
        raise InvalidPathError(f"Empty document path: {path!r}")
    return segments


def is_collection_path(path: str) -> bool:
    return len(split_path(path)) % 2 == 1


def require_collection(path: str) -> str:
    if not is_collection_path(path):
        raise InvalidPathError(f"Not a collection path: {path!r}")
    return "/".join(split_path(path))


def split_document(path: str) -> tuple[str, str]:
    """Split a document path into ``(collection_path, document_id)``."""

    segments = split_path(path)
    if len(segments) % 2 != 0:
        raise InvalidPathError(f"Not a document path: {path!r}")
    return "/".join(segments[:-1]), segments[-1]


def join_path(*segments: str) -> str:
    return "/".join(str(segment).strip("/") for segment in segments)


class DocumentStore(Protocol):
    """Collection/document store shared by every participant of a calendar.

    Collection snapshots are complete ``{id: data}`` mappings, never diffs.
    ``watch`` delivers the current contents once immediately and again after
    every change; the returned callable stops delivery.
    """

    def get(self, path: str) -> Optional[Record]: ...

    def list(self, path: str) -> CollectionSnapshot: ...

    def query(self, path: str, field: str, value: Any) -> CollectionSnapshot: ...

    def add(self, path: str, data: Record) -> str: ...

    def set(self, path: str, data: Record, *, merge: bool = False) -> None: ...

    def update(self, path: str, data: Record) -> None: ...

    def delete(self, path: str) -> None: ...

    def delete_many(self, paths: Iterable[str]) -> None: ...

    def watch(
        self,
        path: str,
        on_snapshot: SnapshotCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> Unwatch: ...
