from __future__ import annotations

import logging
from copy import deepcopy
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple
from uuid import uuid4

import orjson

from .documents import (
    CollectionSnapshot,
    DocumentNotFoundError,
    ErrorCallback,
    Record,
    SnapshotCallback,
    Unwatch,
    is_collection_path,
    require_collection,
    split_document,
    split_path,
)

logger = logging.getLogger(__name__)

_Watcher = Tuple[SnapshotCallback, Optional[ErrorCallback]]


class MemoryDocumentStore:
    """In-process document store with synchronous change notification.

    Backs the local (single machine) mode and the test-suite. When ``path``
    is given the whole tree is persisted as JSON after every mutation.
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        self._path = path
        self._collections: Optional[Dict[str, Dict[str, Record]]] = None
        self._watchers: Dict[str, List[_Watcher]] = {}

    # ------------------------------------------------------------------ persistence

    def _ensure_materialized(self) -> Dict[str, Dict[str, Record]]:
        if self._collections is not None:
            return self._collections
        self._collections = {}
        if self._path is None or not self._path.exists():
            return self._collections
        raw = self._path.read_bytes()
        if raw:
            self._collections = orjson.loads(raw)
        return self._collections

    def persist(self) -> None:
        if self._path is None or self._collections is None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = orjson.dumps(self._collections, option=orjson.OPT_INDENT_2 | orjson.OPT_SORT_KEYS)
        self._path.write_bytes(payload + b"\n")

    def _mutate(self, callback: Callable[[Dict[str, Dict[str, Record]]], Any], touched: Iterable[str]) -> Any:
        result = callback(self._ensure_materialized())
        self.persist()
        for collection in dict.fromkeys(touched):
            self._notify(collection)
        return result

    # ------------------------------------------------------------------ reads

    def get(self, path: str) -> Optional[Record]:
        collection, doc_id = split_document(path)
        record = self._ensure_materialized().get(collection, {}).get(doc_id)
        return deepcopy(record) if record is not None else None

    def list(self, path: str) -> CollectionSnapshot:
        collection = require_collection(path)
        return deepcopy(self._ensure_materialized().get(collection, {}))

    def query(self, path: str, field: str, value: Any) -> CollectionSnapshot:
        return {doc_id: data for doc_id, data in self.list(path).items() if data.get(field) == value}

    # ------------------------------------------------------------------ writes

    def add(self, path: str, data: Record) -> str:
        collection = require_collection(path)
        doc_id = uuid4().hex[:20]

        def _insert(state: Dict[str, Dict[str, Record]]) -> str:
            state.setdefault(collection, {})[doc_id] = deepcopy(data)
            return doc_id

        return self._mutate(_insert, [collection])

    def set(self, path: str, data: Record, *, merge: bool = False) -> None:
        collection, doc_id = split_document(path)

        def _write(state: Dict[str, Dict[str, Record]]) -> None:
            documents = state.setdefault(collection, {})
            if merge and doc_id in documents:
                documents[doc_id].update(deepcopy(data))
            else:
                documents[doc_id] = deepcopy(data)

        self._mutate(_write, [collection])

    def update(self, path: str, data: Record) -> None:
        collection, doc_id = split_document(path)

        def _patch(state: Dict[str, Dict[str, Record]]) -> None:
            documents = state.get(collection, {})
            if doc_id not in documents:
                raise DocumentNotFoundError(path)
            documents[doc_id].update(deepcopy(data))

        self._mutate(_patch, [collection])

    def delete(self, path: str) -> None:
        self.delete_many([path])

    def delete_many(self, paths: Iterable[str]) -> None:
        targets = [split_document(path) for path in paths]

        def _remove(state: Dict[str, Dict[str, Record]]) -> None:
            for collection, doc_id in targets:
                state.get(collection, {}).pop(doc_id, None)

        self._mutate(_remove, [collection for collection, _ in targets])

    # ------------------------------------------------------------------ subscriptions

    def watch(
        self,
        path: str,
        on_snapshot: SnapshotCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> Unwatch:
        key = "/".join(split_path(path))
        entry: _Watcher = (on_snapshot, on_error)
        self._watchers.setdefault(key, []).append(entry)

        def _unwatch() -> None:
            watchers = self._watchers.get(key, [])
            if entry in watchers:
                watchers.remove(entry)

        on_snapshot(self._snapshot(key))
        return _unwatch

    def _snapshot(self, key: str):
        if is_collection_path(key):
            return self.list(key)
        return self.get(key)

    def _notify(self, collection: str) -> None:
        for key in list(self._watchers):
            if is_collection_path(key):
                if key != collection:
                    continue
            elif split_document(key)[0] != collection:
                continue
            for entry in list(self._watchers.get(key, [])):
                if entry not in self._watchers.get(key, []):
                    continue
                entry[0](self._snapshot(key))
