from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional
from uuid import uuid4

from supabase import Client, create_client

from ..config.settings import SupabaseSettings
from ..sync.scheduler import Runner, Scheduler, TimerHandle
from .documents import (
    CollectionSnapshot,
    DocumentNotFoundError,
    ErrorCallback,
    PaletteError,
    Record,
    SnapshotCallback,
    Unwatch,
    is_collection_path,
    require_collection,
    split_document,
    split_path,
)

logger = logging.getLogger(__name__)

_UNSET = object()


class SupabaseNotInitializedError(PaletteError):
    """Raised when accessing the Supabase client before it is configured."""


def _quoted(value: str) -> str:
    # PostgREST reserves , . : ( ) in filter values unless double-quoted.
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _batch_filter(grouped: Dict[str, List[str]]) -> str:
    """PostgREST ``or`` filter matching every ``(collection, id)`` pair in ``grouped``."""

    clauses = []
    for collection, ids in grouped.items():
        members = ",".join(_quoted(doc_id) for doc_id in ids)
        clauses.append(f"and(collection.eq.{_quoted(collection)},id.in.({members}))")
    return ",".join(clauses)


@dataclass
class SupabaseGateway:
    """Thin wrapper around the Supabase Python client."""

    settings: SupabaseSettings
    _client: Optional[Client] = None

    def ensure_client(self) -> Client:
        if self._client is not None:
            return self._client
        if not self.settings.is_configured:
            missing = ", ".join(self.settings.missing_env_vars)
            raise SupabaseNotInitializedError(f"Supabase settings are incomplete: {missing}.")
        self._client = create_client(self.settings.url, self.settings.anon_key)
        return self._client

    def table(self, name: str):
        return self.ensure_client().table(name)


@dataclass(eq=False)
class _Poller:
    path: str
    on_snapshot: SnapshotCallback
    on_error: Optional[ErrorCallback]
    active: bool = True
    last: Any = _UNSET
    timer: Optional[TimerHandle] = None
    in_flight: bool = False


@dataclass
class SupabaseDocumentStore:
    """Document store over a single ``(collection, id, data jsonb)`` table.

    Supabase has no push channel in the synchronous client, so ``watch``
    re-reads the watched path every ``poll_interval_ms`` and only forwards
    snapshots that differ from the previous one. Writes, local ones
    included, show up on the next poll.
    """

    gateway: SupabaseGateway
    scheduler: Scheduler
    runner: Runner
    poll_interval_ms: int = 2000
    _pollers: List[_Poller] = field(default_factory=list)

    @property
    def table_name(self) -> str:
        return self.gateway.settings.documents_table

    def _table(self):
        return self.gateway.table(self.table_name)

    # ------------------------------------------------------------------ reads

    def get(self, path: str) -> Optional[Record]:
        collection, doc_id = split_document(path)
        response = (
            self._table()
            .select("data")
            .eq("collection", collection)
            .eq("id", doc_id)
            .limit(1)
            .execute()
        )
        rows = response.data or []
        if not rows:
            return None
        return dict(rows[0].get("data") or {})

    def list(self, path: str) -> CollectionSnapshot:
        collection = require_collection(path)
        response = self._table().select("id, data").eq("collection", collection).order("id").execute()
        return {str(row["id"]): dict(row.get("data") or {}) for row in response.data or []}

    def query(self, path: str, field: str, value: Any) -> CollectionSnapshot:
        collection = require_collection(path)
        response = (
            self._table()
            .select("id, data")
            .eq("collection", collection)
            .eq(f"data->>{field}", str(value))
            .execute()
        )
        return {str(row["id"]): dict(row.get("data") or {}) for row in response.data or []}

    # ------------------------------------------------------------------ writes

    def add(self, path: str, data: Record) -> str:
        collection = require_collection(path)
        doc_id = uuid4().hex[:20]
        self._table().insert({"collection": collection, "id": doc_id, "data": data}).execute()
        return doc_id

    def set(self, path: str, data: Record, *, merge: bool = False) -> None:
        collection, doc_id = split_document(path)
        payload = dict(data)
        if merge:
            existing = self.get(path) or {}
            payload = {**existing, **data}
        self._table().upsert(
            {"collection": collection, "id": doc_id, "data": payload},
            on_conflict="collection,id",
        ).execute()

    def update(self, path: str, data: Record) -> None:
        collection, doc_id = split_document(path)
        existing = self.get(path)
        if existing is None:
            raise DocumentNotFoundError(path)
        (
            self._table()
            .update({"data": {**existing, **data}})
            .eq("collection", collection)
            .eq("id", doc_id)
            .execute()
        )

    def delete(self, path: str) -> None:
        self.delete_many([path])

    def delete_many(self, paths: Iterable[str]) -> None:
        """Delete every document in ``paths`` with a single request."""

        grouped: Dict[str, List[str]] = {}
        for path in paths:
            collection, doc_id = split_document(path)
            grouped.setdefault(collection, []).append(doc_id)
        if not grouped:
            return
        self._table().delete().or_(_batch_filter(grouped)).execute()

    # ------------------------------------------------------------------ subscriptions

    def watch(
        self,
        path: str,
        on_snapshot: SnapshotCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> Unwatch:
        poller = _Poller(path="/".join(split_path(path)), on_snapshot=on_snapshot, on_error=on_error)
        self._pollers.append(poller)

        def _unwatch() -> None:
            poller.active = False
            if poller.timer is not None:
                poller.timer.cancel()
                poller.timer = None
            if poller in self._pollers:
                self._pollers.remove(poller)

        self._poll(poller)
        return _unwatch

    def _fetch(self, path: str):
        if is_collection_path(path):
            return self.list(path)
        return self.get(path)

    def _poll(self, poller: _Poller) -> None:
        if not poller.active or poller.in_flight:
            return
        if poller.timer is not None:
            poller.timer.cancel()
            poller.timer = None
        poller.in_flight = True

        def _deliver(snapshot: Any) -> None:
            poller.in_flight = False
            if not poller.active:
                return
            if snapshot != poller.last:
                poller.last = snapshot
                poller.on_snapshot(snapshot)
            self._arm(poller)

        def _fail(exc: Exception) -> None:
            poller.in_flight = False
            if not poller.active:
                return
            if poller.on_error is not None:
                poller.on_error(exc)
            else:
                logger.warning("Polling %s failed: %s", poller.path, exc)
            self._arm(poller)

        self.runner.submit(self._fetch, poller.path, on_success=_deliver, on_error=_fail)

    def _arm(self, poller: _Poller) -> None:
        if poller.active and poller.timer is None:
            poller.timer = self.scheduler.call_later(self.poll_interval_ms, lambda: self._fire(poller))

    def _fire(self, poller: _Poller) -> None:
        poller.timer = None
        self._poll(poller)

