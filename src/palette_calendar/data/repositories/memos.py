from __future__ import annotations

from dataclasses import dataclass

from ...domain import MonthlyMemo
from ..documents import DocumentStore
from ..paths import memo_path


@dataclass(slots=True)
class MemoRepository:
    store: DocumentStore

    def fetch(self, calendar_id: str, year: int, month: int) -> MonthlyMemo:
        record = self.store.get(memo_path(calendar_id, year, month)) or {}
        return MonthlyMemo(year=year, month=month, content=record.get("content") or "")

    def upsert(self, calendar_id: str, memo: MonthlyMemo) -> None:
        self.store.set(memo_path(calendar_id, memo.year, memo.month), {"content": memo.content}, merge=True)
