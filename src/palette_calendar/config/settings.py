from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from platformdirs import user_data_dir

load_dotenv()

APP_NAME = "Palette Calendar"
APP_AUTHOR = "PaletteCalendar"
DATA_DIR = Path(user_data_dir(APP_NAME, APP_AUTHOR))


@dataclass(frozen=True)
class SupabaseSettings:
    url: Optional[str]
    anon_key: Optional[str]
    documents_table: str

    @property
    def is_configured(self) -> bool:
        return bool(self.url and self.anon_key)

    @property
    def missing_env_vars(self) -> list[str]:
        missing = []
        if not self.url:
            missing.append("SUPABASE_URL")
        if not self.anon_key:
            missing.append("SUPABASE_ANON_KEY")
        return missing


@dataclass(frozen=True)
class StorageSettings:
    backend: str
    local_path: Path


@dataclass(frozen=True)
class SyncSettings:
    poll_interval_seconds: float
    memo_debounce_ms: int
    saving_indicator_ms: int


@dataclass(frozen=True)
class UiSettings:
    app_name: str
    base_url: str


@dataclass(frozen=True)
class AppSettings:
    supabase: SupabaseSettings
    storage: StorageSettings
    sync: SyncSettings
    ui: UiSettings


def _float_from_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _int_from_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    supabase = SupabaseSettings(
        url=os.getenv("SUPABASE_URL"),
        anon_key=os.getenv("SUPABASE_ANON_KEY"),
        documents_table=os.getenv("PALETTE_DOCUMENTS_TABLE", "documents"),
    )

    storage = StorageSettings(
        backend=os.getenv("PALETTE_STORE", "local").lower(),
        local_path=Path(os.getenv("PALETTE_LOCAL_STORE_PATH", str(DATA_DIR / "documents.json"))),
    )

    sync = SyncSettings(
        poll_interval_seconds=_float_from_env("PALETTE_SYNC_POLL_SECONDS", 2.0),
        memo_debounce_ms=_int_from_env("PALETTE_MEMO_DEBOUNCE_MS", 1500),
        saving_indicator_ms=_int_from_env("PALETTE_SAVING_INDICATOR_MS", 500),
    )

    ui = UiSettings(
        app_name=os.getenv("PALETTE_APP_NAME", APP_NAME),
        base_url=os.getenv("PALETTE_BASE_URL", "http://localhost:3000").rstrip("/"),
    )

    return AppSettings(supabase=supabase, storage=storage, sync=sync, ui=ui)
