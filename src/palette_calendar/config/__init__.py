"""Configuration models and helpers."""

from __future__ import annotations

from .settings import (
    APP_NAME,
    DATA_DIR,
    AppSettings,
    StorageSettings,
    SupabaseSettings,
    SyncSettings,
    UiSettings,
    get_settings,
)

__all__ = [
    "APP_NAME",
    "DATA_DIR",
    "AppSettings",
    "StorageSettings",
    "SupabaseSettings",
    "SyncSettings",
    "UiSettings",
    "get_settings",
]
