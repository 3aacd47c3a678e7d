"""Data access layer."""

from __future__ import annotations

from .documents import (
    DocumentNotFoundError,
    DocumentStore,
    InvalidPathError,
    PaletteError,
    StoreError,
)
from .memory import MemoryDocumentStore
from .supabase import SupabaseDocumentStore, SupabaseGateway, SupabaseNotInitializedError

__all__ = [
    "DocumentNotFoundError",
    "DocumentStore",
    "InvalidPathError",
    "MemoryDocumentStore",
    "PaletteError",
    "StoreError",
    "SupabaseDocumentStore",
    "SupabaseGateway",
    "SupabaseNotInitializedError",
]
