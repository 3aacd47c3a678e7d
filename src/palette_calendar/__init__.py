"""Palette Calendar: shared two-month calendar sync engine."""

from __future__ import annotations

from .cli import main as main

__all__ = ["main"]
