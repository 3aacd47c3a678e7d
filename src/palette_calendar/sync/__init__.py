"""Synchronization engine: subscriptions, projections and gesture state."""

from __future__ import annotations

from .channel import Subscription, SyncChannel
from .confirm import ConfirmGate, ConfirmRequest
from .event_store import EventStore
from .memo_buffer import MemoSyncBuffer
from .scheduler import InlineRunner, ManualScheduler, Runner, Scheduler
from .selection import (
    AwaitingEnd,
    AwaitingLegend,
    CreateEvent,
    Idle,
    SelectionStateMachine,
    UpdateEventDates,
)

__all__ = [
    "AwaitingEnd",
    "AwaitingLegend",
    "ConfirmGate",
    "ConfirmRequest",
    "CreateEvent",
    "EventStore",
    "Idle",
    "InlineRunner",
    "ManualScheduler",
    "MemoSyncBuffer",
    "Runner",
    "Scheduler",
    "SelectionStateMachine",
    "Subscription",
    "SyncChannel",
    "UpdateEventDates",
]
