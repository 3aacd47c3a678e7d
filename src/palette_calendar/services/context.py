from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from ..config import AppSettings, get_settings
from ..data import MemoryDocumentStore, SupabaseDocumentStore, SupabaseGateway
from ..data.documents import DocumentStore
from ..data.repositories import CalendarRepository, EventRepository, LegendRepository, MemoRepository
from ..sync.scheduler import Runner, Scheduler
from .access import AccessService

logger = logging.getLogger(__name__)


def build_store(settings: AppSettings, *, scheduler: Scheduler, runner: Runner) -> DocumentStore:
    backend = settings.storage.backend
    if backend == "supabase":
        gateway = SupabaseGateway(settings.supabase)
        return SupabaseDocumentStore(
            gateway=gateway,
            scheduler=scheduler,
            runner=runner,
            poll_interval_ms=int(settings.sync.poll_interval_seconds * 1000),
        )
    if backend == "memory":
        return MemoryDocumentStore()
    if backend != "local":
        logger.warning("Unknown store backend %r, falling back to local file store", backend)
    return MemoryDocumentStore(settings.storage.local_path)


@dataclass(slots=True)
class ServiceContext:
    """Aggregate root for services to share settings, the store and repositories.

    Callers supply the scheduler and runner: the Qt pair for live sessions,
    the virtual clock and the inline runner for one-shot commands.
    """

    scheduler: Scheduler
    runner: Runner
    settings: AppSettings = field(default_factory=get_settings)
    store: Optional[DocumentStore] = None
    calendars: CalendarRepository = field(init=False)
    legends: LegendRepository = field(init=False)
    events: EventRepository = field(init=False)
    memos: MemoRepository = field(init=False)
    access: AccessService = field(init=False)

    def __post_init__(self) -> None:
        if self.store is None:
            self.store = build_store(self.settings, scheduler=self.scheduler, runner=self.runner)
        self.calendars = CalendarRepository(self.store)
        self.legends = LegendRepository(self.store)
        self.events = EventRepository(self.store)
        self.memos = MemoRepository(self.store)
        self.access = AccessService(self.calendars)
