"""Shared fixtures and store doubles for the sync engine tests."""

from collections import deque
from datetime import date

import pytest

from palette_calendar.config import SupabaseSettings, get_settings
from palette_calendar.data import MemoryDocumentStore, StoreError, SupabaseDocumentStore, SupabaseGateway
from palette_calendar.data.documents import require_collection, split_document, split_path
from palette_calendar.data.paths import legend_path
from palette_calendar.domain import Identity
from palette_calendar.services import CalendarSession, ServiceContext
from palette_calendar.sync import InlineRunner, ManualScheduler

CALENDAR_ID = "cal-1"


class RecordingDocumentStore(MemoryDocumentStore):
    """Memory store that counts writes and can fail or error on demand."""

    def __init__(self, path=None):
        super().__init__(path)
        self.write_count = 0
        self._pending_failure = None

    def _mutate(self, callback, touched):
        if self._pending_failure is not None:
            failure, self._pending_failure = self._pending_failure, None
            raise failure
        result = super()._mutate(callback, touched)
        self.write_count += 1
        return result

    def fail_next_write(self, exception=None):
        self._pending_failure = exception or StoreError("injected write failure")

    def emit_error(self, path, exception):
        """Deliver ``exception`` to every watcher of ``path``."""
        for _, on_error in list(self._watchers.get("/".join(split_path(path)), [])):
            if on_error is not None:
                on_error(exception)

    def watcher_count(self, path):
        return len(self._watchers.get("/".join(split_path(path)), []))


class QueuedRunner:
    """Holds submitted work until ``run_pending``, modelling calls in flight."""

    def __init__(self):
        self._tasks = deque()
        self._inline = InlineRunner()

    def submit(self, fn, *args, on_success=None, on_error=None, **kwargs):
        self._tasks.append((fn, args, kwargs, on_success, on_error))

    def run_pending(self):
        completed = 0
        while self._tasks:
            fn, args, kwargs, on_success, on_error = self._tasks.popleft()
            self._inline.submit(fn, *args, on_success=on_success, on_error=on_error, **kwargs)
            completed += 1
        return completed

    def __len__(self):
        return len(self._tasks)


class InProcessSupabaseStore(SupabaseDocumentStore):
    """Polling Supabase store whose rows live in an in-process dict."""

    def __init__(self, scheduler, runner):
        settings = SupabaseSettings(url=None, anon_key=None, documents_table="documents")
        super().__init__(gateway=SupabaseGateway(settings), scheduler=scheduler, runner=runner, poll_interval_ms=2000)
        self.rows = {}
        self.reads = 0
        self.failure = None

    def put(self, path, data):
        """Write behind the store's back, as another client would."""
        collection, doc_id = split_document(path)
        self.rows.setdefault(collection, {})[doc_id] = dict(data)

    def _read(self):
        self.reads += 1
        if self.failure is not None:
            raise self.failure

    def get(self, path):
        self._read()
        collection, doc_id = split_document(path)
        record = self.rows.get(collection, {}).get(doc_id)
        return dict(record) if record is not None else None

    def list(self, path):
        self._read()
        collection = require_collection(path)
        return {doc_id: dict(data) for doc_id, data in self.rows.get(collection, {}).items()}

    def set(self, path, data, *, merge=False):
        collection, doc_id = split_document(path)
        documents = self.rows.setdefault(collection, {})
        documents[doc_id] = {**documents.get(doc_id, {}), **data} if merge else dict(data)


@pytest.fixture
def store():
    return RecordingDocumentStore()


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def runner():
    return InlineRunner()


@pytest.fixture
def queued_runner():
    return QueuedRunner()


@pytest.fixture
def polling_store(scheduler, runner):
    return InProcessSupabaseStore(scheduler, runner)


@pytest.fixture
def queued_polling_store(scheduler, queued_runner):
    return InProcessSupabaseStore(scheduler, queued_runner)


@pytest.fixture
def context(store, scheduler, runner):
    return ServiceContext(settings=get_settings(), scheduler=scheduler, runner=runner, store=store)


@pytest.fixture
def owner():
    return Identity(uid="owner-uid", display_name="Olive", email="olive@example.com")


@pytest.fixture
def viewer():
    return Identity(uid="viewer-uid", display_name="Victor", email="victor@example.com")


@pytest.fixture
def calendar(context, owner):
    return context.calendars.create("Family", owner, calendar_id=CALENDAR_ID)


@pytest.fixture
def important_legend(store, calendar):
    store.set(legend_path(CALENDAR_ID, "1"), {"name": "Important", "color": "#ff0000"})
    return "1"


@pytest.fixture
def owner_session(context, calendar, owner):
    session = CalendarSession(context, CALENDAR_ID, owner, owner_id=calendar.creator_uid, anchor=date(2024, 5, 1))
    session.open()
    yield session
    session.close()


@pytest.fixture
def viewer_session(context, calendar, viewer):
    session = CalendarSession(context, CALENDAR_ID, viewer, owner_id=calendar.creator_uid, anchor=date(2024, 5, 1))
    session.open()
    yield session
    session.close()
