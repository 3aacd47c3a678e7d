from __future__ import annotations

import argparse
import logging
import os
import sys
from datetime import date
from typing import Optional

from .bootstrap import configure_logging
from .config import AppSettings, get_settings
from .domain import Identity, month_key
from .services import (
    AccessDeniedError,
    CalendarSession,
    ServiceContext,
    ensure_own_calendar,
    resolve_calendar_id,
    share_url,
)
from .sync import InlineRunner, ManualScheduler

logger = logging.getLogger(__name__)


def _identity(args: argparse.Namespace) -> Identity:
    uid = args.uid or os.getenv("PALETTE_UID")
    if not uid:
        raise SystemExit("An identity is required: pass --uid or set PALETTE_UID.")
    return Identity(uid=uid, display_name=args.name or uid, email=args.email or "")


def _month(raw: Optional[str]) -> date:
    if not raw:
        return date.today().replace(day=1)
    year, month = raw.split("-")
    return date(int(year), int(month), 1)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Palette Calendar command line interface.")
    parser.add_argument("--uid", help="Identity uid (defaults to $PALETTE_UID).")
    parser.add_argument("--name", help="Display name for the identity.")
    parser.add_argument("--email", help="Email for the identity.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    create_parser = subparsers.add_parser("create", help="Create a calendar owned by the identity.")
    create_parser.add_argument("title")

    route_parser = subparsers.add_parser("route", help="Resolve a URL path to a calendar id.")
    route_parser.add_argument("path")

    show_parser = subparsers.add_parser("show", help="Print the two visible months of a calendar.")
    show_parser.add_argument("path", nargs="?", default="/")
    show_parser.add_argument("--month", help="First visible month as YYYY-MM.")

    legend_parser = subparsers.add_parser("legend", help="Add or delete a legend.")
    legend_parser.add_argument("action", choices=["add", "delete"])
    legend_parser.add_argument("path")
    legend_parser.add_argument("value", help="Legend name to add, or legend id to delete.")
    legend_parser.add_argument("--color", default="#d3d3d3")

    event_parser = subparsers.add_parser("add-event", help="Select a date range and tag it with a legend.")
    event_parser.add_argument("path")
    event_parser.add_argument("start", type=date.fromisoformat)
    event_parser.add_argument("end", type=date.fromisoformat)
    event_parser.add_argument("legend_id")

    memo_parser = subparsers.add_parser("memo", help="Replace the monthly memo.")
    memo_parser.add_argument("path")
    memo_parser.add_argument("content")
    memo_parser.add_argument("--month", help="Month as YYYY-MM.")

    watch_parser = subparsers.add_parser("watch", help="Follow live changes to a calendar (supabase backend).")
    watch_parser.add_argument("path", nargs="?", default="/")

    return parser


def _open_session(context: ServiceContext, path: str, identity: Identity, anchor: Optional[date] = None) -> CalendarSession:
    calendar_id = resolve_calendar_id(path, identity)
    if calendar_id == identity.uid:
        ensure_own_calendar(context.calendars, identity)
    try:
        return CalendarSession.open_for(context, calendar_id, identity, anchor=anchor)
    except AccessDeniedError as exc:
        raise SystemExit(str(exc)) from exc


def _print_months(session: CalendarSession) -> None:
    for year, month in session.visible_months:
        print(f"== {month_key(year, month)}")
        for day, in_month, occupants in session.event_store.month_view(year, month):
            if in_month and occupants:
                labels = ", ".join(f"{legend.name} ({event.id})" for event, legend in occupants)
                print(f"  {day.isoformat()}  {labels}")
        if session.memo is not None and (session.memo.year, session.memo.month) == (year, month):
            content = session.memo.content
        else:
            content = session.context.memos.fetch(session.calendar_id, year, month).content
        print(f"-- memo {month_key(year, month)}")
        print(content or "(empty)")


def _watch(settings: AppSettings, path: str, identity: Identity) -> int:
    from PyQt6.QtCore import QCoreApplication

    from .utils.qt import QtScheduler, TaskRunner

    app = QCoreApplication.instance() or QCoreApplication(sys.argv)
    live = ServiceContext(settings=settings, scheduler=QtScheduler(), runner=TaskRunner())
    session = _open_session(live, path, identity)
    session.on_change = lambda current: _print_months(current)
    _print_months(session)
    try:
        return app.exec()
    finally:
        session.close()


def main(argv: Optional[list[str]] = None) -> int:
    configure_logging()
    logging.getLogger(__name__).info("Palette Calendar CLI starting")
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = get_settings()

    if args.command == "route":
        identity = Identity(uid=args.uid) if args.uid else None
        print(resolve_calendar_id(args.path, identity) or "")
        return 0

    identity = _identity(args)
    if args.command == "watch":
        return _watch(settings, args.path, identity)

    # One-shot commands run on a virtual clock so pending memo saves can be flushed.
    context = ServiceContext(settings=settings, scheduler=ManualScheduler(), runner=InlineRunner())

    if args.command == "create":
        info = context.calendars.create(args.title, identity)
        print(share_url(settings.ui.base_url, info.id))
        return 0

    anchor = _month(getattr(args, "month", None))
    session = _open_session(context, args.path, identity, anchor=anchor)
    try:
        if args.command == "show":
            _print_months(session)
        elif args.command == "legend":
            if args.action == "add":
                session.add_legend(args.value, args.color)
            elif session.request_delete_legend(args.value) is not None:
                session.confirm()
            _print_months(session)
        elif args.command == "add-event":
            session.click_day(args.start)
            session.click_day(args.end)
            session.choose_legend(args.legend_id)
            _print_months(session)
        elif args.command == "memo":
            if session.memo is not None and session.memo.edit(args.content):
                context.scheduler.advance(settings.sync.memo_debounce_ms)
            _print_months(session)
        else:  # pragma: no cover - argparse enforces choices
            parser.print_help()
    finally:
        session.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
