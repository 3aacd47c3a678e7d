"""
Unit tests for CalendarSession.

Tests cover:
- The select-range-then-pick-legend scenario end to end
- Event detail actions (memo, legend, move, delete)
- Legend cascade deletion behind confirmation
- Read-only viewers producing no writes
- Month navigation and teardown of live state
"""

from datetime import date

import pytest

from palette_calendar.data.paths import (
    allowed_user_path,
    event_path,
    events_path,
    legend_path,
    legends_path,
    memo_path,
)
from palette_calendar.services import AccessDeniedError, CalendarSession

CALENDAR_ID = "cal-1"

EVENTS = events_path(CALENDAR_ID)


def seed_event(context, start, end, legend_id="1"):
    return context.events.create(CALENDAR_ID, start=start, end=end, legend_id=legend_id, created_by="Olive")


class TestCreateGesture:
    def test_select_range_and_pick_legend(self, owner_session, important_legend, store):
        owner_session.click_day(date(2024, 5, 5))
        owner_session.click_day(date(2024, 5, 10))
        assert owner_session.legend_prompt_open

        owner_session.choose_legend("1")

        events = store.list(EVENTS)
        assert len(events) == 1
        (record,) = events.values()
        assert record["startDate"] == "2024-05-05"
        assert record["endDate"] == "2024-05-10"
        assert record["legendId"] == "1"
        assert record["createdBy"] == "Olive"
        assert record["memo"] == ""
        assert record["createdAt"]

        assert not owner_session.legend_prompt_open
        occupants = owner_session.occupancy(date(2024, 5, 7))
        assert [legend.name for _, legend in occupants] == ["Important"]
        assert owner_session.occupancy(date(2024, 5, 1)) == []

    def test_reversed_clicks_create_ascending_range(self, owner_session, important_legend, store):
        owner_session.click_day("2024-05-10")
        owner_session.click_day("2024-05-05")
        owner_session.choose_legend("1")
        (record,) = store.list(EVENTS).values()
        assert (record["startDate"], record["endDate"]) == ("2024-05-05", "2024-05-10")

    def test_unknown_legend_is_dropped(self, owner_session, important_legend, store):
        owner_session.click_day(date(2024, 5, 5))
        owner_session.click_day(date(2024, 5, 6))
        owner_session.choose_legend("missing")
        assert store.list(EVENTS) == {}
        assert not owner_session.legend_prompt_open

    def test_write_errors_are_reported(self, context, calendar, owner, important_legend, store):
        failures = []
        session = CalendarSession(
            context,
            CALENDAR_ID,
            owner,
            owner_id=calendar.creator_uid,
            anchor=date(2024, 5, 1),
            on_write_error=lambda action, exc: failures.append(action),
        ).open()
        store.fail_next_write()
        session.click_day(date(2024, 5, 5))
        session.click_day(date(2024, 5, 5))
        session.choose_legend("1")
        assert failures == ["create event"]
        assert store.list(EVENTS) == {}
        session.close()


class TestEventDetail:
    @pytest.fixture
    def event_id(self, context, important_legend):
        return seed_event(context, date(2024, 5, 1), date(2024, 5, 3))

    def test_open_event_by_id(self, owner_session, event_id):
        owner_session.open_event(event_id)
        assert owner_session.event_detail_open
        assert owner_session.selected_event.id == event_id

    def test_save_memo_closes_detail(self, owner_session, event_id, store):
        owner_session.open_event(event_id)
        owner_session.set_event_memo_draft("bring snacks")
        assert owner_session.save_event_memo()
        assert store.get(event_path(CALENDAR_ID, event_id))["memo"] == "bring snacks"
        assert not owner_session.event_detail_open

    def test_reassign_legend(self, owner_session, event_id, store):
        store.set(legend_path(CALENDAR_ID, "2"), {"name": "Travel", "color": "#00f"})
        owner_session.open_event(event_id)
        assert owner_session.reassign_legend("2")
        assert store.get(event_path(CALENDAR_ID, event_id))["legendId"] == "2"
        assert not owner_session.reassign_legend("missing")

    def test_delete_requires_confirmation(self, owner_session, event_id, store):
        owner_session.open_event(event_id)
        request = owner_session.request_delete_event()
        assert request is not None
        assert owner_session.pending_confirmation is request
        assert event_id in store.list(EVENTS)

        assert owner_session.confirm()
        assert event_id not in store.list(EVENTS)
        assert not owner_session.event_detail_open
        assert owner_session.pending_confirmation is None

    def test_dismissed_delete_keeps_event(self, owner_session, event_id, store):
        owner_session.open_event(event_id)
        owner_session.request_delete_event()
        owner_session.dismiss_confirm()
        assert not owner_session.confirm()
        assert event_id in store.list(EVENTS)

    def test_edit_mode_moves_event(self, owner_session, event_id, store):
        owner_session.open_event(event_id)
        owner_session.start_edit_event()
        assert not owner_session.event_detail_open
        assert owner_session.selection.editing

        owner_session.click_day(date(2024, 5, 20))
        owner_session.click_day(date(2024, 5, 15))

        record = store.get(event_path(CALENDAR_ID, event_id))
        assert (record["startDate"], record["endDate"]) == ("2024-05-15", "2024-05-20")
        assert len(store.list(EVENTS)) == 1
        assert owner_session.selected_event is None
        assert not owner_session.legend_prompt_open
        assert [event.id for event, _ in owner_session.occupancy(date(2024, 5, 17))] == [event_id]


class TestLegends:
    def test_add_legend(self, owner_session, calendar):
        assert owner_session.add_legend("Holiday", "#0f0")
        assert [legend.name for legend in owner_session.legends] == ["Holiday"]
        assert not owner_session.add_legend("   ")

    def test_cascade_delete_behind_confirmation(self, owner_session, context, important_legend, store):
        store.set(legend_path(CALENDAR_ID, "2"), {"name": "Travel", "color": "#00f"})
        first = seed_event(context, date(2024, 5, 1), date(2024, 5, 2), "1")
        second = seed_event(context, date(2024, 5, 8), date(2024, 5, 9), "1")
        other = seed_event(context, date(2024, 5, 1), date(2024, 5, 4), "2")

        owner_session.request_delete_legend("1")
        assert len(store.list(EVENTS)) == 3
        owner_session.confirm()

        assert list(store.list(legends_path(CALENDAR_ID))) == ["2"]
        remaining = store.list(EVENTS)
        assert first not in remaining and second not in remaining
        assert list(remaining) == [other]
        assert [legend.name for legend in owner_session.legends] == ["Travel"]

    def test_numeric_legend_id_is_stored_as_text_and_cascades(self, owner_session, important_legend, store):
        owner_session.click_day(date(2024, 5, 5))
        owner_session.click_day(date(2024, 5, 6))
        owner_session.choose_legend(1)

        (record,) = store.list(EVENTS).values()
        assert record["legendId"] == "1"
        (event,) = owner_session.event_store.events_for_legend(1)
        assert event.legend_id == "1"

        owner_session.request_delete_legend("1")
        owner_session.confirm()
        assert store.list(EVENTS) == {}

    def test_reassign_with_numeric_id_is_stored_as_text(self, owner_session, context, important_legend, store):
        store.set(legend_path(CALENDAR_ID, "2"), {"name": "Travel", "color": "#00f"})
        event_id = seed_event(context, date(2024, 5, 1), date(2024, 5, 2), "1")
        owner_session.open_event(event_id)
        assert owner_session.reassign_legend(2)
        assert store.get(event_path(CALENDAR_ID, event_id))["legendId"] == "2"

    def test_legend_panel_is_owner_only(self, owner_session, viewer_session):
        owner_session.open_legend_panel()
        viewer_session.open_legend_panel()
        assert owner_session.legend_panel_open
        assert not viewer_session.legend_panel_open


class TestViewer:
    """A non-owner sees live data but never writes."""

    def test_gesture_advances_without_prompt_or_write(self, viewer_session, important_legend, store):
        writes = store.write_count
        viewer_session.click_day(date(2024, 5, 5))
        viewer_session.click_day(date(2024, 5, 10))
        assert viewer_session.selection.prompt_open
        assert not viewer_session.legend_prompt_open

        viewer_session.choose_legend("1")
        assert store.write_count == writes
        assert store.list(EVENTS) == {}

    def test_mutations_are_rejected(self, viewer_session, context, important_legend, store):
        event_id = seed_event(context, date(2024, 5, 1), date(2024, 5, 3))
        writes = store.write_count

        assert not viewer_session.add_legend("Sneaky")
        assert viewer_session.request_delete_legend("1") is None
        viewer_session.open_event(event_id)
        viewer_session.set_event_memo_draft("changed")
        assert not viewer_session.save_event_memo()
        assert viewer_session.request_delete_event() is None
        assert not viewer_session.memo.edit("memo")

        assert store.write_count == writes

    def test_viewer_sees_owner_changes(self, owner_session, viewer_session, important_legend):
        owner_session.click_day(date(2024, 5, 5))
        owner_session.click_day(date(2024, 5, 6))
        owner_session.choose_legend("1")
        assert len(viewer_session.occupancy(date(2024, 5, 6))) == 1


class TestAccess:
    def test_open_for_rejects_non_members(self, context, calendar, viewer):
        with pytest.raises(AccessDeniedError):
            CalendarSession.open_for(context, CALENDAR_ID, viewer)

    def test_open_for_member(self, context, calendar, viewer, store):
        store.set(allowed_user_path(CALENDAR_ID, viewer.uid), {"name": "Vic", "role": "member"})
        session = CalendarSession.open_for(context, CALENDAR_ID, viewer, anchor=date(2024, 5, 1))
        assert not session.is_owner
        assert session.display_name == "Vic"
        session.close()


class TestLifecycle:
    def test_two_visible_months(self, owner_session):
        assert owner_session.visible_months == [(2024, 5), (2024, 6)]
        owner_session.change_month(8)
        assert owner_session.visible_months == [(2025, 1), (2025, 2)]

    def test_change_month_rearms_memo(self, owner_session, store, scheduler):
        may, june = memo_path(CALENDAR_ID, 2024, 5), memo_path(CALENDAR_ID, 2024, 6)
        owner_session.memo.edit("May notes")
        owner_session.change_month(1)

        assert store.watcher_count(may) == 0
        assert store.watcher_count(june) == 1
        assert owner_session.memo.path == june
        scheduler.advance(5000)
        assert store.get(may) is None

    def test_close_tears_down_everything(self, context, calendar, owner, store, scheduler):
        session = CalendarSession(context, CALENDAR_ID, owner, owner_id=calendar.creator_uid, anchor=date(2024, 5, 1))
        session.open()
        session.memo.edit("unsaved")
        session.close()

        assert store.watcher_count(EVENTS) == 0
        assert store.watcher_count(legends_path(CALENDAR_ID)) == 0
        assert store.watcher_count(memo_path(CALENDAR_ID, 2024, 5)) == 0
        assert scheduler.pending() == 0
        assert session.channel.active_paths == []
