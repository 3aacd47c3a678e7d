"""
Unit tests for the command line interface against a local file store.
"""

import orjson
import pytest

from palette_calendar import cli
from palette_calendar.config import get_settings


@pytest.fixture
def local_store(tmp_path, monkeypatch):
    path = tmp_path / "documents.json"
    monkeypatch.setenv("PALETTE_STORE", "local")
    monkeypatch.setenv("PALETTE_LOCAL_STORE_PATH", str(path))
    monkeypatch.setenv("PALETTE_BASE_URL", "https://palette.example")
    monkeypatch.delenv("PALETTE_UID", raising=False)
    monkeypatch.setattr(cli, "configure_logging", lambda: None)
    get_settings.cache_clear()
    yield path
    get_settings.cache_clear()


def read(path):
    return orjson.loads(path.read_bytes())


def run(*argv):
    return cli.main(["--uid", "owner-uid", "--name", "Olive", *argv])


class TestCli:
    def test_route(self, local_store, capsys):
        assert cli.main(["--uid", "owner-uid", "route", "/c/abc"]) == 0
        assert cli.main(["--uid", "owner-uid", "route", "/"]) == 0
        assert capsys.readouterr().out.split() == ["abc", "owner-uid"]

    def test_create_prints_share_url(self, local_store, capsys):
        assert run("create", "Family") == 0
        url = capsys.readouterr().out.strip()
        calendar_id = url.rsplit("/", 1)[-1]
        assert url == f"https://palette.example/c/{calendar_id}"
        assert read(local_store)["calendars"][calendar_id]["creatorUid"] == "owner-uid"

    def test_identity_is_required(self, local_store):
        with pytest.raises(SystemExit):
            cli.main(["show"])

    def test_show_creates_default_calendar(self, local_store, capsys):
        assert run("show", "--month", "2024-05") == 0
        out = capsys.readouterr().out
        assert "== 2024-05" in out
        assert "== 2024-06" in out
        assert read(local_store)["calendars"]["owner-uid"]["name"] == "Olive's calendar"

    def test_legend_event_and_memo(self, local_store, capsys):
        run("legend", "add", "/", "Holiday", "--color", "#0f0")
        (legend_id,) = read(local_store)["calendars/owner-uid/legends"]

        run("add-event", "/", "2024-05-10", "2024-05-05", legend_id)
        (event,) = read(local_store)["calendars/owner-uid/events"].values()
        assert (event["startDate"], event["endDate"]) == ("2024-05-05", "2024-05-10")
        assert event["createdBy"] == "Olive"

        run("memo", "/", "packing list", "--month", "2024-05")
        memos = read(local_store)["calendars/owner-uid/monthlyMemos"]
        assert memos["2024-05"] == {"content": "packing list"}

        run("legend", "delete", "/", legend_id)
        state = read(local_store)
        assert state["calendars/owner-uid/legends"] == {}
        assert state["calendars/owner-uid/events"] == {}
        capsys.readouterr()

    def test_non_member_is_rejected(self, local_store):
        run("create", "Family")
        calendar_id = next(iter(read(local_store)["calendars"]))
        with pytest.raises(SystemExit):
            cli.main(["--uid", "stranger", "show", f"/c/{calendar_id}"])
