import json
from pathlib import Path
from types import SimpleNamespace

from zedit.tui.debug import DebugLogger


def _app(path: str = "/config"):
    return SimpleNamespace(session=SimpleNamespace(path=path))


def test_disabled_by_default(monkeypatch):
    monkeypatch.delenv("ZEDIT_TUI_DEBUG", raising=False)
    dbg = DebugLogger(_app())
    dbg.log(event="ignored")
    assert dbg.debug_events == []


def test_events_are_stamped_with_session_path(monkeypatch):
    monkeypatch.setenv("ZEDIT_TUI_DEBUG", "yes")
    monkeypatch.delenv("ZEDIT_TUI_DEBUG_FILE", raising=False)
    dbg = DebugLogger(_app("/a/b"))
    dbg.log(event="session.loaded", data={"version": 3})

    events = dbg.debug_events
    assert len(events) == 1
    assert events[0]["event"] == "session.loaded"
    assert events[0]["path"] == "/a/b"
    assert events[0]["data"] == {"version": 3}

    # Returned list is a copy.
    events.clear()
    assert len(dbg.debug_events) == 1


def test_event_list_is_bounded(monkeypatch):
    monkeypatch.setenv("ZEDIT_TUI_DEBUG", "1")
    monkeypatch.delenv("ZEDIT_TUI_DEBUG_FILE", raising=False)
    dbg = DebugLogger(_app())
    for i in range(501):
        dbg.log(event=f"e{i}")
    events = dbg.debug_events
    assert len(events) == 250
    assert events[-1]["event"] == "e500"


def test_streams_ndjson_to_file(tmp_path: Path, monkeypatch):
    out = tmp_path / "debug.ndjson"
    monkeypatch.setenv("ZEDIT_TUI_DEBUG", "true")
    monkeypatch.setenv("ZEDIT_TUI_DEBUG_FILE", str(out))
    dbg = DebugLogger(_app())
    dbg.log(event="one")
    dbg.log(event="two", data={"k": "v"})
    dbg.close_debug_file()

    lines = out.read_text(encoding="utf-8").splitlines()
    assert [json.loads(line)["event"] for line in lines] == ["one", "two"]
    assert json.loads(lines[1])["data"] == {"k": "v"}


def test_unwritable_file_never_raises(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("ZEDIT_TUI_DEBUG", "on")
    monkeypatch.setenv("ZEDIT_TUI_DEBUG_FILE", str(tmp_path / "missing-dir" / "debug.ndjson"))
    dbg = DebugLogger(_app(path=None))
    dbg.log(event="still recorded")
    assert dbg.debug_events[0]["path"] == ""
    dbg.close_debug_file()
