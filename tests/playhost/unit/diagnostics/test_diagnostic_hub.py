from __future__ import annotations

import pytest

from playhost.diagnostics.hub import DiagnosticEvent, DiagnosticHub
from playhost.diagnostics.json_codec import dumps_bytes, dumps_text, loads


def test_hub_drops_oldest_beyond_capacity() -> None:
    hub = DiagnosticHub(capacity=3)
    for index in range(5):
        hub.emit(category="Session", name=f"event.{index}")

    events = hub.snapshot()
    assert [event.name for event in events] == ["event.2", "event.3", "event.4"]
    assert events[0].category == "session"


def test_snapshot_filters_by_category_name_and_limit() -> None:
    hub = DiagnosticHub()
    hub.emit(category="session", name="session.started")
    hub.emit(category="failure", name="failure.recorded", level="error")
    hub.emit(category="session", name="session.finished")

    assert [event.name for event in hub.snapshot(category="session")] == [
        "session.started",
        "session.finished",
    ]
    assert [event.level for event in hub.snapshot(name="failure.recorded")] == ["error"]
    assert [event.name for event in hub.snapshot(limit=1)] == ["session.finished"]
    assert hub.snapshot(limit=0) == []


def test_subscribers_receive_live_events() -> None:
    hub = DiagnosticHub()
    seen: list[DiagnosticEvent] = []
    token = hub.subscribe(seen.append)

    hub.emit(category="session", name="one", metadata={"score": 1})
    hub.unsubscribe(token)
    hub.emit(category="session", name="two")

    assert [event.name for event in seen] == ["one"]
    assert seen[0].metadata == {"score": 1}


def test_disabled_hub_records_nothing() -> None:
    hub = DiagnosticHub(enabled=False)
    hub.emit(category="session", name="ignored")
    assert hub.snapshot() == []


def test_capacity_must_be_positive() -> None:
    with pytest.raises(ValueError):
        DiagnosticHub(capacity=0)


def test_json_codec_options() -> None:
    assert dumps_bytes({"b": 1, "a": 2}, sort_keys=True) == b'{"a":2,"b":1}'
    assert dumps_text({1: "x"}) == '{"1":"x"}'
    assert "\n" in dumps_text({"a": [1]}, pretty=True)
    assert loads(b'{"a":1}') == {"a": 1}
