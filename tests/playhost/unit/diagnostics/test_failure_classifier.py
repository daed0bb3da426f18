from __future__ import annotations

import logging

import pytest

from playhost.api.failures import FailureContext, FailureKind, FailureNotice
from playhost.diagnostics.classifier import FailureClassifier, classify_message
from playhost.diagnostics.failure_log import PersistedFailureLog
from playhost.diagnostics.hub import DiagnosticHub
from playhost.diagnostics.storage import MemoryStorage
from playhost.runtime.events import NotificationBus

_CONTEXT = FailureContext(state="playing", viewport=(400, 600))


def _classifier(**kwargs) -> tuple[FailureClassifier, list[FailureNotice]]:
    bus = NotificationBus()
    notices: list[FailureNotice] = []
    bus.subscribe(FailureNotice, notices.append)
    counter = iter(range(1, 10_000))
    classifier = FailureClassifier(
        bus=bus,
        clock=lambda: 1_700_000_000.0,
        id_factory=lambda: f"failure-{next(counter)}",
        **kwargs,
    )
    return classifier, notices


@pytest.mark.parametrize(
    ("message", "expected"),
    [
        ("WebGL context lost", FailureKind.RENDERER),
        ("Canvas failed to load texture", FailureKind.RENDERER),
        ("Failed to load module", FailureKind.LOAD),
        ("failed to fetch asset bundle", FailureKind.LOAD),
        ("Touch handler crashed", FailureKind.INPUT),
        ("AudioContext suspended", FailureKind.AUDIO),
        ("Out of memory", FailureKind.MEMORY),
        ("network unreachable", FailureKind.NETWORK),
        ("Initialization aborted", FailureKind.INIT),
        ("Renderer failed to load texture", FailureKind.LOAD),
        ("wgpu import error", FailureKind.LOAD),
        ("renderer init failed", FailureKind.INIT),
        ("division by zero", FailureKind.RUNTIME),
        ("", FailureKind.RUNTIME),
    ],
)
def test_classification_first_match_wins(message: str, expected: FailureKind) -> None:
    assert classify_message(message) is expected


def test_record_captures_message_stack_and_context() -> None:
    classifier, _ = _classifier()
    try:
        raise RuntimeError("pointer handler crashed")
    except RuntimeError as exc:
        record = classifier.record(exc, "cute_tap", _CONTEXT)

    assert record.id == "failure-1"
    assert record.failure_kind is FailureKind.INPUT
    assert record.message == "pointer handler crashed"
    assert record.stack is not None and "RuntimeError" in record.stack
    assert record.context is _CONTEXT
    assert record.resolved is False
    assert classifier.records() == (record,)


def test_record_persists_and_emits_diagnostics() -> None:
    hub = DiagnosticHub()
    failure_log = PersistedFailureLog(MemoryStorage())
    classifier, _ = _classifier(failure_log=failure_log, diagnostics_hub=hub)

    classifier.record("canvas missing", "memory_match", _CONTEXT)

    assert [record.id for record in classifier.stored_records()] == ["failure-1"]
    (event,) = hub.snapshot(category="failure")
    assert event.name == "failure.recorded"
    assert event.metadata["failure_kind"] == "renderer"


def test_input_failures_are_never_auto_resolved() -> None:
    classifier, _ = _classifier()
    record = classifier.record("touch input broke", "cute_tap", _CONTEXT)

    assert [classifier.attempt_resolution(record) for _ in range(3)] == [False, False, False]
    assert classifier.retry_count("cute_tap", FailureKind.INPUT) == 0


def test_init_failures_resolve_twice_then_stop(caplog) -> None:
    classifier, _ = _classifier()
    procedure_calls: list[int] = []
    classifier.set_fallback_procedure(FailureKind.INIT, lambda: procedure_calls.append(1))

    results = []
    with caplog.at_level(logging.INFO, logger="playhost.failures"):
        for _ in range(3):
            record = classifier.record("init failed", "cute_tap", _CONTEXT)
            results.append(classifier.attempt_resolution(record))

    assert results == [True, True, False]
    assert procedure_calls == [1, 1]
    assert classifier.retry_count("cute_tap", FailureKind.INIT) == 2
    assert "max retries reached" in caplog.text


def test_retry_budget_is_per_session_kind() -> None:
    classifier, _ = _classifier()
    for _ in range(2):
        classifier.attempt_resolution(classifier.record("init failed", "cute_tap", _CONTEXT))

    other = classifier.record("init failed", "memory_match", _CONTEXT)
    assert classifier.attempt_resolution(other) is True


def test_failing_fallback_procedure_counts_as_unresolved(caplog) -> None:
    classifier, _ = _classifier()

    def _explode() -> None:
        raise RuntimeError("fallback exploded")

    classifier.set_fallback_procedure(FailureKind.LOAD, _explode)
    record = classifier.record("failed to load module", "cute_tap", _CONTEXT)

    with caplog.at_level(logging.ERROR, logger="playhost.failures"):
        assert classifier.attempt_resolution(record) is False

    assert record.resolved is False
    assert classifier.retry_count("cute_tap", FailureKind.LOAD) == 1
    assert "auto_resolution_failed" in caplog.text


def test_handle_notifies_only_unresolved_failures() -> None:
    classifier, notices = _classifier()
    classifier.set_fallback_procedure(FailureKind.INIT, lambda: None)

    resolved = classifier.handle(RuntimeError("init failed"), "cute_tap", _CONTEXT)
    unresolved = classifier.handle(RuntimeError("touch went wrong"), "cute_tap", _CONTEXT)

    assert resolved.resolved is True
    assert [notice.failure_id for notice in notices] == [unresolved.id]
    notice = notices[0]
    assert notice.can_retry is False
    assert notice.message.startswith("Touch input ran into a problem.")
    assert notice.remediation_hint is not None
    assert notice.remediation_hint in notice.message


def test_force_notify_publishes_resolved_failures() -> None:
    classifier, notices = _classifier()
    classifier.set_fallback_procedure(FailureKind.LOAD, lambda: None)

    record = classifier.handle("failed to load level", "cute_tap", _CONTEXT, force_notify=True)

    (notice,) = notices
    assert notice.record is record
    assert notice.can_retry is True
    assert classifier.remaining_retries(record) == 2


def test_manual_retry_uses_the_same_budget() -> None:
    classifier, _ = _classifier()
    classifier.set_fallback_procedure(FailureKind.INIT, lambda: None)
    record = classifier.record("init failed", "cute_tap", _CONTEXT)

    assert classifier.manual_retry("unknown-id") is False
    assert classifier.manual_retry(record.id) is True
    assert classifier.manual_retry(record.id) is True
    assert classifier.manual_retry(record.id) is False


def test_statistics_summarize_records() -> None:
    classifier, _ = _classifier(recent_limit=3)
    classifier.set_fallback_procedure(FailureKind.INIT, lambda: None)
    classifier.handle("init failed", "cute_tap", _CONTEXT)
    for index in range(4):
        classifier.record(f"network glitch {index}", "memory_match", _CONTEXT)

    stats = classifier.get_statistics()

    assert stats.total == 5
    assert stats.by_kind == {"init": 1, "network": 4}
    assert stats.by_session_kind == {"cute_tap": 1, "memory_match": 4}
    assert stats.resolved_count == 1
    assert [record.message for record in stats.recent] == [
        "network glitch 1",
        "network glitch 2",
        "network glitch 3",
    ]
    assert len(classifier.get_statistics(recent_limit=10).recent) == 5


def test_clear_resets_records_counters_and_log() -> None:
    failure_log = PersistedFailureLog(MemoryStorage())
    classifier, _ = _classifier(failure_log=failure_log)
    classifier.set_fallback_procedure(FailureKind.INIT, lambda: None)
    for _ in range(2):
        classifier.handle("init failed", "cute_tap", _CONTEXT)

    classifier.clear()

    assert classifier.records() == ()
    assert classifier.retry_count("cute_tap", FailureKind.INIT) == 0
    assert classifier.stored_records() == []
    record = classifier.record("init failed", "cute_tap", _CONTEXT)
    assert classifier.attempt_resolution(record) is True


def test_notice_without_bus_is_still_returned(caplog) -> None:
    classifier = FailureClassifier()
    record = classifier.record("sound device missing", "cute_tap", _CONTEXT)

    with caplog.at_level(logging.WARNING, logger="playhost.failures"):
        notice = classifier.notify(record, resolved=False)

    assert notice is not None
    assert notice.message.startswith("There is a problem playing sound.")
    assert "failure_notice_unrouted" in caplog.text


def test_excepthook_routes_uncaught_errors(monkeypatch) -> None:
    import sys

    chained: list[type[BaseException]] = []
    monkeypatch.setattr(sys, "excepthook", lambda exc_type, exc, tb: chained.append(exc_type))
    classifier, notices = _classifier()

    classifier.install_excepthook(lambda: FailureContext(state="global_error"))
    sys.excepthook(ValueError, ValueError("broken promise"), None)

    (record,) = classifier.records()
    assert record.session_kind == "global"
    assert record.context.state == "global_error"
    assert chained == [ValueError]
    assert len(notices) == 1
