from __future__ import annotations

import pytest

from playhost.api.failures import FailureKind
from playhost.api.registry import (
    DisplayMetadata,
    ImplementationStatus,
    RegistryDescriptor,
)
from playhost.api.session import SessionSettings
from playhost.diagnostics.classifier import FailureClassifier
from playhost.registry.module_registry import ModuleRegistry
from playhost.session.kinds import EmergencySession, InertSession, RelabeledSession, TapSession

_SETTINGS = SessionSettings(duration_seconds=10.0, target_score=5)


def _display(name: str = "Broken Game") -> DisplayMetadata:
    return DisplayMetadata(name=name, description="d", instruction="Do the thing!")


def _descriptor(game_type: str, constructor, status=ImplementationStatus.IMPLEMENTED):
    return RegistryDescriptor(
        id=game_type,
        display=_display(),
        default_settings=_SETTINGS,
        constructor=constructor,
        implementation_status=status,
    )


def _raising(host, settings):
    raise RuntimeError("constructor exploded")


def _empty_registry(**kwargs) -> ModuleRegistry:
    return ModuleRegistry(bootstrap=lambda registry: None, **kwargs)


def test_register_is_idempotent_by_stripped_id() -> None:
    registry = _empty_registry()
    registry.register(_descriptor("  demo ", TapSession))
    registry.register(_descriptor("demo", TapSession, ImplementationStatus.FALLBACK))

    assert len(registry.descriptors()) == 1
    assert registry.descriptor("demo").implementation_status is ImplementationStatus.FALLBACK


def test_register_rejects_empty_id() -> None:
    with pytest.raises(ValueError):
        _empty_registry().register(_descriptor("   ", TapSession))


def test_bootstrap_runs_once() -> None:
    calls: list[int] = []
    registry = ModuleRegistry(bootstrap=lambda reg: calls.append(1))

    registry.ensure_initialized()
    registry.descriptors()
    registry.aggregate_status()

    assert calls == [1]
    assert registry.initialized


def test_resolve_uses_descriptor_constructor(session_host) -> None:
    registry = _empty_registry()
    registry.register(_descriptor("demo", TapSession))

    session = registry.resolve("demo", _SETTINGS, session_host)

    assert isinstance(session, TapSession)


def test_missing_descriptor_returns_emergency_and_records_load_failure(session_host) -> None:
    classifier = FailureClassifier()
    registry = _empty_registry(classifier=classifier)

    session = registry.resolve("does_not_exist", _SETTINGS, session_host)

    assert isinstance(session, EmergencySession)
    (record,) = classifier.records()
    assert record.failure_kind is FailureKind.LOAD
    assert record.session_kind == "does_not_exist"


def test_failing_constructor_falls_back_to_relabeled_tap(session_host) -> None:
    classifier = FailureClassifier()
    registry = _empty_registry(classifier=classifier)
    registry.register(_descriptor("broken", _raising))

    session = registry.resolve("broken", _SETTINGS, session_host)
    session.initialize()

    assert isinstance(session, RelabeledSession)
    assert session.presentation.name == "Broken Game"
    assert session.root.labels["instruction"] == "Do the thing!"
    assert [record.session_kind for record in classifier.records()] == ["broken"]


def test_constructor_returning_none_counts_as_failure(session_host) -> None:
    classifier = FailureClassifier()
    registry = _empty_registry(classifier=classifier)
    registry.register(_descriptor("hollow", lambda host, settings: None))

    session = registry.resolve("hollow", _SETTINGS, session_host)

    assert isinstance(session, RelabeledSession)
    assert "constructor returned NoneType" in classifier.records()[0].message


def test_emergency_then_inert_tiers(session_host, monkeypatch, caplog) -> None:
    import playhost.registry.module_registry as module

    def _boom(*args, **kwargs):
        raise RuntimeError("tier broken")

    registry = _empty_registry()
    registry.register(_descriptor("broken", _raising))
    monkeypatch.setattr(module, "TapSession", _boom)

    assert isinstance(registry.resolve("broken", _SETTINGS, session_host), EmergencySession)

    monkeypatch.setattr(module, "EmergencySession", _boom)
    with caplog.at_level("CRITICAL", logger="playhost.registry"):
        session = registry.resolve("broken", _SETTINGS, session_host)

    assert isinstance(session, InertSession)
    assert any(record.levelname == "CRITICAL" for record in caplog.records)


def test_upgrade_swaps_constructor_and_status(session_host) -> None:
    registry = _empty_registry()
    registry.register(_descriptor("demo", _raising, ImplementationStatus.FALLBACK))

    assert registry.upgrade("demo", TapSession) is True
    assert registry.upgrade("unknown", TapSession) is False

    descriptor = registry.descriptor("demo")
    assert descriptor.implementation_status is ImplementationStatus.IMPLEMENTED
    assert isinstance(registry.resolve("demo", _SETTINGS, session_host), TapSession)


def test_upgrade_does_not_touch_running_sessions(session_host) -> None:
    registry = _empty_registry()
    registry.register(_descriptor("demo", TapSession))
    running = registry.resolve("demo", _SETTINGS, session_host)
    running.initialize()
    running.start()

    registry.upgrade("demo", EmergencySession)

    assert isinstance(running, TapSession)
    assert running.state.value == "playing"


def test_check_status_reports_each_outcome_without_recording() -> None:
    classifier = FailureClassifier()
    registry = _empty_registry(classifier=classifier)
    registry.register(_descriptor("good", TapSession))
    registry.register(_descriptor("soft", TapSession, ImplementationStatus.FALLBACK))
    registry.register(_descriptor("broken", _raising))
    registry.register(_descriptor("hollow", lambda host, settings: None))

    good = registry.check_status("good")
    soft = registry.check_status("soft")
    broken = registry.check_status("broken")
    hollow = registry.check_status("hollow")
    missing = registry.check_status("nope")

    assert (good.implemented, good.status) == (True, ImplementationStatus.IMPLEMENTED)
    assert (soft.implemented, soft.status) == (False, ImplementationStatus.FALLBACK)
    assert broken.status is ImplementationStatus.FALLBACK
    assert broken.error == "error: constructor exploded"
    assert (hollow.status, hollow.has_descriptor) == (ImplementationStatus.MISSING, True)
    assert (missing.status, missing.has_descriptor) == (ImplementationStatus.MISSING, False)
    assert classifier.records() == ()


def test_check_status_truncates_long_errors() -> None:
    registry = _empty_registry()

    def _verbose(host, settings):
        raise ValueError("x" * 200)

    registry.register(_descriptor("verbose", _verbose))
    status = registry.check_status("verbose")

    assert status.error == "error: " + "x" * 50


def test_check_status_probes_in_an_isolated_view_and_closes_it() -> None:
    from playhost.runtime.view import RuntimeHostView

    views: list[RuntimeHostView] = []

    def _factory() -> RuntimeHostView:
        probe = RuntimeHostView.isolated()
        views.append(probe)
        return probe

    registry = _empty_registry(probe_view_factory=_factory)
    registry.register(_descriptor("good", TapSession))

    registry.check_status("good")

    (probe,) = views
    assert probe.viewport == (100, 100)
    assert probe.closed


def test_aggregate_status_counts_declared_statuses() -> None:
    registry = _empty_registry()
    assert registry.aggregate_status().implementation_rate == "0%"

    registry.register(_descriptor("a", TapSession))
    registry.register(_descriptor("b", TapSession, ImplementationStatus.FALLBACK))
    registry.register(_descriptor("c", TapSession, ImplementationStatus.FALLBACK))

    aggregate = registry.aggregate_status()
    assert (aggregate.total, aggregate.implemented, aggregate.fallback, aggregate.missing) == (
        3,
        1,
        2,
        0,
    )
    assert aggregate.implementation_rate == "33%"
