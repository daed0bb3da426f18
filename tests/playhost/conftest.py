from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from playhost.api.failures import DeviceFlags
from playhost.api.session import SessionHost, SessionPort, SessionResult
from playhost.diagnostics.hub import DiagnosticHub
from playhost.runtime.time import ManualTimeSource
from playhost.runtime.view import RuntimeHostView

FRAME_SECONDS = 1.0 / 60.0


@dataclass
class Recorder:
    completions: list[tuple[bool, int]] = field(default_factory=list)
    failures: list[tuple[BaseException, SessionPort]] = field(default_factory=list)
    restart_offers: list[SessionResult] = field(default_factory=list)

    def on_complete(self, success: bool, score: int) -> None:
        self.completions.append((success, score))

    def on_runtime_failure(self, error: BaseException, session: SessionPort) -> None:
        self.failures.append((error, session))

    def on_restart_offer(self, result: SessionResult) -> None:
        self.restart_offers.append(result)


class FrameDriver:
    """Advances the manual clock and runs host frames."""

    def __init__(self, view: RuntimeHostView, clock: ManualTimeSource) -> None:
        self.view = view
        self.clock = clock

    def frame(self, advance: float = FRAME_SECONDS) -> None:
        self.clock.advance(advance)
        self.view.run_frame()

    def run(self, seconds: float, *, step: float = FRAME_SECONDS) -> None:
        frames = int(round(seconds / step))
        for _ in range(frames):
            self.frame(step)


@pytest.fixture
def clock() -> ManualTimeSource:
    return ManualTimeSource(100.0)


@pytest.fixture
def hub() -> DiagnosticHub:
    return DiagnosticHub(capacity=500)


@pytest.fixture
def view(clock: ManualTimeSource, hub: DiagnosticHub) -> RuntimeHostView:
    host_view = RuntimeHostView(
        width=400,
        height=600,
        time_source=clock,
        device=DeviceFlags(platform="test"),
        diagnostics_hub=hub,
    )
    host_view.run_frame()
    return host_view


@pytest.fixture
def driver(view: RuntimeHostView, clock: ManualTimeSource) -> FrameDriver:
    return FrameDriver(view, clock)


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def session_host(view: RuntimeHostView, recorder: Recorder) -> SessionHost:
    return SessionHost(
        view=view,
        on_complete=recorder.on_complete,
        on_runtime_failure=recorder.on_runtime_failure,
        on_restart_offer=recorder.on_restart_offer,
        restart_offer_delay_seconds=3.0,
    )
