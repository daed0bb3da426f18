"""Host view: frame-driven tick source, deferred callbacks, scene graph."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass

from playhost.api.failures import DeviceFlags, FailureContext
from playhost.api.scene import SceneNode
from playhost.api.session import DeferredCallback, TickCallback
from playhost.diagnostics.hub import DiagnosticHub
from playhost.runtime.errors import TickSubscriptionError
from playhost.runtime.scheduler import Scheduler
from playhost.runtime.time import FrameClock, TimeContext, TimeSource

_LOG = logging.getLogger("playhost.view")

_MOBILE_PLATFORMS = ("android", "ios", "iphone", "ipad")


class SceneGraph:
    """Ordered set of session root nodes attached to one view."""

    def __init__(self) -> None:
        self._nodes: list[SceneNode] = []

    @property
    def nodes(self) -> tuple[SceneNode, ...]:
        return tuple(self._nodes)

    def attach(self, node: SceneNode) -> None:
        if any(existing is node for existing in self._nodes):
            return
        self._nodes.append(node)

    def detach(self, node: SceneNode) -> None:
        self._nodes = [existing for existing in self._nodes if existing is not node]

    def contains(self, node: SceneNode) -> bool:
        return any(existing is node for existing in self._nodes)

    def clear(self) -> None:
        self._nodes.clear()


@dataclass(frozen=True, slots=True)
class FrameReport:
    """What one `run_frame` call executed."""

    frame_index: int
    ticked: bool
    deferred_executed: int


class RuntimeHostView:
    """One host view running at most one session tick subscriber.

    Each frame runs the tick subscriber first and the due deferred callbacks
    afterwards, so a tick always completes before a deadline fires.
    """

    def __init__(
        self,
        *,
        width: int = 400,
        height: int = 600,
        time_source: TimeSource | None = None,
        device: DeviceFlags | None = None,
        diagnostics_hub: DiagnosticHub | None = None,
        name: str = "main",
    ) -> None:
        if width <= 0 or height <= 0:
            raise ValueError("viewport size must be > 0")
        self._name = name
        self._viewport = (int(width), int(height))
        self._clock = FrameClock(time_source=time_source)
        self._scheduler = Scheduler(time_source=self._clock.time_source)
        self._scene = SceneGraph()
        self._device = device or detect_device_flags()
        self._diagnostics_hub = diagnostics_hub
        self._tick_token = 0
        self._tick_callback: TickCallback | None = None
        self._closed = False

    @classmethod
    def isolated(cls, *, width: int = 100, height: int = 100, name: str = "probe") -> RuntimeHostView:
        """Short-lived view with no diagnostics, used for status probes."""
        return cls(width=width, height=height, device=DeviceFlags(platform="probe"), name=name)

    @property
    def name(self) -> str:
        return self._name

    @property
    def scene(self) -> SceneGraph:
        return self._scene

    @property
    def viewport(self) -> tuple[int, int]:
        return self._viewport

    @property
    def device(self) -> DeviceFlags:
        return self._device

    @property
    def scheduler(self) -> Scheduler:
        return self._scheduler

    @property
    def diagnostics_hub(self) -> DiagnosticHub | None:
        return self._diagnostics_hub

    @property
    def has_tick_subscriber(self) -> bool:
        return self._tick_callback is not None

    @property
    def closed(self) -> bool:
        return self._closed

    def resize(self, width: int, height: int) -> None:
        if width <= 0 or height <= 0:
            raise ValueError("viewport size must be > 0")
        self._viewport = (int(width), int(height))

    def now_seconds(self) -> float:
        return self._clock.now()

    def subscribe_tick(self, callback: TickCallback) -> int:
        """Subscribe the single tick callback; raise if one is already active."""
        if self._tick_callback is not None:
            raise TickSubscriptionError(
                f"view '{self._name}' already has an active tick subscriber"
            )
        self._tick_token += 1
        self._tick_callback = callback
        return self._tick_token

    def unsubscribe_tick(self, token: int) -> None:
        if token != self._tick_token or self._tick_callback is None:
            return
        self._tick_callback = None

    def call_later(self, delay_seconds: float, callback: DeferredCallback) -> int:
        return self._scheduler.call_later(delay_seconds, callback)

    def cancel_task(self, task_id: int) -> None:
        self._scheduler.cancel(task_id)

    def run_frame(self) -> FrameReport:
        """Run one host frame: tick subscriber, then due deferred callbacks."""
        context: TimeContext = self._clock.next()
        callback = self._tick_callback
        if callback is not None:
            callback(context)
        executed = self._scheduler.run_due(context.now_seconds)
        return FrameReport(
            frame_index=context.frame_index,
            ticked=callback is not None,
            deferred_executed=executed,
        )

    def emit_diagnostic(self, name: str, **metadata: object) -> None:
        hub = self._diagnostics_hub
        if hub is None:
            return
        hub.emit(category="session", name=name, metadata={"view": self._name, **metadata})

    def failure_context(self, state: str, **extra: object) -> FailureContext:
        return FailureContext(
            state=state,
            viewport=self._viewport,
            device=self._device,
            extra=dict(extra),
        )

    def close(self) -> None:
        """Drop subscriber, pending callbacks and attached nodes."""
        if self._closed:
            return
        self._closed = True
        self._tick_callback = None
        self._scheduler.clear()
        self._scene.clear()
        _LOG.debug("view_closed name=%s", self._name)


def detect_device_flags() -> DeviceFlags:
    platform = sys.platform
    return DeviceFlags(
        is_mobile=platform.startswith(_MOBILE_PLATFORMS),
        platform=platform,
        pixel_ratio=1.0,
    )
