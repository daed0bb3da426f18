"""Built-in session kinds and the presentation-override decorator."""

from __future__ import annotations

import logging
import math
import random

from playhost.api.failures import FailureContext
from playhost.api.scene import SceneNode
from playhost.api.session import (
    Difficulty,
    HudSnapshot,
    Presentation,
    SessionHost,
    SessionResult,
    SessionSettings,
    SessionState,
)
from playhost.session.effects import TimedEffect, flash
from playhost.session.lifecycle import SessionLifecycle

_LOG = logging.getLogger("playhost.session")

TAP_PRESENTATION = Presentation(
    name="Cute Tap",
    instruction="Tap the character\nto collect magic!",
)
EMERGENCY_PRESENTATION = Presentation(name="Quick Tap", instruction="Tap anywhere!")

# Target radius and speed (viewport fractions per second) by difficulty.
_TAP_TUNING: dict[Difficulty, tuple[float, float]] = {
    Difficulty.EASY: (0.14, 0.15),
    Difficulty.NORMAL: (0.11, 0.25),
    Difficulty.HARD: (0.08, 0.40),
}


class TapSession(SessionLifecycle):
    """Generic always-available kind: tap a drifting target to score."""

    kind = "cute_tap"

    def __init__(
        self,
        host: SessionHost,
        settings: SessionSettings,
        *,
        presentation: Presentation | None = None,
        seed: int | None = None,
    ) -> None:
        super().__init__(host, settings, presentation=presentation or TAP_PRESENTATION)
        self._rng = random.Random(seed)
        width, height = host.view.viewport
        radius_fraction, speed_fraction = _TAP_TUNING[settings.difficulty]
        self._radius = radius_fraction * min(width, height)
        self._speed = speed_fraction * min(width, height)
        self._x = width / 2.0
        self._y = height / 2.0
        self._vx = 0.0
        self._vy = 0.0

    @property
    def target(self) -> tuple[float, float, float]:
        """Current target as (x, y, radius)."""
        return (self._x, self._y, self._radius)

    def build_scene(self, root: SceneNode) -> None:
        super().build_scene(root)
        self._sync_target(root)

    def on_start(self) -> None:
        angle = self._rng.uniform(0.0, 2.0 * math.pi)
        self._vx = math.cos(angle) * self._speed
        self._vy = math.sin(angle) * self._speed

    def update(self, delta_seconds: float) -> None:
        width, height = self._view.viewport
        self._x += self._vx * delta_seconds
        self._y += self._vy * delta_seconds
        if not self._radius <= self._x <= width - self._radius:
            self._vx = -self._vx
            self._x = min(max(self._x, self._radius), width - self._radius)
        if not self._radius <= self._y <= height - self._radius:
            self._vy = -self._vy
            self._y = min(max(self._y, self._radius), height - self._radius)
        if self.root is not None:
            self._sync_target(self.root)

    def on_pointer(self, x: float, y: float) -> bool:
        if math.hypot(x - self._x, y - self._y) > self._radius:
            return False
        self.award(1)
        self._add_effect(
            TimedEffect("flash", self._view.now_seconds(), 0.3, flash(pulses=2))
        )
        return True

    def _sync_target(self, root: SceneNode) -> None:
        root.set_property("target_x", self._x)
        root.set_property("target_y", self._y)
        root.set_property("target_radius", self._radius)


class EmergencySession(SessionLifecycle):
    """Minimal kind with no module content: every pointer press scores.

    The constructor only stores references so that this tier cannot fail
    while the registry is already recovering from another failure.
    """

    kind = "emergency"

    def __init__(self, host: SessionHost, settings: SessionSettings) -> None:
        super().__init__(host, settings, presentation=EMERGENCY_PRESENTATION)

    def update(self, delta_seconds: float) -> None:
        _ = delta_seconds

    def on_pointer(self, x: float, y: float) -> bool:
        _ = (x, y)
        self.award(1)
        return True


class RelabeledSession:
    """Session decorator showing another module's name and instruction.

    Delegates every operation to the wrapped session and applies the
    presentation override once the wrapped scene exists.
    """

    def __init__(self, inner: SessionLifecycle, presentation: Presentation) -> None:
        self._inner = inner
        self._presentation = presentation

    @property
    def inner(self) -> SessionLifecycle:
        return self._inner

    @property
    def kind(self) -> str:
        return self._inner.kind

    @property
    def state(self) -> SessionState:
        return self._inner.state

    @property
    def score(self) -> int:
        return self._inner.score

    @property
    def settings(self) -> SessionSettings:
        return self._inner.settings

    @property
    def presentation(self) -> Presentation:
        return self._presentation

    @property
    def result(self) -> SessionResult | None:
        return self._inner.result

    @property
    def hud(self) -> HudSnapshot:
        return self._inner.hud

    @property
    def root(self) -> SceneNode | None:
        return self._inner.root

    def initialize(self) -> None:
        self._inner.initialize()
        root = self._inner.root
        if root is not None:
            root.set_label("title", self._presentation.name)
            root.set_label("instruction", self._presentation.instruction)

    def start(self) -> None:
        self._inner.start()

    def handle_pointer(self, x: float, y: float) -> bool:
        return self._inner.handle_pointer(x, y)

    def fail(self, reason: str | BaseException) -> None:
        self._inner.fail(reason)

    def destroy(self) -> None:
        self._inner.destroy()

    def failure_context(self) -> FailureContext:
        return self._inner.failure_context()


class InertSession:
    """Placeholder returned only when even the emergency tier raised."""

    kind = "inert"

    def __init__(self, settings: SessionSettings) -> None:
        self._settings = settings

    @property
    def state(self) -> SessionState:
        return SessionState.FAILED

    @property
    def score(self) -> int:
        return 0

    @property
    def settings(self) -> SessionSettings:
        return self._settings

    @property
    def presentation(self) -> Presentation:
        return EMERGENCY_PRESENTATION

    @property
    def result(self) -> SessionResult | None:
        return None

    def initialize(self) -> None:
        return

    def start(self) -> None:
        return

    def handle_pointer(self, x: float, y: float) -> bool:
        _ = (x, y)
        return False

    def fail(self, reason: str | BaseException) -> None:
        _LOG.debug("inert_session_fail reason=%s", reason)

    def destroy(self) -> None:
        return
