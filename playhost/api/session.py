"""Public session lifecycle contracts."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from playhost.api.failures import DeviceFlags, FailureContext
    from playhost.api.scene import SceneGraphPort
    from playhost.runtime.time import TimeContext


class SessionState(StrEnum):
    """Session state machine states."""

    READY = "ready"
    PLAYING = "playing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionState.COMPLETED, SessionState.FAILED)


class Difficulty(StrEnum):
    EASY = "easy"
    NORMAL = "normal"
    HARD = "hard"


@dataclass(frozen=True, slots=True)
class SessionSettings:
    """Per-session settings; immutable once a session starts."""

    duration_seconds: float
    target_score: int
    difficulty: Difficulty = Difficulty.NORMAL

    def __post_init__(self) -> None:
        if self.duration_seconds <= 0.0:
            raise ValueError("duration_seconds must be > 0")
        if self.target_score < 0:
            raise ValueError("target_score must be >= 0")
        if not isinstance(self.difficulty, Difficulty):
            object.__setattr__(self, "difficulty", Difficulty(str(self.difficulty)))


@dataclass(frozen=True, slots=True)
class SessionResult:
    """Outcome reported once a session reaches a terminal state."""

    success: bool
    score: int
    elapsed_seconds: float
    message: str


@dataclass(frozen=True, slots=True)
class Presentation:
    """Player-facing name and instruction text of a session."""

    name: str
    instruction: str


@dataclass(frozen=True, slots=True)
class HudSnapshot:
    """Immutable heads-up display values for the rendering collaborator."""

    score: int
    target_score: int
    remaining_seconds: float
    message: str
    message_alpha: float
    flash_alpha: float


CompletionCallback = Callable[[bool, int], None]
RuntimeFailureCallback = Callable[[BaseException, "SessionPort"], None]
RestartOfferCallback = Callable[[SessionResult], None]
TickCallback = Callable[["TimeContext"], None]
DeferredCallback = Callable[[], None]


@runtime_checkable
class HostViewPort(Protocol):
    """Host view surface a session is allowed to use."""

    @property
    def scene(self) -> SceneGraphPort:
        """Scene graph the session root is attached to."""

    @property
    def viewport(self) -> tuple[int, int]:
        """Viewport size in pixels."""

    @property
    def device(self) -> DeviceFlags:
        """Device capability flags."""

    def now_seconds(self) -> float:
        """Return current wall-clock seconds."""

    def subscribe_tick(self, callback: TickCallback) -> int:
        """Subscribe the per-frame tick callback."""

    def unsubscribe_tick(self, token: int) -> None:
        """Remove a tick subscription if present."""

    def call_later(self, delay_seconds: float, callback: DeferredCallback) -> int:
        """Schedule a one-shot deferred callback."""

    def cancel_task(self, task_id: int) -> None:
        """Cancel a deferred callback if still pending."""

    def emit_diagnostic(self, name: str, **metadata: object) -> None:
        """Emit a session diagnostics event."""

    def failure_context(self, state: str, **extra: object) -> FailureContext:
        """Capture a failure context snapshot for this view."""


@dataclass(frozen=True, slots=True)
class SessionHost:
    """Host-supplied collaborators handed to every session constructor."""

    view: HostViewPort
    on_complete: CompletionCallback
    on_runtime_failure: RuntimeFailureCallback | None = None
    on_restart_offer: RestartOfferCallback | None = None
    restart_offer_delay_seconds: float = 3.0


@runtime_checkable
class SessionPort(Protocol):
    """Session interface shared by every game module and decorator."""

    @property
    def state(self) -> SessionState: ...

    @property
    def score(self) -> int: ...

    @property
    def settings(self) -> SessionSettings: ...

    @property
    def presentation(self) -> Presentation: ...

    @property
    def result(self) -> SessionResult | None: ...

    def initialize(self) -> None: ...

    def start(self) -> None: ...

    def handle_pointer(self, x: float, y: float) -> bool: ...

    def fail(self, reason: str | BaseException) -> None: ...

    def destroy(self) -> None: ...
