"""Session lifecycle state machine shared by every game module.

A session moves READY -> PLAYING -> {COMPLETED, FAILED}. It owns one scene
root, one tick subscription on the host view and one deadline task; all
three are released on the terminal transition or on `destroy()`.

Time is always read from the view's wall clock. Tick deltas only drive the
module's own animation; elapsed and remaining time never come from counting
ticks or trusting the timer to fire on time.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import ClassVar

from playhost.api.failures import FailureContext
from playhost.api.scene import SceneNode
from playhost.api.session import (
    HudSnapshot,
    Presentation,
    SessionHost,
    SessionResult,
    SessionSettings,
    SessionState,
)
from playhost.runtime.errors import RECOVERABLE_RUNTIME_ERRORS, log_recoverable
from playhost.runtime.time import TimeContext
from playhost.session.effects import EffectTimeline, TimedEffect, fade_out, hold

_LOG = logging.getLogger("playhost.session")

START_MESSAGE = "Start!"
SUCCESS_MESSAGE = "Well done!"
FAILURE_MESSAGE = "Try again!"
START_MESSAGE_SECONDS = 1.0
RESULT_MESSAGE_SECONDS = 5.0
# Timers may fire slightly early; anything within this window counts as due.
DEADLINE_TOLERANCE_SECONDS = 0.001


class SessionLifecycle(ABC):
    """Base class for session kinds; subclasses implement `update`."""

    kind: ClassVar[str] = "session"

    def __init__(
        self,
        host: SessionHost,
        settings: SessionSettings,
        *,
        presentation: Presentation | None = None,
    ) -> None:
        self._host = host
        self._view = host.view
        self._settings = settings
        self._presentation = presentation or Presentation(name=self.kind, instruction="")
        self._state = SessionState.READY
        self._score = 0
        self._root: SceneNode | None = None
        self._started_at: float | None = None
        self._ended_at: float | None = None
        self._deadline_task: int | None = None
        self._restart_task: int | None = None
        self._tick_token: int | None = None
        self._result: SessionResult | None = None
        self._completion_sent = False
        self._destroyed = False
        self._effects = EffectTimeline()
        self._hud = HudSnapshot(
            score=0,
            target_score=settings.target_score,
            remaining_seconds=settings.duration_seconds,
            message="",
            message_alpha=0.0,
            flash_alpha=0.0,
        )

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def score(self) -> int:
        return self._score

    @property
    def settings(self) -> SessionSettings:
        return self._settings

    @property
    def presentation(self) -> Presentation:
        return self._presentation

    @property
    def result(self) -> SessionResult | None:
        return self._result

    @property
    def hud(self) -> HudSnapshot:
        return self._hud

    @property
    def root(self) -> SceneNode | None:
        return self._root

    @property
    def started_at(self) -> float | None:
        return self._started_at

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    @property
    def host(self) -> SessionHost:
        return self._host

    # -- module hooks -------------------------------------------------

    def build_scene(self, root: SceneNode) -> None:
        """Populate the owned root; called once from `initialize()`."""
        root.set_label("title", self._presentation.name)
        root.set_label("instruction", self._presentation.instruction)

    def on_start(self) -> None:
        """Called right after the session enters PLAYING."""

    @abstractmethod
    def update(self, delta_seconds: float) -> None:
        """Advance module-specific simulation for one tick."""

    def on_pointer(self, x: float, y: float) -> bool:
        """Handle a pointer press; return whether it was consumed."""
        _ = (x, y)
        return False

    def on_destroy(self) -> None:
        """Release module-owned resources."""

    def check_win(self) -> bool:
        return self._score >= self._settings.target_score

    # -- public lifecycle ---------------------------------------------

    def initialize(self) -> None:
        """Build the owned scene root once and attach it to the host scene."""
        if self._destroyed:
            _LOG.warning("initialize_after_destroy kind=%s", self.kind)
            return
        if self._root is not None:
            _LOG.warning("initialize_ignored kind=%s state=%s", self.kind, self._state.value)
            return
        root = SceneNode(node_id=f"{self.kind}-{id(self):x}")
        self.build_scene(root)
        self._root = root
        self._view.scene.attach(root)
        self._state = SessionState.READY
        self._refresh_hud(self._view.now_seconds())

    def start(self) -> None:
        """Enter PLAYING; no-op unless the session is READY."""
        if self._state is not SessionState.READY or self._destroyed:
            _LOG.debug("start_ignored kind=%s state=%s", self.kind, self._state.value)
            return
        now = self._view.now_seconds()
        deadline_task = self._view.call_later(self._settings.duration_seconds, self._on_deadline)
        try:
            tick_token = self._view.subscribe_tick(self._on_tick)
        except Exception:
            self._view.cancel_task(deadline_task)
            raise
        self._started_at = now
        self._score = 0
        self._deadline_task = deadline_task
        self._tick_token = tick_token
        self._state = SessionState.PLAYING
        self._effects.add(
            TimedEffect("message", now, START_MESSAGE_SECONDS, hold, text=START_MESSAGE)
        )
        self._view.emit_diagnostic("session.started", kind=self.kind)
        _LOG.info(
            "session_started kind=%s duration=%.1f target=%d difficulty=%s",
            self.kind,
            self._settings.duration_seconds,
            self._settings.target_score,
            self._settings.difficulty.value,
        )
        self.on_start()
        self._refresh_hud(now)

    def award(self, points: int = 1) -> None:
        """Add to the score; the win predicate is evaluated on the next tick."""
        if self._state is not SessionState.PLAYING:
            return
        self._score += int(points)

    def handle_pointer(self, x: float, y: float) -> bool:
        if self._state is not SessionState.PLAYING or self._destroyed:
            return False
        try:
            return bool(self.on_pointer(x, y))
        except Exception as exc:
            _LOG.exception("pointer_handler_failed kind=%s", self.kind)
            self._finish(success=False, reason="input_failure")
            self._report_runtime_failure(exc)
            return False

    def fail(self, reason: str | BaseException) -> None:
        """Externally signalled failure: PLAYING -> FAILED."""
        if self._state is not SessionState.PLAYING:
            _LOG.debug("fail_ignored kind=%s state=%s", self.kind, self._state.value)
            return
        _LOG.warning("session_failure_signalled kind=%s reason=%s", self.kind, reason)
        self._finish(success=False, reason="signalled")

    def destroy(self) -> None:
        """Release timer, tick subscription and scene root. Never raises."""
        if self._destroyed:
            return
        self._destroyed = True
        try:
            self._cancel_deadline()
            self._cancel_restart_offer()
        except RECOVERABLE_RUNTIME_ERRORS:
            log_recoverable(_LOG, "destroy_cancel_failed", level=logging.WARNING)
        try:
            self._unsubscribe_tick()
        except RECOVERABLE_RUNTIME_ERRORS:
            log_recoverable(_LOG, "destroy_unsubscribe_failed", level=logging.WARNING)
        root, self._root = self._root, None
        if root is not None:
            try:
                self._view.scene.detach(root)
                root.release()
            except RECOVERABLE_RUNTIME_ERRORS:
                log_recoverable(_LOG, "destroy_scene_release_failed", level=logging.WARNING)
        try:
            self.on_destroy()
        except Exception:
            log_recoverable(_LOG, "destroy_module_hook_failed", level=logging.WARNING)
        self._effects.clear()
        _LOG.debug("session_destroyed kind=%s state=%s", self.kind, self._state.value)

    # -- timing -------------------------------------------------------

    def elapsed_seconds(self, now: float | None = None) -> float:
        if self._started_at is None:
            return 0.0
        if self._ended_at is not None:
            end = self._ended_at
        else:
            end = self._view.now_seconds() if now is None else now
        return max(0.0, end - self._started_at)

    def remaining_seconds(self, now: float | None = None) -> float:
        return max(0.0, self._settings.duration_seconds - self.elapsed_seconds(now))

    def failure_context(self) -> FailureContext:
        return self._view.failure_context(self._state.value, session=self.kind, score=self._score)

    # -- internals ----------------------------------------------------

    def _on_tick(self, context: TimeContext) -> None:
        if self._state is not SessionState.PLAYING:
            return
        try:
            self.update(context.delta_seconds)
        except Exception as exc:
            _LOG.exception("session_update_failed kind=%s frame=%d", self.kind, context.frame_index)
            self._finish(success=False, reason="runtime_failure")
            self._report_runtime_failure(exc)
            return
        now = self._view.now_seconds()
        self._refresh_hud(now)
        if self.check_win():
            self._finish(success=True, reason="win")
            return
        if self.remaining_seconds(now) <= DEADLINE_TOLERANCE_SECONDS:
            # Deadline passed but the timer has not fired yet (throttled view).
            self._expire()

    def _on_deadline(self) -> None:
        self._deadline_task = None
        if self._state is not SessionState.PLAYING:
            return
        remaining = self.remaining_seconds()
        if remaining > DEADLINE_TOLERANCE_SECONDS:
            self._deadline_task = self._view.call_later(remaining, self._on_deadline)
            _LOG.debug("deadline_rearmed kind=%s remaining=%.3f", self.kind, remaining)
            return
        self._expire()

    def _expire(self) -> None:
        _LOG.info("session_deadline kind=%s score=%d", self.kind, self._score)
        self._finish(success=self.check_win(), reason="deadline")

    def _finish(self, *, success: bool, reason: str) -> None:
        if self._state.is_terminal:
            return
        self._cancel_deadline()
        self._unsubscribe_tick()
        self._state = SessionState.COMPLETED if success else SessionState.FAILED
        now = self._view.now_seconds()
        if self._started_at is not None:
            self._ended_at = now
        elapsed = self.elapsed_seconds()
        message = SUCCESS_MESSAGE if success else FAILURE_MESSAGE
        result = SessionResult(
            success=success,
            score=self._score,
            elapsed_seconds=elapsed,
            message=message,
        )
        self._result = result
        self._effects.add(
            TimedEffect(
                "message",
                now,
                RESULT_MESSAGE_SECONDS,
                fade_out,
                text=f"{message}\nScore: {self._score}\nTime: {elapsed:.1f}s",
            )
        )
        self._refresh_hud(now)
        self._view.emit_diagnostic(
            "session.finished",
            kind=self.kind,
            state=self._state.value,
            reason=reason,
            score=self._score,
            elapsed_seconds=round(elapsed, 3),
        )
        _LOG.info(
            "session_finished kind=%s state=%s reason=%s score=%d elapsed=%.2f",
            self.kind,
            self._state.value,
            reason,
            self._score,
            elapsed,
        )
        if not self._destroyed:
            self._restart_task = self._view.call_later(
                self._host.restart_offer_delay_seconds, self._offer_restart
            )
        self._notify_completion(result)

    def _notify_completion(self, result: SessionResult) -> None:
        if self._completion_sent:
            return
        self._completion_sent = True
        try:
            self._host.on_complete(result.success, result.score)
        except Exception:
            _LOG.exception("completion_callback_failed kind=%s", self.kind)

    def _offer_restart(self) -> None:
        self._restart_task = None
        if self._destroyed or self._result is None:
            return
        _LOG.debug("restart_offered kind=%s", self.kind)
        callback = self._host.on_restart_offer
        if callback is not None:
            callback(self._result)

    def _report_runtime_failure(self, error: BaseException) -> None:
        callback = self._host.on_runtime_failure
        if callback is None:
            _LOG.error("runtime_failure_unrouted kind=%s error=%s", self.kind, error)
            return
        callback(error, self)

    def _cancel_deadline(self) -> None:
        task, self._deadline_task = self._deadline_task, None
        if task is not None:
            self._view.cancel_task(task)

    def _cancel_restart_offer(self) -> None:
        task, self._restart_task = self._restart_task, None
        if task is not None:
            self._view.cancel_task(task)

    def _unsubscribe_tick(self) -> None:
        token, self._tick_token = self._tick_token, None
        if token is not None:
            self._view.unsubscribe_tick(token)

    def _refresh_hud(self, now: float) -> None:
        samples = self._effects.sample(now)
        message = samples.get("message")
        flash_sample = samples.get("flash")
        self._hud = HudSnapshot(
            score=self._score,
            target_score=self._settings.target_score,
            remaining_seconds=self.remaining_seconds(now),
            message=message.text if message is not None else "",
            message_alpha=message.amplitude if message is not None else 0.0,
            flash_alpha=flash_sample.amplitude if flash_sample is not None else 0.0,
        )
        root = self._root
        if root is None:
            return
        root.set_label("score", f"Score: {self._hud.score}")
        root.set_label("timer", f"Time: {self._hud.remaining_seconds:.1f}")
        root.set_label("message", self._hud.message)
        root.set_property("message_alpha", self._hud.message_alpha)
        root.set_property("flash_alpha", self._hud.flash_alpha)

    def _add_effect(self, effect: TimedEffect) -> None:
        self._effects.add(effect)
