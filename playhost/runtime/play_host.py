"""Play host: owns the view, the active session and the failure prompt."""

from __future__ import annotations

import logging
from functools import partial

from playhost.api.failures import FailureKind, FailureNotice
from playhost.api.session import (
    CompletionCallback,
    SessionHost,
    SessionPort,
    SessionResult,
    SessionSettings,
)
from playhost.diagnostics.classifier import FailureClassifier
from playhost.diagnostics.failure_log import PersistedFailureLog
from playhost.diagnostics.hub import DiagnosticHub
from playhost.diagnostics.prompt import FailurePrompt, PromptActionId
from playhost.diagnostics.storage import JsonFileStorage, KeyValueStorage
from playhost.registry.module_registry import ModuleRegistry
from playhost.runtime.config import RuntimeConfig, load_runtime_config, resolve_storage_dir
from playhost.runtime.errors import RECOVERABLE_RUNTIME_ERRORS, log_recoverable
from playhost.runtime.events import NotificationBus
from playhost.runtime.time import TimeSource
from playhost.runtime.view import FrameReport, RuntimeHostView

_LOG = logging.getLogger("playhost.host")

DEFAULT_SETTINGS = SessionSettings(duration_seconds=10.0, target_score=30)


class PlayHost:
    """Runs one session at a time and turns failures into prompts.

    LOAD and INIT auto-resolution reconstruct the last requested session on
    the next frame, bounded by the classifier's retry budget.
    """

    def __init__(
        self,
        *,
        view: RuntimeHostView,
        registry: ModuleRegistry,
        classifier: FailureClassifier,
        bus: NotificationBus,
        config: RuntimeConfig | None = None,
        diagnostics_hub: DiagnosticHub | None = None,
    ) -> None:
        self._view = view
        self._registry = registry
        self._classifier = classifier
        self._bus = bus
        self._config = config or RuntimeConfig()
        self._diagnostics_hub = diagnostics_hub
        self._session: SessionPort | None = None
        self._game_type: str | None = None
        self._settings: SessionSettings | None = None
        self._on_complete: CompletionCallback | None = None
        self._prompt: FailurePrompt | None = None
        self._last_result: SessionResult | None = None
        self._restart_offer: SessionResult | None = None
        self._reconstruct_task: int | None = None
        self._generation = 0
        self._closed = False
        self._notice_subscription = bus.subscribe(FailureNotice, self._on_notice)
        classifier.set_fallback_procedure(FailureKind.LOAD, self._schedule_reconstruct)
        classifier.set_fallback_procedure(FailureKind.INIT, self._schedule_reconstruct)

    @property
    def view(self) -> RuntimeHostView:
        return self._view

    @property
    def registry(self) -> ModuleRegistry:
        return self._registry

    @property
    def classifier(self) -> FailureClassifier:
        return self._classifier

    @property
    def bus(self) -> NotificationBus:
        return self._bus

    @property
    def diagnostics_hub(self) -> DiagnosticHub | None:
        return self._diagnostics_hub

    @property
    def session(self) -> SessionPort | None:
        return self._session

    @property
    def game_type(self) -> str | None:
        return self._game_type

    @property
    def prompt(self) -> FailurePrompt | None:
        return self._prompt

    @property
    def last_result(self) -> SessionResult | None:
        return self._last_result

    @property
    def restart_offer(self) -> SessionResult | None:
        return self._restart_offer

    @property
    def reconstruct_pending(self) -> bool:
        return self._reconstruct_task is not None

    def play(
        self,
        game_type: str,
        settings: SessionSettings | None = None,
        on_complete: CompletionCallback | None = None,
    ) -> SessionPort | None:
        """Replace the active session with a freshly resolved one and start it."""
        if self._closed:
            _LOG.warning("play_after_shutdown game_type=%s", game_type)
            return None
        self._cancel_reconstruct()
        self._destroy_session()
        self._game_type = game_type
        self._settings = settings or self._default_settings(game_type)
        if on_complete is not None:
            self._on_complete = on_complete
        self._restart_offer = None
        self._generation += 1
        host = SessionHost(
            view=self._view,
            on_complete=self._on_session_complete,
            on_runtime_failure=partial(self._on_runtime_failure, game_type, self._generation),
            on_restart_offer=self._on_restart_offer,
            restart_offer_delay_seconds=self._config.restart_offer_delay_seconds,
        )
        session = self._registry.resolve(game_type, self._settings, host)
        self._session = session
        try:
            session.initialize()
            session.start()
        except Exception as exc:
            _LOG.exception("session_start_failed game_type=%s", game_type)
            self._destroy_session()
            self.report_failure(exc, state="initialization")
            return None
        _LOG.info(
            "session_playing game_type=%s kind=%s",
            game_type,
            getattr(session, "kind", type(session).__name__),
        )
        return session

    def restart(self) -> SessionPort | None:
        if self._game_type is None:
            return None
        return self.play(self._game_type, self._settings)

    def report_failure(
        self,
        error: BaseException | str,
        *,
        state: str | None = None,
        force_notify: bool = False,
    ) -> None:
        """Route a failure from the host layer through the classifier."""
        session_kind = self._game_type or "unknown"
        session = self._session
        if state is None and session is not None:
            state = session.state.value
        context = self._view.failure_context(state or "idle", game_type=session_kind)
        self._classifier.handle(error, session_kind, context, force_notify=force_notify)

    def retry(self) -> SessionPort | None:
        """Dismiss the prompt and reconstruct the session from scratch."""
        self._prompt = None
        return self.restart()

    def auto_repair(self) -> bool:
        prompt = self._prompt
        if prompt is None or not prompt.can_retry:
            return False
        if not self._classifier.manual_retry(prompt.failure_id):
            return False
        self._prompt = None
        self.restart()
        return True

    def dismiss(self) -> None:
        self._prompt = None

    def handle_prompt_action(self, action_id: str) -> bool:
        prompt = self._prompt
        if prompt is None or not prompt.allows(action_id):
            _LOG.debug("prompt_action_ignored action=%s", action_id)
            return False
        if action_id == PromptActionId.RETRY:
            self.retry()
            return True
        if action_id == PromptActionId.AUTO_REPAIR:
            return self.auto_repair()
        self.dismiss()
        return True

    def run_frame(self) -> FrameReport:
        return self._view.run_frame()

    def handle_pointer(self, x: float, y: float) -> bool:
        session = self._session
        if session is None or self._prompt is not None:
            return False
        return session.handle_pointer(x, y)

    def shutdown(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._cancel_reconstruct()
        self._destroy_session()
        self._bus.unsubscribe(self._notice_subscription)
        self._view.close()
        _LOG.info("play_host_shutdown")

    def _default_settings(self, game_type: str) -> SessionSettings:
        descriptor = self._registry.descriptor(game_type)
        return descriptor.default_settings if descriptor is not None else DEFAULT_SETTINGS

    def _destroy_session(self) -> None:
        session, self._session = self._session, None
        if session is None:
            return
        try:
            session.destroy()
        except RECOVERABLE_RUNTIME_ERRORS:
            log_recoverable(_LOG, "session_destroy_failed", level=logging.WARNING)

    def _on_session_complete(self, success: bool, score: int) -> None:
        session = self._session
        self._last_result = session.result if session is not None else None
        _LOG.info(
            "session_complete game_type=%s success=%s score=%d",
            self._game_type,
            success,
            score,
        )
        callback = self._on_complete
        if callback is not None:
            callback(success, score)

    def _on_runtime_failure(
        self,
        game_type: str,
        generation: int,
        error: BaseException,
        session: SessionPort,
    ) -> None:
        failure_context = getattr(session, "failure_context", None)
        if callable(failure_context):
            context = failure_context()
        else:
            context = self._view.failure_context(session.state.value, game_type=game_type)
        if generation != self._generation:
            # Session already replaced; keep the record, skip recovery.
            _LOG.info("stale_session_failure game_type=%s", game_type)
            self._classifier.record(error, game_type, context)
            return
        self._classifier.handle(error, game_type, context)

    def _on_restart_offer(self, result: SessionResult) -> None:
        self._restart_offer = result

    def _on_notice(self, notice: FailureNotice) -> None:
        self._prompt = FailurePrompt.from_notice(notice)
        _LOG.info(
            "failure_prompt_shown id=%s kind=%s can_retry=%s",
            notice.failure_id,
            notice.record.failure_kind.value,
            notice.can_retry,
        )

    def _schedule_reconstruct(self) -> None:
        if self._game_type is None or self._reconstruct_task is not None:
            return
        self._reconstruct_task = self._view.call_later(0.0, self._reconstruct)

    def _reconstruct(self) -> None:
        self._reconstruct_task = None
        _LOG.info("session_reconstruct game_type=%s", self._game_type)
        self.restart()

    def _cancel_reconstruct(self) -> None:
        task, self._reconstruct_task = self._reconstruct_task, None
        if task is not None:
            self._view.cancel_task(task)


def build_play_host(
    config: RuntimeConfig | None = None,
    *,
    storage: KeyValueStorage | None = None,
    time_source: TimeSource | None = None,
) -> PlayHost:
    """Compose view, registry, classifier and notification bus."""
    cfg = config or load_runtime_config()
    hub = DiagnosticHub(capacity=cfg.diagnostics_capacity)
    bus = NotificationBus()
    failure_log: PersistedFailureLog | None = None
    if cfg.failure_log_enabled:
        failure_log = PersistedFailureLog(storage or JsonFileStorage(resolve_storage_dir(cfg)))
    classifier = FailureClassifier(
        bus=bus,
        failure_log=failure_log,
        diagnostics_hub=hub,
        recent_limit=cfg.recent_failures_limit,
    )
    view = RuntimeHostView(
        width=cfg.viewport_width,
        height=cfg.viewport_height,
        time_source=time_source,
        diagnostics_hub=hub,
    )
    registry = ModuleRegistry(classifier=classifier)
    return PlayHost(
        view=view,
        registry=registry,
        classifier=classifier,
        bus=bus,
        config=cfg,
        diagnostics_hub=hub,
    )
