"""Game-type registry resolving ids into sessions behind tiered fallbacks."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import replace
from typing import TYPE_CHECKING

from playhost.api.registry import (
    AggregateStatus,
    ImplementationStatus,
    ModuleStatus,
    RegistryDescriptor,
    SessionConstructor,
)
from playhost.api.session import (
    HostViewPort,
    Presentation,
    SessionHost,
    SessionPort,
    SessionSettings,
)
from playhost.runtime.errors import ModuleLoadError, SessionConstructionError
from playhost.runtime.view import RuntimeHostView
from playhost.session.kinds import EmergencySession, InertSession, RelabeledSession, TapSession

if TYPE_CHECKING:
    from playhost.diagnostics.classifier import FailureClassifier

_LOG = logging.getLogger("playhost.registry")

PROBE_SETTINGS = SessionSettings(duration_seconds=10.0, target_score=10)
PROBE_ERROR_CHARS = 50

RegistryBootstrap = Callable[["ModuleRegistry"], None]
ProbeViewFactory = Callable[[], RuntimeHostView]


def _default_bootstrap(registry: ModuleRegistry) -> None:
    from playhost.registry.catalog import register_default_descriptors

    register_default_descriptors(registry)


class ModuleRegistry:
    """Maps game-type ids to descriptors and builds sessions from them.

    `resolve` never raises: a failing constructor degrades to the tap session
    relabeled with the requested kind's metadata, then to the emergency
    session, and finally to an inert placeholder.
    """

    def __init__(
        self,
        *,
        classifier: FailureClassifier | None = None,
        bootstrap: RegistryBootstrap | None = None,
        probe_view_factory: ProbeViewFactory | None = None,
    ) -> None:
        self._descriptors: dict[str, RegistryDescriptor] = {}
        self._classifier = classifier
        self._bootstrap = bootstrap or _default_bootstrap
        self._probe_view_factory = probe_view_factory or RuntimeHostView.isolated
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    def attach_classifier(self, classifier: FailureClassifier) -> None:
        self._classifier = classifier

    def register(self, descriptor: RegistryDescriptor) -> None:
        """Insert or replace a descriptor by id."""
        normalized = descriptor.id.strip()
        if not normalized:
            raise ValueError("descriptor id must not be empty")
        if normalized != descriptor.id:
            descriptor = replace(descriptor, id=normalized)
        replaced = normalized in self._descriptors
        self._descriptors[normalized] = descriptor
        _LOG.debug(
            "descriptor_registered id=%s status=%s replaced=%s",
            normalized,
            descriptor.implementation_status.value,
            replaced,
        )

    def ensure_initialized(self) -> None:
        if self._initialized:
            return
        self._initialized = True
        self._bootstrap(self)
        _LOG.info("registry_initialized descriptors=%d", len(self._descriptors))

    def descriptor(self, game_type: str) -> RegistryDescriptor | None:
        self.ensure_initialized()
        return self._descriptors.get(game_type.strip())

    def descriptors(self) -> tuple[RegistryDescriptor, ...]:
        self.ensure_initialized()
        return tuple(self._descriptors.values())

    def resolve(
        self,
        game_type: str,
        settings: SessionSettings,
        host: SessionHost,
    ) -> SessionPort:
        """Build a session for `game_type`; always returns an instance."""
        self.ensure_initialized()
        normalized = game_type.strip()
        descriptor = self._descriptors.get(normalized)
        if descriptor is None:
            _LOG.error("descriptor_missing game_type=%s", normalized)
            self._record(ModuleLoadError(normalized, "not registered"), normalized, host)
            return self._emergency(settings, host)

        try:
            instance = descriptor.constructor(host, settings)
            if instance is None or not isinstance(instance, SessionPort):
                raise SessionConstructionError(
                    normalized, f"constructor returned {type(instance).__name__}"
                )
        except Exception as exc:
            _LOG.exception("session_construct_failed game_type=%s", normalized)
            self._record(exc, normalized, host)
            return self._customized_fallback(descriptor, settings, host)
        _LOG.debug(
            "session_resolved game_type=%s status=%s",
            normalized,
            descriptor.implementation_status.value,
        )
        return instance

    def upgrade(self, game_type: str, constructor: SessionConstructor) -> bool:
        """Swap in a real constructor; already running sessions are untouched."""
        self.ensure_initialized()
        normalized = game_type.strip()
        existing = self._descriptors.get(normalized)
        if existing is None:
            _LOG.error("upgrade_unknown_game_type game_type=%s", normalized)
            return False
        self._descriptors[normalized] = replace(
            existing,
            constructor=constructor,
            implementation_status=ImplementationStatus.IMPLEMENTED,
        )
        _LOG.info("descriptor_upgraded game_type=%s", normalized)
        return True

    def check_status(self, game_type: str) -> ModuleStatus:
        """Probe one constructor in a throwaway view; never records failures."""
        self.ensure_initialized()
        normalized = game_type.strip()
        descriptor = self._descriptors.get(normalized)
        if descriptor is None:
            return ModuleStatus(
                game_type=normalized,
                implemented=False,
                has_descriptor=False,
                status=ImplementationStatus.MISSING,
                error="not registered",
            )
        view = self._probe_view_factory()
        probe_host = SessionHost(view=view, on_complete=_ignore_completion)
        try:
            instance = descriptor.constructor(probe_host, PROBE_SETTINGS)
        except Exception as exc:
            _LOG.debug("probe_failed game_type=%s error=%s", normalized, exc)
            return ModuleStatus(
                game_type=normalized,
                implemented=False,
                has_descriptor=True,
                status=ImplementationStatus.FALLBACK,
                error=f"error: {(str(exc) or type(exc).__name__)[:PROBE_ERROR_CHARS]}",
            )
        else:
            if instance is None:
                return ModuleStatus(
                    game_type=normalized,
                    implemented=False,
                    has_descriptor=True,
                    status=ImplementationStatus.MISSING,
                    error="instance creation failed",
                )
            _destroy_probe_instance(instance)
            status = descriptor.implementation_status
            return ModuleStatus(
                game_type=normalized,
                implemented=status is ImplementationStatus.IMPLEMENTED,
                has_descriptor=True,
                status=status,
            )
        finally:
            view.close()

    def check_all(self) -> dict[str, ModuleStatus]:
        self.ensure_initialized()
        return {game_type: self.check_status(game_type) for game_type in tuple(self._descriptors)}

    def aggregate_status(self) -> AggregateStatus:
        """Counts by declared implementation status, without probing."""
        self.ensure_initialized()
        statuses = [item.implementation_status for item in self._descriptors.values()]
        total = len(statuses)
        implemented = statuses.count(ImplementationStatus.IMPLEMENTED)
        rate = round(implemented * 100 / total) if total else 0
        return AggregateStatus(
            total=total,
            implemented=implemented,
            fallback=statuses.count(ImplementationStatus.FALLBACK),
            missing=statuses.count(ImplementationStatus.MISSING),
            implementation_rate=f"{rate}%",
        )

    def _customized_fallback(
        self,
        descriptor: RegistryDescriptor,
        settings: SessionSettings,
        host: SessionHost,
    ) -> SessionPort:
        presentation = Presentation(
            name=descriptor.display.name,
            instruction=descriptor.display.instruction,
        )
        try:
            session = RelabeledSession(TapSession(host, settings), presentation)
        except Exception:
            _LOG.exception("customized_fallback_failed game_type=%s", descriptor.id)
            return self._emergency(settings, host)
        _LOG.warning("customized_fallback_used game_type=%s", descriptor.id)
        return session

    def _emergency(self, settings: SessionSettings, host: SessionHost) -> SessionPort:
        try:
            session = EmergencySession(host, settings)
        except Exception:
            _LOG.critical("emergency_fallback_failed returning_inert_session", exc_info=True)
            return InertSession(settings)
        _LOG.error("emergency_fallback_used")
        return session

    def _record(self, error: BaseException, game_type: str, host: SessionHost) -> None:
        classifier = self._classifier
        if classifier is None:
            return
        view: HostViewPort = host.view
        classifier.record(error, game_type, view.failure_context("init", game_type=game_type))


def _ignore_completion(success: bool, score: int) -> None:
    _ = (success, score)


def _destroy_probe_instance(instance: object) -> None:
    destroy = getattr(instance, "destroy", None)
    if callable(destroy):
        destroy()
