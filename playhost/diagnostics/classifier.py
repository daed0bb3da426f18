"""Failure classification, bounded auto-resolution and user notification."""

from __future__ import annotations

import logging
import sys
import traceback
from collections import Counter
from collections.abc import Callable
from dataclasses import replace
from time import time
from types import TracebackType
from uuid import uuid4

from playhost.api.events import NotificationBusPort
from playhost.api.failures import (
    FailureContext,
    FailureKind,
    FailureNotice,
    FailureRecord,
    FailureStatistics,
    FallbackProcedure,
    ResolutionPolicy,
)
from playhost.diagnostics.failure_log import PersistedFailureLog
from playhost.diagnostics.hub import DiagnosticHub
from playhost.diagnostics.policies import KEYWORD_GROUPS, default_policies, user_message

_LOG = logging.getLogger("playhost.failures")

DEFAULT_RECENT_LIMIT = 10

ExceptHook = Callable[[type[BaseException], BaseException, TracebackType | None], None]


def classify_message(message: str) -> FailureKind:
    """Map a failure message onto the taxonomy; first keyword group wins."""
    lowered = message.lower()
    for kind, keywords in KEYWORD_GROUPS:
        if any(keyword in lowered for keyword in keywords):
            return kind
    return FailureKind.RUNTIME


class FailureClassifier:
    """Records failures and decides between silent recovery and a notice.

    Retry counters are keyed by (session kind, failure kind) and only reset
    by `clear()`; a counter never exceeds its policy's `max_retries`.
    """

    def __init__(
        self,
        *,
        bus: NotificationBusPort | None = None,
        failure_log: PersistedFailureLog | None = None,
        policies: dict[FailureKind, ResolutionPolicy] | None = None,
        diagnostics_hub: DiagnosticHub | None = None,
        recent_limit: int = DEFAULT_RECENT_LIMIT,
        clock: Callable[[], float] = time,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self._bus = bus
        self._failure_log = failure_log
        self._policies = dict(policies) if policies is not None else default_policies()
        self._diagnostics_hub = diagnostics_hub
        self._recent_limit = max(1, int(recent_limit))
        self._clock = clock
        self._id_factory = id_factory or (lambda: str(uuid4()))
        self._records: list[FailureRecord] = []
        self._retry_counts: dict[tuple[str, FailureKind], int] = {}

    @property
    def failure_log(self) -> PersistedFailureLog | None:
        return self._failure_log

    def classify(self, message: str) -> FailureKind:
        return classify_message(message)

    def policy(self, kind: FailureKind) -> ResolutionPolicy | None:
        return self._policies.get(kind)

    def set_fallback_procedure(self, kind: FailureKind, procedure: FallbackProcedure | None) -> None:
        """Replace the fallback procedure run when `kind` is auto-resolved."""
        existing = self._policies.get(kind)
        if existing is None:
            self._policies[kind] = ResolutionPolicy(
                auto_retry=False,
                max_retries=0,
                fallback_procedure=procedure,
            )
            return
        self._policies[kind] = replace(existing, fallback_procedure=procedure)

    def retry_count(self, session_kind: str, kind: FailureKind) -> int:
        return self._retry_counts.get((session_kind, kind), 0)

    def remaining_retries(self, record: FailureRecord) -> int:
        policy = self._policies.get(record.failure_kind)
        if policy is None:
            return 0
        used = self.retry_count(record.session_kind, record.failure_kind)
        return max(0, policy.max_retries - used)

    def records(self) -> tuple[FailureRecord, ...]:
        return tuple(self._records)

    def find(self, failure_id: str) -> FailureRecord | None:
        for record in self._records:
            if record.id == failure_id:
                return record
        return None

    def record(
        self,
        error: BaseException | str,
        session_kind: str,
        context: FailureContext,
    ) -> FailureRecord:
        """Classify and store one failure in memory and in the persisted log."""
        if isinstance(error, BaseException):
            message = str(error) or type(error).__name__
            stack = _format_stack(error)
        else:
            message = str(error)
            stack = None
        record = FailureRecord(
            id=self._id_factory(),
            session_kind=session_kind,
            failure_kind=self.classify(message),
            message=message,
            context=context,
            timestamp=self._clock(),
            stack=stack,
        )
        self._records.append(record)
        _LOG.error(
            "failure_recorded id=%s failure_kind=%s session_kind=%s state=%s message=%s",
            record.id,
            record.failure_kind.value,
            session_kind,
            context.state,
            message,
            extra={
                "failure_id": record.id,
                "failure_kind": record.failure_kind.value,
                "session_kind": session_kind,
                "context": context.to_payload(),
            },
        )
        if self._failure_log is not None:
            self._failure_log.append(record)
        if self._diagnostics_hub is not None:
            self._diagnostics_hub.emit(
                category="failure",
                name="failure.recorded",
                level="error",
                metadata={
                    "failure_id": record.id,
                    "failure_kind": record.failure_kind.value,
                    "session_kind": session_kind,
                    "state": context.state,
                },
            )
        return record

    def attempt_resolution(self, record: FailureRecord) -> bool:
        """Run the kind's fallback procedure if its retry budget allows it."""
        policy = self._policies.get(record.failure_kind)
        if policy is None or not policy.auto_retry:
            return False
        key = (record.session_kind, record.failure_kind)
        used = self._retry_counts.get(key, 0)
        if used >= policy.max_retries:
            _LOG.warning(
                "max retries reached session_kind=%s failure_kind=%s max_retries=%d",
                record.session_kind,
                record.failure_kind.value,
                policy.max_retries,
            )
            return False
        self._retry_counts[key] = used + 1
        _LOG.info(
            "auto_resolution_attempt id=%s attempt=%d max_retries=%d",
            record.id,
            used + 1,
            policy.max_retries,
        )
        procedure = policy.fallback_procedure
        if procedure is not None:
            try:
                procedure()
            except Exception:
                _LOG.exception("auto_resolution_failed id=%s", record.id)
                return False
        record.resolved = True
        if self._failure_log is not None:
            self._failure_log.update(record)
        return True

    def notify(
        self,
        record: FailureRecord,
        resolved: bool,
        force_notify: bool = False,
    ) -> FailureNotice | None:
        """Publish a notice unless the failure was silently resolved."""
        if resolved and not force_notify:
            return None
        policy = self._policies.get(record.failure_kind)
        notice = FailureNotice(
            failure_id=record.id,
            message=user_message(record.failure_kind, policy),
            can_retry=self.remaining_retries(record) > 0,
            remediation_hint=policy.remediation_hint if policy is not None else None,
            record=record,
        )
        if self._bus is None:
            _LOG.warning("failure_notice_unrouted id=%s", record.id)
        else:
            self._bus.publish(notice)
        return notice

    def handle(
        self,
        error: BaseException | str,
        session_kind: str,
        context: FailureContext,
        force_notify: bool = False,
    ) -> FailureRecord:
        """Record, try to auto-resolve, and notify when still unresolved."""
        record = self.record(error, session_kind, context)
        resolved = self.attempt_resolution(record)
        self.notify(record, resolved, force_notify=force_notify)
        return record

    def manual_retry(self, failure_id: str) -> bool:
        record = self.find(failure_id)
        if record is None:
            _LOG.debug("manual_retry_unknown id=%s", failure_id)
            return False
        return self.attempt_resolution(record)

    def get_statistics(self, recent_limit: int | None = None) -> FailureStatistics:
        limit = self._recent_limit if recent_limit is None else max(0, int(recent_limit))
        by_kind = Counter(record.failure_kind.value for record in self._records)
        by_session_kind = Counter(record.session_kind for record in self._records)
        return FailureStatistics(
            total=len(self._records),
            by_kind=dict(by_kind),
            by_session_kind=dict(by_session_kind),
            resolved_count=sum(1 for record in self._records if record.resolved),
            recent=tuple(self._records[-limit:]) if limit else (),
        )

    def stored_records(self) -> list[FailureRecord]:
        if self._failure_log is None:
            return []
        return self._failure_log.records()

    def clear(self) -> None:
        """Drop in-memory records, retry counters and the persisted log."""
        self._records.clear()
        self._retry_counts.clear()
        if self._failure_log is not None:
            self._failure_log.clear()
        _LOG.info("failures_cleared")

    def install_excepthook(self, context_factory: Callable[[], FailureContext]) -> ExceptHook:
        """Route uncaught exceptions through `handle`; returns the previous hook."""
        previous = sys.excepthook

        def hook(
            exc_type: type[BaseException],
            exc: BaseException,
            tb: TracebackType | None,
        ) -> None:
            if not issubclass(exc_type, KeyboardInterrupt):
                self.handle(exc, "global", context_factory())
            previous(exc_type, exc, tb)

        sys.excepthook = hook
        return previous


def _format_stack(error: BaseException) -> str | None:
    if error.__traceback__ is None:
        return None
    return "".join(traceback.format_exception(error))
