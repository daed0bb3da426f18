"""Runtime diagnostics hub for session and failure events."""

from __future__ import annotations

from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any


@dataclass(frozen=True, slots=True)
class DiagnosticEvent:
    """Single structured diagnostics event."""

    ts_utc: str
    category: str
    name: str
    level: str = "info"
    metadata: dict[str, Any] = field(default_factory=dict)


Subscriber = Callable[[DiagnosticEvent], None]


def utc_now_iso() -> str:
    """Return an RFC3339-like UTC timestamp with milliseconds."""
    return datetime.now(tz=UTC).isoformat(timespec="milliseconds")


class DiagnosticHub:
    """Bounded in-memory diagnostics stream with live subscribers."""

    def __init__(self, *, capacity: int = 2_000, enabled: bool = True) -> None:
        self._enabled = bool(enabled)
        if capacity <= 0:
            raise ValueError("capacity must be > 0")
        self._buffer: deque[DiagnosticEvent] = deque(maxlen=int(capacity))
        self._subscribers: dict[int, Subscriber] = {}
        self._next_subscriber_id = 1

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def capacity(self) -> int:
        return self._buffer.maxlen or 0

    def emit(
        self,
        *,
        category: str,
        name: str,
        level: str = "info",
        metadata: dict[str, Any] | None = None,
    ) -> None:
        if not self._enabled:
            return
        event = DiagnosticEvent(
            ts_utc=utc_now_iso(),
            category=str(category).strip().lower(),
            name=name,
            level=level,
            metadata=dict(metadata or {}),
        )
        self._buffer.append(event)
        for callback in tuple(self._subscribers.values()):
            callback(event)

    def subscribe(self, callback: Subscriber) -> int:
        token = self._next_subscriber_id
        self._next_subscriber_id += 1
        self._subscribers[token] = callback
        return token

    def unsubscribe(self, token: int) -> None:
        self._subscribers.pop(token, None)

    def snapshot(
        self,
        *,
        limit: int | None = None,
        category: str | None = None,
        name: str | None = None,
    ) -> list[DiagnosticEvent]:
        events = list(self._buffer)
        if limit is not None:
            events = events[-max(0, int(limit)) :] if limit > 0 else []
        if category is not None:
            events = [event for event in events if event.category == category]
        if name is not None:
            events = [event for event in events if event.name == name]
        return events
