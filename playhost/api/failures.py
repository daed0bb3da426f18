"""Public failure taxonomy and notification contracts."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

FAILURE_NOTICE_EVENT = "session_failure"

FallbackProcedure = Callable[[], None]


class FailureKind(StrEnum):
    """Fixed failure taxonomy; RUNTIME is the catch-all."""

    RENDERER = "renderer"
    LOAD = "load"
    INPUT = "input"
    AUDIO = "audio"
    MEMORY = "memory"
    NETWORK = "network"
    INIT = "init"
    RUNTIME = "runtime"


@dataclass(frozen=True, slots=True)
class DeviceFlags:
    is_mobile: bool = False
    platform: str = ""
    pixel_ratio: float = 1.0


@dataclass(frozen=True, slots=True)
class FailureContext:
    """Snapshot of where a failure happened."""

    state: str
    viewport: tuple[int, int] = (0, 0)
    device: DeviceFlags = field(default_factory=DeviceFlags)
    extra: dict[str, Any] = field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        return {
            "state": self.state,
            "viewport": {"width": int(self.viewport[0]), "height": int(self.viewport[1])},
            "device": {
                "is_mobile": bool(self.device.is_mobile),
                "platform": self.device.platform,
                "pixel_ratio": float(self.device.pixel_ratio),
            },
            "extra": {str(key): _plain(value) for key, value in self.extra.items()},
        }

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> FailureContext:
        viewport = payload.get("viewport") or {}
        device = payload.get("device") or {}
        return cls(
            state=str(payload.get("state", "")),
            viewport=(int(viewport.get("width", 0)), int(viewport.get("height", 0))),
            device=DeviceFlags(
                is_mobile=bool(device.get("is_mobile", False)),
                platform=str(device.get("platform", "")),
                pixel_ratio=float(device.get("pixel_ratio", 1.0)),
            ),
            extra=dict(payload.get("extra") or {}),
        )


@dataclass(slots=True)
class FailureRecord:
    """One classified failure; `resolved` flips when auto-resolution succeeds."""

    id: str
    session_kind: str
    failure_kind: FailureKind
    message: str
    context: FailureContext
    timestamp: float
    stack: str | None = None
    resolved: bool = False

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "session_kind": self.session_kind,
            "failure_kind": self.failure_kind.value,
            "message": self.message,
            "stack": self.stack,
            "context": self.context.to_payload(),
            "timestamp": float(self.timestamp),
            "resolved": bool(self.resolved),
        }

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> FailureRecord:
        raw_kind = str(payload.get("failure_kind", FailureKind.RUNTIME.value))
        try:
            kind = FailureKind(raw_kind)
        except ValueError:
            kind = FailureKind.RUNTIME
        stack = payload.get("stack")
        return cls(
            id=str(payload["id"]),
            session_kind=str(payload.get("session_kind", "")),
            failure_kind=kind,
            message=str(payload.get("message", "")),
            stack=None if stack is None else str(stack),
            context=FailureContext.from_payload(payload.get("context") or {}),
            timestamp=float(payload.get("timestamp", 0.0)),
            resolved=bool(payload.get("resolved", False)),
        )


@dataclass(frozen=True, slots=True)
class ResolutionPolicy:
    """Per-kind auto-resolution policy."""

    auto_retry: bool
    max_retries: int
    remediation_hint: str | None = None
    fallback_procedure: FallbackProcedure | None = None


@dataclass(frozen=True, slots=True)
class FailureNotice:
    """Observer event raised for failures the user must see."""

    failure_id: str
    message: str
    can_retry: bool
    remediation_hint: str | None
    record: FailureRecord
    name: str = FAILURE_NOTICE_EVENT


@dataclass(frozen=True, slots=True)
class FailureStatistics:
    total: int
    by_kind: dict[str, int]
    by_session_kind: dict[str, int]
    resolved_count: int
    recent: tuple[FailureRecord, ...]


def _plain(value: Any) -> Any:
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, Mapping):
        return {str(key): _plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    return str(value)
