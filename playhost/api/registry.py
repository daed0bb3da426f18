"""Public module registry contracts."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

from playhost.api.session import SessionHost, SessionPort, SessionSettings

SessionConstructor = Callable[[SessionHost, SessionSettings], SessionPort]


class ImplementationStatus(StrEnum):
    IMPLEMENTED = "implemented"
    FALLBACK = "fallback"
    MISSING = "missing"


@dataclass(frozen=True, slots=True)
class DisplayMetadata:
    """Player-facing catalog metadata for one session kind."""

    name: str
    description: str
    instruction: str
    category: str = "action"


@dataclass(frozen=True, slots=True)
class RegistryDescriptor:
    """Registration entry resolving one game-type id to a constructor."""

    id: str
    display: DisplayMetadata
    default_settings: SessionSettings
    constructor: SessionConstructor
    implementation_status: ImplementationStatus = ImplementationStatus.IMPLEMENTED


@dataclass(frozen=True, slots=True)
class ModuleStatus:
    """Result of probing one registered game type."""

    game_type: str
    implemented: bool
    has_descriptor: bool
    status: ImplementationStatus
    error: str | None = None


@dataclass(frozen=True, slots=True)
class AggregateStatus:
    """Implementation coverage across all registered descriptors."""

    total: int
    implemented: int
    fallback: int
    missing: int
    implementation_rate: str
