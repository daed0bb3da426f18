"""Public runtime API contracts."""

from playhost.api.events import NotificationBusPort, Subscription
from playhost.api.failures import (
    FAILURE_NOTICE_EVENT,
    DeviceFlags,
    FailureContext,
    FailureKind,
    FailureNotice,
    FailureRecord,
    FailureStatistics,
    FallbackProcedure,
    ResolutionPolicy,
)
from playhost.api.logging import LoggingConfig
from playhost.api.registry import (
    AggregateStatus,
    DisplayMetadata,
    ImplementationStatus,
    ModuleStatus,
    RegistryDescriptor,
    SessionConstructor,
)
from playhost.api.scene import SceneGraphPort, SceneNode
from playhost.api.session import (
    CompletionCallback,
    Difficulty,
    HostViewPort,
    HudSnapshot,
    Presentation,
    SessionHost,
    SessionPort,
    SessionResult,
    SessionSettings,
    SessionState,
)

__all__ = [
    "FAILURE_NOTICE_EVENT",
    "AggregateStatus",
    "CompletionCallback",
    "DeviceFlags",
    "Difficulty",
    "DisplayMetadata",
    "FailureContext",
    "FailureKind",
    "FailureNotice",
    "FailureRecord",
    "FailureStatistics",
    "FallbackProcedure",
    "HostViewPort",
    "HudSnapshot",
    "ImplementationStatus",
    "LoggingConfig",
    "ModuleStatus",
    "NotificationBusPort",
    "Presentation",
    "RegistryDescriptor",
    "ResolutionPolicy",
    "SceneGraphPort",
    "SceneNode",
    "SessionConstructor",
    "SessionHost",
    "SessionPort",
    "SessionResult",
    "SessionSettings",
    "SessionState",
    "Subscription",
]
