"""Runtime host modules."""

from playhost.runtime.config import RuntimeConfig, load_env_file, load_runtime_config
from playhost.runtime.errors import (
    RECOVERABLE_RUNTIME_ERRORS,
    ModuleLoadError,
    PlayhostError,
    SessionConstructionError,
    TickSubscriptionError,
    log_recoverable,
)
from playhost.runtime.events import NotificationBus
from playhost.runtime.logging import configure_logging, setup_logging, shutdown_logging
from playhost.runtime.scheduler import Scheduler
from playhost.runtime.time import FrameClock, ManualTimeSource, TimeContext
from playhost.runtime.view import FrameReport, RuntimeHostView, SceneGraph

__all__ = [
    "RECOVERABLE_RUNTIME_ERRORS",
    "FrameClock",
    "FrameReport",
    "ManualTimeSource",
    "ModuleLoadError",
    "NotificationBus",
    "PlayhostError",
    "RuntimeConfig",
    "RuntimeHostView",
    "SceneGraph",
    "Scheduler",
    "SessionConstructionError",
    "TickSubscriptionError",
    "TimeContext",
    "configure_logging",
    "load_env_file",
    "load_runtime_config",
    "log_recoverable",
    "setup_logging",
    "shutdown_logging",
]
