"""Runtime exception types and recoverable-error policy helpers."""

from __future__ import annotations

import logging
from typing import TypeAlias

# Explicitly bounded set the runtime tolerates at its failure boundaries.
RecoverableRuntimeErrors: TypeAlias = tuple[type[BaseException], ...]
RECOVERABLE_RUNTIME_ERRORS: RecoverableRuntimeErrors = (
    RuntimeError,
    OSError,
    ValueError,
    TypeError,
    AttributeError,
    ImportError,
    KeyError,
    LookupError,
)


class PlayhostError(Exception):
    """Base class for runtime errors raised by this package."""


class ModuleLoadError(PlayhostError):
    """A session module could not be located or loaded."""

    def __init__(self, game_type: str, reason: str) -> None:
        super().__init__(f"failed to load session module '{game_type}': {reason}")
        self.game_type = game_type
        self.reason = reason


class SessionConstructionError(PlayhostError):
    """A constructor returned no usable session instance."""

    def __init__(self, game_type: str, reason: str) -> None:
        super().__init__(f"session construction failed for '{game_type}': {reason}")
        self.game_type = game_type


class TickSubscriptionError(PlayhostError):
    """A second session tried to subscribe to an occupied tick source."""


def log_recoverable(
    logger: logging.Logger,
    message: str,
    *,
    level: int = logging.DEBUG,
) -> None:
    """Emit structured observability for tolerated recoverable exceptions."""
    logger.log(level, message, exc_info=True)
