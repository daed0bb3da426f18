"""Failure keyword groups, default resolution policies and user messages."""

from __future__ import annotations

import logging

from playhost.api.failures import FailureKind, ResolutionPolicy

_LOG = logging.getLogger("playhost.failures")

# First match wins; the order is part of the classification contract.
KEYWORD_GROUPS: tuple[tuple[FailureKind, tuple[str, ...]], ...] = (
    (FailureKind.RENDERER, ("pixi", "webgl", "canvas")),
    (FailureKind.LOAD, ("load", "import", "fetch")),
    (FailureKind.INPUT, ("touch", "pointer", "click")),
    (FailureKind.AUDIO, ("audio", "sound")),
    (FailureKind.MEMORY, ("memory", "out of memory")),
    (FailureKind.NETWORK, ("network", "failed to fetch")),
    (FailureKind.INIT, ("initialization", "init")),
)

FAILURE_MESSAGES: dict[FailureKind, str] = {
    FailureKind.INIT: "Something went wrong while preparing the game.",
    FailureKind.LOAD: "The game could not be loaded.",
    FailureKind.RUNTIME: "Something went wrong while playing.",
    FailureKind.INPUT: "Touch input ran into a problem.",
    FailureKind.AUDIO: "There is a problem playing sound.",
    FailureKind.RENDERER: "There is a problem drawing the screen.",
    FailureKind.MEMORY: "The device ran low on memory.",
    FailureKind.NETWORK: "There is a problem with the network connection.",
}
GENERIC_FAILURE_MESSAGE = "Something went wrong."


def _simple_initialization() -> None:
    _LOG.info("fallback_procedure kind=init action=simple_initialization")


def _generic_session() -> None:
    _LOG.info("fallback_procedure kind=load action=generic_session")


def _silent_mode() -> None:
    _LOG.info("fallback_procedure kind=audio action=silent_mode")


def _lightweight_mode() -> None:
    _LOG.info("fallback_procedure kind=memory action=lightweight_mode")


def default_policies() -> dict[FailureKind, ResolutionPolicy]:
    """Build a fresh policy table; callers may replace procedures per kind."""
    return {
        FailureKind.INIT: ResolutionPolicy(
            auto_retry=True,
            max_retries=2,
            remediation_hint="Reload the page and try again.",
            fallback_procedure=_simple_initialization,
        ),
        FailureKind.LOAD: ResolutionPolicy(
            auto_retry=True,
            max_retries=3,
            remediation_hint="Try a different game.",
            fallback_procedure=_generic_session,
        ),
        FailureKind.INPUT: ResolutionPolicy(
            auto_retry=False,
            max_retries=0,
            remediation_hint="Tap the screen once, then try again.",
        ),
        FailureKind.AUDIO: ResolutionPolicy(
            auto_retry=False,
            max_retries=0,
            remediation_hint="You can turn sound off and keep playing.",
            fallback_procedure=_silent_mode,
        ),
        FailureKind.MEMORY: ResolutionPolicy(
            auto_retry=False,
            max_retries=0,
            remediation_hint="Close other tabs or apps and try again.",
            fallback_procedure=_lightweight_mode,
        ),
        FailureKind.RENDERER: ResolutionPolicy(
            auto_retry=False,
            max_retries=0,
            remediation_hint="Restart the app to reset the display.",
        ),
        FailureKind.NETWORK: ResolutionPolicy(
            auto_retry=False,
            max_retries=0,
            remediation_hint="Check your connection and try again.",
        ),
        FailureKind.RUNTIME: ResolutionPolicy(auto_retry=False, max_retries=0),
    }


def user_message(kind: FailureKind, policy: ResolutionPolicy | None) -> str:
    message = FAILURE_MESSAGES.get(kind, GENERIC_FAILURE_MESSAGE)
    if policy is not None and policy.remediation_hint:
        message += f"\n\nHint: {policy.remediation_hint}"
    return message
