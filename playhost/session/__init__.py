"""Session lifecycle and built-in session kinds."""

from playhost.session.effects import EffectTimeline, TimedEffect, fade_out, flash, hold
from playhost.session.kinds import (
    EmergencySession,
    InertSession,
    RelabeledSession,
    TapSession,
)
from playhost.session.lifecycle import SessionLifecycle

__all__ = [
    "EffectTimeline",
    "EmergencySession",
    "InertSession",
    "RelabeledSession",
    "SessionLifecycle",
    "TapSession",
    "TimedEffect",
    "fade_out",
    "flash",
    "hold",
]
