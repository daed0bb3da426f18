"""Timed visual-feedback effects sampled by the session tick loop."""

from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass

Amplitude = Callable[[float], float]


def hold(progress: float) -> float:
    """Full amplitude for the whole effect."""
    _ = progress
    return 1.0


def fade_out(progress: float) -> float:
    return max(0.0, 1.0 - progress)


def flash(pulses: int = 1) -> Amplitude:
    """Square-ish pulse train: `pulses` on/off cycles over the effect."""
    if pulses <= 0:
        raise ValueError("pulses must be > 0")

    def _amplitude(progress: float) -> float:
        return 1.0 if math.sin(progress * pulses * 2.0 * math.pi) >= 0.0 else 0.0

    return _amplitude


@dataclass(frozen=True, slots=True)
class TimedEffect:
    name: str
    started_at: float
    duration_seconds: float
    amplitude: Amplitude = hold
    text: str = ""

    def progress(self, now_seconds: float) -> float:
        if self.duration_seconds <= 0.0:
            return 1.0
        return min(1.0, max(0.0, (now_seconds - self.started_at) / self.duration_seconds))

    def expired(self, now_seconds: float) -> bool:
        return now_seconds - self.started_at >= self.duration_seconds


@dataclass(frozen=True, slots=True)
class EffectSample:
    amplitude: float
    text: str


class EffectTimeline:
    """Active effects keyed by name; adding an effect replaces one of the same name."""

    def __init__(self) -> None:
        self._effects: dict[str, TimedEffect] = {}

    def __len__(self) -> int:
        return len(self._effects)

    def add(self, effect: TimedEffect) -> None:
        if effect.duration_seconds < 0.0:
            raise ValueError("duration_seconds must be >= 0")
        self._effects[effect.name] = effect

    def sample(self, now_seconds: float) -> dict[str, EffectSample]:
        """Evaluate live effects at `now_seconds` and drop expired ones."""
        out: dict[str, EffectSample] = {}
        for name, effect in tuple(self._effects.items()):
            if effect.expired(now_seconds):
                del self._effects[name]
                continue
            out[name] = EffectSample(
                amplitude=float(effect.amplitude(effect.progress(now_seconds))),
                text=effect.text,
            )
        return out

    def clear(self) -> None:
        self._effects.clear()
