"""Host view timing primitives."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from time import monotonic

TimeSource = Callable[[], float]


@dataclass(frozen=True, slots=True)
class TimeContext:
    """Per-frame timing context handed to the tick subscriber."""

    frame_index: int
    delta_seconds: float
    elapsed_seconds: float
    now_seconds: float


class FrameClock:
    """Wall-clock frame clock with bounded frame deltas.

    Deltas are clamped so a throttled or suspended view does not feed a huge
    step into module updates; anything measuring session time reads
    `now_seconds` instead of summing deltas.
    """

    def __init__(
        self,
        *,
        time_source: TimeSource | None = None,
        max_delta_seconds: float = 0.25,
    ) -> None:
        if max_delta_seconds <= 0.0:
            raise ValueError("max_delta_seconds must be > 0")
        self._time_source = time_source or monotonic
        self._max_delta_seconds = max_delta_seconds
        self._last_seconds: float | None = None
        self._elapsed_seconds = 0.0
        self._frame_index = 0

    @property
    def time_source(self) -> TimeSource:
        return self._time_source

    def now(self) -> float:
        return self._time_source()

    def next(self) -> TimeContext:
        """Advance the clock and return the next frame context."""
        now = self._time_source()
        if self._last_seconds is None:
            delta = 0.0
        else:
            raw_delta = now - self._last_seconds
            delta = min(max(0.0, raw_delta), self._max_delta_seconds)
        self._last_seconds = now
        self._elapsed_seconds += delta
        context = TimeContext(
            frame_index=self._frame_index,
            delta_seconds=delta,
            elapsed_seconds=self._elapsed_seconds,
            now_seconds=now,
        )
        self._frame_index += 1
        return context


class ManualTimeSource:
    """Settable time source for headless runs and simulations."""

    def __init__(self, start_seconds: float = 0.0) -> None:
        self._now = float(start_seconds)

    def __call__(self) -> float:
        return self._now

    def advance(self, delta_seconds: float) -> float:
        if delta_seconds < 0.0:
            raise ValueError("delta_seconds must be >= 0")
        self._now += delta_seconds
        return self._now
