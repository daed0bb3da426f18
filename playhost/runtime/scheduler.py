"""Deferred callback scheduler driven by the host view's wall clock."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from heapq import heappop, heappush
from time import monotonic

TaskCallback = Callable[[], None]


@dataclass(slots=True)
class _Task:
    task_id: int
    due_seconds: float
    callback: TaskCallback
    cancelled: bool = False


class Scheduler:
    """One-shot deferred callbacks keyed by wall-clock due time.

    Due times are computed from the time source at scheduling time, so a
    callback armed between frames is not shifted by the frame cadence.
    """

    def __init__(self, *, time_source: Callable[[], float] | None = None) -> None:
        self._time_source = time_source or monotonic
        self._next_task_id = 1
        self._tasks: dict[int, _Task] = {}
        self._queue: list[tuple[float, int]] = []

    @property
    def now_seconds(self) -> float:
        return self._time_source()

    @property
    def queued_task_count(self) -> int:
        """Return count of active queued tasks."""
        return sum(1 for task in self._tasks.values() if not task.cancelled)

    def is_pending(self, task_id: int) -> bool:
        task = self._tasks.get(task_id)
        return task is not None and not task.cancelled

    def call_later(self, delay_seconds: float, callback: TaskCallback) -> int:
        """Schedule a one-shot callback after delay."""
        if delay_seconds < 0.0:
            raise ValueError("delay_seconds must be >= 0")
        task_id = self._next_task_id
        self._next_task_id += 1
        due_seconds = self._time_source() + delay_seconds
        self._tasks[task_id] = _Task(task_id=task_id, due_seconds=due_seconds, callback=callback)
        heappush(self._queue, (due_seconds, task_id))
        return task_id

    def cancel(self, task_id: int) -> bool:
        """Cancel a scheduled task; return whether a pending task was cancelled."""
        task = self._tasks.get(task_id)
        if task is None or task.cancelled:
            return False
        task.cancelled = True
        return True

    def run_due(self, now_seconds: float | None = None) -> int:
        """Run callbacks due at or before `now_seconds`."""
        now = self._time_source() if now_seconds is None else now_seconds
        executed = 0
        while self._queue and self._queue[0][0] <= now:
            _, task_id = heappop(self._queue)
            task = self._tasks.pop(task_id, None)
            if task is None or task.cancelled:
                continue
            task.callback()
            executed += 1
        return executed

    def clear(self) -> None:
        """Drop every queued task without running it."""
        self._tasks.clear()
        self._queue.clear()
