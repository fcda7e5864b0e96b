from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from .clock import Clock


@dataclass(frozen=True, slots=True)
class TimerHandle:
    """Opaque token returned by the timer service; pass it back to cancel()."""

    timer_id: int


class TimerService(Protocol):
    def schedule_once(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle: ...
    def schedule_recurring(self, interval_ms: float, callback: Callable[[], None]) -> TimerHandle: ...
    def cancel(self, handle: TimerHandle) -> None: ...


@dataclass(slots=True)
class _Timer:
    handle: TimerHandle
    due_at_s: float
    interval_s: float | None
    callback: Callable[[], None]


class ClockTimers:
    """Timer service pumped from the host's frame loop.

    - Time is entirely via injected Clock; nothing fires until update() runs.
    - Callbacks fire in due order; ties keep scheduling order.
    - A recurring timer that fell several intervals behind fires once and is
      rescheduled from the current time.
    """

    def __init__(self, clock: Clock) -> None:
        self._clock = clock
        self._timers: dict[int, _Timer] = {}
        self._next_id = 1

    def schedule_once(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        return self._add(delay_ms=delay_ms, interval_ms=None, callback=callback)

    def schedule_recurring(self, interval_ms: float, callback: Callable[[], None]) -> TimerHandle:
        if interval_ms <= 0:
            raise ValueError("interval_ms must be > 0")
        return self._add(delay_ms=interval_ms, interval_ms=interval_ms, callback=callback)

    def cancel(self, handle: TimerHandle) -> None:
        self._timers.pop(handle.timer_id, None)

    def is_active(self, handle: TimerHandle) -> bool:
        return handle.timer_id in self._timers

    def pending_count(self) -> int:
        return len(self._timers)

    def update(self) -> int:
        """Fire every timer that is due. Returns the number of callbacks run."""

        now = self._clock.now()
        due = sorted(
            (t for t in self._timers.values() if t.due_at_s <= now),
            key=lambda t: (t.due_at_s, t.handle.timer_id),
        )
        fired = 0
        for timer in due:
            # An earlier callback in this pass may have cancelled this one.
            if timer.handle.timer_id not in self._timers:
                continue
            if timer.interval_s is None:
                del self._timers[timer.handle.timer_id]
            else:
                timer.due_at_s += timer.interval_s
                if timer.due_at_s <= now:
                    timer.due_at_s = now + timer.interval_s
            timer.callback()
            fired += 1
        return fired

    def _add(
        self,
        *,
        delay_ms: float,
        interval_ms: float | None,
        callback: Callable[[], None],
    ) -> TimerHandle:
        handle = TimerHandle(self._next_id)
        self._next_id += 1
        interval_s = None if interval_ms is None else float(interval_ms) / 1000.0
        self._timers[handle.timer_id] = _Timer(
            handle=handle,
            due_at_s=self._clock.now() + max(0.0, float(delay_ms)) / 1000.0,
            interval_s=interval_s,
            callback=callback,
        )
        return handle
