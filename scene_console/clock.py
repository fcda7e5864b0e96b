"""Time sources for the console's refresh timers and keypad glow fades."""

from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    """Monotonic time source for timers and fades.

    The console never reads wall time directly; hosts inject a clock and tests
    substitute a fake one they advance by hand.
    """

    def now(self) -> float:
        """Return monotonic seconds."""


class RealClock:
    """Host clock backed by time.monotonic()."""

    def now(self) -> float:
        return time.monotonic()
