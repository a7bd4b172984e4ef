"""
Tick Clock
==========
Strictly periodic deadlines on a monotonic clock.

The wait is a busy poll, not ``time.sleep`` (OS sleep granularity is often
1-15 ms). It runs on the sampler's dedicated thread, never on a shared event
loop.

Deadlines advance additively (``deadline += period``) so a late tick does not
push back every later tick.
"""

from __future__ import annotations

import math
import threading
import time
from typing import Callable, Optional

from .exceptions import LoggerConfigError


ClockFn = Callable[[], float]

CLOCK = time.perf_counter


class TickClock:
    """
    Periodic deadline generator.

    Typical usage:
        clock = TickClock(1000.0)
        clock.reset()
        while clock.tick(stop_event):
            ...
    """

    def __init__(self, frequency_hz: float, clock: ClockFn = CLOCK):
        """
        Args:
            frequency_hz: Tick frequency in Hz (> 0)
            clock: Monotonic clock returning seconds (default: time.perf_counter)
        """
        if not (math.isfinite(frequency_hz) and frequency_hz > 0):
            raise LoggerConfigError(
                f"frequency_hz must be a positive finite number, got {frequency_hz}")
        self.frequency_hz = float(frequency_hz)
        self.period_ms = 1000.0 / self.frequency_hz
        self._clock = clock

        self._baseline_s = self._clock()
        self.current_ms = 0.0
        self.next_deadline_ms = self.period_ms
        self.tick_count = 0
        self.late_ticks = 0

    def reset(self) -> None:
        """Establish a new baseline; the first deadline is one period after it."""
        self._baseline_s = self._clock()
        self.current_ms = 0.0
        self.next_deadline_ms = self.period_ms
        self.tick_count = 0
        self.late_ticks = 0

    def elapsed_ms(self) -> float:
        """Milliseconds since the last reset()."""
        return (self._clock() - self._baseline_s) * 1000.0

    def tick(self, cancel: Optional[threading.Event] = None) -> bool:
        """
        Block until the next deadline, then advance it by one period.

        Args:
            cancel: Optional event checked inside the wait loop

        Returns:
            True when the deadline was reached, False when cancelled first
            (the deadline is not advanced in that case).
        """
        now = self.elapsed_ms()
        if now > self.next_deadline_ms + self.period_ms:
            self.late_ticks += 1

        while now <= self.next_deadline_ms:
            if cancel is not None and cancel.is_set():
                return False
            now = self.elapsed_ms()

        self.current_ms = now
        self.next_deadline_ms += self.period_ms
        self.tick_count += 1
        return True
