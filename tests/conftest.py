"""Pytest fixtures for datalogger and training tests."""

import sys
import threading
import time
from pathlib import Path

import numpy as np
import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))


class FakeClock:
    """Manually driven clock in seconds; optionally advances on every read."""

    def __init__(self, start_s: float = 100.0, step_ms: float = 0.0):
        self.now_s = start_s
        self.step_s = step_ms / 1000.0
        self._lock = threading.Lock()

    def __call__(self) -> float:
        with self._lock:
            self.now_s += self.step_s
            return self.now_s

    def advance_ms(self, ms: float) -> None:
        with self._lock:
            self.now_s += ms / 1000.0

    def set_ms(self, origin_s: float, ms: float) -> None:
        with self._lock:
            self.now_s = origin_s + ms / 1000.0


class CountingProvider:
    """Provider whose every channel holds the call number (1, 2, 3, ...)."""

    def __init__(self, channel_count: int = 2):
        self.channel_count = channel_count
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return np.full(self.channel_count, float(self.calls))


def wait_until(predicate, timeout: float = 2.0, interval: float = 0.005) -> bool:
    """Poll predicate until it is true or the timeout expires."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def stepping_clock():
    """Clock that moves 0.1 ms per read, so busy-waits terminate."""
    return FakeClock(step_ms=0.1)


@pytest.fixture
def counting_provider():
    return CountingProvider(channel_count=2)
