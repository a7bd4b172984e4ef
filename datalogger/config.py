"""
Logger Configuration
====================
Immutable sampling configuration shared by the sampler, the clock and the
record formatters.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from .exceptions import LoggerConfigError


DEFAULT_PRECISION = 4


@dataclass(frozen=True)
class LoggerConfig:
    """
    Sampling configuration. Immutable once a session starts.

    Attributes:
        frequency_hz: Sampling frequency (Hz, > 0)
        channel_count: Number of values the provider returns per tick (> 0)
        history_depth: Samples kept per channel in the rolling history (>= 0)
        precision: Decimal places used when writing records
        record: Write records to the log from the first tick
        history: Maintain the per-channel rolling history
    """
    frequency_hz: float = 1000.0
    channel_count: int = 8
    history_depth: int = 0
    precision: int = DEFAULT_PRECISION
    record: bool = False
    history: bool = False

    def __post_init__(self):
        if not (math.isfinite(self.frequency_hz) and self.frequency_hz > 0):
            raise LoggerConfigError(f"frequency_hz must be a positive finite number, got {self.frequency_hz}")
        if int(self.channel_count) != self.channel_count or self.channel_count <= 0:
            raise LoggerConfigError(f"channel_count must be a positive integer, got {self.channel_count}")
        if int(self.history_depth) != self.history_depth or self.history_depth < 0:
            raise LoggerConfigError(f"history_depth must be >= 0, got {self.history_depth}")
        if int(self.precision) != self.precision or self.precision < 0:
            raise LoggerConfigError(f"precision must be >= 0, got {self.precision}")

    @property
    def period_ms(self) -> float:
        """Tick period in milliseconds."""
        return 1000.0 / self.frequency_hz
