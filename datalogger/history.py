"""Fixed-length per-channel rolling history."""

from __future__ import annotations

from collections import deque
from typing import Deque, List, Sequence

import numpy as np


class HistoryBuffer:
    """
    One zero-filled sliding window per channel.

    Window length never changes after construction: every push appends one
    value per channel and drops the oldest. Not locked on its own; the sampler
    guards it with the same lock as the current sample.
    """

    def __init__(self, channel_count: int, depth: int):
        self.channel_count = int(channel_count)
        self.depth = int(depth)
        self._windows: List[Deque[float]] = []
        self.reset()

    def reset(self) -> None:
        self._windows = [
            deque([0.0] * self.depth, maxlen=self.depth)
            for _ in range(self.channel_count)
        ]

    def push(self, values: Sequence[float]) -> None:
        """Append one sample per channel, evicting the oldest entry."""
        if len(values) != self.channel_count:
            raise ValueError(f"expected {self.channel_count} values, got {len(values)}")
        for window, value in zip(self._windows, values):
            window.append(float(value))

    def snapshot(self) -> np.ndarray:
        """Copy of the history, shape (channel_count, depth), oldest first."""
        out = np.zeros((self.channel_count, self.depth), dtype=np.float64)
        for ch, window in enumerate(self._windows):
            out[ch, :] = list(window)
        return out

    def __len__(self) -> int:
        return self.depth
