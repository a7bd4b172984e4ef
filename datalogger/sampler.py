"""
Data Sampler
============
Background sampling loop driven by a busy-wait tick clock.

Once per tick the loop pulls one sample vector from a caller-supplied provider,
optionally appends it to the log and optionally pushes it into the per-channel
history. Everything a tick mutates is guarded by a single lock, and the read
accessors take the same lock and return copies, so a reader never sees a
half-updated vector or window.

Usage:
    config = LoggerConfig(frequency_hz=1000, channel_count=4,
                          history_depth=500, history=True)
    sampler = DataSampler(config, provider)
    sampler.open_log("session.csv")
    sampler.set_recording(True)
    sampler.start()
    latest = sampler.data
    window = sampler.data_history
    sampler.close()
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from pathlib import Path
from typing import Any, Callable, Deque, Optional, Sequence, Union

import numpy as np

from .clock import CLOCK, ClockFn, TickClock
from .config import LoggerConfig
from .exceptions import (
    CancellationError,
    ChannelCountError,
    LoggerConfigError,
    ProviderError,
)
from .history import HistoryBuffer
from .log_writer import CsvRecordFormatter, LogWriter


logger = logging.getLogger(__name__)

Provider = Callable[[], Sequence[float]]
RecordFormatter = Callable[[float, Sequence[float], Optional[Union[int, str]]], str]

# Warnings after the first few are only emitted every Nth occurrence
_WARN_FIRST = 10
_WARN_EVERY = 100


class DataSampler:
    """
    Owned sampling session: one background thread, one lock.

    The thread is the only writer of the current sample, the history and the
    log. Cancellation is cooperative: stop() sets an event that is checked at
    the top of every tick and inside the clock's wait loop, so a tick that has
    started always finishes its write.
    """

    def __init__(self,
                 config: LoggerConfig,
                 provider: Provider,
                 formatter: Optional[RecordFormatter] = None,
                 clock: ClockFn = CLOCK,
                 max_error_history: int = 100):
        """
        Args:
            config: Sampling configuration
            provider: Zero-argument callable returning channel_count floats
            formatter: Record formatter strategy (default: CsvRecordFormatter)
            clock: Monotonic clock in seconds
            max_error_history: Number of recent error messages kept in ``errors``
        """
        if not callable(provider):
            raise LoggerConfigError("provider must be a zero-argument callable")

        self.config = config
        self._provider = provider
        self._formatter = formatter or CsvRecordFormatter(config.precision)
        self._requires_label = getattr(self._formatter, "requires_label", False)
        self._clock = TickClock(config.frequency_hz, clock)
        self._time = clock

        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

        self._data = np.zeros(config.channel_count, dtype=np.float64)
        self._history = HistoryBuffer(config.channel_count, config.history_depth)
        self._history_enabled = config.history
        self._recording = False
        self._record_on_start = config.record
        self._label: Optional[Union[int, str]] = None
        self._writer: Optional[LogWriter] = None

        self.tick_count = 0
        self.record_count = 0
        self.provider_errors = 0
        self.slow_ticks = 0
        self.errors: Deque[str] = deque(maxlen=max_error_history)
        self.error: Optional[BaseException] = None

    # -------------------------------------------------------------------------
    # Read accessors
    # -------------------------------------------------------------------------

    @property
    def data(self) -> np.ndarray:
        """Copy of the most recent sample vector."""
        with self._lock:
            return self._data.copy()

    @property
    def data_history(self) -> np.ndarray:
        """Copy of the rolling history, shape (channel_count, history_depth)."""
        with self._lock:
            return self._history.snapshot()

    @property
    def recording(self) -> bool:
        with self._lock:
            return self._recording

    @property
    def label(self) -> Optional[Union[int, str]]:
        with self._lock:
            return self._label

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def log_path(self) -> Optional[Path]:
        return self._writer.path if self._writer is not None else None

    def elapsed_ms(self) -> float:
        """Milliseconds since the last start()."""
        return self._clock.elapsed_ms()

    # -------------------------------------------------------------------------
    # Log destination
    # -------------------------------------------------------------------------

    def open_log(self, path: Union[str, Path]) -> Path:
        """Open (truncate) the log file. An already open log is closed first."""
        writer = LogWriter(path).open()
        with self._lock:
            previous, self._writer = self._writer, writer
            if self._record_on_start:
                self._recording = True
        if previous is not None:
            previous.close()
        return writer.path

    def close_log(self) -> None:
        """Flush and release the log. Safe to call repeatedly."""
        with self._lock:
            writer, self._writer = self._writer, None
            self._recording = False
        if writer is not None:
            writer.close()

    def set_recording(self, enabled: bool, label: Optional[Union[int, str]] = None) -> None:
        """
        Toggle recording and set the label attached to subsequent records.

        Both change together under the sampler lock, so a record never carries
        a label from a different phase than its recording decision.
        """
        with self._lock:
            if enabled and self._writer is None:
                raise LoggerConfigError("cannot record without an open log")
            if enabled and label is None and self._requires_label:
                raise LoggerConfigError("this record formatter requires a label")
            self._recording = bool(enabled)
            self._label = label

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start(self) -> None:
        """
        Reset the timing baseline, current sample and history, and launch the
        sampling thread unless it is already running.

        Idempotent for the thread; a second call while running still resets
        timing and history.

        Raises:
            LoggerConfigError: If recording is on without an open log, or
                without a label when the formatter requires one
            CancellationError: If a stop() that timed out is still pending;
                call stop() again until the thread has exited
        """
        if self.is_running and self._stop_event.is_set():
            raise CancellationError("sampling thread is still stopping; retry stop() first")

        with self._lock:
            if self._recording and self._writer is None:
                raise LoggerConfigError("recording is enabled but no log is open")
            if self._recording and self._label is None and self._requires_label:
                raise LoggerConfigError("recording is enabled but no label is set")
            self._clock.reset()
            self._data = np.zeros(self.config.channel_count, dtype=np.float64)
            self._history.reset()

        if self.is_running:
            logger.debug("Sampler already running; timing baseline and history reset")
            return

        self.tick_count = 0
        self.record_count = 0
        self.provider_errors = 0
        self.slow_ticks = 0
        self.error = None
        self._stop_event = threading.Event()
        self._thread = threading.Thread(target=self._run, name="DataSampler", daemon=True)
        self._thread.start()
        logger.info("Sampler started: %.1f Hz, %d channels",
                    self.config.frequency_hz, self.config.channel_count)

    def stop(self, timeout: float = 2.0) -> None:
        """
        Ask the sampling thread to exit and wait for it.

        Raises:
            CancellationError: If the thread is still alive after ``timeout``
                seconds (e.g. a blocked provider). Calling stop() again retries.
        """
        thread = self._thread
        if thread is None:
            return
        self._stop_event.set()
        thread.join(timeout)
        if thread.is_alive():
            raise CancellationError(
                f"sampling thread did not stop within {timeout:.1f} s "
                f"(tick {self.tick_count}); log left open"
            )
        self._thread = None
        logger.info("Sampler stopped after %d ticks (%d records, %d provider errors)",
                    self.tick_count, self.record_count, self.provider_errors)

    def close(self, timeout: float = 2.0) -> None:
        """stop() followed by flush-and-release of the log. Idempotent."""
        self.stop(timeout)
        self.close_log()

    def raise_if_failed(self) -> None:
        """Re-raise a fatal loop error in the caller's context."""
        if self.error is not None:
            raise self.error

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    # -------------------------------------------------------------------------
    # Sampling loop
    # -------------------------------------------------------------------------

    def _run(self) -> None:
        stop_event = self._stop_event
        while not stop_event.is_set():
            if not self._clock.tick(stop_event):
                break
            with self._lock:
                try:
                    self._sample_once()
                except ChannelCountError as exc:
                    self._fail(exc)
                    break
                except ProviderError as exc:
                    self.provider_errors += 1
                    self.errors.append(str(exc))
                    if self._should_warn(self.provider_errors):
                        logger.warning("Tick %d skipped: %s (%d so far)",
                                       self._clock.tick_count, exc, self.provider_errors)
                except Exception as exc:
                    self._fail(exc)
                    break

    def _sample_once(self) -> None:
        t0 = self._time()
        try:
            raw = self._provider()
        except Exception as exc:
            raise ProviderError(f"provider raised {type(exc).__name__}: {exc}") from exc
        duration_ms = (self._time() - t0) * 1000.0

        if duration_ms > self._clock.period_ms:
            self.slow_ticks += 1
            if self._should_warn(self.slow_ticks):
                logger.warning("Provider took %.2f ms (period %.2f ms)",
                               duration_ms, self._clock.period_ms)

        values = self._as_vector(raw)
        self._data = values
        self.tick_count += 1

        if self._recording:
            record = self._formatter(self._clock.current_ms, values, self._label)
            self._writer.write(record)
            self.record_count += 1

        if self._history_enabled:
            self._history.push(values)

    def _as_vector(self, raw: Any) -> np.ndarray:
        if raw is None:
            raise ProviderError("provider returned None")
        try:
            values = np.array(raw, dtype=np.float64)
        except (TypeError, ValueError) as exc:
            raise ProviderError(f"provider returned non-numeric data: {exc}") from exc
        if values.ndim != 1 or values.shape[0] != self.config.channel_count:
            raise ChannelCountError(
                f"provider returned shape {values.shape}, "
                f"expected ({self.config.channel_count},)"
            )
        return values

    def _fail(self, exc: BaseException) -> None:
        self.error = exc
        self.errors.append(str(exc))
        logger.error("Sampling loop terminated at tick %d: %s", self._clock.tick_count, exc)

    @staticmethod
    def _should_warn(count: int) -> bool:
        return count <= _WARN_FIRST or count % _WARN_EVERY == 0
