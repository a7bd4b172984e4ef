"""
Training Sequencer
==================
State machine for supervised-training data collection.

Every output class gets one relax phase followed by one contraction phase;
all classes are visited in order, and the whole pass repeats for
``collection_cycles`` cycles:

    IDLE -> RELAXING -> CONTRACTING -> RELAXING -> ... -> COMPLETE

Only contraction phases are recorded. The sequencer does no I/O; a
TrainingSession applies its recording flag and label to the sampler.

The phase clock restarts by exactly one phase length at each transition, so
how often ``update()`` is polled only affects how promptly a boundary is
noticed, not where later boundaries fall.
"""

from __future__ import annotations

import math
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from datalogger.clock import CLOCK, ClockFn
from datalogger.exceptions import LoggerConfigError


# =============================================================================
# CONFIGURATION
# =============================================================================

@dataclass(frozen=True)
class TrainingConfig:
    """
    Training protocol parameters.

    Attributes:
        relax_time_ms: Relax phase length before each contraction (ms, >= 0)
        contraction_time_ms: Contraction phase length (ms, > 0)
        train_output_num: Number of output classes (> 0)
        collection_cycles: Number of passes through all classes (> 0)
        output_labels: Optional class names, one per output
    """
    relax_time_ms: float = 3000.0
    contraction_time_ms: float = 3000.0
    train_output_num: int = 2
    collection_cycles: int = 3
    output_labels: Optional[Tuple[str, ...]] = None

    def __post_init__(self):
        if not (math.isfinite(self.relax_time_ms) and self.relax_time_ms >= 0):
            raise LoggerConfigError(
                f"relax_time_ms must be a finite number >= 0, got {self.relax_time_ms}")
        if not (math.isfinite(self.contraction_time_ms) and self.contraction_time_ms > 0):
            raise LoggerConfigError(
                f"contraction_time_ms must be a positive finite number, got {self.contraction_time_ms}")
        if int(self.train_output_num) != self.train_output_num or self.train_output_num <= 0:
            raise LoggerConfigError(
                f"train_output_num must be a positive integer, got {self.train_output_num}")
        if int(self.collection_cycles) != self.collection_cycles or self.collection_cycles <= 0:
            raise LoggerConfigError(
                f"collection_cycles must be a positive integer, got {self.collection_cycles}")
        if self.output_labels is not None:
            if isinstance(self.output_labels, list):
                object.__setattr__(self, "output_labels", tuple(self.output_labels))
            if len(self.output_labels) != self.train_output_num:
                raise LoggerConfigError(
                    f"{len(self.output_labels)} output labels for "
                    f"{self.train_output_num} outputs")

    @property
    def phase_ms(self) -> float:
        """Length of one relax + contraction phase (ms)."""
        return self.relax_time_ms + self.contraction_time_ms

    @property
    def total_contractions(self) -> int:
        return self.train_output_num * self.collection_cycles

    def label_name(self, output: int) -> str:
        if self.output_labels is not None:
            return self.output_labels[output]
        return f"class_{output}"


# =============================================================================
# STATE
# =============================================================================

class TrainingPhase(Enum):
    """Sequencer states."""
    IDLE = "idle"
    RELAXING = "relaxing"
    CONTRACTING = "contracting"
    COMPLETE = "complete"


@dataclass(frozen=True)
class TrainingStatus:
    """Immutable snapshot of the sequencer state."""
    phase: TrainingPhase
    current_output: int
    current_cycle: int
    label: str
    recording: bool
    training_active: bool
    training_complete: bool
    phase_elapsed_ms: float
    time_to_next_ms: float
    contraction_events: int


# =============================================================================
# SEQUENCER
# =============================================================================

class TrainingSequencer:
    """
    Computes the active class and recording flag from phase-elapsed time.

    Typical usage:
        seq = TrainingSequencer(TrainingConfig(1000, 2000, 2, 2))
        seq.start()
        while not seq.status.training_complete:
            status = seq.update()
    """

    def __init__(self, config: TrainingConfig, clock: ClockFn = CLOCK):
        """
        Args:
            config: Protocol parameters
            clock: Monotonic clock in seconds (injectable for tests)
        """
        self.config = config
        self._clock = clock
        self._lock = threading.Lock()

        self.phase = TrainingPhase.IDLE
        self.current_output = 0
        self.current_cycle = 0
        self.training_active = False
        self.training_complete = False
        self.recording = False
        self.time_to_next_ms = float(config.relax_time_ms)
        self.contraction_events = 0
        self._phase_elapsed_ms = 0.0
        self._phase_start_ms = 0.0

    def _now_ms(self) -> float:
        return self._clock() * 1000.0

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def start(self) -> TrainingStatus:
        """Reset to the first class of the first cycle and restart the phase clock."""
        with self._lock:
            self.current_output = 0
            self.current_cycle = 0
            self.training_active = True
            self.training_complete = False
            self.recording = self.config.relax_time_ms == 0
            self.phase = (TrainingPhase.CONTRACTING if self.recording
                          else TrainingPhase.RELAXING)
            self.time_to_next_ms = float(self.config.relax_time_ms)
            self.contraction_events = 0
            self._phase_elapsed_ms = 0.0
            self._phase_start_ms = self._now_ms()
            return self._status()

    def update(self) -> TrainingStatus:
        """Advance using the time elapsed on the phase clock."""
        with self._lock:
            if not self.training_active:
                return self._status()
            return self._advance(self._now_ms() - self._phase_start_ms)

    def advance(self, elapsed_ms: float) -> TrainingStatus:
        """
        Advance given the time elapsed since the current phase started.

        Recording is on exactly when ``elapsed_ms >= relax_time_ms``. Once
        ``elapsed_ms`` reaches a full relax + contraction phase the sequencer
        moves to the next class, then to the next cycle, and after the last
        class of the last cycle it completes. An elapsed time spanning several
        phases applies each transition in turn. This differs from restarting the
        phase clock at the current time on every call: a late call catches up
        on every missed boundary, and later boundaries stay where they were.
        """
        with self._lock:
            if not self.training_active:
                return self._status()
            return self._advance(float(elapsed_ms))

    def finish(self) -> TrainingStatus:
        """Terminal transition; stays complete until the next start()."""
        with self._lock:
            self._finish()
            return self._status()

    def cancel(self) -> TrainingStatus:
        """Abandon the protocol without completing it (back to IDLE)."""
        with self._lock:
            if self.training_active:
                self.recording = False
                self.training_active = False
                self.phase = TrainingPhase.IDLE
            return self._status()

    def _advance(self, elapsed_ms: float) -> TrainingStatus:
        cfg = self.config
        while elapsed_ms >= cfg.phase_ms:
            self.contraction_events += 1
            if self.current_output < cfg.train_output_num - 1:
                self.current_output += 1
            elif self.current_cycle < cfg.collection_cycles - 1:
                self.current_cycle += 1
                self.current_output = 0
            else:
                self._finish()
                return self._status()
            elapsed_ms -= cfg.phase_ms
            self._phase_start_ms += cfg.phase_ms

        self._phase_elapsed_ms = elapsed_ms
        self.recording = elapsed_ms >= cfg.relax_time_ms
        self.time_to_next_ms = cfg.relax_time_ms - elapsed_ms
        self.phase = TrainingPhase.CONTRACTING if self.recording else TrainingPhase.RELAXING
        return self._status()

    def _finish(self) -> None:
        self.recording = False
        self.training_active = False
        self.training_complete = True
        self.phase = TrainingPhase.COMPLETE
        self.time_to_next_ms = 0.0

    # -------------------------------------------------------------------------
    # Snapshots
    # -------------------------------------------------------------------------

    @property
    def status(self) -> TrainingStatus:
        with self._lock:
            return self._status()

    def _status(self) -> TrainingStatus:
        return TrainingStatus(
            phase=self.phase,
            current_output=self.current_output,
            current_cycle=self.current_cycle,
            label=self.config.label_name(self.current_output),
            recording=self.recording,
            training_active=self.training_active,
            training_complete=self.training_complete,
            phase_elapsed_ms=self._phase_elapsed_ms,
            time_to_next_ms=self.time_to_next_ms,
            contraction_events=self.contraction_events,
        )
