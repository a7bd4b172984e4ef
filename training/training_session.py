"""
Training Session
================
Supervised-training data collection: a DataSampler writing labelled records
and a TrainingSequencer deciding when to record and with which label.

The sequencer is not advanced from the sampling thread. The session owner
calls ``update()`` on its own cadence (``run()`` polls every 5 ms by default,
a GUI can call it from its refresh timer). Phase boundaries stay exact in the
sequencer's clock domain; the polling interval only bounds how late the
recording flag flips.

Usage:
    session = TrainingSession(logger_config, training_config, provider, "out.csv")
    session.run()

    python -m training.training_session            # simulated signals
    python -m training.training_session --protocol wrist --cycles 2
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional, Union

import numpy as np

from datalogger.clock import CLOCK, ClockFn
from datalogger.config import LoggerConfig
from datalogger.dummy_provider import DummyProvider
from datalogger.log_writer import LabeledRecordFormatter
from datalogger.persistence import save_object
from datalogger.sampler import DataSampler, Provider
from datalogger.session_io import export_hdf5, read_log

from . import setup_training
from .protocols import PROTOCOLS, make_training_config, print_protocol_summary
from .sequencer import TrainingConfig, TrainingPhase, TrainingSequencer, TrainingStatus


logger = logging.getLogger(__name__)

StatusCallback = Callable[[TrainingStatus], None]


@dataclass
class SessionSnapshot:
    """Configuration saved beside the log when a session starts."""
    logger_config: LoggerConfig
    training_config: TrainingConfig
    log_path: str
    started_at: str


# =============================================================================
# TRAINING SESSION
# =============================================================================

class TrainingSession:
    """
    One training data collection session.

    Owns the sampler and the sequencer; neither knows about the other.
    """

    def __init__(self,
                 logger_config: LoggerConfig,
                 training_config: TrainingConfig,
                 provider: Provider,
                 log_path: Union[str, Path],
                 clock: ClockFn = CLOCK,
                 on_phase_change: Optional[StatusCallback] = None,
                 save_snapshot: bool = True,
                 overwrite: bool = False):
        """
        Args:
            logger_config: Sampling configuration
            training_config: Protocol parameters
            provider: Zero-argument callable returning channel_count floats
            log_path: Destination of the labelled log
            clock: Monotonic clock in seconds, shared by sampler and sequencer
            on_phase_change: Called with the new status whenever the phase,
                class or cycle changes
            save_snapshot: Write a JSON snapshot of the configuration beside the log
            overwrite: Replace an existing file at log_path instead of refusing
                to start
        """
        self.logger_config = logger_config
        self.training_config = training_config
        self.log_path = Path(log_path)
        self.on_phase_change = on_phase_change
        self.save_snapshot = save_snapshot
        self.overwrite = overwrite

        self.sampler = DataSampler(
            logger_config,
            provider,
            formatter=LabeledRecordFormatter(logger_config.precision),
            clock=clock,
        )
        self.sequencer = TrainingSequencer(training_config, clock=clock)
        self.snapshot_path: Optional[Path] = None
        self._last_key = None

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def status(self) -> TrainingStatus:
        return self.sequencer.status

    @property
    def is_active(self) -> bool:
        return self.sequencer.training_active

    @property
    def data(self) -> np.ndarray:
        return self.sampler.data

    @property
    def data_history(self) -> np.ndarray:
        return self.sampler.data_history

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start_data_collection(self) -> TrainingStatus:
        """
        Open the log, reset the protocol and start sampling.

        Raises:
            RuntimeError: If the session is already active
            FileExistsError: If log_path exists and overwrite is False
        """
        if self.is_active:
            raise RuntimeError("training session already active")
        if self.log_path.exists() and not self.overwrite:
            raise FileExistsError(
                f"log {self.log_path} already exists; use a new path or overwrite=True")

        self.sampler.open_log(self.log_path)
        if self.save_snapshot:
            self.snapshot_path = save_object(
                self.log_path.with_name(self.log_path.stem + "_session"),
                SessionSnapshot(
                    logger_config=self.logger_config,
                    training_config=self.training_config,
                    log_path=str(self.log_path),
                    started_at=datetime.now().isoformat(),
                ),
            )

        status = self.sequencer.start()
        self._last_key = None
        self._apply(status)
        try:
            self.sampler.start()
        except Exception:
            self.sequencer.cancel()
            self.sampler.close_log()
            raise

        logger.info("Training started: %d classes x %d cycles -> %s",
                    self.training_config.train_output_num,
                    self.training_config.collection_cycles, self.log_path)
        self._notify(status)
        return status

    def update(self) -> TrainingStatus:
        """
        Advance the protocol and push recording flag + label to the sampler.

        Raises:
            Any fatal sampler error (log write failure, channel count
            mismatch). The session is aborted before the error propagates.
        """
        if self.sampler.error is not None:
            self.abort()
            self.sampler.raise_if_failed()

        status = self.sequencer.update()
        if status.training_complete and self.sampler.log_path is not None:
            status = self.end_data_collection()
        elif status.training_active:
            self._apply(status)
        self._notify(status)
        return status

    def end_data_collection(self) -> TrainingStatus:
        """
        Stop sampling, finalize the log and mark training complete.

        Terminal until the next start_data_collection(). Idempotent.
        """
        self.sampler.set_recording(False)
        self.sampler.close()
        status = self.sequencer.finish()
        logger.info("Training complete: %d contraction events, %d records",
                    status.contraction_events, self.sampler.record_count)
        self._notify(status)
        return status

    def abort(self) -> TrainingStatus:
        """Stop sampling and close the log without completing the protocol."""
        try:
            self.sampler.close()
        finally:
            status = self.sequencer.cancel()
        logger.warning("Training aborted at cycle %d, output %d",
                       status.current_cycle, status.current_output)
        return status

    def run(self,
            poll_interval_s: float = 0.005,
            on_update: Optional[StatusCallback] = None) -> TrainingStatus:
        """
        Run the whole protocol, polling update() every ``poll_interval_s``.

        Starts the session if needed. Interrupting (Ctrl+C) aborts the session.
        """
        if not self.is_active:
            self.start_data_collection()
        try:
            while True:
                status = self.update()
                if on_update is not None:
                    on_update(status)
                if status.training_complete:
                    return status
                time.sleep(poll_interval_s)
        finally:
            if self.is_active:
                self.abort()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.is_active:
            self.abort()
        else:
            self.sampler.close()
        return False

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _apply(self, status: TrainingStatus) -> None:
        self.sampler.set_recording(
            status.recording,
            status.current_output if status.recording else None,
        )

    def _notify(self, status: TrainingStatus) -> None:
        key = (status.phase, status.current_output, status.current_cycle)
        if key == self._last_key:
            return
        self._last_key = key
        if self.on_phase_change is not None:
            self.on_phase_change(status)


# =============================================================================
# COMMAND LINE
# =============================================================================

def _parse_args(argv=None):
    sampling = setup_training.SAMPLING_CONFIG
    training = setup_training.TRAINING_CONFIG
    parser = argparse.ArgumentParser(
        description='Run a supervised-training data collection session with simulated signals')
    parser.add_argument('--protocol', default=training['protocol'], choices=sorted(PROTOCOLS),
                        help='Class label set')
    parser.add_argument('--relax-ms', type=float, default=training['relax_time_ms'],
                        help='Relax phase length (ms)')
    parser.add_argument('--contract-ms', type=float, default=training['contraction_time_ms'],
                        help='Contraction phase length (ms)')
    parser.add_argument('--cycles', type=int, default=training['collection_cycles'],
                        help='Passes through all classes')
    parser.add_argument('--frequency', type=float, default=sampling['frequency_hz'],
                        help='Sampling frequency (Hz)')
    parser.add_argument('--channels', type=int, default=sampling['channel_count'],
                        help='Number of channels')
    parser.add_argument('--output', type=Path, default=None,
                        help='Log file path (default: timestamped file in the session directory)')
    parser.add_argument('--no-hdf5', action='store_true', help='Skip HDF5 export')
    parser.add_argument('--overwrite', action='store_true',
                        help='Replace an existing log file at --output')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    logger_config = LoggerConfig(
        frequency_hz=args.frequency,
        channel_count=args.channels,
        history_depth=setup_training.SAMPLING_CONFIG['history_depth'],
        precision=setup_training.SAMPLING_CONFIG['precision'],
        history=True,
    )
    training_config = make_training_config(
        args.protocol, args.relax_ms, args.contract_ms, args.cycles)
    log_path = args.output or setup_training.get_log_path()

    print_protocol_summary(training_config, args.protocol)

    provider = DummyProvider(
        channel_count=args.channels,
        sample_rate=args.frequency,
        **setup_training.SIMULATION_CONFIG,
    )
    total = training_config.total_contractions

    def on_phase_change(status: TrainingStatus):
        provider.contracting = status.phase == TrainingPhase.CONTRACTING
        if status.phase == TrainingPhase.RELAXING:
            print(f"  Relax...  next: {status.label} "
                  f"(cycle {status.current_cycle + 1}/{training_config.collection_cycles})")
        elif status.phase == TrainingPhase.CONTRACTING:
            print(f"  ▶ Contract: {status.label} "
                  f"[{status.contraction_events + 1}/{total}]")

    session = TrainingSession(logger_config, training_config, provider, log_path,
                              on_phase_change=on_phase_change,
                              overwrite=args.overwrite)
    try:
        status = session.run(setup_training.TRAINING_CONFIG['update_interval_s'])
    except FileExistsError as e:
        print(f"⚠ {e} (pass --overwrite to replace it)")
        return 1
    except KeyboardInterrupt:
        print("\n⚠ Interrupted - log closed, session incomplete")
        return 1

    print(f"\n✓ Training complete: {status.contraction_events} contraction events")
    print(f"✓ Log: {log_path} ({session.sampler.record_count} records)")
    if session.sampler.provider_errors:
        print(f"⚠ {session.sampler.provider_errors} ticks skipped (provider errors)")

    if setup_training.SAVE_HDF5 and not args.no_hdf5:
        parsed = read_log(log_path, labeled=True)
        h5_path = export_hdf5(
            parsed,
            Path(log_path).with_suffix('.h5'),
            metadata={
                'participant_id': setup_training.PARTICIPANT_ID,
                'session_id': setup_training.SESSION_ID,
                'protocol': args.protocol,
                'frequency_hz': logger_config.frequency_hz,
                'output_labels': list(training_config.output_labels),
            },
            compression=setup_training.HDF5_COMPRESSION,
        )
        print(f"✓ HDF5: {h5_path}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
