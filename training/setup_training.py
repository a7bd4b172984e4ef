"""
Training Data Collection - Configuration
========================================
Central configuration for supervised-training data collection.

Edit this file to configure:
- Participant and session information
- Sampling (frequency, channels, history, precision)
- Training protocol (classes, relax/contraction times, cycles)
- Storage options

Usage:
    1. Edit configuration parameters below
    2. Run: python -m training.training_session
"""

import logging
from datetime import datetime
from pathlib import Path

from datalogger.config import LoggerConfig
from datalogger.exceptions import LoggerConfigError

from .protocols import PROTOCOLS, make_training_config
from .sequencer import TrainingConfig


logger = logging.getLogger(__name__)

# =============================================================================
# PARTICIPANT AND SESSION INFORMATION
# =============================================================================

PARTICIPANT_ID = "P001"
SESSION_ID = "S001"
SESSION_INFO = {
    'experimenter': 'Researcher Name',
    'notes': '',
}

# =============================================================================
# SAMPLING CONFIGURATION
# =============================================================================

SAMPLING_CONFIG = {
    'frequency_hz': 1000,   # Sampling frequency (Hz)
    'channel_count': 8,     # Values returned by the provider per tick
    'history_depth': 500,   # Samples kept per channel for live display
    'precision': 4,         # Decimal places in the log
}

# =============================================================================
# TRAINING PROTOCOL CONFIGURATION
# =============================================================================

TRAINING_CONFIG = {
    'protocol': 'hand_wrist',       # Key in training.protocols.PROTOCOLS
    'relax_time_ms': 3000,          # Relax phase before each contraction
    'contraction_time_ms': 3000,    # Recorded contraction phase
    'collection_cycles': 3,         # Passes through all classes
    'update_interval_s': 0.005,     # Sequencer polling interval
}

# =============================================================================
# SIMULATION
# =============================================================================

SIMULATION_CONFIG = {
    'amplitude': 50.0,          # microvolts
    'noise_level': 5.0,         # microvolts
    'contraction_gain': 4.0,    # amplitude multiplier while contracting
}

# =============================================================================
# STORAGE CONFIGURATION
# =============================================================================

DATA_ROOT = Path("./database")
SAVE_HDF5 = True            # Export the finished log to HDF5
HDF5_COMPRESSION = 'gzip'   # 'gzip', 'lzf', None


# =============================================================================
# VALIDATION
# =============================================================================

def validate_config():
    """
    Validate configuration parameters.

    Raises:
        LoggerConfigError: If any value is invalid
    """
    if TRAINING_CONFIG['protocol'] not in PROTOCOLS:
        raise LoggerConfigError(
            f"Unknown protocol '{TRAINING_CONFIG['protocol']}'. "
            f"Available: {list(PROTOCOLS.keys())}")
    if TRAINING_CONFIG['update_interval_s'] <= 0:
        raise LoggerConfigError("update_interval_s must be positive")
    if HDF5_COMPRESSION not in ('gzip', 'lzf', None):
        raise LoggerConfigError(f"Unsupported compression '{HDF5_COMPRESSION}'")

    # Dataclass validation covers the numeric ranges
    get_logger_config()
    get_training_config()
    return True


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def get_logger_config() -> LoggerConfig:
    """Sampling configuration for a training session (history on, recording gated)."""
    return LoggerConfig(
        frequency_hz=SAMPLING_CONFIG['frequency_hz'],
        channel_count=SAMPLING_CONFIG['channel_count'],
        history_depth=SAMPLING_CONFIG['history_depth'],
        precision=SAMPLING_CONFIG['precision'],
        record=False,
        history=SAMPLING_CONFIG['history_depth'] > 0,
    )


def get_training_config() -> TrainingConfig:
    return make_training_config(
        TRAINING_CONFIG['protocol'],
        relax_time_ms=TRAINING_CONFIG['relax_time_ms'],
        contraction_time_ms=TRAINING_CONFIG['contraction_time_ms'],
        collection_cycles=TRAINING_CONFIG['collection_cycles'],
    )


def get_session_dir(create: bool = True) -> Path:
    """Directory for this participant/session: DATA_ROOT/<participant>/<session>."""
    session_dir = DATA_ROOT / PARTICIPANT_ID / SESSION_ID
    if create:
        session_dir.mkdir(parents=True, exist_ok=True)
    return session_dir


def get_log_path(create: bool = True) -> Path:
    """Timestamped log file inside the session directory."""
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return get_session_dir(create) / f"training_{stamp}.csv"


def print_config_summary():
    """Print a summary of the current configuration."""
    training = get_training_config()
    total_s = training.phase_ms * training.total_contractions / 1000.0
    print("\n" + "="*70)
    print("TRAINING CONFIGURATION SUMMARY")
    print("="*70)
    print(f"\nParticipant: {PARTICIPANT_ID}")
    print(f"Session: {SESSION_ID}")
    print(f"\nSampling:")
    print(f"  Frequency: {SAMPLING_CONFIG['frequency_hz']} Hz")
    print(f"  Channels: {SAMPLING_CONFIG['channel_count']}")
    print(f"  History depth: {SAMPLING_CONFIG['history_depth']} samples")
    print(f"\nProtocol: {TRAINING_CONFIG['protocol']}")
    print(f"  Classes: {', '.join(training.output_labels)}")
    print(f"  Relax / contraction: {training.relax_time_ms:.0f} / {training.contraction_time_ms:.0f} ms")
    print(f"  Cycles: {training.collection_cycles}")
    print(f"  Estimated duration: {total_s:.1f} seconds ({total_s/60:.1f} minutes)")
    print(f"\nStorage:")
    print(f"  Database: {DATA_ROOT}")
    print(f"  Export HDF5: {SAVE_HDF5} ({HDF5_COMPRESSION})")
    print("="*70)


# Run validation when module is imported
if __name__ != '__main__':
    try:
        validate_config()
    except LoggerConfigError as e:
        logger.warning("Configuration validation failed: %s", e)
