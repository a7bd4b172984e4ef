"""Periodic data logger: busy-wait sampling engine, rolling history and delimited logs."""

__version__ = "0.1.0"

# Configuration and errors
from .config import LoggerConfig, DEFAULT_PRECISION
from .exceptions import (
    DataLoggerError,
    LoggerConfigError,
    ProviderError,
    ChannelCountError,
    CancellationError,
    ParseError,
)

# Sampling engine
from .clock import TickClock
from .history import HistoryBuffer
from .log_writer import (
    LogWriter,
    CsvRecordFormatter,
    LabeledRecordFormatter,
    format_record,
)
from .sampler import DataSampler

# Persistence and session files
from .persistence import save_object, load_object, load_raw
from .session_io import LoggedSession, read_log, export_hdf5, load_hdf5

# Simulated signals
from .dummy_provider import DummyProvider

__all__ = [
    'LoggerConfig',
    'DEFAULT_PRECISION',
    'DataLoggerError',
    'LoggerConfigError',
    'ProviderError',
    'ChannelCountError',
    'CancellationError',
    'ParseError',
    'TickClock',
    'HistoryBuffer',
    'LogWriter',
    'CsvRecordFormatter',
    'LabeledRecordFormatter',
    'format_record',
    'DataSampler',
    'save_object',
    'load_object',
    'load_raw',
    'LoggedSession',
    'read_log',
    'export_hdf5',
    'load_hdf5',
    'DummyProvider',
]
