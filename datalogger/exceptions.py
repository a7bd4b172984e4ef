"""Exception hierarchy for the data logger.

All exceptions derive from DataLoggerError so callers can catch broadly at the
session boundary. File-handling failures are not wrapped: ``OSError`` from
opening or writing the log propagates unchanged.
"""


class DataLoggerError(Exception):
    """Base exception for all data logger errors."""


class LoggerConfigError(DataLoggerError, ValueError):
    """Invalid sampling or training configuration.

    Raised at construction / start time, never discovered mid-run.
    """


class ProviderError(DataLoggerError):
    """The data-provider callback failed for a single tick.

    Recoverable: the sampler logs it and skips the tick.
    """


class ChannelCountError(ProviderError):
    """The provider returned a vector whose length is not channel_count.

    Treated as a fatal misconfiguration; the sampling loop terminates.
    """


class CancellationError(DataLoggerError):
    """The sampling thread did not stop within the requested timeout.

    The log is left open so that a later ``stop()``/``close()`` can retry.
    """


class ParseError(DataLoggerError):
    """A persisted file could not be parsed."""
