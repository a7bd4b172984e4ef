"""
Log Writer
==========
Delimited text records for sampled data.

One record per line:

    <elapsed_ms>,<value1>,...,<valueN>[,<label>]

Elapsed time and values use the same fixed precision (4 decimals by default).
No header row and no trailing delimiter.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import IO, Optional, Sequence, Union

from .config import DEFAULT_PRECISION


logger = logging.getLogger(__name__)

DELIMITER = ","


def format_record(elapsed_ms: float,
                  values: Sequence[float],
                  label: Optional[Union[int, str]] = None,
                  precision: int = DEFAULT_PRECISION) -> str:
    """
    Render one log record.

    Args:
        elapsed_ms: Time since the session baseline (ms)
        values: Sample vector
        label: Optional ground-truth label, written as the last field
        precision: Decimal places for time and values

    Returns:
        Newline-terminated record
    """
    fields = [f"{elapsed_ms:.{precision}f}"]
    fields.extend(f"{float(v):.{precision}f}" for v in values)
    if label is not None:
        fields.append(str(label))
    return DELIMITER.join(fields) + "\n"


class CsvRecordFormatter:
    """Record formatter for plain sampling sessions (labels are ignored)."""

    requires_label = False

    def __init__(self, precision: int = DEFAULT_PRECISION):
        self.precision = precision

    def __call__(self, elapsed_ms: float, values: Sequence[float],
                 label: Optional[Union[int, str]] = None) -> str:
        return format_record(elapsed_ms, values, precision=self.precision)


class LabeledRecordFormatter:
    """Record formatter for training sessions: the label is mandatory."""

    requires_label = True

    def __init__(self, precision: int = DEFAULT_PRECISION):
        self.precision = precision

    def __call__(self, elapsed_ms: float, values: Sequence[float],
                 label: Optional[Union[int, str]] = None) -> str:
        if label is None:
            raise ValueError("labeled record requires a label")
        return format_record(elapsed_ms, values, label, precision=self.precision)


class LogWriter:
    """
    Append-only text log.

    Write errors are not retried; they propagate to the caller.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._file: Optional[IO[str]] = None
        self.records_written = 0

    @property
    def closed(self) -> bool:
        return self._file is None

    def open(self) -> "LogWriter":
        if self._file is None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._file = open(self.path, "w", encoding="utf-8", newline="")
            self.records_written = 0
            logger.info("Opened log %s", self.path)
        return self

    def write(self, record: str) -> None:
        if self._file is None:
            raise ValueError(f"log {self.path} is not open")
        self._file.write(record)
        self.records_written += 1

    def flush(self) -> None:
        if self._file is not None:
            self._file.flush()

    def close(self) -> None:
        """Flush and release the file. Closing twice is a no-op."""
        if self._file is None:
            return
        try:
            self._file.flush()
        finally:
            self._file.close()
            self._file = None
        logger.info("Closed log %s (%d records)", self.path, self.records_written)

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
