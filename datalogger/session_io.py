"""
Session IO
==========
Read a finished delimited log back into arrays and export it to HDF5.

HDF5 layout:
    /elapsed_ms   (N,)    float64
    /samples      (N, C)  float64
    /labels       (N,)    int32   (training sessions only)
    attrs         metadata (scalars; anything else stored as a JSON string)
"""

from __future__ import annotations

import json
import logging
import warnings
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union

import h5py
import numpy as np

from .exceptions import ParseError
from .log_writer import DELIMITER


logger = logging.getLogger(__name__)


@dataclass
class LoggedSession:
    """Arrays parsed from one log file."""
    elapsed_ms: np.ndarray          # shape (n_records,)
    samples: np.ndarray             # shape (n_records, n_channels)
    labels: Optional[np.ndarray] = None  # shape (n_records,), training logs only

    @property
    def n_records(self) -> int:
        return int(self.elapsed_ms.shape[0])

    @property
    def n_channels(self) -> int:
        return int(self.samples.shape[1])


def read_log(path: Union[str, Path], labeled: bool = False) -> LoggedSession:
    """
    Parse a log written by the sampler.

    Args:
        path: Log file
        labeled: True if the last field of each record is a class label

    Returns:
        LoggedSession

    Raises:
        FileNotFoundError: If the file does not exist
        ParseError: If a record is malformed or records differ in length
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(path)

    min_cols = 3 if labeled else 2
    try:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", UserWarning)  # empty file
            table = np.loadtxt(path, delimiter=DELIMITER, dtype=np.float64, ndmin=2)
    except ValueError as exc:
        raise ParseError(f"malformed log {path}: {exc}") from exc

    if table.size == 0:
        table = np.zeros((0, min_cols))
    elif table.shape[1] < min_cols:
        raise ParseError(f"log {path} has {table.shape[1]} columns, expected at least {min_cols}")

    elapsed = table[:, 0].copy()
    if labeled:
        samples = table[:, 1:-1].copy()
        labels = table[:, -1]
        if not np.all(labels == np.round(labels)):
            raise ParseError(f"log {path} has non-integer labels")
        return LoggedSession(elapsed, samples, labels.astype(np.int32))
    return LoggedSession(elapsed, table[:, 1:].copy())


def export_hdf5(session: LoggedSession,
                path: Union[str, Path],
                metadata: Optional[Dict[str, Any]] = None,
                compression: Optional[str] = "gzip",
                compression_level: int = 4) -> Path:
    """
    Write a parsed session to HDF5.

    Args:
        session: Parsed log
        path: Destination file (.h5)
        metadata: Extra attributes for the root group
        compression: 'gzip', 'lzf' or None
        compression_level: gzip level (0-9)

    Returns:
        Path to the written file
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    kwargs: Dict[str, Any] = {}
    if compression:
        kwargs["compression"] = compression
        if compression == "gzip":
            kwargs["compression_opts"] = compression_level

    with h5py.File(path, "w") as f:
        f.create_dataset("elapsed_ms", data=session.elapsed_ms, dtype="float64", **kwargs)
        f.create_dataset("samples", data=session.samples, dtype="float64", **kwargs)
        if session.labels is not None:
            f.create_dataset("labels", data=session.labels, dtype="int32", **kwargs)

        f.attrs["n_records"] = session.n_records
        f.attrs["n_channels"] = session.n_channels
        f.attrs["timestamp_saved"] = datetime.now().isoformat()
        for key, value in (metadata or {}).items():
            if isinstance(value, (str, int, float, bool)):
                f.attrs[key] = value
            else:
                f.attrs[f"{key}_json"] = json.dumps(value, default=str)

    logger.info("Exported %d records to %s", session.n_records, path)
    return path


def load_hdf5(path: Union[str, Path]) -> LoggedSession:
    """Load a session written by export_hdf5()."""
    with h5py.File(path, "r") as f:
        labels = f["labels"][:] if "labels" in f else None
        return LoggedSession(
            elapsed_ms=f["elapsed_ms"][:],
            samples=f["samples"][:],
            labels=labels,
        )
