"""
EdfRecording - EDF(+)/BDF(+) reader built on pyedflib.

pyedflib reads by absolute position, so per-channel cursors are kept here
to give the sequential read/rewind semantics of RecordingProtocol.
"""

import itertools
import os

import numpy as np
import pyedflib

from eegspec.common.logging import get_logger
from eegspec.core.errors import (
    ErrorKind,
    RecordingNotFoundError,
    RecordingReadError,
    error_for_kind,
)
from eegspec.core.interfaces.recording_protocol import TIME_DIMENSION

logger = get_logger(__name__)

_handle_ids = itertools.count(1)

# Substrings of the reader library's open-error messages
_OPEN_ERROR_PATTERNS = (
    ("no such file", ErrorKind.FILE_NOT_FOUND),
    ("format error", ErrorKind.MALFORMED_RECORDING),
    ("compliant", ErrorKind.MALFORMED_RECORDING),
    ("wrong file type", ErrorKind.MALFORMED_RECORDING),
    ("many files", ErrorKind.TOO_MANY_OPEN_FILES),
    ("read error", ErrorKind.READ_ERROR),
    ("already been opened", ErrorKind.ALREADY_OPEN),
    ("already opened", ErrorKind.ALREADY_OPEN),
    ("malloc", ErrorKind.ALLOCATION_FAILURE),
    ("allocation", ErrorKind.ALLOCATION_FAILURE),
)


def classify_open_error(message: str) -> ErrorKind:
    """Map a reader error message to an ErrorKind."""
    lowered = message.lower()
    for pattern, kind in _OPEN_ERROR_PATTERNS:
        if pattern in lowered:
            return kind
    return ErrorKind.UNKNOWN


class EdfRecording:
    """Open EDF recording implementing RecordingProtocol."""

    def __init__(self, path: str, reader: pyedflib.EdfReader):
        self.path = path
        self.handle = next(_handle_ids)
        self._reader = reader
        self._n_samples = [int(n) for n in reader.getNSamples()]
        self._cursors = [0] * reader.signals_in_file
        self._datarecord_duration = int(round(reader.datarecord_duration * TIME_DIMENSION))

    @classmethod
    def open(cls, path: str) -> 'EdfRecording':
        """
        Open a recording read-only.

        Raises:
            RecordingOpenError subclass matching the failure
        """
        if not os.path.exists(path):
            raise RecordingNotFoundError("No such file or directory", data={"path": path})
        try:
            reader = pyedflib.EdfReader(path)
        except OSError as e:
            kind = classify_open_error(str(e))
            raise error_for_kind(kind, f"Cannot open recording: {e}", data={"path": path}, cause=e)

        recording = cls(path, reader)
        logger.debug("Recording opened", data={
            "path": path,
            "handle": recording.handle,
            "channels": recording.n_channels,
        })
        return recording

    @property
    def n_channels(self) -> int:
        return len(self._cursors)

    @property
    def datarecord_duration(self) -> int:
        return self._datarecord_duration

    @property
    def open_error(self) -> bool:
        return False

    def samples_in_file(self, channel: int) -> int:
        return self._n_samples[channel]

    def samples_per_record(self, channel: int) -> int:
        return int(self._reader.samples_in_datarecord(channel))

    def read_physical_samples(self, channel: int, count: int, out: np.ndarray) -> int:
        start = self._cursors[channel]
        n = max(0, min(count, self._n_samples[channel] - start))
        if n == 0:
            return 0
        try:
            samples = self._reader.readSignal(channel, start=start, n=n)
        except (OSError, ValueError) as e:
            raise RecordingReadError(
                "Physical sample read failed",
                data={"path": self.path, "channel": channel, "start": start, "count": n},
                cause=e,
            )
        n = len(samples)
        out[:n] = samples
        self._cursors[channel] = start + n
        return n

    def rewind(self, channel: int) -> None:
        self._cursors[channel] = 0

    def close(self) -> None:
        self._reader.close()
        logger.debug("Recording closed", data={"path": self.path, "handle": self.handle})
