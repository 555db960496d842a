"""
InMemoryRecording - In-memory recording implementation for unit tests.

Signals live in numpy arrays; no file is touched.
"""

import itertools
from dataclasses import dataclass, field
from typing import Dict, Optional, Sequence, Set

import numpy as np

from eegspec.core.errors import (
    ErrorKind,
    RecordingNotFoundError,
    RecordingReadError,
    error_for_kind,
)
from eegspec.core.interfaces.recording_protocol import TIME_DIMENSION

_handle_ids = itertools.count(1)


class InMemoryRecording:
    """
    In-memory recording.

    Implements RecordingProtocol for unit testing. Reads can be made to fail
    per channel (`failing_channels`) or to return short (`short_reads`,
    channel -> max samples returned by a single read).
    """

    def __init__(
        self,
        path: str,
        signals: Sequence[np.ndarray],
        samples_per_record: int,
        datarecord_duration: int = TIME_DIMENSION,
        failing_channels: Optional[Set[int]] = None,
        short_reads: Optional[Dict[int, int]] = None,
        open_error: bool = False,
    ):
        self.path = path
        self.handle = next(_handle_ids)
        self._signals = [np.asarray(s, dtype=np.float64) for s in signals]
        self._samples_per_record = samples_per_record
        self._datarecord_duration = datarecord_duration
        self._cursors = [0] * len(self._signals)
        self._failing = set(failing_channels or ())
        self._short_reads = dict(short_reads or {})
        self._open_error = open_error
        self.closed = False
        self.read_calls = 0
        self.rewind_calls = 0

    @property
    def n_channels(self) -> int:
        return len(self._signals)

    @property
    def datarecord_duration(self) -> int:
        return self._datarecord_duration

    @property
    def open_error(self) -> bool:
        return self._open_error

    def samples_in_file(self, channel: int) -> int:
        return len(self._signals[channel])

    def samples_per_record(self, channel: int) -> int:
        return self._samples_per_record

    def cursor(self, channel: int) -> int:
        """Current read position of a channel."""
        return self._cursors[channel]

    def read_physical_samples(self, channel: int, count: int, out: np.ndarray) -> int:
        if self.closed:
            raise RecordingReadError("Read from closed recording", data={"path": self.path})
        if channel in self._failing:
            raise RecordingReadError(
                "Simulated read failure",
                data={"path": self.path, "channel": channel},
            )
        self.read_calls += 1
        signal = self._signals[channel]
        start = self._cursors[channel]
        n = max(0, min(count, len(signal) - start, self._short_reads.get(channel, count)))
        out[:n] = signal[start:start + n]
        self._cursors[channel] = start + n
        return n

    def rewind(self, channel: int) -> None:
        self.rewind_calls += 1
        self._cursors[channel] = 0

    def close(self) -> None:
        self.closed = True


@dataclass
class InMemoryRecordingStore:
    """
    Opener over a dict of recordings keyed by path.

    Each open() returns a fresh InMemoryRecording, like reopening a file.
    """
    signals: Dict[str, Sequence[np.ndarray]] = field(default_factory=dict)
    samples_per_record: int = 256
    datarecord_duration: int = TIME_DIMENSION
    failures: Dict[str, ErrorKind] = field(default_factory=dict)
    opened: list = field(default_factory=list)

    def add(self, path: str, signals: Sequence[np.ndarray]) -> None:
        self.signals[path] = signals

    def __call__(self, path: str) -> InMemoryRecording:
        if path in self.failures:
            kind = self.failures[path]
            raise error_for_kind(kind, f"Cannot open {path}", data={"path": path})
        if path not in self.signals:
            raise RecordingNotFoundError(
                "No such file or directory",
                data={"path": path},
            )
        recording = InMemoryRecording(
            path,
            self.signals[path],
            samples_per_record=self.samples_per_record,
            datarecord_duration=self.datarecord_duration,
        )
        self.opened.append(recording)
        return recording
