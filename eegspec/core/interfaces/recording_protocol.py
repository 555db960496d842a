"""
Recording Protocol - Interface for waveform recording readers.

Implementations:
- EdfRecording (eegspec.core.connectors.edf_recording)
- InMemoryRecording (eegspec.core.connectors.inmemory_recording)
"""

from typing import Protocol, Callable, runtime_checkable

import numpy as np


# Data-record durations are expressed in units of 100 ns (EDFLIB_TIME_DIMENSION)
TIME_DIMENSION = 10_000_000


@runtime_checkable
class RecordingProtocol(Protocol):
    """
    Protocol for an open multichannel recording (DI interface).

    Every channel has its own read cursor. Reads advance the cursor,
    rewind() moves it back to the first sample.
    """

    path: str
    handle: int

    @property
    def n_channels(self) -> int:
        """Number of signals in the file."""
        ...

    @property
    def datarecord_duration(self) -> int:
        """Duration of one data record in TIME_DIMENSION units."""
        ...

    @property
    def open_error(self) -> bool:
        """True if the reader flagged the file as unusable."""
        ...

    def samples_in_file(self, channel: int) -> int:
        """Total samples stored for a channel."""
        ...

    def samples_per_record(self, channel: int) -> int:
        """Samples per data record for a channel."""
        ...

    def read_physical_samples(self, channel: int, count: int, out: np.ndarray) -> int:
        """
        Read up to `count` physical samples from the channel cursor into `out`.

        Returns:
            Number of samples actually read (may be < count at end of file)

        Raises:
            RecordingReadError: on I/O failure
        """
        ...

    def rewind(self, channel: int) -> None:
        """Move a channel's cursor back to the first sample."""
        ...

    def close(self) -> None:
        """Release the native handle."""
        ...


# Opens a recording by path; raises RecordingOpenError subclasses on failure
RecordingOpener = Callable[[str], RecordingProtocol]
