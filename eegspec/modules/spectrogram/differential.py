"""
Differential reader - Bipolar difference signals for a montage chain.

Reads nsamples physical samples per channel into two reusable float32
buffers (`previous`, `current`) and yields
    samples[chain[i]] - samples[chain[i - 1]]    for i in 1..k-1

Short reads are zero-filled. I/O errors abort the whole chain.
"""

from typing import Iterator, Optional, Sequence

import numpy as np

from eegspec.common.logging import get_logger
from eegspec.core.errors import AllocationError, InvalidParametersError
from eegspec.core.interfaces import RecordingProtocol

logger = get_logger(__name__)


class DifferentialReader:
    """
    Owns the two sample buffers for one computation.

    Usage:
        with DifferentialReader(recording, nsamples) as reader:
            for diff in reader.differences(group.chain):
                ...
    """

    def __init__(self, recording: RecordingProtocol, nsamples: int):
        if nsamples < 1:
            raise InvalidParametersError("nsamples must be >= 1", data={"nsamples": nsamples})
        self.recording = recording
        self.nsamples = nsamples
        self.previous: Optional[np.ndarray] = None
        self.current: Optional[np.ndarray] = None
        try:
            self.previous = np.zeros(nsamples, dtype=np.float32)
            self.current = np.zeros(nsamples, dtype=np.float32)
        except MemoryError as e:
            self.release()
            raise AllocationError(
                "Cannot allocate sample buffers",
                data={"nsamples": nsamples},
                cause=e,
            )

    def __enter__(self) -> 'DifferentialReader':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()

    def release(self) -> None:
        """Drop both buffers."""
        self.previous = None
        self.current = None

    def read_channel(self, channel: int, out: np.ndarray) -> int:
        """
        Read nsamples of a channel into `out`, zero-filling a short read.

        Returns:
            Number of samples actually read

        Raises:
            RecordingReadError: propagated from the recording
        """
        n = self.recording.read_physical_samples(channel, self.nsamples, out)
        if n < self.nsamples:
            out[n:] = 0.0
            logger.debug("Short read zero-filled", data={
                "path": self.recording.path,
                "channel": channel,
                "read": n,
                "expected": self.nsamples,
            })
        return n

    def differences(self, chain: Sequence[int]) -> Iterator[np.ndarray]:
        """Yield the k - 1 difference signals of a chain, in chain order."""
        if len(chain) < 2:
            raise InvalidParametersError("Montage chain needs at least two channels", data={"chain": list(chain)})
        n_channels = self.recording.n_channels
        missing = [ch for ch in chain if ch >= n_channels]
        if missing:
            raise InvalidParametersError(
                "Montage chain references missing channels",
                data={"chain": list(chain), "n_channels": n_channels, "missing": missing},
            )

        self.read_channel(chain[0], self.previous)
        for channel in chain[1:]:
            self.read_channel(channel, self.current)
            yield self.current - self.previous
            self.previous, self.current = self.current, self.previous


def iter_differentials(
    recording: RecordingProtocol,
    chain: Sequence[int],
    nsamples: int,
) -> Iterator[np.ndarray]:
    """
    Yield the bipolar difference signals of a chain.

    Buffers are released however the iteration ends (exhausted, closed
    early or aborted by a read error).
    """
    with DifferentialReader(recording, nsamples) as reader:
        yield from reader.differences(chain)
