"""
Spectrogram engine - Chain-averaged STFT magnitudes for one montage group.

For each difference signal of the group's chain the block magnitude spectra
are accumulated into one (nblocks, nfreqs) float32 buffer, divided by the
number of differences and returned transposed as (nfreqs, nblocks).
"""

import time
from typing import Optional

import numpy as np

from eegspec.common.logging import get_logger
from eegspec.common.primitives import accumulate_stft, hamming_window
from eegspec.core.cache import HandleCache
from eegspec.core.errors import AllocationError, InvalidParametersError
from eegspec.core.interfaces import RecordingOpener, RecordingProtocol
from eegspec.core.monitoring import record_spectrogram
from eegspec.modules.spectrogram.differential import iter_differentials
from eegspec.modules.spectrogram.montage import MontageGroup
from eegspec.modules.spectrogram.params import SpectrogramParams
from eegspec.modules.spectrogram.serializer import serialize_spectrogram

logger = get_logger(__name__)


def compute_spectrogram(
    params: SpectrogramParams,
    recording: RecordingProtocol,
    group: MontageGroup,
) -> Optional[np.ndarray]:
    """
    Compute the averaged spectrogram of a montage group.

    Args:
        params: Valid sizing for the recording
        recording: Open recording (caller holds the lease)
        group: Montage chain to difference

    Returns:
        float32 (nfreqs, nblocks) matrix, or None for invalid params

    Raises:
        InvalidParametersError: nblocks < 1 or nsamples < 1
        AllocationError: accumulator or sample buffers cannot be allocated
        RecordingReadError: I/O failure on any channel of the chain
    """
    if not params.is_valid:
        return None
    if params.nblocks < 1 or params.nsamples < 1:
        raise InvalidParametersError(
            "Recording too short for one spectrogram block",
            data={"nsamples": params.nsamples, "nblocks": params.nblocks, "window_length": params.window_length},
        )

    start_time = time.time()
    try:
        accumulator = np.zeros((params.nblocks, params.nfreqs), dtype=np.float32)
    except MemoryError as e:
        raise AllocationError(
            "Cannot allocate spectrogram accumulator",
            data={"nblocks": params.nblocks, "nfreqs": params.nfreqs},
            cause=e,
        )
    window = hamming_window(params.fft_length)

    n_differences = 0
    for diff in iter_differentials(recording, group.chain, params.nsamples):
        accumulate_stft(diff, params, accumulator, window)
        n_differences += 1

    accumulator /= n_differences

    elapsed = time.time() - start_time
    record_spectrogram(group.name, elapsed)
    logger.info("Spectrogram computed", data={
        "filename": params.filename,
        "montage": group.name,
        "nblocks": params.nblocks,
        "nfreqs": params.nfreqs,
        "differences": n_differences,
        "time_sec": round(elapsed, 3),
    })
    return accumulator.T


def spectrogram_as_bytes(
    params: SpectrogramParams,
    group: MontageGroup,
    cache: HandleCache,
    opener: RecordingOpener,
) -> bytes:
    """
    Compute a group's spectrogram and return its wire payload.

    Invalid params produce b"" and touch nothing.
    """
    if not params.is_valid:
        return b""
    with cache.lease(params.filename, opener) as recording:
        matrix = compute_spectrogram(params, recording, group)
    return serialize_spectrogram(params, matrix)
