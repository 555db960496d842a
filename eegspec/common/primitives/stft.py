"""
STFT Primitives - Windowed magnitude spectra accumulated per block.

PURE NUMPY/SCIPY IMPLEMENTATION.

Blocks are extracted with stride tricks (no copy) and transformed in
frame-aligned chunks, so peak memory is bounded by chunk_blocks * fft_length
regardless of recording length.

Block layout for one difference signal:
    start(idx) = idx * hop
    full block:  start + fft_length <= nsamples
    tail block:  first block past the end, zero-padded; processing stops there
"""

import numpy as np
import scipy.fft
import scipy.signal


# Blocks transformed per rfft call
DEFAULT_CHUNK_BLOCKS = 512


def next_power_of_two(value: int) -> int:
    """
    Smallest power of two >= value.

    next_power_of_two(0) == 0, matching the classic bit-twiddling version.
    """
    if value < 0:
        raise ValueError(f"value must be >= 0, got {value}")
    if value == 0:
        return 0
    return 1 << (value - 1).bit_length()


def hamming_window(n: int) -> np.ndarray:
    """
    Symmetric Hamming window: w[i] = 0.54 - 0.46 * cos(2*pi*i / (n - 1)).

    Returns:
        float32 array of length n (w[0] == w[n-1] == 0.08)
    """
    return np.ascontiguousarray(scipy.signal.windows.hamming(n, sym=True), dtype=np.float32)


def _full_block_count(nsamples: int, fft_length: int, hop: int, nblocks: int) -> int:
    if nsamples < fft_length:
        return 0
    return min(nblocks, (nsamples - fft_length) // hop + 1)


def accumulate_stft(
    diff: np.ndarray,
    params,
    accumulator: np.ndarray,
    window: np.ndarray,
    chunk_blocks: int = DEFAULT_CHUNK_BLOCKS,
) -> int:
    """
    Add the block magnitude spectra of one difference signal to an accumulator.

    For every block idx, |rfft(window * diff[start:start + fft_length])| / fft_length
    is added to accumulator[idx, :nfreqs]. The first block that runs past
    nsamples is windowed over the available samples, zero-padded to
    fft_length and accumulated; blocks after it are left untouched.

    Args:
        diff: Difference signal (at least nsamples long)
        params: Sizing with nsamples, hop, fft_length, nblocks, nfreqs
        accumulator: float32 (nblocks, nfreqs), updated in place
        window: float32 window of length fft_length
        chunk_blocks: Blocks per vectorized rfft call

    Returns:
        Number of blocks accumulated
    """
    nsamples = params.nsamples
    fft_length = params.fft_length
    hop = params.hop
    nblocks = params.nblocks
    nfreqs = params.nfreqs

    signal = np.ascontiguousarray(diff[:nsamples], dtype=np.float32)
    n_full = _full_block_count(nsamples, fft_length, hop, nblocks)

    if n_full > 0:
        shape = (n_full, fft_length)
        strides = (hop * signal.strides[0], signal.strides[0])
        frames = np.lib.stride_tricks.as_strided(signal, shape=shape, strides=strides, writeable=False)

        for chunk_start in range(0, n_full, chunk_blocks):
            chunk_end = min(chunk_start + chunk_blocks, n_full)
            windowed = frames[chunk_start:chunk_end] * window
            spectrum = np.abs(scipy.fft.rfft(windowed, axis=1))
            accumulator[chunk_start:chunk_end] += spectrum[:, :nfreqs] / fft_length
            del windowed, spectrum

    if n_full >= nblocks:
        return n_full

    # Tail block: zero-padded, last one processed for this signal
    start = n_full * hop
    available = max(0, nsamples - start)
    padded = np.zeros(fft_length, dtype=np.float32)
    padded[:available] = signal[start:start + available] * window[:available]
    spectrum = np.abs(scipy.fft.rfft(padded))
    accumulator[n_full] += spectrum[:nfreqs] / fft_length
    return n_full + 1
