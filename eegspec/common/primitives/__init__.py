"""Signal-processing primitives (pure numpy/scipy)."""

from .stft import (
    DEFAULT_CHUNK_BLOCKS,
    accumulate_stft,
    hamming_window,
    next_power_of_two,
)

__all__ = [
    "DEFAULT_CHUNK_BLOCKS",
    "accumulate_stft",
    "hamming_window",
    "next_power_of_two",
]
