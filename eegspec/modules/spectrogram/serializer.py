"""
Serializer - Spectrogram matrix to little-endian float32 bytes.

Wire layout (block-major): flat[freq + block * nfreqs] = matrix[freq, block],
nfreqs * nblocks values, 4 bytes each.
"""

import numpy as np

from eegspec.core.errors import InvalidParametersError
from eegspec.core.monitoring import spectrogram_serialization_seconds, track_duration
from eegspec.modules.spectrogram.params import SpectrogramParams

WIRE_DTYPE = np.dtype('<f4')


@track_duration(spectrogram_serialization_seconds)
def serialize_spectrogram(params: SpectrogramParams, matrix: np.ndarray) -> bytes:
    """
    Flatten an (nfreqs, nblocks) matrix for transfer.

    Invalid params produce b"" without touching the matrix.
    """
    if not params.is_valid:
        return b""
    expected = (params.nfreqs, params.nblocks)
    if matrix.shape != expected:
        raise InvalidParametersError(
            "Spectrogram shape does not match params",
            data={"shape": list(matrix.shape), "expected": list(expected)},
        )
    # Row-major (nblocks, nfreqs) is exactly the block-major wire order
    return np.ascontiguousarray(matrix.T, dtype=WIRE_DTYPE).tobytes()


def deserialize_spectrogram(payload: bytes, nfreqs: int, nblocks: int) -> np.ndarray:
    """Inverse of serialize_spectrogram: bytes to an (nfreqs, nblocks) float32 matrix."""
    expected = nfreqs * nblocks * WIRE_DTYPE.itemsize
    if len(payload) != expected:
        raise ValueError(f"payload has {len(payload)} bytes, expected {expected}")
    flat = np.frombuffer(payload, dtype=WIRE_DTYPE)
    return flat.reshape(nblocks, nfreqs).T.astype(np.float32)


def serialize_vector(values: np.ndarray) -> bytes:
    """Encode a 1-D vector as little-endian float32."""
    return np.ascontiguousarray(np.ravel(values), dtype=WIRE_DTYPE).tobytes()


def deserialize_vector(payload: bytes) -> np.ndarray:
    if len(payload) % WIRE_DTYPE.itemsize:
        raise ValueError(f"payload length {len(payload)} is not a multiple of 4")
    return np.frombuffer(payload, dtype=WIRE_DTYPE).astype(np.float32)
