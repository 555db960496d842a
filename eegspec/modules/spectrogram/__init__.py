"""
Spectrogram module - Montage-group spectrograms of EEG recordings.

- params.py: Block sizing from recording metadata
- differential.py: Bipolar difference signals
- engine.py: Chain-averaged STFT
- serializer.py: Wire encoding
- change_points.py: CUSUM change-point detector
- pipelines/: File-level orchestration
"""

from .config import ChangePointConfig, SpectrogramConfig, DEFAULT_SPECTROGRAM_CONFIG
from .montage import Electrode, MontageGroup, MONTAGE_GROUPS, get_montage_group
from .params import (
    INVALID_HANDLE,
    RecordingMetadata,
    SpectrogramParams,
    derive_params,
    get_spectrogram_params,
    sampling_rate,
)
from .differential import DifferentialReader, iter_differentials
from .serializer import (
    serialize_spectrogram,
    deserialize_spectrogram,
    serialize_vector,
    deserialize_vector,
)
from .engine import compute_spectrogram, spectrogram_as_bytes
from .change_points import CusumChangePointDetector, cusum, summed_spectrum

__all__ = [
    "ChangePointConfig",
    "SpectrogramConfig",
    "DEFAULT_SPECTROGRAM_CONFIG",
    "Electrode",
    "MontageGroup",
    "MONTAGE_GROUPS",
    "get_montage_group",
    "INVALID_HANDLE",
    "RecordingMetadata",
    "SpectrogramParams",
    "derive_params",
    "get_spectrogram_params",
    "sampling_rate",
    "DifferentialReader",
    "iter_differentials",
    "serialize_spectrogram",
    "deserialize_spectrogram",
    "serialize_vector",
    "deserialize_vector",
    "compute_spectrogram",
    "spectrogram_as_bytes",
    "CusumChangePointDetector",
    "cusum",
    "summed_spectrum",
]
