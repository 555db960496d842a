"""
Spectrogram module configuration.

Fixed design constants for block sizing and the change-point detector
defaults. Detector tuning can be overridden through Settings (CP_DRIFT,
CP_THRESHOLD).
"""

from dataclasses import dataclass

from eegspec.core.config import get_settings


@dataclass(frozen=True)
class SpectrogramConfig:
    """Block sizing relative to the sampling rate."""
    window_seconds: int = 4     # window_length = fs * window_seconds
    hop_seconds: int = 1        # hop = fs * hop_seconds
    pad: int = 0                # extra samples before rounding fft_length up


@dataclass(frozen=True)
class ChangePointConfig:
    """Two-sided CUSUM tuning (in units of the z-scored summed signal)."""
    drift: float = 0.5
    threshold: float = 5.0

    @classmethod
    def from_settings(cls) -> 'ChangePointConfig':
        settings = get_settings()
        return cls(drift=settings.cp_drift, threshold=settings.cp_threshold)


DEFAULT_SPECTROGRAM_CONFIG = SpectrogramConfig()
