"""
Change-point detection over the summed spectrum.

CusumChangePointDetector:
    summed_signal[b] = sum_f matrix[b, f]
    two-sided CUSUM of the deviation from the running mean of the current
    segment, in units of the signal's standard deviation; an alarm marks
    change_points[b] = 1, resets both sums and starts a new segment at b.
"""

import numpy as np

from eegspec.common.logging import get_logger
from eegspec.core.interfaces import ChangePointResult
from eegspec.modules.spectrogram.config import ChangePointConfig

logger = get_logger(__name__)


def summed_spectrum(block_matrix: np.ndarray) -> np.ndarray:
    """Total magnitude per block of an (nblocks, nfreqs) matrix."""
    if block_matrix.ndim != 2:
        raise ValueError(f"expected (nblocks, nfreqs) matrix, got shape {block_matrix.shape}")
    return block_matrix.sum(axis=1, dtype=np.float64).astype(np.float32)


def cusum(signal: np.ndarray, drift: float, threshold: float) -> np.ndarray:
    """
    Two-sided CUSUM alarms.

    Returns:
        float32 vector, 1.0 where an alarm fires, else 0.0
    """
    alarms = np.zeros(len(signal), dtype=np.float32)
    if len(signal) == 0:
        return alarms

    values = np.asarray(signal, dtype=np.float64)
    scale = float(values.std())
    if not np.isfinite(scale) or scale == 0.0:
        return alarms

    pos = neg = 0.0
    reference = values[0]
    count = 1
    for i in range(1, len(values)):
        deviation = (values[i] - reference) / scale
        pos = max(0.0, pos + deviation - drift)
        neg = max(0.0, neg - deviation - drift)
        if pos > threshold or neg > threshold:
            alarms[i] = 1.0
            pos = neg = 0.0
            reference = values[i]
            count = 1
        else:
            count += 1
            reference += (values[i] - reference) / count
    return alarms


class CusumChangePointDetector:
    """Default ChangePointDetectorProtocol implementation."""

    def __init__(self, config: ChangePointConfig = None):
        self.config = config or ChangePointConfig()

    def detect(self, block_matrix: np.ndarray) -> ChangePointResult:
        summed = summed_spectrum(block_matrix)
        change_points = cusum(summed, self.config.drift, self.config.threshold)
        logger.debug("Change points detected", data={
            "nblocks": len(summed),
            "change_points": int(change_points.sum()),
        })
        return ChangePointResult(change_points=change_points, summed_signal=summed)
