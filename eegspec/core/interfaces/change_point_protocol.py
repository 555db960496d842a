"""
Change Point Protocol - Interface for change-point detectors.

The spectrogram core hands the finished matrix to a detector and forwards
the two returned vectors to the transport unmodified.
"""

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import numpy as np


@dataclass
class ChangePointResult:
    """Detector output. Both vectors have one value per block."""
    change_points: np.ndarray
    summed_signal: np.ndarray

    def __post_init__(self):
        if len(self.change_points) != len(self.summed_signal):
            raise ValueError(
                f"change_points ({len(self.change_points)}) and summed_signal "
                f"({len(self.summed_signal)}) must have equal length"
            )

    @property
    def n_blocks(self) -> int:
        return len(self.change_points)


@runtime_checkable
class ChangePointDetectorProtocol(Protocol):
    """Protocol for change-point detectors (DI interface)."""

    def detect(self, block_matrix: np.ndarray) -> ChangePointResult:
        """
        Detect change points.

        Args:
            block_matrix: Spectrogram (nblocks, nfreqs)

        Returns:
            ChangePointResult with vectors of length nblocks
        """
        ...
