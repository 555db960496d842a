"""
Interfaces - Protocols for Dependency Injection.

These protocols define contracts that implementations must follow.
Use Protocol for type hints to enable loose coupling.

Example:
    def spectrogram(recording: RecordingProtocol, detector: ChangePointDetectorProtocol):
        # Works with any implementation
        ...
"""

from .recording_protocol import (
    TIME_DIMENSION,
    RecordingProtocol,
    RecordingOpener,
)
from .change_point_protocol import (
    ChangePointDetectorProtocol,
    ChangePointResult,
)

__all__ = [
    # Recording
    'TIME_DIMENSION',
    'RecordingProtocol',
    'RecordingOpener',
    # Change points
    'ChangePointDetectorProtocol',
    'ChangePointResult',
]
