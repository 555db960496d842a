"""
Connectors - Recording reader implementations.

- edf_recording.py: pyedflib-based EDF(+)/BDF(+) reader (production)
- inmemory_recording.py: In-memory signals (unit tests)
"""

from .edf_recording import EdfRecording, classify_open_error
from .inmemory_recording import InMemoryRecording, InMemoryRecordingStore

__all__ = [
    "EdfRecording",
    "classify_open_error",
    "InMemoryRecording",
    "InMemoryRecordingStore",
]
