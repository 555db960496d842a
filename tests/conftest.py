"""
Pytest configuration for eeg-spectrogram tests.

Automatically adds project root to sys.path so that 'from eegspec...' imports work.
Defines markers and shared fixtures.
"""
import sys
import numpy as np
import pytest
from pathlib import Path
from typing import List

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from eegspec.core.cache import HandleCache
from eegspec.core.config import reset_settings
from eegspec.core.connectors import InMemoryRecordingStore
from eegspec.core.interfaces import TIME_DIMENSION

# 250 samples per 1 s data record -> fs = 250
TEST_FS = 250
TEST_SECONDS = 60
N_CHANNELS = 16


# =============================================================================
# Pytest Markers
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (WebSocket app, EDF files)")
    config.addinivalue_line("markers", "slow: Slow tests")


# =============================================================================
# Shared Fixtures
# =============================================================================

@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    """Each test reads settings from its own environment."""
    monkeypatch.delenv("DATA_DIR", raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def project_root() -> Path:
    """Return project root path."""
    return PROJECT_ROOT


def make_eeg_signals(
    n_channels: int = N_CHANNELS,
    fs: int = TEST_FS,
    seconds: int = TEST_SECONDS,
    seed: int = 42,
) -> List[np.ndarray]:
    """Synthetic EEG: per-channel alpha/theta sinusoids plus noise."""
    rng = np.random.default_rng(seed)
    t = np.arange(fs * seconds) / fs
    signals = []
    for ch in range(n_channels):
        alpha = 20.0 * np.sin(2 * np.pi * (9.0 + 0.25 * ch) * t)
        theta = 10.0 * np.sin(2 * np.pi * (5.0 + 0.1 * ch) * t + ch)
        noise = 2.0 * rng.standard_normal(len(t))
        signals.append((alpha + theta + noise).astype(np.float64))
    return signals


@pytest.fixture
def eeg_signals() -> List[np.ndarray]:
    """16 channels, 60 s at 250 Hz."""
    return make_eeg_signals()


@pytest.fixture
def recording_store(eeg_signals) -> InMemoryRecordingStore:
    """Opener with one valid recording at /virtual/patient.edf."""
    store = InMemoryRecordingStore(
        samples_per_record=TEST_FS,
        datarecord_duration=TIME_DIMENSION,
    )
    store.add("/virtual/patient.edf", eeg_signals)
    return store


@pytest.fixture
def handle_cache() -> HandleCache:
    """Small cache so eviction paths are easy to reach."""
    cache = HandleCache(capacity=4)
    yield cache
    cache.close_all()
