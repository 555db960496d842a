"""Error handling and edge case tests.

Tests robustness of the service:
    - Error taxonomy (kinds, classes, serialization)
    - Invalid recordings (missing, malformed, unreadable)
    - Edge cases (flat signals, extreme values, minimum length)

These tests ensure a bad recording yields a reported reason, never a crash.
"""

import pytest
import numpy as np

from eegspec.core.config import Settings
from eegspec.core.connectors import InMemoryRecording, InMemoryRecordingStore
from eegspec.core.errors import (
    AllocationError,
    AlreadyOpenError,
    ConfigurationError,
    ErrorKind,
    InvalidParametersError,
    MalformedRecordingError,
    RecordingError,
    RecordingNotFoundError,
    RecordingOpenError,
    RecordingReadError,
    SpectrogramServiceError,
    TooManyOpenFilesError,
    UnknownRecordingError,
    error_for_kind,
)
from eegspec.core.interfaces import TIME_DIMENSION
from eegspec.modules.spectrogram import (
    CusumChangePointDetector,
    compute_spectrogram,
    derive_params,
    get_montage_group,
    RecordingMetadata,
)
from eegspec.modules.spectrogram.pipelines import FileSpectrogramPipeline


# =============================================================================
# ERROR TAXONOMY
# =============================================================================

@pytest.mark.unit
class TestErrorTaxonomy:
    """Tests for error classes and kinds."""

    @pytest.mark.parametrize("kind,error_cls", [
        (ErrorKind.FILE_NOT_FOUND, RecordingNotFoundError),
        (ErrorKind.MALFORMED_RECORDING, MalformedRecordingError),
        (ErrorKind.TOO_MANY_OPEN_FILES, TooManyOpenFilesError),
        (ErrorKind.ALREADY_OPEN, AlreadyOpenError),
        (ErrorKind.READ_ERROR, RecordingReadError),
        (ErrorKind.ALLOCATION_FAILURE, AllocationError),
        (ErrorKind.UNKNOWN, UnknownRecordingError),
    ])
    def test_error_for_kind(self, kind, error_cls):
        """Each kind maps to its class and the class reports the kind back.

        ЧТО ПРОВЕРЯЕМ:
            error_for_kind(kind).kind == kind
        """
        error = error_for_kind(kind, "boom", data={"path": "/x.edf"})

        assert type(error) is error_cls
        assert error.kind == kind
        assert isinstance(error, SpectrogramServiceError)

    def test_open_errors_are_recording_errors(self):
        for error_cls in (RecordingNotFoundError, MalformedRecordingError,
                          TooManyOpenFilesError, AlreadyOpenError):
            assert issubclass(error_cls, RecordingOpenError)
        assert issubclass(RecordingReadError, RecordingError)
        assert not issubclass(RecordingReadError, RecordingOpenError)

    def test_to_dict(self):
        cause = OSError("disk gone")
        error = RecordingReadError("Physical sample read failed", data={"channel": 3}, cause=cause)

        result = error.to_dict()

        assert result["error"] == "RecordingReadError"
        assert result["kind"] == "read_error"
        assert result["data"] == {"channel": 3}
        assert result["cause"] == "disk gone"

    def test_error_kind_is_string(self):
        assert ErrorKind.FILE_NOT_FOUND == "file_not_found"


# =============================================================================
# INVALID RECORDINGS
# =============================================================================

@pytest.mark.unit
class TestInvalidRecordings:
    """Tests for recordings that cannot be used."""

    @pytest.mark.parametrize("kind", [
        ErrorKind.MALFORMED_RECORDING,
        ErrorKind.TOO_MANY_OPEN_FILES,
        ErrorKind.ALREADY_OPEN,
        ErrorKind.READ_ERROR,
        ErrorKind.ALLOCATION_FAILURE,
        ErrorKind.UNKNOWN,
    ])
    def test_open_failure_reported_not_raised(self, handle_cache, kind):
        """Open failures produce an empty result tagged with the reason."""
        store = InMemoryRecordingStore(samples_per_record=250, failures={"/virtual/bad.edf": kind})
        pipeline = FileSpectrogramPipeline(cache=handle_cache, opener=store)

        result = pipeline.run("/virtual/bad.edf", duration_hours=1.0)

        assert result.groups == []
        assert result.params.error == kind
        assert len(handle_cache) == 0

    def test_header_flagged_unusable(self, handle_cache, eeg_signals):
        def opener(path):
            return InMemoryRecording(path, eeg_signals, samples_per_record=250, open_error=True)

        pipeline = FileSpectrogramPipeline(cache=handle_cache, opener=opener)

        result = pipeline.run("/virtual/flagged.edf", duration_hours=1.0)

        assert result.params.error == ErrorKind.MALFORMED_RECORDING
        assert len(handle_cache) == 0

    def test_zero_record_duration(self):
        recording = InMemoryRecording("/virtual/z.edf", [np.ones(1000)] * 16,
                                      samples_per_record=250, datarecord_duration=0)

        params = derive_params(RecordingMetadata.from_recording(recording), recording.path, 1.0)

        assert not params.is_valid
        assert params.error == ErrorKind.MALFORMED_RECORDING

    def test_no_channels(self):
        recording = InMemoryRecording("/virtual/empty.edf", [], samples_per_record=250)

        params = derive_params(RecordingMetadata.from_recording(recording), recording.path, 1.0)

        assert not params.is_valid

    def test_too_few_channels_for_montage(self):
        recording = InMemoryRecording("/virtual/few.edf", [np.ones(5000)] * 4,
                                      samples_per_record=250, datarecord_duration=TIME_DIMENSION)
        params = derive_params(RecordingMetadata.from_recording(recording), recording.path, 1.0)

        with pytest.raises(InvalidParametersError):
            compute_spectrogram(params, recording, get_montage_group("LL"))


# =============================================================================
# EDGE CASES
# =============================================================================

@pytest.mark.unit
class TestEdgeCases:
    """Tests for unusual but valid signals."""

    def _spectrogram(self, signals):
        recording = InMemoryRecording("/virtual/edge.edf", signals, samples_per_record=250,
                                      datarecord_duration=TIME_DIMENSION)
        params = derive_params(RecordingMetadata.from_recording(recording), recording.path, 1.0)
        return params, compute_spectrogram(params, recording, get_montage_group("LL"))

    def test_identical_channels_give_zero_spectrogram(self):
        """Equal electrodes cancel in every difference.

        ЧТО ПРОВЕРЯЕМ:
            All-zero spectrogram, zero summed signal, no change points
        """
        base = np.sin(np.arange(250 * 20) / 10.0)
        _, matrix = self._spectrogram([base] * 16)

        assert np.all(matrix == 0)
        result = CusumChangePointDetector().detect(matrix.T)
        assert np.all(result.change_points == 0)
        assert np.all(result.summed_signal == 0)

    def test_large_amplitudes_stay_finite(self):
        rng = np.random.default_rng(9)
        signals = [1e6 * rng.standard_normal(250 * 20) for _ in range(16)]

        _, matrix = self._spectrogram(signals)

        assert np.all(np.isfinite(matrix))

    def test_exactly_one_block(self):
        """A recording exactly one window long yields one block."""
        rng = np.random.default_rng(10)
        params, matrix = self._spectrogram([rng.standard_normal(1000) for _ in range(16)])

        assert params.nblocks == 1
        assert matrix.shape == (513, 1)
        assert np.all(matrix[0] > 0)

    def test_duration_shorter_than_file(self):
        """The requested duration caps the samples used."""
        signals = [np.zeros(250 * 100)] * 16
        recording = InMemoryRecording("/virtual/long.edf", signals, samples_per_record=250,
                                      datarecord_duration=TIME_DIMENSION)

        params = derive_params(RecordingMetadata.from_recording(recording), recording.path, 0.005)

        assert params.nsamples == 4500
        assert params.spec_len == 18


# =============================================================================
# CONFIGURATION
# =============================================================================

@pytest.mark.unit
class TestConfigurationErrors:
    """Tests for Settings validation."""

    @pytest.mark.parametrize("var,value", [
        ("NUM_THREADS", "0"),
        ("COMPUTE_QUEUE_SIZE", "-1"),
        ("MAX_OPEN_FILES", "0"),
    ])
    def test_invalid_values(self, monkeypatch, var, value):
        monkeypatch.setenv(var, value)

        with pytest.raises(ConfigurationError):
            Settings()

    def test_defaults(self):
        settings = Settings()

        assert settings.port == 8080
        assert settings.max_open_files == 64
        assert settings.resolve_recording_path("/abs/a.edf") == "/abs/a.edf"

    def test_data_dir(self, monkeypatch):
        monkeypatch.setenv("DATA_DIR", "/data")

        assert Settings().resolve_recording_path("patient.edf") == "/data/patient.edf"

    @pytest.mark.parametrize("requested", [
        "../etc/passwd",
        "sub/../../etc/passwd",
        "/etc/passwd",
    ])
    def test_data_dir_confines_requests(self, monkeypatch, requested):
        """Requested paths may not leave DATA_DIR.

        ЧТО ПРОВЕРЯЕМ:
            '..' escapes and absolute paths elsewhere raise InvalidParametersError
        """
        monkeypatch.setenv("DATA_DIR", "/data")

        with pytest.raises(InvalidParametersError):
            Settings().resolve_recording_path(requested)

    def test_data_dir_allows_inside_paths(self, monkeypatch):
        monkeypatch.setenv("DATA_DIR", "/data")
        settings = Settings()

        assert settings.resolve_recording_path("/data/sub/a.edf") == "/data/sub/a.edf"
        assert settings.resolve_recording_path("sub/../b.edf") == "/data/b.edf"
        assert settings.resolve_recording_path("/etc/passwd", confine=False) == "/etc/passwd"

    def test_data_dir_symlink_escape(self, monkeypatch, tmp_path):
        """A symlink inside DATA_DIR pointing outside it is refused."""
        data_dir = tmp_path / "data"
        data_dir.mkdir()
        outside = tmp_path / "outside.edf"
        outside.write_bytes(b"")
        (data_dir / "link.edf").symlink_to(outside)
        monkeypatch.setenv("DATA_DIR", str(data_dir))

        with pytest.raises(InvalidParametersError):
            Settings().resolve_recording_path("link.edf")
