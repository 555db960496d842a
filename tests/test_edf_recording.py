"""Integration tests for the pyedflib-backed EdfRecording."""

import numpy as np
import pytest

pyedflib = pytest.importorskip("pyedflib")
from pyedflib import highlevel

from eegspec.core.cache import HandleCache
from eegspec.core.connectors import EdfRecording, classify_open_error
from eegspec.core.errors import (
    ErrorKind,
    MalformedRecordingError,
    RecordingNotFoundError,
)
from eegspec.modules.spectrogram.pipelines import FileSpectrogramPipeline

from conftest import TEST_FS, make_eeg_signals


@pytest.fixture
def edf_path(tmp_path):
    """16-channel, 60 s, 250 Hz EDF file."""
    path = tmp_path / "patient.edf"
    signals = np.array(make_eeg_signals())
    labels = [f"EEG{ch:02d}" for ch in range(len(signals))]
    headers = highlevel.make_signal_headers(labels, sample_frequency=TEST_FS,
                                            physical_min=-200, physical_max=200)
    highlevel.write_edf(str(path), signals, headers)
    return path


@pytest.mark.integration
class TestEdfRecording:
    """Tests for EdfRecording."""

    def test_header(self, edf_path):
        recording = EdfRecording.open(str(edf_path))
        try:
            assert recording.n_channels == 16
            assert recording.samples_per_record(0) == 250
            assert recording.samples_in_file(0) == 15000
            assert recording.datarecord_duration == 10_000_000
            assert recording.open_error is False
        finally:
            recording.close()

    def test_sequential_reads_and_rewind(self, edf_path):
        """Reads continue from the cursor; rewind restarts at sample 0."""
        expected = make_eeg_signals()[3]
        recording = EdfRecording.open(str(edf_path))
        try:
            first = np.zeros(100, dtype=np.float32)
            second = np.zeros(100, dtype=np.float32)
            assert recording.read_physical_samples(3, 100, first) == 100
            assert recording.read_physical_samples(3, 100, second) == 100
            np.testing.assert_allclose(first, expected[:100], atol=0.02)
            np.testing.assert_allclose(second, expected[100:200], atol=0.02)

            recording.rewind(3)
            again = np.zeros(100, dtype=np.float32)
            recording.read_physical_samples(3, 100, again)
            np.testing.assert_array_equal(again, first)
        finally:
            recording.close()

    def test_short_read_at_end(self, edf_path):
        recording = EdfRecording.open(str(edf_path))
        try:
            out = np.zeros(20000, dtype=np.float32)
            assert recording.read_physical_samples(0, 20000, out) == 15000
            assert recording.read_physical_samples(0, 10, out) == 0
        finally:
            recording.close()

    def test_missing_file(self, tmp_path):
        with pytest.raises(RecordingNotFoundError):
            EdfRecording.open(str(tmp_path / "absent.edf"))

    def test_not_an_edf(self, tmp_path):
        path = tmp_path / "notes.edf"
        path.write_bytes(b"this is not an EDF header" * 20)

        with pytest.raises(MalformedRecordingError):
            EdfRecording.open(str(path))

    def test_pipeline_on_edf(self, edf_path):
        """End to end: EDF file through cache, engine and detector."""
        cache = HandleCache(capacity=2)
        pipeline = FileSpectrogramPipeline(cache=cache, opener=EdfRecording.open)

        result = pipeline.run(str(edf_path), duration_hours=1.0)

        assert result.params.fs == 250
        assert [g.group.name for g in result.groups] == ["LL", "LP", "RP", "RL"]
        assert all(g.matrix.shape == (513, 57) for g in result.groups)
        assert len(cache) == 0


@pytest.mark.unit
class TestClassifyOpenError:
    """Tests for classify_open_error."""

    @pytest.mark.parametrize("message,kind", [
        ("/data/x.edf: No such file or directory", ErrorKind.FILE_NOT_FOUND),
        ("the file is not EDF(+) or BDF(+) compliant", ErrorKind.MALFORMED_RECORDING),
        ("a format error or duplicate label", ErrorKind.MALFORMED_RECORDING),
        ("too many files opened", ErrorKind.TOO_MANY_OPEN_FILES),
        ("a read error occurred", ErrorKind.READ_ERROR),
        ("file has already been opened", ErrorKind.ALREADY_OPEN),
        ("malloc error", ErrorKind.ALLOCATION_FAILURE),
        ("memory allocation error", ErrorKind.ALLOCATION_FAILURE),
        ("something else", ErrorKind.UNKNOWN),
    ])
    def test_kinds(self, message, kind):
        assert classify_open_error(message) == kind
