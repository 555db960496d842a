"""
Spectrogram parameters - Block sizing derived from recording metadata.

Sizing (fs in samples/second, duration in hours):
    window_length = fs * 4
    hop           = fs * 1
    fft_length    = max(next_power_of_two(window_length + pad), window_length)
    nsamples      = min(samples_in_file, fs * 3600 * duration)
    nblocks       = floor((nsamples - window_length) / hop) + 1
    nfreqs        = fft_length // 2 + 1
    spec_len      = nsamples // fs   (seconds of signal covered)

A recording that fails to open yields the invalid sentinel: handle == -1,
every numeric field 0 and `error` naming the reason.
"""

from dataclasses import dataclass, asdict
from typing import Optional, Dict, Any

from eegspec.common.logging import get_logger
from eegspec.common.primitives import next_power_of_two
from eegspec.core.cache import HandleCache
from eegspec.core.errors import AllocationError, ErrorKind, RecordingError
from eegspec.core.interfaces import TIME_DIMENSION, RecordingOpener, RecordingProtocol
from eegspec.modules.spectrogram.config import DEFAULT_SPECTROGRAM_CONFIG, SpectrogramConfig

logger = get_logger(__name__)

INVALID_HANDLE = -1


@dataclass(frozen=True)
class RecordingMetadata:
    """Header fields the deriver needs (channel 0, uniform rate assumed)."""
    handle: int
    samples_per_record: int
    datarecord_duration: int      # TIME_DIMENSION units
    samples_in_file: int
    open_error: bool = False

    @classmethod
    def from_recording(cls, recording: RecordingProtocol) -> 'RecordingMetadata':
        if recording.n_channels < 1:
            return cls(recording.handle, 0, 0, 0, open_error=True)
        return cls(
            handle=recording.handle,
            samples_per_record=recording.samples_per_record(0),
            datarecord_duration=recording.datarecord_duration,
            samples_in_file=recording.samples_in_file(0),
            open_error=recording.open_error,
        )


@dataclass(frozen=True)
class SpectrogramParams:
    """Per-request spectrogram sizing."""
    filename: str
    duration: float
    handle: int
    fs: int
    window_length: int
    hop: int
    fft_length: int
    nsamples: int
    nblocks: int
    nfreqs: int
    spec_len: int
    error: Optional[ErrorKind] = None

    @classmethod
    def invalid(cls, filename: str, duration: float, error: ErrorKind) -> 'SpectrogramParams':
        """Sentinel for a recording that could not be used."""
        return cls(
            filename=filename,
            duration=duration,
            handle=INVALID_HANDLE,
            fs=0,
            window_length=0,
            hop=0,
            fft_length=0,
            nsamples=0,
            nblocks=0,
            nfreqs=0,
            spec_len=0,
            error=error,
        )

    @property
    def is_valid(self) -> bool:
        return self.handle != INVALID_HANDLE

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["error"] = self.error.value if self.error else None
        return data


def sampling_rate(samples_per_record: int, datarecord_duration: int) -> int:
    """Samples per second from samples per record and record duration."""
    if datarecord_duration <= 0:
        return 0
    return int(round(samples_per_record / datarecord_duration * TIME_DIMENSION))


def derive_params(
    metadata: RecordingMetadata,
    filename: str,
    duration_hours: float,
    config: SpectrogramConfig = DEFAULT_SPECTROGRAM_CONFIG,
) -> SpectrogramParams:
    """
    Derive spectrogram sizing from recording metadata.

    Args:
        metadata: Header fields of the open recording
        filename: Requested filename (echoed back)
        duration_hours: Requested duration in hours
        config: Window/hop/pad constants

    Returns:
        SpectrogramParams (invalid sentinel if the metadata is unusable)
    """
    if metadata.open_error or metadata.handle == INVALID_HANDLE:
        return SpectrogramParams.invalid(filename, duration_hours, ErrorKind.MALFORMED_RECORDING)

    fs = sampling_rate(metadata.samples_per_record, metadata.datarecord_duration)
    if fs <= 0:
        return SpectrogramParams.invalid(filename, duration_hours, ErrorKind.MALFORMED_RECORDING)

    window_length = fs * config.window_seconds
    hop = fs * config.hop_seconds
    fft_length = max(next_power_of_two(window_length + config.pad), window_length)
    nsamples = int(min(metadata.samples_in_file, fs * 3600 * duration_hours))
    nblocks = (nsamples - window_length) // hop + 1

    return SpectrogramParams(
        filename=filename,
        duration=duration_hours,
        handle=metadata.handle,
        fs=fs,
        window_length=window_length,
        hop=hop,
        fft_length=fft_length,
        nsamples=nsamples,
        nblocks=nblocks,
        nfreqs=fft_length // 2 + 1,
        spec_len=nsamples // fs,
    )


def get_spectrogram_params(
    cache: HandleCache,
    opener: RecordingOpener,
    filename: str,
    duration_hours: float,
    config: SpectrogramConfig = DEFAULT_SPECTROGRAM_CONFIG,
) -> SpectrogramParams:
    """
    Open (or reuse) a recording through the handle cache and derive its params.

    Open errors never raise: they produce the invalid sentinel tagged with
    the error kind. A recording flagged unusable is dropped from the cache.
    """
    try:
        with cache.lease(filename, opener) as recording:
            metadata = RecordingMetadata.from_recording(recording)
    except (RecordingError, AllocationError) as e:
        params = SpectrogramParams.invalid(filename, duration_hours, e.kind)
        logger.warning("Recording unavailable", data={"filename": filename, "error_kind": e.kind.value})
        return params

    params = derive_params(metadata, filename, duration_hours, config)
    if not params.is_valid:
        cache.evict(filename)
        logger.warning("Recording header unusable", data={"filename": filename, "handle": metadata.handle})
        return params

    logger.info("Spectrogram parameters", data=params.to_dict())
    return params
