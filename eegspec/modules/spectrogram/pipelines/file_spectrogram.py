"""
File spectrogram pipeline.

derive params -> for each montage group: compute, detect change points,
serialize -> release the file from the handle cache.

Usage:
    pipeline = FileSpectrogramPipeline()
    result = pipeline.run("/data/patient.edf", duration_hours=1.0)
    for group in result.groups:
        payload = group.payload
"""

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, List, Iterable, Dict, Any, Tuple

import numpy as np

from eegspec.common.logging import get_logger
from eegspec.core.cache import HandleCache, get_handle_cache
from eegspec.core.connectors import EdfRecording
from eegspec.core.errors import InvalidParametersError
from eegspec.core.interfaces import (
    ChangePointDetectorProtocol,
    ChangePointResult,
    RecordingOpener,
)
from eegspec.modules.spectrogram.change_points import CusumChangePointDetector
from eegspec.modules.spectrogram.config import (
    DEFAULT_SPECTROGRAM_CONFIG,
    ChangePointConfig,
    SpectrogramConfig,
)
from eegspec.modules.spectrogram.engine import compute_spectrogram
from eegspec.modules.spectrogram.montage import MONTAGE_GROUPS, MontageGroup, get_montage_group
from eegspec.modules.spectrogram.params import SpectrogramParams, get_spectrogram_params
from eegspec.modules.spectrogram.serializer import serialize_spectrogram, serialize_vector

logger = get_logger(__name__)


@dataclass
class GroupSpectrogram:
    """
    Spectrogram of one montage group.

    Wire payloads are serialized by compute_group, on the thread that did
    the computation.

    Attributes:
        params: Sizing the matrix was computed with
        group: Montage group
        matrix: float32 (nfreqs, nblocks)
        change_points: Detector output for the group
        payload: Serialized matrix
        change_points_payload: Serialized change-point flags
        summed_signal_payload: Serialized summed signal
        elapsed_sec: Compute + detect + serialize time
    """
    params: SpectrogramParams
    group: MontageGroup
    matrix: np.ndarray
    change_points: ChangePointResult
    payload: bytes = b""
    change_points_payload: bytes = b""
    summed_signal_payload: bytes = b""
    elapsed_sec: float = 0.0

    @classmethod
    def build(
        cls,
        params: SpectrogramParams,
        group: MontageGroup,
        matrix: np.ndarray,
        change_points: ChangePointResult,
    ) -> "GroupSpectrogram":
        return cls(
            params=params,
            group=group,
            matrix=matrix,
            change_points=change_points,
            payload=serialize_spectrogram(params, matrix),
            change_points_payload=serialize_vector(change_points.change_points),
            summed_signal_payload=serialize_vector(change_points.summed_signal),
        )


@dataclass
class FileSpectrogramResult:
    """All group spectrograms of one file."""
    params: SpectrogramParams
    groups: List[GroupSpectrogram] = field(default_factory=list)

    @property
    def file_stem(self) -> str:
        return Path(self.params.filename).stem

    def get(self, name: str) -> Optional[GroupSpectrogram]:
        for group in self.groups:
            if group.group.name == name:
                return group
        return None

    def to_summary(self) -> Dict[str, Any]:
        return {
            "params": self.params.to_dict(),
            "groups": [
                {
                    "montage": g.group.name,
                    "shape": list(g.matrix.shape),
                    "change_points": int(g.change_points.change_points.sum()),
                    "time_sec": round(g.elapsed_sec, 3),
                }
                for g in self.groups
            ],
        }


class FileSpectrogramPipeline:
    """
    Computes the montage-group spectrograms of one recording.

    All recording access goes through the handle cache; run() always evicts
    the file when it is done, whatever the outcome.
    """

    def __init__(
        self,
        cache: Optional[HandleCache] = None,
        opener: Optional[RecordingOpener] = None,
        detector: Optional[ChangePointDetectorProtocol] = None,
        config: SpectrogramConfig = DEFAULT_SPECTROGRAM_CONFIG,
    ):
        self.cache = cache or get_handle_cache()
        self.opener = opener or EdfRecording.open
        self.detector = detector or CusumChangePointDetector(ChangePointConfig.from_settings())
        self.config = config

    def prepare(self, filename: str, duration_hours: float) -> SpectrogramParams:
        """Open the recording and derive its params (invalid sentinel on failure)."""
        return get_spectrogram_params(self.cache, self.opener, filename, duration_hours, self.config)

    def compute_group(self, params: SpectrogramParams, group: MontageGroup) -> GroupSpectrogram:
        """
        Compute one group's spectrogram and change points.

        Raises:
            InvalidParametersError: params invalid or too short
            RecordingReadError, AllocationError: from the engine
        """
        if not params.is_valid:
            raise InvalidParametersError(
                "Cannot compute spectrogram from invalid params",
                data={"filename": params.filename, "error_kind": params.error.value if params.error else None},
            )
        start_time = time.time()
        with self.cache.lease(params.filename, self.opener) as recording:
            matrix = compute_spectrogram(params, recording, group)
        computed = GroupSpectrogram.build(params, group, matrix, self.detector.detect(matrix.T))
        computed.elapsed_sec = time.time() - start_time
        return computed

    def release(self, filename: str) -> None:
        """Drop the file from the handle cache."""
        self.cache.evict(filename)

    def run(
        self,
        filename: str,
        duration_hours: float,
        groups: Optional[Iterable[MontageGroup]] = None,
    ) -> FileSpectrogramResult:
        """
        Compute every requested group (all four by default).

        Invalid params produce a result with no groups.
        """
        groups = list(groups) if groups is not None else list(MONTAGE_GROUPS)
        start_time = time.time()
        try:
            params = self.prepare(filename, duration_hours)
            result = FileSpectrogramResult(params=params)
            if not params.is_valid:
                return result
            for group in groups:
                result.groups.append(self.compute_group(params, group))
        finally:
            self.release(filename)

        logger.info("File spectrogram done", data={
            "filename": filename,
            "groups": [g.name for g in groups],
            "time_sec": round(time.time() - start_time, 3),
        })
        return result


def compute_file_spectrogram(
    filename: str,
    duration_hours: float,
    group: str,
    cache: Optional[HandleCache] = None,
    opener: Optional[RecordingOpener] = None,
) -> Tuple[SpectrogramParams, Optional[np.ndarray]]:
    """
    One-shot: derive params and compute a single group's spectrogram.

    Returns:
        (params, matrix); matrix is None when the params are invalid
    """
    pipeline = FileSpectrogramPipeline(cache=cache, opener=opener)
    result = pipeline.run(filename, duration_hours, groups=[get_montage_group(group)])
    computed = result.get(group.upper())
    return result.params, computed.matrix if computed else None
