"""
Custom error classes with structured logging and error propagation.

All errors include correlation context and structured data for observability.
Recording errors carry an ErrorKind so the boundary can report them as
distinct, machine-readable reasons.
"""

from enum import Enum
from typing import Optional, Dict, Any

from eegspec.common.logging import get_logger
from eegspec.common.logging.correlation import get_correlation_id, get_session_id

logger = get_logger(__name__)


class ErrorKind(str, Enum):
    """Error taxonomy surfaced at the service boundary."""
    FILE_NOT_FOUND = "file_not_found"
    MALFORMED_RECORDING = "malformed_recording"
    TOO_MANY_OPEN_FILES = "too_many_open_files"
    READ_ERROR = "read_error"
    ALREADY_OPEN = "already_open"
    ALLOCATION_FAILURE = "allocation_failure"
    INVALID_PARAMETERS = "invalid_parameters"
    UNKNOWN = "unknown"


class SpectrogramServiceError(Exception):
    """
    Base error class for all application errors.

    Automatically logs errors with correlation context when raised.
    """

    kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(
        self,
        message: str,
        data: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        """
        Initialize error with structured context.

        Args:
            message: Human-readable error message
            data: Structured data for observability
            cause: Original exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.data = data or {}
        self.cause = cause

        self.correlation_id = get_correlation_id()
        self.session_id = get_session_id()

        self._log_error()

    def _log_error(self):
        """Log error with structured data."""
        log_data = {
            "error_type": self.__class__.__name__,
            "error_kind": self.kind.value,
            "correlation_id": self.correlation_id,
            "session_id": self.session_id,
            **self.data,
        }

        if self.cause:
            log_data["cause"] = str(self.cause)

        logger.error(self.message, data=log_data, exc_info=self.cause is not None)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for serialization."""
        return {
            "error": self.__class__.__name__,
            "kind": self.kind.value,
            "message": self.message,
            "data": self.data,
            "correlation_id": self.correlation_id,
            "cause": str(self.cause) if self.cause else None,
        }


# Recording access errors
class RecordingError(SpectrogramServiceError):
    """Error accessing a waveform recording."""
    pass


class RecordingOpenError(RecordingError):
    """Error opening a recording. Subclasses name the reason."""
    pass


class RecordingNotFoundError(RecordingOpenError):
    """No such file or directory."""
    kind = ErrorKind.FILE_NOT_FOUND


class MalformedRecordingError(RecordingOpenError):
    """File is not EDF(+)/BDF(+) compliant or its header is unusable."""
    kind = ErrorKind.MALFORMED_RECORDING


class TooManyOpenFilesError(RecordingOpenError):
    """Open-file limit reached and nothing can be evicted."""
    kind = ErrorKind.TOO_MANY_OPEN_FILES


class AlreadyOpenError(RecordingOpenError):
    """The reader library reports the file as already opened."""
    kind = ErrorKind.ALREADY_OPEN


class UnknownRecordingError(RecordingOpenError):
    """Unclassified error reported by the reader library."""
    kind = ErrorKind.UNKNOWN


class RecordingReadError(RecordingError):
    """I/O error while reading samples."""
    kind = ErrorKind.READ_ERROR


# Computation errors
class SpectrogramError(SpectrogramServiceError):
    """Error during spectrogram computation."""
    pass


class AllocationError(SpectrogramError):
    """Sample or accumulator buffers could not be allocated."""
    kind = ErrorKind.ALLOCATION_FAILURE


class InvalidParametersError(SpectrogramError):
    """Derived parameters cannot produce a spectrogram (e.g. nblocks < 1)."""
    kind = ErrorKind.INVALID_PARAMETERS


# Service errors
class ComputePoolBusyError(SpectrogramServiceError):
    """Compute pool admission limit reached."""
    pass


class ConfigurationError(SpectrogramServiceError):
    """Error in configuration."""
    pass


_OPEN_ERRORS = {
    ErrorKind.FILE_NOT_FOUND: RecordingNotFoundError,
    ErrorKind.MALFORMED_RECORDING: MalformedRecordingError,
    ErrorKind.TOO_MANY_OPEN_FILES: TooManyOpenFilesError,
    ErrorKind.ALREADY_OPEN: AlreadyOpenError,
    ErrorKind.READ_ERROR: RecordingReadError,
    ErrorKind.ALLOCATION_FAILURE: AllocationError,
}


def error_for_kind(
    kind: ErrorKind,
    message: str,
    data: Optional[Dict[str, Any]] = None,
    cause: Optional[Exception] = None,
) -> SpectrogramServiceError:
    """Build the error class matching an ErrorKind."""
    error_cls = _OPEN_ERRORS.get(kind, UnknownRecordingError)
    return error_cls(message, data=data, cause=cause)
