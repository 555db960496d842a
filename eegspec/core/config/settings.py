"""
Settings - Application configuration using dataclasses.

Environment variables:
- HOST, PORT: WebSocket server bind address
- NUM_THREADS: Compute pool workers
- COMPUTE_QUEUE_SIZE: Jobs admitted beyond busy workers before rejecting
- MAX_OPEN_FILES: Handle cache capacity
- DATA_DIR: Base directory for relative recording paths; requested paths
  must stay inside it
- LOG_FILE: Optional rotating log file
  (LOG_LEVEL, LOG_LEVEL_<COMPONENT> and LOG_JSON are read by LoggingConfig)
- CP_DRIFT, CP_THRESHOLD: CUSUM change-point detector tuning
"""

import os
from enum import Enum
from pathlib import Path
from typing import Optional
from dataclasses import dataclass, field

from eegspec.core.errors import ConfigurationError, InvalidParametersError


class LogLevel(str, Enum):
    """Log level options."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


# EDF library open-file limit (EDFLIB_MAXFILES)
DEFAULT_MAX_OPEN_FILES = 64


@dataclass
class Settings:
    """Application settings from environment."""

    # Server
    host: str = field(
        default_factory=lambda: os.getenv("HOST", "0.0.0.0")
    )
    port: int = field(
        default_factory=lambda: int(os.getenv("PORT", "8080"))
    )

    # Compute pool
    num_threads: int = field(
        default_factory=lambda: int(os.getenv("NUM_THREADS", "4"))
    )
    compute_queue_size: int = field(
        default_factory=lambda: int(os.getenv("COMPUTE_QUEUE_SIZE", "8"))
    )

    # Handle cache
    max_open_files: int = field(
        default_factory=lambda: int(os.getenv("MAX_OPEN_FILES", str(DEFAULT_MAX_OPEN_FILES)))
    )

    # Data
    data_dir: Optional[str] = field(
        default_factory=lambda: os.getenv("DATA_DIR")
    )

    # Logging
    log_file: Optional[str] = field(
        default_factory=lambda: os.getenv("LOG_FILE")
    )

    # Change-point detection
    cp_drift: float = field(
        default_factory=lambda: float(os.getenv("CP_DRIFT", "0.5"))
    )
    cp_threshold: float = field(
        default_factory=lambda: float(os.getenv("CP_THRESHOLD", "5.0"))
    )

    def __post_init__(self):
        if self.num_threads < 1:
            raise ConfigurationError("NUM_THREADS must be >= 1", data={"num_threads": self.num_threads})
        if self.compute_queue_size < 0:
            raise ConfigurationError(
                "COMPUTE_QUEUE_SIZE must be >= 0",
                data={"compute_queue_size": self.compute_queue_size},
            )
        if self.max_open_files < 1:
            raise ConfigurationError(
                "MAX_OPEN_FILES must be >= 1",
                data={"max_open_files": self.max_open_files},
            )

    def resolve_recording_path(self, filename: str, confine: bool = True) -> str:
        """
        Resolve a requested filename against DATA_DIR when it is relative.

        With DATA_DIR set and confine=True the result must lie inside
        DATA_DIR after symlinks and '..' are resolved.

        Raises:
            InvalidParametersError: path escapes DATA_DIR
        """
        path = Path(filename).expanduser()
        if not self.data_dir:
            return str(path)

        base = Path(self.data_dir).expanduser()
        if not path.is_absolute():
            path = base / path
        resolved = os.path.normpath(str(path))
        if confine:
            real_base = os.path.realpath(str(base))
            real_path = os.path.realpath(resolved)
            if os.path.commonpath([real_base, real_path]) != real_base:
                raise InvalidParametersError(
                    "Recording path is outside DATA_DIR",
                    data={"filename": filename, "data_dir": self.data_dir},
                )
        return resolved


# Singleton instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get settings singleton."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the singleton so the next get_settings() re-reads the environment."""
    global _settings
    _settings = None
