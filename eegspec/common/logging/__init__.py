"""Structured logging for the spectrogram service."""

from .logger import setup_logging, get_logger
from .logging_config import LoggingConfig, get_logging_config
from .formatters import JSONFormatter, StructuredLogAdapter
from .correlation import (
    CorrelationLogFilter,
    correlation_scope,
    generate_correlation_id,
    get_correlation_id,
    set_correlation_id,
    get_session_id,
    set_session_id,
)

__all__ = [
    # Logger
    'setup_logging',
    'get_logger',
    # Logging config
    'LoggingConfig',
    'get_logging_config',
    # Structured logging
    'JSONFormatter',
    'StructuredLogAdapter',
    # Correlation
    'CorrelationLogFilter',
    'correlation_scope',
    'generate_correlation_id',
    'get_correlation_id',
    'set_correlation_id',
    'get_session_id',
    'set_session_id',
]
