"""Monitoring and metrics collection."""

from .metrics import (
    # Decorators
    track_duration,

    # Helper functions
    record_cache_hit,
    record_cache_miss,
    record_cache_eviction,
    record_spectrogram,
    record_error,
    set_app_info,

    # Metrics
    spectrogram_computation_seconds,
    spectrograms_computed_total,
    spectrogram_serialization_seconds,
    handle_cache_operations_total,
    handle_cache_open_handles,
    compute_pool_queue_depth,
    compute_pool_rejections_total,
    processing_errors_total,
)

__all__ = [
    'track_duration',
    'record_cache_hit',
    'record_cache_miss',
    'record_cache_eviction',
    'record_spectrogram',
    'record_error',
    'set_app_info',
    'spectrogram_computation_seconds',
    'spectrograms_computed_total',
    'spectrogram_serialization_seconds',
    'handle_cache_operations_total',
    'handle_cache_open_handles',
    'compute_pool_queue_depth',
    'compute_pool_rejections_total',
    'processing_errors_total',
]
