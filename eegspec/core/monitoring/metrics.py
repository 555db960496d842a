"""
Service metrics collection using Prometheus.

Tracks:
- Spectrogram computation duration per montage group
- Handle cache hit/miss/eviction rate
- Compute pool queue depth and rejections
- Error rates by kind
"""

from prometheus_client import Counter, Histogram, Gauge, Info
import time
from functools import wraps
from typing import Callable, Any

# =============================================================================
# Computation Metrics
# =============================================================================

spectrogram_computation_seconds = Histogram(
    'spectrogram_computation_seconds',
    'Spectrogram computation duration in seconds',
    ['montage'],  # LL, LP, RP, RL
    buckets=[0.1, 0.5, 1, 2, 5, 10, 20, 30, 60, 120]
)

spectrograms_computed_total = Counter(
    'spectrograms_computed_total',
    'Total spectrograms computed',
    ['montage']
)

spectrogram_serialization_seconds = Histogram(
    'spectrogram_serialization_seconds',
    'Time spent flattening a spectrogram to wire bytes',
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1]
)

# =============================================================================
# Handle Cache Metrics
# =============================================================================

handle_cache_operations_total = Counter(
    'handle_cache_operations_total',
    'Total handle cache operations',
    ['operation', 'result']  # operation: get, put, evict; result: hit, miss, ok, deferred
)

handle_cache_open_handles = Gauge(
    'handle_cache_open_handles',
    'Recording handles currently open'
)

# =============================================================================
# Compute Pool Metrics
# =============================================================================

compute_pool_queue_depth = Gauge(
    'compute_pool_queue_depth',
    'Jobs admitted to the compute pool and not yet finished'
)

compute_pool_rejections_total = Counter(
    'compute_pool_rejections_total',
    'Jobs rejected because the compute pool was full'
)

# =============================================================================
# Error Tracking
# =============================================================================

processing_errors_total = Counter(
    'processing_errors_total',
    'Total processing errors',
    ['error_kind', 'stage']  # stage: params, spectrogram, transport
)

# =============================================================================
# Info Metrics
# =============================================================================

app_info = Info(
    'eegspec',
    'Application version and environment info'
)

# =============================================================================
# Decorators for Automatic Metrics
# =============================================================================

def track_duration(metric: Histogram, labels: dict = None):
    """
    Decorator to track function execution duration.

    Usage:
        @track_duration(spectrogram_serialization_seconds)
        def serialize_spectrogram(...):
            ...
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            start_time = time.time()
            try:
                return func(*args, **kwargs)
            finally:
                duration = time.time() - start_time
                if labels:
                    metric.labels(**labels).observe(duration)
                else:
                    metric.observe(duration)
        return wrapper
    return decorator


# =============================================================================
# Helper Functions
# =============================================================================

def record_cache_hit():
    """Record a handle cache hit."""
    handle_cache_operations_total.labels(operation='get', result='hit').inc()


def record_cache_miss():
    """Record a handle cache miss."""
    handle_cache_operations_total.labels(operation='get', result='miss').inc()


def record_cache_eviction(deferred: bool = False):
    """Record a handle eviction."""
    handle_cache_operations_total.labels(
        operation='evict', result='deferred' if deferred else 'ok'
    ).inc()


def record_spectrogram(montage: str, duration_sec: float):
    """Record a finished spectrogram computation."""
    spectrogram_computation_seconds.labels(montage=montage).observe(duration_sec)
    spectrograms_computed_total.labels(montage=montage).inc()


def record_error(error_kind: str, stage: str = 'unknown'):
    """Record a processing error."""
    processing_errors_total.labels(error_kind=error_kind, stage=stage).inc()


def set_app_info(version: str, environment: str, python_version: str):
    """Set application info metric."""
    app_info.info({
        'version': version,
        'environment': environment,
        'python_version': python_version
    })
