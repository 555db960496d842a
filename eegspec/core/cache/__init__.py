"""
Cache Module - Open recording handles.

Usage:
    from eegspec.core.cache import get_handle_cache

    cache = get_handle_cache()
    with cache.lease(path, EdfRecording.open) as recording:
        ...
"""

from .handle_cache import HandleCache, get_handle_cache, rewind_all

__all__ = [
    "HandleCache",
    "get_handle_cache",
    "rewind_all",
]
