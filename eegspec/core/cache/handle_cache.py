"""
HandleCache - Process-wide cache of open recording handles.

Single source of truth for "is this file already open". Keyed by canonical
path, bounded by an explicit capacity with LRU eviction of idle handles.

Concurrency:
- All table operations run under one re-entrant lock. Opening a file does
  not: a per-path pending-open event makes other callers for the same path
  wait for that open, so get-or-open stays atomic while operations on other
  paths proceed.
- Each entry has its own lock held for the duration of a lease: read cursors
  live on the handle, so two readers of one file must not interleave.
- A reference count keeps leased handles open. evict() on a leased handle
  defers the close until the last lease is released.
"""

import os
import threading
from collections import OrderedDict
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Any

from eegspec.common.logging import get_logger
from eegspec.core.config.settings import DEFAULT_MAX_OPEN_FILES, get_settings
from eegspec.core.errors import AlreadyOpenError, TooManyOpenFilesError
from eegspec.core.interfaces.recording_protocol import RecordingOpener, RecordingProtocol
from eegspec.core.monitoring import (
    handle_cache_open_handles,
    record_cache_eviction,
    record_cache_hit,
    record_cache_miss,
)

logger = get_logger(__name__)


@dataclass
class _CacheEntry:
    """Open handle plus its lease bookkeeping."""
    recording: RecordingProtocol
    lock: threading.Lock = field(default_factory=threading.Lock)
    refcount: int = 0
    close_pending: bool = False

    @property
    def is_idle(self) -> bool:
        return self.refcount == 0


def rewind_all(recording: RecordingProtocol) -> None:
    """Rewind every channel's cursor to the first sample."""
    for channel in range(recording.n_channels):
        recording.rewind(channel)


class HandleCache:
    """
    Thread-safe LRU cache of open recordings.

    Usage:
        cache = HandleCache(capacity=64)

        with cache.lease("/data/patient.edf", EdfRecording.open) as recording:
            params = derive_params(recording, ...)
    """

    def __init__(self, capacity: int = DEFAULT_MAX_OPEN_FILES):
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self.capacity = capacity
        self._entries: "OrderedDict[str, _CacheEntry]" = OrderedDict()
        self._lock = threading.RLock()
        self._opening: Dict[str, threading.Event] = {}
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    @staticmethod
    def canonical_path(path: str) -> str:
        """Cache key for a path."""
        return os.path.realpath(os.path.expanduser(path))

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, path: str) -> bool:
        with self._lock:
            return self.canonical_path(path) in self._entries

    # ------------------------------------------------------------------
    # Table operations
    # ------------------------------------------------------------------

    def get(self, path: str) -> Optional[RecordingProtocol]:
        """
        Look up an open handle.

        On a hit every channel is rewound, so repeated full reads of the
        same file always start from the beginning.

        The returned handle is not leased: a concurrent evict() may close
        it. Readers that share the cache with other threads use lease().
        A handle already scheduled for closing is reported as absent.

        Returns:
            The cached recording or None
        """
        key = self.canonical_path(path)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or entry.close_pending:
                self._misses += 1
                record_cache_miss()
                return None
            self._entries.move_to_end(key)
            self._hits += 1
            record_cache_hit()

        with entry.lock:
            rewind_all(entry.recording)
        return entry.recording

    def put(self, recording: RecordingProtocol) -> None:
        """
        Insert an open handle.

        When the table is full the least recently used idle handle is closed.

        Raises:
            AlreadyOpenError: a handle for the same path is already cached
            TooManyOpenFilesError: table full and every handle is leased
        """
        with self._lock:
            self._insert_locked(self.canonical_path(recording.path), recording)

    def evict(self, path: str) -> bool:
        """
        Close and forget the handle for a path.

        A leased handle is closed once its last lease is released.

        Returns:
            True if an entry was found
        """
        key = self.canonical_path(path)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return False
            if entry.is_idle:
                self._close_locked(key, entry)
            else:
                entry.close_pending = True
                record_cache_eviction(deferred=True)
                logger.debug("Handle close deferred", data={"path": key, "leases": entry.refcount})
            return True

    def close_all(self) -> None:
        """Close every idle handle and schedule leased ones for closing."""
        with self._lock:
            for key, entry in list(self._entries.items()):
                if entry.is_idle:
                    self._close_locked(key, entry)
                else:
                    entry.close_pending = True

    # ------------------------------------------------------------------
    # Leases
    # ------------------------------------------------------------------

    @contextmanager
    def lease(self, path: str, opener: RecordingOpener) -> Iterator[RecordingProtocol]:
        """
        Atomically get-or-open a recording and hold it for exclusive reading.

        Cursors are rewound when the lease starts. The handle cannot be
        closed while the lease is held.

        Raises:
            RecordingOpenError subclasses from the opener
            TooManyOpenFilesError: table full and every handle is leased
        """
        key = self.canonical_path(path)
        entry = self._acquire(key, path, opener)
        try:
            with entry.lock:
                rewind_all(entry.recording)
                yield entry.recording
        finally:
            with self._lock:
                entry.refcount -= 1
                if entry.is_idle and entry.close_pending and self._entries.get(key) is entry:
                    self._close_locked(key, entry)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def paths(self) -> List[str]:
        """Cached paths, least recently used first."""
        with self._lock:
            return list(self._entries.keys())

    def stats(self) -> Dict[str, Any]:
        """Cache counters for health reporting."""
        with self._lock:
            return {
                "open_handles": len(self._entries),
                "capacity": self.capacity,
                "leased": sum(1 for e in self._entries.values() if not e.is_idle),
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
            }

    # ------------------------------------------------------------------
    # Opening
    # ------------------------------------------------------------------

    def _acquire(self, key: str, path: str, opener: RecordingOpener) -> _CacheEntry:
        """Find or open the entry for key and take a reference on it.

        The opener runs without self._lock. Concurrent callers for the same
        key wait on its pending-open event and then retry the lookup.
        """
        while True:
            with self._lock:
                entry = self._entries.get(key)
                if entry is not None:
                    self._hits += 1
                    record_cache_hit()
                    self._entries.move_to_end(key)
                    entry.refcount += 1
                    return entry
                pending = self._opening.get(key)
                if pending is None:
                    pending = threading.Event()
                    self._opening[key] = pending
                    self._misses += 1
                    record_cache_miss()
                    break
            pending.wait()

        try:
            recording = opener(path)
        except BaseException:
            self._finish_opening(key, pending)
            raise

        with self._lock:
            try:
                entry = self._entries.get(key)
                if entry is not None:
                    # put() raced the open
                    recording.close()
                else:
                    entry = self._insert_locked(key, recording)
            except TooManyOpenFilesError:
                recording.close()
                raise
            finally:
                self._finish_opening(key, pending)
            entry.refcount += 1
            return entry

    def _finish_opening(self, key: str, pending: threading.Event) -> None:
        with self._lock:
            if self._opening.get(key) is pending:
                del self._opening[key]
        pending.set()

    # ------------------------------------------------------------------
    # Internals (caller holds self._lock)
    # ------------------------------------------------------------------

    def _insert_locked(self, key: str, recording: RecordingProtocol) -> _CacheEntry:
        if key in self._entries:
            raise AlreadyOpenError("Recording already open in cache", data={"path": key})
        if len(self._entries) >= self.capacity:
            self._evict_lru_locked()
        entry = _CacheEntry(recording=recording)
        self._entries[key] = entry
        handle_cache_open_handles.set(len(self._entries))
        logger.debug("Handle cached", data={"path": key, "handle": recording.handle})
        return entry

    def _evict_lru_locked(self) -> None:
        for key, entry in self._entries.items():
            if entry.is_idle:
                self._close_locked(key, entry)
                return
        raise TooManyOpenFilesError(
            "Handle cache full and every handle is in use",
            data={"capacity": self.capacity},
        )

    def _close_locked(self, key: str, entry: _CacheEntry) -> None:
        del self._entries[key]
        self._evictions += 1
        handle_cache_open_handles.set(len(self._entries))
        record_cache_eviction()
        entry.recording.close()
        logger.debug("Handle closed", data={"path": key, "handle": entry.recording.handle})


# Process-wide instance
_handle_cache: Optional[HandleCache] = None
_handle_cache_lock = threading.Lock()


def get_handle_cache() -> HandleCache:
    """Get the process-wide handle cache (capacity from MAX_OPEN_FILES)."""
    global _handle_cache
    with _handle_cache_lock:
        if _handle_cache is None:
            _handle_cache = HandleCache(capacity=get_settings().max_open_files)
        return _handle_cache
