"""
ComputePool - Bounded thread pool for CPU-bound spectrogram work.

At most `workers` jobs run and at most `queue_size` more wait. Submitting
beyond that fails fast with ComputePoolBusyError instead of queueing
without bound.
"""

import asyncio
import contextvars
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Dict

from eegspec.common.logging import get_logger
from eegspec.core.config import get_settings
from eegspec.core.errors import ComputePoolBusyError
from eegspec.core.monitoring import compute_pool_queue_depth, compute_pool_rejections_total

logger = get_logger(__name__)


class ComputePool:
    """
    ThreadPoolExecutor with admission control.

    Usage:
        pool = ComputePool(workers=4, queue_size=8)
        group = await pool.run(pipeline.compute_group, params, group)
    """

    def __init__(self, workers: int = 4, queue_size: int = 8):
        if workers < 1:
            raise ValueError(f"workers must be >= 1, got {workers}")
        self.workers = workers
        self.queue_size = queue_size
        self.capacity = workers + queue_size
        self._executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="spectrogram")
        self._slots = threading.BoundedSemaphore(self.capacity)
        self._lock = threading.Lock()
        self._admitted = 0

    @classmethod
    def from_settings(cls) -> 'ComputePool':
        settings = get_settings()
        return cls(workers=settings.num_threads, queue_size=settings.compute_queue_size)

    @property
    def admitted(self) -> int:
        """Jobs running or waiting."""
        with self._lock:
            return self._admitted

    def submit(self, fn: Callable[..., Any], *args, **kwargs) -> Future:
        """
        Admit a job or reject it immediately.

        Raises:
            ComputePoolBusyError: workers + queue_size jobs already admitted
        """
        if not self._slots.acquire(blocking=False):
            compute_pool_rejections_total.inc()
            raise ComputePoolBusyError(
                "Compute pool is busy",
                data={"workers": self.workers, "queue_size": self.queue_size},
            )
        self._adjust(+1)
        try:
            # Jobs run with the submitter's correlation context
            context = contextvars.copy_context()
            future = self._executor.submit(context.run, fn, *args, **kwargs)
        except RuntimeError:
            self._release_slot()
            raise
        future.add_done_callback(lambda _: self._release_slot())
        return future

    async def run(self, fn: Callable[..., Any], *args, **kwargs) -> Any:
        """Submit and await the result from the event loop."""
        return await asyncio.wrap_future(self.submit(fn, *args, **kwargs))

    def stats(self) -> Dict[str, int]:
        return {
            "workers": self.workers,
            "queue_size": self.queue_size,
            "admitted": self.admitted,
        }

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
        logger.info("Compute pool stopped", data=self.stats())

    def _release_slot(self) -> None:
        self._adjust(-1)
        self._slots.release()

    def _adjust(self, delta: int) -> None:
        with self._lock:
            self._admitted += delta
            compute_pool_queue_depth.set(self._admitted)

