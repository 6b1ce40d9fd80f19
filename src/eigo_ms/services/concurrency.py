"""
Concurrency Control for Lesson Generation.

Every lesson costs one or two provider round trips (chat completion, plus
an image for TOEIC Part 1). The controller bounds how many run at once so
a burst of clicks cannot exhaust the API quota or the worker threads.

Backpressure Strategy:
    1. If slots available: acquire immediately
    2. If queue has space: wait for a slot
    3. If queue is full: reject immediately (QUEUE_FULL, HTTP 503)

    A request that waits longer than timeout_s fails with TIMEOUT (HTTP 408).

Usage:
    controller = ConcurrencyController(max_concurrent=4, max_queue=16)

    with controller.acquire_sync(timeout=90.0):
        payload = provider.generate_json(spec)

    stats = controller.stats()
    print(f"Active: {stats.current_active}/{stats.max_concurrent}")
"""
from __future__ import annotations

import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional

from eigo_ms.core.errors import QueueFullError, TimeoutError
from eigo_ms.core.logging import get_logger, info
from eigo_ms.core.metrics import metrics

_LOG = get_logger("eigo-ms.concurrency")


@dataclass
class ConcurrencyStats:
    """Statistics for concurrency controller."""
    max_concurrent: int
    current_active: int
    current_waiting: int
    total_processed: int
    total_rejected: int


class ConcurrencyController:
    """
    Counts active and waiting generations under one lock.

    Waiters sleep on a condition variable and are woken one at a time as
    slots are released.
    """

    def __init__(self, max_concurrent: int = 4, max_queue: int = 16):
        """
        Args:
            max_concurrent: Maximum simultaneous provider calls
            max_queue: Maximum requests waiting before rejection
        """
        self.max_concurrent = max_concurrent
        self.max_queue = max_queue

        self._lock = threading.Lock()
        self._condition = threading.Condition(self._lock)

        self._active = 0
        self._waiting = 0
        self._total_processed = 0
        self._total_rejected = 0

    @property
    def queue_depth(self) -> int:
        with self._lock:
            return self._waiting

    @property
    def active_count(self) -> int:
        with self._lock:
            return self._active

    def stats(self) -> ConcurrencyStats:
        with self._lock:
            return ConcurrencyStats(
                max_concurrent=self.max_concurrent,
                current_active=self._active,
                current_waiting=self._waiting,
                total_processed=self._total_processed,
                total_rejected=self._total_rejected,
            )

    def try_acquire(self) -> bool:
        """Take a slot without waiting; False if none is free."""
        with self._lock:
            if self._active < self.max_concurrent:
                self._active += 1
                self._publish_locked()
                return True
            return False

    def release(self) -> None:
        """Release a slot and wake one waiter."""
        with self._condition:
            self._active = max(0, self._active - 1)
            self._total_processed += 1
            self._publish_locked()
            self._condition.notify()

    @contextmanager
    def acquire_sync(self, timeout: float = 90.0) -> Iterator[None]:
        """
        Hold a generation slot for the duration of the block.

        Raises:
            QueueFullError: If max_queue requests are already waiting.
            TimeoutError: If no slot frees up within timeout seconds.
        """
        deadline = time.monotonic() + timeout
        with self._condition:
            if self._active >= self.max_concurrent:
                if self._waiting >= self.max_queue:
                    self._total_rejected += 1
                    raise QueueFullError(
                        f"Generation queue full ({self._waiting} waiting)",
                        details={"max_queue": self.max_queue},
                    )
                self._waiting += 1
                self._publish_locked()
                try:
                    while self._active >= self.max_concurrent:
                        remaining = deadline - time.monotonic()
                        if remaining <= 0:
                            self._total_rejected += 1
                            raise TimeoutError(
                                f"Timeout after {timeout}s waiting for a generation slot",
                                details={"timeout_s": timeout},
                            )
                        self._condition.wait(timeout=remaining)
                finally:
                    self._waiting = max(0, self._waiting - 1)
                    self._publish_locked()
            self._active += 1
            self._publish_locked()

        try:
            yield
        finally:
            self.release()

    def _publish_locked(self) -> None:
        metrics.set_queue_depth(self._waiting)
        metrics.set_in_flight(self._active)


_controller: Optional[ConcurrencyController] = None
_controller_lock = threading.Lock()


def get_controller(max_concurrent: int = 4, max_queue: int = 16) -> ConcurrencyController:
    """Get or create the global concurrency controller (double-checked locking)."""
    global _controller
    if _controller is None:
        with _controller_lock:
            if _controller is None:
                _controller = ConcurrencyController(max_concurrent=max_concurrent, max_queue=max_queue)
                info(_LOG, "concurrency_init", max_concurrent=max_concurrent, max_queue=max_queue)
    return _controller


def reset_controller() -> None:
    """Reset the global controller (for testing)."""
    global _controller
    with _controller_lock:
        _controller = None
