"""Tests for generation slot control."""
from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from eigo_ms.core.errors import ErrorCode, QueueFullError, TimeoutError


class TestConcurrencyController:
    """Test ConcurrencyController basic functionality."""

    def test_controller_creation(self):
        from eigo_ms.services.concurrency import ConcurrencyController

        controller = ConcurrencyController(max_concurrent=3, max_queue=5)
        assert controller.max_concurrent == 3
        assert controller.max_queue == 5

    def test_try_acquire_success(self):
        from eigo_ms.services.concurrency import ConcurrencyController

        controller = ConcurrencyController(max_concurrent=2)
        assert controller.try_acquire() is True
        assert controller.active_count == 1
        controller.release()
        assert controller.active_count == 0

    def test_try_acquire_fail_when_full(self):
        from eigo_ms.services.concurrency import ConcurrencyController

        controller = ConcurrencyController(max_concurrent=1)
        assert controller.try_acquire() is True
        assert controller.try_acquire() is False
        controller.release()

    def test_stats(self):
        from eigo_ms.services.concurrency import ConcurrencyController

        controller = ConcurrencyController(max_concurrent=2, max_queue=5)
        stats = controller.stats()

        assert stats.max_concurrent == 2
        assert stats.current_active == 0
        assert stats.current_waiting == 0
        assert controller.queue_depth == 0


class TestSyncAcquire:

    def test_sync_acquire_success(self):
        from eigo_ms.services.concurrency import ConcurrencyController

        controller = ConcurrencyController(max_concurrent=2)

        with controller.acquire_sync(timeout=1.0):
            assert controller.active_count == 1

        assert controller.active_count == 0

    def test_sync_acquire_timeout(self):
        from eigo_ms.services.concurrency import ConcurrencyController

        controller = ConcurrencyController(max_concurrent=1)
        controller.try_acquire()

        with pytest.raises(TimeoutError) as exc_info:
            with controller.acquire_sync(timeout=0.1):
                pass

        assert exc_info.value.code == ErrorCode.TIMEOUT
        assert controller.queue_depth == 0
        assert controller.stats().total_rejected == 1
        controller.release()

    def test_sync_acquire_queue_full(self):
        from eigo_ms.services.concurrency import ConcurrencyController

        controller = ConcurrencyController(max_concurrent=1, max_queue=0)
        controller.try_acquire()

        with pytest.raises(QueueFullError, match="Generation queue full"):
            with controller.acquire_sync(timeout=1.0):
                pass

        controller.release()

    def test_release_on_exception(self):
        from eigo_ms.services.concurrency import ConcurrencyController

        controller = ConcurrencyController(max_concurrent=1)
        with pytest.raises(ValueError):
            with controller.acquire_sync(timeout=1.0):
                raise ValueError("provider blew up")
        assert controller.active_count == 0

    def test_waiter_gets_released_slot(self):
        from eigo_ms.services.concurrency import ConcurrencyController

        controller = ConcurrencyController(max_concurrent=1, max_queue=1)
        controller.try_acquire()
        acquired = threading.Event()

        def waiter():
            with controller.acquire_sync(timeout=5.0):
                acquired.set()

        thread = threading.Thread(target=waiter)
        thread.start()
        deadline = time.monotonic() + 2.0
        while controller.queue_depth == 0 and time.monotonic() < deadline:
            time.sleep(0.01)
        assert controller.queue_depth == 1

        controller.release()
        thread.join(timeout=5.0)
        assert acquired.is_set()


class TestConcurrentAccess:

    def test_slots_limit_concurrent(self):
        from eigo_ms.services.concurrency import ConcurrencyController

        controller = ConcurrencyController(max_concurrent=2, max_queue=10)
        max_seen = 0
        lock = threading.Lock()

        def worker():
            nonlocal max_seen
            with controller.acquire_sync(timeout=5.0):
                with lock:
                    if controller.active_count > max_seen:
                        max_seen = controller.active_count
                time.sleep(0.05)

        with ThreadPoolExecutor(max_workers=5) as executor:
            futures = [executor.submit(worker) for _ in range(5)]
            for f in futures:
                f.result()

        assert max_seen <= 2

    def test_total_processed_count(self):
        from eigo_ms.services.concurrency import ConcurrencyController

        controller = ConcurrencyController(max_concurrent=2)

        for _ in range(5):
            with controller.acquire_sync(timeout=1.0):
                pass

        assert controller.stats().total_processed == 5


class TestGlobalController:

    def test_get_controller_returns_same_instance(self):
        from eigo_ms.services import concurrency

        concurrency.reset_controller()
        try:
            c1 = concurrency.get_controller(max_concurrent=2)
            c2 = concurrency.get_controller(max_concurrent=5)  # Ignored
            assert c1 is c2
            assert c1.max_concurrent == 2
        finally:
            concurrency.reset_controller()
