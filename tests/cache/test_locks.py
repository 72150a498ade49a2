"""Tests for FairLock."""

import threading
import time

import pytest

from trashcan.cache.locks import FairLock


class TestFairLock:
    def test_acquire_release(self) -> None:
        lock = FairLock()
        assert lock.acquire() is True
        assert lock.locked() is True
        lock.release()
        assert lock.locked() is False

    def test_context_manager(self) -> None:
        lock = FairLock()
        with lock:
            assert lock.locked() is True
        assert lock.locked() is False

    def test_release_unlocked_raises(self) -> None:
        with pytest.raises(RuntimeError):
            FairLock().release()

    def test_non_blocking_when_held(self) -> None:
        lock = FairLock()
        lock.acquire()
        assert lock.acquire(blocking=False) is False
        lock.release()

    def test_timeout(self) -> None:
        lock = FairLock()
        lock.acquire()
        start = time.monotonic()
        assert lock.acquire(timeout=0.05) is False
        assert time.monotonic() - start >= 0.04
        lock.release()
        assert lock.acquire(timeout=0.05) is True
        lock.release()

    def test_waiters_served_in_arrival_order(self) -> None:
        lock = FairLock()
        order = []
        lock.acquire()

        def waiter(n: int) -> None:
            with lock:
                order.append(n)

        threads = []
        for n in range(5):
            t = threading.Thread(target=waiter, args=(n,))
            t.start()
            threads.append(t)
            # Let each thread enqueue before starting the next.
            deadline = time.monotonic() + 1.0
            while len(lock._waiters) < n + 1 and time.monotonic() < deadline:
                time.sleep(0.001)

        lock.release()
        for t in threads:
            t.join()
        assert order == [0, 1, 2, 3, 4]

    def test_timed_out_waiter_does_not_block_queue(self) -> None:
        lock = FairLock()
        lock.acquire()
        result = []

        def impatient() -> None:
            result.append(lock.acquire(timeout=0.01))

        t = threading.Thread(target=impatient)
        t.start()
        t.join()
        lock.release()
        assert result == [False]
        assert lock.acquire(blocking=False) is True
        lock.release()

    def test_mutual_exclusion(self) -> None:
        lock = FairLock()
        counter = {"n": 0}

        def bump() -> None:
            for _ in range(1000):
                with lock:
                    value = counter["n"]
                    counter["n"] = value + 1

        threads = [threading.Thread(target=bump) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert counter["n"] == 4000
