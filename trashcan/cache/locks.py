"""
Fair (FIFO) mutual-exclusion lock.

``threading.Lock`` makes no promise about which waiter wins when it is
released, so a busy tier could starve one caller.  :class:`FairLock`
hands ownership to waiters in arrival order.
"""

import threading
import time
from collections import deque
from typing import Deque, Optional


class FairLock:
    """Non-reentrant lock that grants ownership in FIFO order.

    Supports the same surface as ``threading.Lock``: ``acquire``,
    ``release``, ``locked`` and the context manager protocol.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._waiters: Deque[object] = deque()
        self._held = False

    def acquire(self, blocking: bool = True, timeout: float = -1) -> bool:
        """Acquire the lock.

        Args:
            blocking: If ``False``, return immediately when the lock is
                held or other threads are already queued.
            timeout: Maximum seconds to wait; ``-1`` waits forever.

        Returns:
            ``True`` if the lock was acquired.
        """
        with self._cond:
            if not self._held and not self._waiters:
                self._held = True
                return True
            if not blocking:
                return False

            ticket = object()
            self._waiters.append(ticket)
            deadline: Optional[float] = None
            if timeout is not None and timeout >= 0:
                deadline = time.monotonic() + timeout
            try:
                while self._held or self._waiters[0] is not ticket:
                    if deadline is None:
                        self._cond.wait()
                        continue
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        return False
                    self._cond.wait(remaining)
                self._held = True
                return True
            finally:
                self._waiters.remove(ticket)
                # Our departure may promote the next waiter to the head.
                self._cond.notify_all()

    def release(self) -> None:
        """Release the lock.

        Raises:
            RuntimeError: If the lock is not held.
        """
        with self._cond:
            if not self._held:
                raise RuntimeError("release unlocked lock")
            self._held = False
            self._cond.notify_all()

    def locked(self) -> bool:
        with self._cond:
            return self._held

    def __enter__(self) -> "FairLock":
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()
