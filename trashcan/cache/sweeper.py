"""
Background expiry sweeper for the expiring tier.

Runs a sweep callback on a fixed period in its own daemon thread.  A
``threading.Event`` acts as the cancellation token, so :meth:`Sweeper.stop`
returns promptly even in the middle of a long wait, and
:meth:`Sweeper.sweep_now` lets callers force a pass synchronously.
"""

import logging
import threading
from enum import Enum
from typing import Callable, Optional

from trashcan.exceptions import ConfigurationError, SweeperError

logger = logging.getLogger(__name__)

# Type alias for the sweep callback: removes expired entries, returns count.
SweepFunc = Callable[[], int]


class SweeperState(str, Enum):
    STOPPED = "stopped"
    IDLE = "idle"
    SWEEPING = "sweeping"


class Sweeper:
    """Periodic worker that evicts expired entries.

    Args:
        sweep: Callback performing one sweep pass.
        interval_seconds: Period between passes.
        initial_delay_seconds: Wait before the first pass; defaults to
            ``interval_seconds``.
        name: Thread name.

    Raises:
        ConfigurationError: If the interval is not positive or the
            initial delay is negative.
    """

    def __init__(
        self,
        sweep: SweepFunc,
        interval_seconds: float,
        initial_delay_seconds: Optional[float] = None,
        name: str = "trashcan-sweeper",
    ) -> None:
        if interval_seconds <= 0:
            raise ConfigurationError(
                f"Sweep interval must be positive, got {interval_seconds}"
            )
        if initial_delay_seconds is not None and initial_delay_seconds < 0:
            raise ConfigurationError(
                f"Initial delay must not be negative, got {initial_delay_seconds}"
            )
        self._sweep = sweep
        self._interval_s = float(interval_seconds)
        self._initial_delay_s = (
            float(initial_delay_seconds)
            if initial_delay_seconds is not None
            else self._interval_s
        )
        self._name = name

        self._thread: Optional[threading.Thread] = None
        # Replaced on every start so a thread that outlived stop() keeps
        # its own, already set, event.
        self._stop_event = threading.Event()
        self._lock = threading.Lock()
        self._state = SweeperState.STOPPED
        self._active_passes: int = 0

        self._sweeps: int = 0
        self._removed: int = 0
        self._errors: int = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the sweeper thread.

        Raises:
            SweeperError: If the sweeper is already running.
        """
        with self._lock:
            if self._thread is not None:
                raise SweeperError("Sweeper is already running")

            self._stop_event = threading.Event()
            if not self._active_passes:
                self._state = SweeperState.IDLE
            self._thread = threading.Thread(
                target=self._run_loop,
                args=(self._stop_event,),
                name=self._name,
                daemon=True,
            )
            self._thread.start()
            logger.info(
                "Sweeper started",
                extra={
                    "interval_seconds": self._interval_s,
                    "initial_delay_seconds": self._initial_delay_s,
                },
            )

    def stop(self, timeout: float = 5.0) -> None:
        """Signal the sweeper to stop and wait for the thread to exit.

        A no-op when the sweeper is not running.  A thread still busy
        with a pass after ``timeout`` finishes that pass and then exits.

        Args:
            timeout: Maximum seconds to wait for the thread to finish.
        """
        with self._lock:
            thread = self._thread
            if thread is None:
                return
            self._stop_event.set()

        if thread is not threading.current_thread():
            thread.join(timeout=timeout)
            if thread.is_alive():
                logger.warning(
                    "Sweeper thread did not exit in time",
                    extra={"timeout": timeout},
                )

        with self._lock:
            if self._thread is thread:
                self._thread = None
            if self._thread is None and not self._active_passes:
                self._state = SweeperState.STOPPED
            sweeps = self._sweeps
        logger.info("Sweeper stopped", extra={"sweeps": sweeps})

    @property
    def is_running(self) -> bool:
        """Whether the sweeper thread is active."""
        with self._lock:
            return self._thread is not None

    @property
    def state(self) -> SweeperState:
        with self._lock:
            return self._state

    @property
    def interval_seconds(self) -> float:
        return self._interval_s

    @property
    def sweeps(self) -> int:
        """Number of sweep passes completed."""
        with self._lock:
            return self._sweeps

    @property
    def removed(self) -> int:
        """Total entries removed across all passes."""
        with self._lock:
            return self._removed

    # ------------------------------------------------------------------
    # Sweeping
    # ------------------------------------------------------------------

    def sweep_now(self) -> int:
        """Run one sweep pass in the calling thread.

        Safe to call while the background thread is sweeping; the state
        reads ``SWEEPING`` until the last overlapping pass finishes.

        Returns:
            Number of entries removed.
        """
        with self._lock:
            self._active_passes += 1
            self._state = SweeperState.SWEEPING
        try:
            removed = self._sweep()
        except BaseException:
            with self._lock:
                self._end_pass()
            raise
        with self._lock:
            self._end_pass()
            self._sweeps += 1
            self._removed += removed
        if removed:
            logger.debug("Sweep removed expired entries", extra={"count": removed})
        return removed

    def _end_pass(self) -> None:
        """Leave the SWEEPING state once no pass is in flight.  Caller holds the lock."""
        self._active_passes -= 1
        if not self._active_passes:
            self._state = (
                SweeperState.IDLE if self._thread is not None else SweeperState.STOPPED
            )

    def _run_loop(self, stop_event: threading.Event) -> None:
        """Main loop running in the daemon thread."""
        logger.debug("Sweeper loop started")
        delay = self._initial_delay_s
        while not stop_event.wait(delay):
            delay = self._interval_s
            try:
                self.sweep_now()
            except Exception as exc:
                with self._lock:
                    self._errors += 1
                    errors = self._errors
                logger.error(
                    "Sweep pass failed",
                    extra={"error": str(exc), "errors": errors},
                    exc_info=True,
                )
        logger.debug("Sweeper loop exited")
