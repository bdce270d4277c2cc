"""
Timer scheduler - cancellable delayed callbacks on daemon threads.

Each scheduled callback runs once on its own threading.Timer. Handles are
cancellable any number of times; cancelling after the callback ran is a
no-op.
"""
import logging
import threading
from typing import Callable

logger = logging.getLogger(__name__)


class TimerHandle:
    """Cancellable handle for one scheduled callback."""

    def __init__(self, timer: threading.Timer):
        self._timer = timer

    def cancel(self) -> None:
        self._timer.cancel()

    @property
    def active(self) -> bool:
        return self._timer.is_alive()


class TimerScheduler:
    """Schedules callbacks with threading.Timer."""

    def __init__(self, name: str = "economy-expiry"):
        self.name = name

    def schedule_after(self, delay_seconds: float, callback: Callable[[], None]) -> TimerHandle:
        def run():
            try:
                callback()
            except Exception as e:
                # Timer threads have no caller to propagate to
                logger.error(f"[{self.name}] Scheduled callback failed: {e}", exc_info=True)

        timer = threading.Timer(delay_seconds, run)
        timer.daemon = True
        timer.name = f"{self.name}-timer"
        timer.start()
        logger.debug(f"[{self.name}] Scheduled callback in {delay_seconds:.1f}s")
        return TimerHandle(timer)
