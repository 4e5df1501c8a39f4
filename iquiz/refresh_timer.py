"""
Recurring refresh timer for the quiz catalog.
Keeps at most one scheduled asyncio task alive per timer instance.
"""
import asyncio
import logging
import time
from typing import Any, Callable, Optional

# Set up logger for timer operations
logger = logging.getLogger(__name__)


class TimerLifecycleLogger:
    """Structured logging for refresh timer lifecycle events."""

    @staticmethod
    def log_timer_started(name: str, interval: float) -> None:
        logger.info(
            f"Timer lifecycle: STARTED - {name}, Interval {interval}s",
            extra={
                'event_type': 'timer_started',
                'timer_name': name,
                'interval': interval,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_timer_replaced(name: str, old_interval: float, new_interval: float) -> None:
        logger.info(
            f"Timer lifecycle: REPLACED - {name}, {old_interval}s -> {new_interval}s",
            extra={
                'event_type': 'timer_replaced',
                'timer_name': name,
                'old_interval': old_interval,
                'interval': new_interval,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_timer_fired(name: str, fire_count: int) -> None:
        logger.debug(
            f"Timer lifecycle: FIRED - {name}, Tick {fire_count}",
            extra={
                'event_type': 'timer_fired',
                'timer_name': name,
                'fire_count': fire_count,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_timer_cancelled(name: str, reason: str) -> None:
        logger.info(
            f"Timer lifecycle: CANCELLED - {name} ({reason})",
            extra={
                'event_type': 'timer_cancelled',
                'timer_name': name,
                'reason': reason,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_timer_error(name: str, error_type: str, error_message: str, operation: str) -> None:
        logger.error(
            f"Timer lifecycle: ERROR - {name}, Operation {operation}, Type {error_type}: {error_message}",
            extra={
                'event_type': 'timer_error',
                'timer_name': name,
                'error_type': error_type,
                'error_message': error_message,
                'operation': operation,
                'timestamp': time.time()
            }
        )


class RefreshTimer:
    """Fires a callback every ``interval`` seconds until cancelled or replaced."""

    def __init__(self, name: str = "catalog_refresh"):
        """Initialize the timer."""
        self._name = name
        self._task: Optional[asyncio.Task] = None
        self._interval: Optional[float] = None
        self._fire_count = 0

    def start(self, interval: float, callback: Callable[[], Any]) -> asyncio.Task:
        """
        Start firing ``callback`` every ``interval`` seconds.

        Any previously started schedule is cancelled first, so repeated calls
        never leave more than one schedule running. Must be called with a
        running event loop.

        Args:
            interval: Seconds between firings
            callback: Called on each tick; exceptions are logged, not propagated

        Returns:
            The scheduled asyncio task

        Raises:
            ValueError: If interval is not positive
        """
        if interval <= 0:
            raise ValueError(f"Timer interval must be positive, got {interval}")

        loop = asyncio.get_running_loop()
        old_interval = self._interval
        replaced = self.cancel(reason="replaced")

        self._interval = interval
        self._fire_count = 0
        self._task = loop.create_task(
            self._run(interval, callback),
            name=f"{self._name}_timer",
        )

        if replaced:
            TimerLifecycleLogger.log_timer_replaced(self._name, old_interval, interval)
        else:
            TimerLifecycleLogger.log_timer_started(self._name, interval)
        return self._task

    async def _run(self, interval: float, callback: Callable[[], Any]) -> None:
        try:
            while True:
                await asyncio.sleep(interval)
                self._fire_count += 1
                TimerLifecycleLogger.log_timer_fired(self._name, self._fire_count)
                try:
                    callback()
                except Exception as e:
                    TimerLifecycleLogger.log_timer_error(
                        self._name,
                        type(e).__name__,
                        str(e),
                        "callback"
                    )
        except asyncio.CancelledError:
            logger.debug(f"Timer task for {self._name} received cancellation")
            raise

    def cancel(self, reason: str = "cancel requested") -> bool:
        """
        Cancel the running schedule.

        Returns:
            True if an active schedule was cancelled, False if none was running
        """
        if self._task is None or self._task.done():
            self._task = None
            return False

        self._task.cancel()
        self._task = None
        TimerLifecycleLogger.log_timer_cancelled(self._name, reason)
        return True

    @property
    def is_active(self) -> bool:
        """Check if a schedule is running."""
        return self._task is not None and not self._task.done()

    @property
    def interval(self) -> Optional[float]:
        """Interval of the current schedule, or of the last one if cancelled."""
        return self._interval

    @property
    def fire_count(self) -> int:
        """Ticks fired by the current schedule."""
        return self._fire_count
