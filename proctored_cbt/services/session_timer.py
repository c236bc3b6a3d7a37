"""
services/session_timer.py

Countdown clock for a timed session.
One asyncio task ticks every ``tick_interval`` seconds; remaining time drops
by exactly 1 per tick. At 0 the task stops itself and fires ``on_expire``
once. The owner must cancel() the timer on teardown so no callback fires
after the session is gone.
"""

import asyncio
import logging
import time
from datetime import datetime
from typing import Callable, Optional, Union

logger = logging.getLogger(__name__)

_WARNING_THRESHOLD_SECONDS = 600  # last 10 minutes


def format_time(seconds: Optional[float]) -> str:
    """Seconds -> "MM:SS". Invalid input renders as 00:00."""
    if seconds is None or seconds != seconds or seconds < 0:
        return "00:00"
    minutes = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{minutes:02d}:{secs:02d}"


def calculate_time_remaining(
    start_time: Union[float, datetime],
    duration_minutes: float,
    now: Optional[float] = None,
) -> int:
    """
    Remaining whole seconds for a test started at ``start_time``.

    Args:
        start_time:       Unix timestamp or datetime of session start.
        duration_minutes: Time limit in minutes.
        now:              Current Unix timestamp (defaults to time.time()).
    """
    if isinstance(start_time, datetime):
        start_time = start_time.timestamp()
    now = time.time() if now is None else now
    elapsed = int(now - start_time)
    return max(0, int(duration_minutes * 60) - elapsed)


class SessionTimer:
    """Cancellable one-tick-per-interval countdown."""

    def __init__(
        self,
        duration_seconds: int,
        on_expire: Callable[[], None],
        on_tick: Optional[Callable[[int], None]] = None,
        tick_interval: float = 1.0,
    ) -> None:
        self.duration_seconds = max(0, int(duration_seconds))
        self.remaining = self.duration_seconds
        self.tick_interval = tick_interval
        self._on_expire = on_expire
        self._on_tick = on_tick
        self._task: Optional[asyncio.Task] = None
        self._expired = False
        self._cancelled = False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def expired(self) -> bool:
        return self._expired

    @property
    def is_warning(self) -> bool:
        return self.remaining < _WARNING_THRESHOLD_SECONDS

    def start(self) -> None:
        """Start ticking on the running event loop. Repeated calls are ignored."""
        if self._task is not None or self._cancelled:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info(f"Timer started: {format_time(self.remaining)}")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.tick_interval)
            if self._cancelled:
                return
            self.remaining = max(0, self.remaining - 1)
            if self._on_tick is not None:
                try:
                    self._on_tick(self.remaining)
                except Exception:
                    logger.exception("Timer tick callback failed")
            if self.remaining == 0:
                break

        self._expired = True
        logger.info("Timer reached 00:00, triggering auto-submit")
        try:
            self._on_expire()
        except Exception:
            logger.exception("Timer expiry callback failed")

    def cancel(self) -> None:
        """Stop the countdown. Safe before start() and when called repeatedly."""
        self._cancelled = True
        task = self._task
        if task is None or task.done():
            return
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        if task is not current:
            task.cancel()
        logger.debug(f"Timer cancelled at {format_time(self.remaining)}")

    dispose = cancel

    async def wait(self) -> None:
        """Wait until the timer finishes (expired or cancelled)."""
        if self._task is None:
            return
        try:
            await asyncio.shield(self._task)
        except asyncio.CancelledError:
            if not self._task.cancelled():
                raise
