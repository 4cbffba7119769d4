import logging
from typing import Callable, Optional

from .scheduler import ScheduledCall, Scheduler

logger = logging.getLogger(__name__)


class RoundTimer:
    """Countdown clock for the drawing phase.

    Ticks once per interval while running, never goes below zero, and calls
    on_expire exactly once when it reaches zero. Every scheduled tick carries
    the round id it was started for; a tick for any other round is dropped.
    """

    def __init__(self, scheduler: Scheduler, duration_sec: int = 30,
                 on_tick: Optional[Callable[[int, int], None]] = None,
                 on_expire: Optional[Callable[[int], None]] = None,
                 interval_sec: float = 1.0, heartbeat_sec: int = 0):
        self._scheduler = scheduler
        self.duration = int(duration_sec)
        self._on_tick = on_tick
        self._on_expire = on_expire
        self._interval = interval_sec
        self._heartbeat = heartbeat_sec
        self._handle: Optional[ScheduledCall] = None
        self.round_id: Optional[int] = None
        self.remaining = self.duration
        self.running = False

    def start(self, round_id: int) -> None:
        self.cancel()
        self.round_id = round_id
        self.remaining = self.duration
        self.running = True
        logger.info(f"[timer-set] round_id={round_id} duration={self.duration}s")
        self._schedule()

    def tick(self) -> int:
        """Advance the clock by one second and return the time left."""
        if not self.running:
            return self.remaining

        self.remaining = max(0, self.remaining - 1)
        if self._heartbeat and self.remaining % self._heartbeat == 0:
            logger.info(f"[timer-heartbeat] round_id={self.round_id} remaining={self.remaining}s")
        if self._on_tick:
            self._on_tick(self.round_id, self.remaining)

        if self.remaining == 0:
            self.running = False
            if self._handle is not None:
                self._handle.cancel()
                self._handle = None
            logger.info(f"[timer-expire] round_id={self.round_id}")
            if self._on_expire:
                self._on_expire(self.round_id)
        return self.remaining

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        if self.running:
            logger.info(f"[timer-cancel] round_id={self.round_id} remaining={self.remaining}s")
        self.running = False

    def _schedule(self) -> None:
        self._handle = self._scheduler.call_later(
            self._interval, self._scheduled_tick, self.round_id, tag=('tick', self.round_id)
        )

    def _scheduled_tick(self, round_id: int) -> None:
        if not self.running or round_id != self.round_id:
            logger.debug(f"[timer-abort] round_id={round_id} live_round_id={self.round_id}")
            return
        self.tick()
        if self.running:
            self._schedule()
