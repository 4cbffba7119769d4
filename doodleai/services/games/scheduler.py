import heapq
import itertools
import logging
import time
from typing import Any, Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)


class ScheduledCall:
    """Handle for a one-shot callback. Cancelling is idempotent."""

    def __init__(self, due: float, fn: Callable, args: Tuple[Any, ...], tag: Optional[tuple] = None):
        self.due = due
        self.fn = fn
        self.args = args
        self.tag = tag
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def active(self) -> bool:
        return not (self.cancelled or self.fired)

    def fire(self) -> None:
        if not self.active:
            return
        self.fired = True
        self.fn(*self.args)

    def __repr__(self):
        return f"<ScheduledCall tag={self.tag} due={self.due:.3f} cancelled={self.cancelled}>"


class Scheduler:
    """Cooperative one-shot scheduling. Waiting is always a future callback."""

    def call_later(self, delay_sec: float, fn: Callable, *args, tag: Optional[tuple] = None) -> ScheduledCall:
        raise NotImplementedError

    def now(self) -> float:
        raise NotImplementedError


class BackgroundScheduler(Scheduler):
    """Runs each call in a Socket.IO background task after sleeping.

    socketio.sleep cooperates with whichever async mode the server runs
    under (threading, eventlet or gevent).
    """

    def __init__(self, socketio, heartbeat_sec: int = 0):
        self._socketio = socketio
        self._heartbeat = heartbeat_sec

    def now(self) -> float:
        return time.monotonic()

    def call_later(self, delay_sec, fn, *args, tag=None):
        delay = max(0.0, float(delay_sec))
        call = ScheduledCall(self.now() + delay, fn, args, tag)
        logger.debug(f"[timer-set] tag={tag} delay={delay:.3f}s")
        self._socketio.start_background_task(self._worker, call, delay)
        return call

    def _worker(self, call: ScheduledCall, delay: float) -> None:
        hb = self._heartbeat
        if hb and hb > 0:
            slept = 0.0
            while slept < delay and not call.cancelled:
                step = min(hb, delay - slept)
                self._socketio.sleep(step)
                slept += step
                logger.info(f"[timer-heartbeat] tag={call.tag} remaining={max(0.0, delay - slept):.1f}s")
        else:
            self._socketio.sleep(delay)

        if call.cancelled:
            logger.debug(f"[timer-abort] tag={call.tag} cancelled")
            return
        logger.debug(f"[timer-fire] tag={call.tag}")
        try:
            call.fire()
        except Exception:
            # Nothing upstream would see an error raised inside a background task
            logger.exception(f"[timer-error] tag={call.tag}")


class ManualScheduler(Scheduler):
    """Virtual clock scheduler. Time only moves when advance() is called."""

    def __init__(self):
        self._now = 0.0
        self._queue: List[Tuple[float, int, ScheduledCall]] = []
        self._seq = itertools.count()

    def now(self) -> float:
        return self._now

    def call_later(self, delay_sec, fn, *args, tag=None):
        call = ScheduledCall(self._now + max(0.0, float(delay_sec)), fn, args, tag)
        heapq.heappush(self._queue, (call.due, next(self._seq), call))
        return call

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing due calls in (due, scheduled) order.

        Returns the number of calls fired.
        """
        target = self._now + seconds
        fired = 0
        while self._queue and self._queue[0][0] <= target + 1e-9:
            due, _, call = heapq.heappop(self._queue)
            self._now = max(self._now, due)
            if call.active:
                call.fire()
                fired += 1
        self._now = target
        return fired

    def run_until_idle(self, max_calls: int = 10000) -> int:
        fired = 0
        while self._queue and fired < max_calls:
            due, _, call = heapq.heappop(self._queue)
            self._now = max(self._now, due)
            if call.active:
                call.fire()
                fired += 1
        return fired

    def pending(self) -> int:
        return sum(1 for _, _, call in self._queue if call.active)
