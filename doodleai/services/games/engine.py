"""One game session: wires the round components together.

Every callback the engine schedules (countdown, guess playback, the hold
after a correct guess) carries the round_id that was live when it was
scheduled. Starting a round, advancing, and resetting all bump the round_id,
so anything still queued for an older round is dropped on arrival even if
cancelling its handle raced with it firing.
"""

import logging
import threading
from typing import Callable, List, Optional

from .drawing import DrawingBoard
from .errors import InvalidTransition, NoActiveRound
from .guesses import GuessScript, GuessScripter, ProcessedGuess, process_guess, summarize
from .machine import Phase, PhaseStateMachine, RoundState, Trigger
from .scheduler import ScheduledCall, Scheduler
from .scoring import score
from .sequencer import RoundSequencer
from .timer import RoundTimer
from .words import WordCatalog

logger = logging.getLogger(__name__)


class GameEngine:
    def __init__(self, scheduler: Scheduler, catalog: Optional[WordCatalog] = None, profile=None,
                 scripter: Optional[GuessScripter] = None, drawing: Optional[DrawingBoard] = None,
                 max_rounds: int = 5, countdown_sec: float = 3, draw_duration_sec: int = 30,
                 correct_hold_ms: float = 1500, heartbeat_sec: int = 0, game_code: Optional[str] = None,
                 clock: Optional[Callable[[], float]] = None):
        self.game_code = game_code
        self.scheduler = scheduler
        self.catalog = catalog or WordCatalog()
        self.scripter = scripter or GuessScripter()
        self.drawing = drawing or DrawingBoard()
        self.profile = profile
        self.countdown_sec = countdown_sec
        self.correct_hold_ms = correct_hold_ms
        # Guess timestamps share the time base of the scheduler playing them back
        self._clock = clock or scheduler.now

        self.machine = PhaseStateMachine(max_rounds=max_rounds, draw_duration_sec=draw_duration_sec)
        self.sequencer = RoundSequencer(self.catalog, profile)
        self.timer = RoundTimer(
            scheduler,
            duration_sec=draw_duration_sec,
            on_tick=self._on_tick,
            on_expire=self._on_timer_expired,
            heartbeat_sec=heartbeat_sec,
        )

        self._lock = threading.RLock()
        self._pending: List[ScheduledCall] = []
        self._script: Optional[GuessScript] = None
        self._cursor = 0
        self._elapsed_ms = 0.0
        self._log: List[ProcessedGuess] = []
        self._update_listeners: List[Callable[[RoundState], None]] = []
        self._guess_listeners: List[Callable[[ProcessedGuess], None]] = []
        self.closed = False

    # ---- Queries ----

    def snapshot(self) -> RoundState:
        return self.machine.state

    def guesses(self) -> List[ProcessedGuess]:
        with self._lock:
            return list(self._log)

    def guessing_summary(self):
        with self._lock:
            return summarize(self._log)

    def current_drawing(self):
        return self.drawing.current

    def add_listener(self, on_update=None, on_guess=None) -> None:
        if on_update:
            self._update_listeners.append(on_update)
        if on_guess:
            self._guess_listeners.append(on_guess)

    # ---- Commands ----

    def start(self, difficulty: int = 1) -> RoundState:
        with self._lock:
            state = self.sequencer.start(self.machine, int(difficulty))
            self._begin_round(state)
            return self._publish(state)

    def advance(self) -> RoundState:
        with self._lock:
            state = self.sequencer.advance(self.machine)
            if state.phase is Phase.COUNTDOWN:
                self._begin_round(state)
            else:
                self._cancel_pending()
                self.drawing.discard()
            return self._publish(state)

    def reset(self) -> RoundState:
        with self._lock:
            self._stop_round_work()
            state = self.sequencer.reset(self.machine)
            return self._publish(state)

    def add_stroke(self, points, color=None, size=None):
        with self._lock:
            self._require_drawing('add_stroke')
            return self.drawing.add_stroke(points, color=color, size=size)

    def undo(self):
        with self._lock:
            self._require_drawing('undo')
            return self.drawing.undo()

    def clear(self):
        with self._lock:
            self._require_drawing('clear')
            return self.drawing.clear()

    def shutdown(self) -> None:
        """Cancel everything still scheduled. The engine is unusable afterwards."""
        with self._lock:
            self._stop_round_work()
            self._update_listeners.clear()
            self._guess_listeners.clear()
            self.closed = True
            logger.info(f"[session-end] game={self.game_code}")

    # ---- Round lifecycle ----

    def _begin_round(self, state: RoundState) -> None:
        self._stop_round_work()
        self._schedule(self.countdown_sec, self._on_countdown_elapsed, state.round_id, 'countdown')

    def _stop_round_work(self) -> None:
        self._cancel_pending()
        self.timer.cancel()
        self.drawing.discard()
        self._script = None
        self._cursor = 0
        self._elapsed_ms = 0.0
        self._log = []

    def _on_countdown_elapsed(self, round_id: int) -> None:
        state = self.machine.fire(Trigger.COUNTDOWN_ELAPSED, time_remaining=self.machine.draw_duration)
        self.drawing.start(state.word.id if state.word else None)
        self.timer.start(round_id)
        self._publish(state)

    def _on_tick(self, round_id: int, remaining: int) -> None:
        with self._lock:
            if not self._is_live(round_id, 'tick'):
                return
            try:
                state = self.machine.update_time(remaining)
            except InvalidTransition as exc:
                logger.debug(f"[stale-signal] game={self.game_code} {exc}")
                return
            self._publish(state)

    def _on_timer_expired(self, round_id: int) -> None:
        with self._lock:
            if not self._is_live(round_id, 'expire'):
                return
            state = self.machine.state
            if state.phase is not Phase.DRAWING or state.word is None:
                logger.debug(f"[stale-signal] game={self.game_code} expire in {state.phase}")
                return
            self.drawing.complete()
            self._script = self.scripter.build_script(state.word.text)
            self._cursor = 0
            self._elapsed_ms = 0.0
            self._log = []
            state = self.machine.fire(Trigger.TIMER_EXPIRED, time_remaining=0)
            logger.info(
                f"[guessing] game={self.game_code} round_id={round_id} guesses={len(self._script)} "
                f"success={self._script.success}"
            )
            self._publish(state)
            self._schedule_next_guess(round_id)

    def _schedule_next_guess(self, round_id: int) -> None:
        event = self._script[self._cursor]
        self._schedule(event.delay_ms / 1000.0, self._play_guess, round_id, 'guess')

    def _play_guess(self, round_id: int) -> None:
        state = self.machine.state
        if state.phase is not Phase.GUESSING or self._script is None:
            raise InvalidTransition(state.phase, 'guess')

        event = self._script[self._cursor]
        self._cursor += 1
        self._elapsed_ms += event.delay_ms
        processed = process_guess(event, state.word.text, timestamp_ms=self._clock() * 1000.0)
        self._log.append(processed)
        logger.info(
            f"[guess] game={self.game_code} round_id={round_id} #{self._cursor} "
            f"guess={processed.text!r} confidence={processed.confidence:.2f} correct={processed.is_correct}"
        )
        for listener in list(self._guess_listeners):
            listener(processed)

        if processed.is_correct:
            # Nothing after a correct guess may be played
            self._cancel_pending()
            self._schedule(self.correct_hold_ms / 1000.0, self._finish_correct, round_id, 'hold')
        elif self._cursor >= len(self._script):
            self._finish_round(correct=False)
        else:
            self._schedule_next_guess(round_id)

    def _finish_correct(self, round_id: int) -> None:
        self._finish_round(correct=True)

    def _finish_round(self, correct: bool) -> None:
        current = self.machine.state
        if correct:
            elapsed = int(self._elapsed_ms // 1000)
        else:
            elapsed = self.machine.draw_duration
        result = score(correct, elapsed, current.streak)
        state = self.machine.fire(
            Trigger.GUESSING_FINISHED,
            score=result.points,
            round_coins=result.coins,
            total_score=current.total_score + result.points,
            coins=current.coins + result.coins,
            streak=result.new_streak,
            was_correct=correct,
        )
        self._script = None
        logger.info(
            f"[results] game={self.game_code} round={state.round_number} correct={correct} "
            f"elapsed={elapsed}s points={result.points} coins={result.coins} streak={result.new_streak}"
        )
        self._publish(self._report_round(state))

    def _report_round(self, state: RoundState) -> RoundState:
        if self.profile is None:
            return state
        try:
            self.profile.record_round_result(state.round_coins)
            self.profile.record_streak(state.streak)
        except Exception:
            logger.exception(f"[profile] game={self.game_code} failed to record round result")
            return self.machine.set_notice('Could not save your coins for this round')
        return state

    # ---- Scheduling helpers ----

    def _schedule(self, delay_sec: float, fn, round_id: int, label: str) -> ScheduledCall:
        self._pending = [c for c in self._pending if c.active]
        call = self.scheduler.call_later(
            delay_sec, self._guarded, fn, round_id, tag=(self.game_code, label, round_id)
        )
        self._pending.append(call)
        return call

    def _guarded(self, fn, round_id: int) -> None:
        with self._lock:
            if not self._is_live(round_id, fn.__name__):
                return
            try:
                fn(round_id)
            except InvalidTransition as exc:
                logger.debug(f"[stale-signal] game={self.game_code} {exc}")

    def _is_live(self, round_id: int, what: str) -> bool:
        live = self.machine.state.round_id
        if self.closed or round_id != live:
            logger.debug(f"[timer-abort] game={self.game_code} {what} round_id={round_id} live_round_id={live}")
            return False
        return True

    def _cancel_pending(self) -> None:
        for call in self._pending:
            call.cancel()
        self._pending = []

    def _require_drawing(self, operation: str) -> None:
        if self.machine.phase is not Phase.DRAWING or self.drawing.current is None:
            raise NoActiveRound(operation)

    def _publish(self, state: RoundState) -> RoundState:
        for listener in list(self._update_listeners):
            listener(state)
        return state
