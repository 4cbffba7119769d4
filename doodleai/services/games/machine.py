"""Phase state machine.

The machine is the only writer of RoundState. Each transition swaps in a new
frozen snapshot, so whatever a listener was handed earlier never changes
under it.

Phases of a round:

    menu -> countdown -> drawing -> guessing -> results -> countdown (next round)
                                                       \\-> gameOver (last round)

Reset returns any phase to menu.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Optional, Tuple

from .errors import InvalidTransition
from .words import Word

logger = logging.getLogger(__name__)


class Phase(str, Enum):
    MENU = 'menu'
    COUNTDOWN = 'countdown'
    DRAWING = 'drawing'
    GUESSING = 'guessing'
    RESULTS = 'results'
    GAME_OVER = 'gameOver'

    def __str__(self):
        return self.value


class Trigger(str, Enum):
    START_ROUND = 'start_round'
    COUNTDOWN_ELAPSED = 'countdown_elapsed'
    TIMER_EXPIRED = 'timer_expired'
    GUESSING_FINISHED = 'guessing_finished'
    NEXT_ROUND = 'next_round'
    FINISH_GAME = 'finish_game'
    RESET = 'reset'

    def __str__(self):
        return self.value


TRANSITIONS: Dict[Tuple[Phase, Trigger], Phase] = {
    (Phase.MENU, Trigger.START_ROUND): Phase.COUNTDOWN,
    (Phase.COUNTDOWN, Trigger.COUNTDOWN_ELAPSED): Phase.DRAWING,
    (Phase.DRAWING, Trigger.TIMER_EXPIRED): Phase.GUESSING,
    (Phase.GUESSING, Trigger.GUESSING_FINISHED): Phase.RESULTS,
    (Phase.RESULTS, Trigger.NEXT_ROUND): Phase.COUNTDOWN,
    (Phase.RESULTS, Trigger.FINISH_GAME): Phase.GAME_OVER,
    (Phase.GAME_OVER, Trigger.RESET): Phase.MENU,
    # Explicit reset from the middle of a game
    (Phase.MENU, Trigger.RESET): Phase.MENU,
    (Phase.COUNTDOWN, Trigger.RESET): Phase.MENU,
    (Phase.DRAWING, Trigger.RESET): Phase.MENU,
    (Phase.GUESSING, Trigger.RESET): Phase.MENU,
    (Phase.RESULTS, Trigger.RESET): Phase.MENU,
}

# Triggers that start a new generation of scheduled work
NEW_ROUND_TRIGGERS = frozenset({Trigger.START_ROUND, Trigger.NEXT_ROUND, Trigger.RESET})


@dataclass(frozen=True)
class RoundState:
    round_id: int = 0
    round_number: int = 1
    max_rounds: int = 5
    phase: Phase = Phase.MENU
    difficulty: int = 1
    word: Optional[Word] = None
    time_remaining: int = 30
    score: int = 0
    round_coins: int = 0
    total_score: int = 0
    coins: int = 0
    streak: int = 0
    was_correct: Optional[bool] = None
    new_high_score: bool = False
    notice: Optional[str] = None

    @property
    def is_last_round(self) -> bool:
        return self.round_number >= self.max_rounds

    def to_dict(self):
        return {
            'round_id': self.round_id,
            'round': self.round_number,
            'max_rounds': self.max_rounds,
            'phase': self.phase.value,
            'difficulty': self.difficulty,
            'word': self.word.to_dict() if self.word else None,
            'time_remaining': self.time_remaining,
            'score': self.score,
            'round_coins': self.round_coins,
            'total_score': self.total_score,
            'coins': self.coins,
            'streak': self.streak,
            'was_correct': self.was_correct,
            'new_high_score': self.new_high_score,
            'notice': self.notice,
        }


class PhaseStateMachine:
    def __init__(self, max_rounds: int = 5, draw_duration_sec: int = 30):
        if max_rounds < 1:
            raise ValueError('max_rounds must be at least 1')
        self.max_rounds = max_rounds
        self.draw_duration = draw_duration_sec
        self._state = RoundState(max_rounds=max_rounds, time_remaining=draw_duration_sec)

    @property
    def state(self) -> RoundState:
        return self._state

    @property
    def phase(self) -> Phase:
        return self._state.phase

    def can_fire(self, trigger: Trigger) -> bool:
        return (self._state.phase, trigger) in TRANSITIONS

    def fire(self, trigger: Trigger, **changes) -> RoundState:
        """Apply one edge of the transition table.

        Raises InvalidTransition, leaving the state untouched, when the
        current phase has no edge for the trigger.
        """
        current = self._state
        target = TRANSITIONS.get((current.phase, trigger))
        if target is None:
            raise InvalidTransition(current.phase, trigger)

        if trigger in NEW_ROUND_TRIGGERS:
            changes['round_id'] = current.round_id + 1
        updated = replace(current, phase=target, **changes)
        if target is not Phase.GAME_OVER and updated.round_number > updated.max_rounds:
            raise InvalidTransition(current.phase, trigger)

        self._state = updated
        logger.info(
            f"[phase] round_id={updated.round_id} round={updated.round_number}/{updated.max_rounds} "
            f"{current.phase} -> {target} trigger={trigger}"
        )
        return updated

    def update_time(self, remaining: int) -> RoundState:
        """Record the drawing clock. Time only ever goes down and stops at 0."""
        current = self._state
        if current.phase is not Phase.DRAWING:
            raise InvalidTransition(current.phase, 'tick')
        remaining = max(0, min(int(remaining), current.time_remaining))
        self._state = replace(current, time_remaining=remaining)
        return self._state

    def set_notice(self, notice: Optional[str], **flags) -> RoundState:
        """Attach a user-facing notice (and result flags) without moving phase."""
        self._state = replace(self._state, notice=notice, **flags)
        return self._state

    def reset(self) -> RoundState:
        """Clear all round state and return to the menu."""
        return self.fire(
            Trigger.RESET,
            round_number=1,
            difficulty=1,
            word=None,
            time_remaining=self.draw_duration,
            score=0,
            round_coins=0,
            total_score=0,
            coins=0,
            streak=0,
            was_correct=None,
            new_high_score=False,
            notice=None,
        )
