import logging

from .errors import InvalidTransition
from .machine import Phase, PhaseStateMachine, RoundState, Trigger
from .words import WordCatalog

logger = logging.getLogger(__name__)


class RoundSequencer:
    """Moves a session from round to round and decides when the game ends.

    The sequencer only computes what should be persisted at the end of a
    game; the profile collaborator does the persisting.
    """

    def __init__(self, catalog: WordCatalog, profile=None):
        self.catalog = catalog
        self.profile = profile

    def start(self, machine: PhaseStateMachine, difficulty: int = 1) -> RoundState:
        if not machine.can_fire(Trigger.START_ROUND):
            raise InvalidTransition(machine.phase, Trigger.START_ROUND)
        word = self.catalog.next_word(difficulty)
        return machine.fire(
            Trigger.START_ROUND,
            difficulty=difficulty,
            **self._fresh_round(machine, word),
        )

    def advance(self, machine: PhaseStateMachine) -> RoundState:
        state = machine.state
        if state.phase is not Phase.RESULTS:
            raise InvalidTransition(state.phase, Trigger.NEXT_ROUND)

        if not state.is_last_round:
            word = self.catalog.next_word(state.difficulty)
            return machine.fire(
                Trigger.NEXT_ROUND,
                round_number=state.round_number + 1,
                **self._fresh_round(machine, word),
            )

        finished = machine.fire(Trigger.FINISH_GAME, notice=None)
        logger.info(f"[finish] finished at round={finished.round_number} total_score={finished.total_score}")
        return self._report_completion(machine, finished)

    def reset(self, machine: PhaseStateMachine) -> RoundState:
        return machine.reset()

    def _fresh_round(self, machine: PhaseStateMachine, word) -> dict:
        return {
            'word': word,
            'time_remaining': machine.draw_duration,
            'score': 0,
            'round_coins': 0,
            'was_correct': None,
            'notice': None,
        }

    def _report_completion(self, machine: PhaseStateMachine, state: RoundState) -> RoundState:
        if self.profile is None:
            return state
        try:
            result = self.profile.record_game_completion(state.total_score, state.round_number)
        except Exception:
            logger.exception('[profile] failed to record game completion')
            return machine.set_notice('Could not save your game results')
        if result and result.get('is_new_high_score'):
            return machine.set_notice('New high score!', new_high_score=True)
        return state
