"""Game domain services: words, guess scripting, timers, phases and scoring.

This package contains the pure round engine that should be driven by HTTP
routes and socket handlers, keeping transport concerns separated from core
game mechanics. Nothing in here imports Flask.
"""

from .errors import GameError, ExhaustedCatalog, InvalidStroke, InvalidTransition, NoActiveRound
from .words import Word, WordCatalog, load_words
from .guesses import GuessEvent, ProcessedGuess, GuessScript, GuessScripter, GuessingSummary
from .scoring import RoundScore, score
from .timer import RoundTimer
from .scheduler import Scheduler, ScheduledCall, BackgroundScheduler, ManualScheduler
from .machine import Phase, Trigger, RoundState, PhaseStateMachine
from .sequencer import RoundSequencer
from .drawing import DrawingBoard
from .engine import GameEngine

__all__ = [
    'GameError', 'ExhaustedCatalog', 'InvalidStroke', 'InvalidTransition', 'NoActiveRound',
    'Word', 'WordCatalog', 'load_words',
    'GuessEvent', 'ProcessedGuess', 'GuessScript', 'GuessScripter', 'GuessingSummary',
    'RoundScore', 'score',
    'RoundTimer',
    'Scheduler', 'ScheduledCall', 'BackgroundScheduler', 'ManualScheduler',
    'Phase', 'Trigger', 'RoundState', 'PhaseStateMachine',
    'RoundSequencer',
    'DrawingBoard',
    'GameEngine',
]
