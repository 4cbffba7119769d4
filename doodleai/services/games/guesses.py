"""Scripted "AI" guesses.

The guesses are not computed from the drawing. A script is built up front
for the target word and then played back one event at a time by the engine,
which turns each event into a ProcessedGuess.
"""

import random
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

RELATED_WORDS: Dict[str, Tuple[str, ...]] = {
    'cat': ('dog', 'animal', 'pet', 'kitten', 'mouse'),
    'house': ('home', 'building', 'roof', 'door', 'window'),
    'car': ('vehicle', 'truck', 'bike', 'wheel', 'road'),
    'tree': ('plant', 'leaf', 'branch', 'forest', 'flower'),
    'sun': ('star', 'moon', 'light', 'sky', 'bright'),
    'fish': ('water', 'ocean', 'swimming', 'whale', 'shark'),
    'pizza': ('food', 'cheese', 'bread', 'slice', 'italian'),
    'guitar': ('music', 'instrument', 'string', 'sound', 'band'),
    'rainbow': ('colors', 'sky', 'rain', 'arc', 'bright'),
    'butterfly': ('insect', 'wings', 'flower', 'colorful', 'flying'),
}

DECOY_POOL: Tuple[str, ...] = (
    'circle', 'square', 'line', 'shape', 'blob', 'scribble',
    'drawing', 'art', 'sketch', 'doodle', 'mark', 'curve',
    'pattern', 'design', 'abstract', 'random', 'messy', 'unclear',
)

GUESS_COUNTS = (3, 4, 5, 6)
RELATED_PROBABILITY = 0.4
SUCCESS_PROBABILITY = 0.7


@dataclass(frozen=True)
class GuessEvent:
    text: str
    confidence: float
    delay_ms: float

    def to_dict(self):
        return {'guess': self.text, 'confidence': self.confidence, 'delay': self.delay_ms}


@dataclass(frozen=True)
class ProcessedGuess:
    text: str
    confidence: float
    timestamp_ms: float
    is_correct: bool

    def to_dict(self):
        return {
            'guess': self.text,
            'confidence': self.confidence,
            'timestamp': self.timestamp_ms,
            'is_correct': self.is_correct,
        }


@dataclass(frozen=True)
class GuessingSummary:
    guesses: Tuple[ProcessedGuess, ...]
    success: bool
    total_time_ms: float

    def to_dict(self):
        return {
            'guesses': [g.to_dict() for g in self.guesses],
            'success': self.success,
            'total_time': self.total_time_ms,
        }


@dataclass(frozen=True)
class GuessScript:
    events: Tuple[GuessEvent, ...]
    success: bool

    def __len__(self):
        return len(self.events)

    def __iter__(self):
        return iter(self.events)

    def __getitem__(self, index):
        return self.events[index]


def normalize(text: str) -> str:
    return (text or '').strip().lower()


class GuessScripter:
    """Builds guess scripts from an injectable random source."""

    def __init__(self, rng: Optional[random.Random] = None,
                 related: Optional[Dict[str, Sequence[str]]] = None,
                 decoys: Sequence[str] = DECOY_POOL):
        self._rng = rng or random.Random()
        self._related = RELATED_WORDS if related is None else related
        self._decoys = tuple(decoys)

    def related_words(self, target: str) -> Tuple[str, ...]:
        return tuple(self._related.get(normalize(target), ()))

    def build_sequence(self, target: str) -> Tuple[GuessEvent, ...]:
        return self.build_script(target).events

    def build_script(self, target: str) -> GuessScript:
        """Return the full script for one round.

        All but the last event are decoys (sometimes related to the target)
        with low confidence. The last event is the target itself on a
        "success" run and one more decoy otherwise.
        """
        rng = self._rng
        target = normalize(target)
        related = tuple(w for w in self.related_words(target) if normalize(w) != target)
        # A decoy must never match the target by accident
        decoys = tuple(w for w in self._decoys if normalize(w) != target) or ('scribble',)
        total = rng.choice(GUESS_COUNTS)

        sequence: List[GuessEvent] = []
        for _ in range(total - 1):
            if rng.random() < RELATED_PROBABILITY and related:
                text = rng.choice(related)
            else:
                text = rng.choice(decoys)
            sequence.append(GuessEvent(
                text=text,
                confidence=rng.uniform(0.2, 0.6),
                delay_ms=rng.uniform(1000, 3000),
            ))

        success = rng.random() < SUCCESS_PROBABILITY
        if success:
            sequence.append(GuessEvent(
                text=target,
                confidence=rng.uniform(0.7, 1.0),
                delay_ms=rng.uniform(1500, 3500),
            ))
        else:
            sequence.append(GuessEvent(
                text=rng.choice(decoys),
                confidence=rng.uniform(0.3, 0.7),
                delay_ms=rng.uniform(1500, 3500),
            ))
        return GuessScript(events=tuple(sequence), success=success)


def process_guess(event: GuessEvent, target: str, timestamp_ms: float) -> ProcessedGuess:
    return ProcessedGuess(
        text=normalize(event.text),
        confidence=event.confidence,
        timestamp_ms=timestamp_ms,
        is_correct=normalize(event.text) == normalize(target),
    )


def summarize(log: Sequence[ProcessedGuess]) -> GuessingSummary:
    total = log[-1].timestamp_ms - log[0].timestamp_ms if log else 0
    return GuessingSummary(
        guesses=tuple(log),
        success=any(g.is_correct for g in log),
        total_time_ms=total,
    )
