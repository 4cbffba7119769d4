"""Word catalog: the fixed word list and the per-session picker."""

import json
import os
import random
from dataclasses import dataclass, field, replace
from datetime import date
from functools import lru_cache
from typing import List, Optional, Set, Tuple

from .errors import ExhaustedCatalog

DIFFICULTY_TIERS = (1, 2, 3)
WORDS_FILE = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))), 'data', 'words.json')


@dataclass(frozen=True)
class Word:
    id: int
    text: str
    category: str
    difficulty: int
    hints: Tuple[str, ...] = field(default_factory=tuple)
    is_daily: bool = False

    def visible_hints(self) -> Tuple[str, ...]:
        """Hints shown to the drawer. Easy words get none."""
        if self.difficulty <= 1:
            return ()
        return self.hints[:min(2, len(self.hints))]

    def to_dict(self):
        return {
            'id': self.id,
            'word': self.text,
            'category': self.category,
            'difficulty': self.difficulty,
            'hints': list(self.hints),
            'visible_hints': list(self.visible_hints()),
            'is_daily': self.is_daily,
        }


@lru_cache(maxsize=None)
def load_words(path: str = WORDS_FILE) -> Tuple[Word, ...]:
    """Load and validate the word list shipped with the package."""
    with open(path, 'r', encoding='utf-8') as f:
        raw = json.load(f)
    if not isinstance(raw, list) or not raw:
        raise ValueError(f"Word list at {path} must be a non-empty array")

    words = []
    for entry in raw:
        difficulty = int(entry['difficulty'])
        if difficulty not in DIFFICULTY_TIERS:
            raise ValueError(f"Word {entry.get('word')!r} has invalid difficulty {difficulty}")
        words.append(Word(
            id=int(entry['id']),
            text=entry['word'],
            category=entry.get('category', ''),
            difficulty=difficulty,
            hints=tuple(entry.get('hints') or ()),
        ))
    return tuple(words)


class WordCatalog:
    """Hands out random words per tier without repeating until a tier is used up."""

    def __init__(self, words=None, rng: Optional[random.Random] = None):
        self._words: Tuple[Word, ...] = tuple(words) if words is not None else load_words()
        self._rng = rng or random.Random()
        self._used: Set[int] = set()

    def next_word(self, difficulty: int = 1) -> Word:
        word = self._pick(difficulty)
        if word is None:
            # Every word of the tier has been dispensed: start the cycle over
            self._used.clear()
            word = self._pick(difficulty)
        if word is None:
            raise ExhaustedCatalog(difficulty)
        self._used.add(word.id)
        return word

    def _pick(self, difficulty: int) -> Optional[Word]:
        available = [w for w in self._words if w.difficulty == difficulty and w.id not in self._used]
        if not available:
            return None
        return self._rng.choice(available)

    def words_by_difficulty(self, difficulty: int) -> List[Word]:
        return [w for w in self._words if w.difficulty == difficulty]

    def daily_challenge(self, day: Optional[date] = None) -> Word:
        """Same word for everyone on a given calendar day."""
        day = day or date.today()
        seed = sum(ord(c) for c in day.strftime('%a %b %d %Y'))
        return replace(self._words[seed % len(self._words)], is_daily=True)

    def get(self, word_id: int) -> Optional[Word]:
        for w in self._words:
            if w.id == word_id:
                return w
        return None

    def mark_used(self, word_id: int) -> None:
        self._used.add(word_id)

    def reset_used(self) -> None:
        self._used.clear()

    @property
    def used_count(self) -> int:
        return len(self._used)
