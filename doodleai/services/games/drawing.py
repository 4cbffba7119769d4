import itertools
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from .errors import InvalidStroke, NoActiveRound

DEFAULT_COLOR = '#FF6B6B'
DEFAULT_SIZE = 4


@dataclass
class Stroke:
    id: int
    points: List[Sequence[float]]
    color: str = DEFAULT_COLOR
    size: int = DEFAULT_SIZE
    timestamp: float = 0.0

    def to_dict(self):
        return {
            'id': self.id,
            'points': [list(p) for p in self.points],
            'color': self.color,
            'size': self.size,
            'timestamp': self.timestamp,
        }


@dataclass
class Drawing:
    id: int
    word_id: Optional[int]
    timestamp: float
    strokes: List[Stroke] = field(default_factory=list)
    completed: bool = False
    completed_at: Optional[float] = None

    def to_dict(self):
        return {
            'id': self.id,
            'word_id': self.word_id,
            'timestamp': self.timestamp,
            'strokes': [s.to_dict() for s in self.strokes],
            'completed': self.completed,
            'completed_at': self.completed_at,
        }


class DrawingBoard:
    """Stroke bookkeeping for the canvas of the current round."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._ids = itertools.count(1)
        self._drawing: Optional[Drawing] = None

    @property
    def current(self) -> Optional[Drawing]:
        return self._drawing

    def start(self, word_id: Optional[int]) -> Drawing:
        self._drawing = Drawing(id=next(self._ids), word_id=word_id, timestamp=self._clock())
        return self._drawing

    def add_stroke(self, points, color: Optional[str] = None, size: Optional[int] = None) -> Drawing:
        drawing = self._editable('add_stroke')
        # Validate everything before touching the drawing
        points, color, size = _clean_points(points), _clean_color(color), _clean_size(size)
        drawing.strokes.append(Stroke(
            id=next(self._ids),
            points=points,
            color=color,
            size=size,
            timestamp=self._clock(),
        ))
        return drawing

    def undo(self) -> Drawing:
        drawing = self._editable('undo')
        if drawing.strokes:
            drawing.strokes.pop()
        return drawing

    def clear(self) -> Drawing:
        drawing = self._editable('clear')
        drawing.strokes = []
        return drawing

    def complete(self) -> Optional[Drawing]:
        if self._drawing is None:
            return None
        self._drawing.completed = True
        self._drawing.completed_at = self._clock()
        return self._drawing

    def discard(self) -> None:
        self._drawing = None

    def _editable(self, operation: str) -> Drawing:
        if self._drawing is None or self._drawing.completed:
            raise NoActiveRound(operation)
        return self._drawing


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _clean_points(points) -> List[List[float]]:
    if not isinstance(points, (list, tuple)) or not points:
        raise InvalidStroke('points must be a non-empty list')
    cleaned = []
    for point in points:
        if not isinstance(point, (list, tuple)) or len(point) != 2 or not all(_is_number(c) for c in point):
            raise InvalidStroke(f'point {point!r} is not an [x, y] pair of numbers')
        cleaned.append([point[0], point[1]])
    return cleaned


def _clean_color(color) -> str:
    if color is None:
        return DEFAULT_COLOR
    if not isinstance(color, str) or not color:
        raise InvalidStroke('color must be a string')
    return color


def _clean_size(size) -> int:
    if size is None:
        return DEFAULT_SIZE
    if not _is_number(size) or size <= 0:
        raise InvalidStroke('size must be a positive number')
    return int(size)
