import math
from typing import NamedTuple

BASE_POINTS = 500
POINTS_LOST_PER_SECOND = 10
MIN_CORRECT_POINTS = 100
POINTS_PER_COIN = 50
STREAK_BONUS_THRESHOLD = 2
STREAK_BONUS_PER_ROUND = 50


class RoundScore(NamedTuple):
    points: int
    coins: int
    new_streak: int

    def to_dict(self):
        return {'points': self.points, 'coins': self.coins, 'new_streak': self.new_streak}


def score(correct: bool, elapsed_seconds: float, current_streak: int) -> RoundScore:
    """Score one round.

    Faster correct guesses are worth more (linear decay floored at 100) and
    a streak of three or more correct rounds adds streak x 50 on top.
    A miss scores nothing and breaks the streak.
    """
    if not correct:
        return RoundScore(points=0, coins=0, new_streak=0)

    points = max(MIN_CORRECT_POINTS, math.floor(BASE_POINTS - elapsed_seconds * POINTS_LOST_PER_SECOND))
    coins = points // POINTS_PER_COIN
    new_streak = current_streak + 1

    if new_streak > STREAK_BONUS_THRESHOLD:
        bonus = new_streak * STREAK_BONUS_PER_ROUND
        points += bonus
        coins += bonus // POINTS_PER_COIN

    return RoundScore(points=points, coins=coins, new_streak=new_streak)
