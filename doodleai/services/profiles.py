"""Player profile persistence.

ProfileRecorder is the collaborator a GameEngine reports round and game
results to. It owns its own app context because engine callbacks run in
Socket.IO background tasks, outside any request.
"""

from typing import Optional

from doodleai import db
from doodleai.models import PlayerProfile

BRUSH_UNLOCKS = ['neon', 'pixel', 'watercolor', 'crayon', 'marker']
XP_PER_LEVEL = 1000
POINTS_PER_XP = 10
BRUSH_UNLOCK_EVERY_LEVELS = 3


class ProfileNotFound(LookupError):
    def __init__(self, profile_key):
        super().__init__(f'Unknown player profile {profile_key}')
        self.profile_key = profile_key


def create_profile() -> PlayerProfile:
    profile = PlayerProfile()
    db.session.add(profile)
    db.session.commit()
    return profile


def get_profile(profile_key: str) -> Optional[PlayerProfile]:
    # Recorders commit from their own sessions, so always reload the row
    return PlayerProfile.query.filter_by(profile_key=profile_key).populate_existing().first()


def reset_profile(profile_key: str) -> PlayerProfile:
    """Wipe progress but keep the identifier."""
    profile = get_profile(profile_key)
    if profile is None:
        raise ProfileNotFound(profile_key)
    profile.total_coins = 0
    profile.high_score = 0
    profile.level = 1
    profile.experience = 0
    profile.games_played = 0
    profile.total_drawings = 0
    profile.best_streak = 0
    profile.brushes = ['default']
    profile.achievements = '[]'
    db.session.add(profile)
    db.session.commit()
    return profile


def add_experience(profile: PlayerProfile, amount: int) -> bool:
    """Add experience, level up every 1000 XP and unlock a brush every third level."""
    profile.experience = (profile.experience or 0) + int(amount)
    new_level = profile.experience // XP_PER_LEVEL + 1
    if new_level <= (profile.level or 1):
        return False
    profile.level = new_level
    if new_level % BRUSH_UNLOCK_EVERY_LEVELS == 0:
        brushes = profile.brushes
        next_brush = next((b for b in BRUSH_UNLOCKS if b not in brushes), None)
        if next_brush:
            brushes.append(next_brush)
            profile.brushes = brushes
    return True


def unlock_brush(profile: PlayerProfile, brush: str) -> None:
    brushes = profile.brushes
    if brush not in brushes:
        brushes.append(brush)
        profile.brushes = brushes


def unlock_profile_brush(profile_key: str, brush: str) -> PlayerProfile:
    profile = get_profile(profile_key)
    if profile is None:
        raise ProfileNotFound(profile_key)
    unlock_brush(profile, brush)
    db.session.add(profile)
    db.session.commit()
    return profile


class ProfileRecorder:
    def __init__(self, app, profile_key: str):
        self.app = app
        self.profile_key = profile_key

    def record_round_result(self, coins_earned: int) -> dict:
        def apply(profile):
            profile.total_coins = (profile.total_coins or 0) + int(coins_earned)
            return profile.to_dict()
        return self._update(apply)

    def record_streak(self, streak: int) -> dict:
        def apply(profile):
            if streak > (profile.best_streak or 0):
                profile.best_streak = streak
            return profile.to_dict()
        return self._update(apply)

    def record_game_completion(self, total_score: int, rounds_played: int) -> dict:
        def apply(profile):
            profile.games_played = (profile.games_played or 0) + 1
            profile.total_drawings = (profile.total_drawings or 0) + int(rounds_played)
            is_new_high_score = total_score > (profile.high_score or 0)
            if is_new_high_score:
                profile.high_score = total_score
            leveled_up = add_experience(profile, total_score // POINTS_PER_XP)
            return {
                'is_new_high_score': is_new_high_score,
                'leveled_up': leveled_up,
                'profile': profile.to_dict(),
            }
        return self._update(apply)

    def _update(self, apply):
        with self.app.app_context():
            profile = get_profile(self.profile_key)
            if profile is None:
                raise ProfileNotFound(self.profile_key)
            try:
                result = apply(profile)
                db.session.add(profile)
                db.session.commit()
            except Exception:
                db.session.rollback()
                raise
            self.app.logger.info(f"[profile] key={self.profile_key} updated")
            return result
