from doodleai import db
import json
import time
import uuid

DEFAULT_BRUSHES = ['default']


def generate_profile_key():
    """Locally generated identifier for a player profile."""
    return uuid.uuid4().hex


class PlayerProfile(db.Model):
    __tablename__ = 'player_profile'
    id = db.Column(db.Integer, primary_key=True)
    profile_key = db.Column(db.String(32), unique=True, nullable=False, index=True, default=generate_profile_key)
    total_coins = db.Column(db.Integer, default=0, nullable=False)
    high_score = db.Column(db.Integer, default=0, nullable=False)
    level = db.Column(db.Integer, default=1, nullable=False)
    experience = db.Column(db.Integer, default=0, nullable=False)
    games_played = db.Column(db.Integer, default=0, nullable=False)
    total_drawings = db.Column(db.Integer, default=0, nullable=False)
    best_streak = db.Column(db.Integer, default=0, nullable=False)
    unlocked_brushes = db.Column(db.Text, nullable=False, default=lambda: json.dumps(DEFAULT_BRUSHES))  # JSON-encoded list
    achievements = db.Column(db.Text, nullable=False, default='[]')  # JSON-encoded list
    created_at = db.Column(db.Float, nullable=False, default=time.time)

    @property
    def brushes(self):
        try:
            return json.loads(self.unlocked_brushes or '[]')
        except ValueError:
            return list(DEFAULT_BRUSHES)

    @brushes.setter
    def brushes(self, value):
        self.unlocked_brushes = json.dumps(list(value))

    def to_dict(self):
        try:
            achievements = json.loads(self.achievements or '[]')
        except ValueError:
            achievements = []
        return {
            'id': self.profile_key,
            'total_coins': self.total_coins,
            'high_score': self.high_score,
            'level': self.level,
            'experience': self.experience,
            'games_played': self.games_played,
            'total_drawings': self.total_drawings,
            'best_streak': self.best_streak,
            'unlocked_brushes': self.brushes,
            'achievements': achievements,
            'created_at': self.created_at,
        }
