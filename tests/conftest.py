import os
import random
import sys
import pytest

# Ensure the project root (containing the `doodleai` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from doodleai import create_app, db, socketio
from doodleai.services.games import GameEngine, GuessEvent, GuessScript, ManualScheduler, Word, WordCatalog


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    MAX_ROUNDS = 5
    COUNTDOWN_DURATION_SEC = 3
    DRAW_DURATION_SEC = 30
    CORRECT_GUESS_HOLD_MS = 1500
    CONTROLLER_DEBOUNCE_MS = 0
    TIMER_HEARTBEAT_SEC = 0


WORDS = (
    Word(id=1, text='cat', category='animals', difficulty=1, hints=('Says meow',)),
    Word(id=2, text='sun', category='nature', difficulty=1, hints=('Shines',)),
    Word(id=3, text='tree', category='nature', difficulty=1, hints=('Has leaves',)),
    Word(id=11, text='pizza', category='food', difficulty=2, hints=('Italian dish', 'Cut into slices', 'Cheese')),
    Word(id=21, text='volcano', category='nature', difficulty=3, hints=('A mountain', 'Erupts')),
)


class FixedScripter:
    """Plays back pre-built scripts, one per round, repeating the last."""

    def __init__(self, *scripts):
        self.scripts = list(scripts)
        self.targets = []

    def build_script(self, target):
        self.targets.append(target)
        plan = self.scripts.pop(0) if len(self.scripts) > 1 else self.scripts[0]
        return plan(target)


def hit_after(*delays_ms):
    """Script of decoys ending with the target; delays sum to the elapsed time."""
    def plan(target):
        events = [GuessEvent('blob', 0.3, d) for d in delays_ms[:-1]]
        events.append(GuessEvent(target, 0.9, delays_ms[-1]))
        return GuessScript(events=tuple(events), success=True)
    return plan


def miss(*delays_ms):
    def plan(target):
        return GuessScript(events=tuple(GuessEvent('scribble', 0.4, d) for d in delays_ms), success=False)
    return plan


class RecordingProfile:
    def __init__(self, high_score=0, fail=False):
        self.calls = []
        self.high_score = high_score
        self.fail = fail

    def record_round_result(self, coins_earned):
        if self.fail:
            raise RuntimeError('storage unavailable')
        self.calls.append(('round', coins_earned))

    def record_streak(self, streak):
        self.calls.append(('streak', streak))

    def record_game_completion(self, total_score, rounds_played):
        if self.fail:
            raise RuntimeError('storage unavailable')
        self.calls.append(('game', total_score, rounds_played))
        is_new = total_score > self.high_score
        self.high_score = max(self.high_score, total_score)
        return {'is_new_high_score': is_new}


@pytest.fixture()
def scheduler():
    return ManualScheduler()


@pytest.fixture()
def make_engine(scheduler):
    def _make(*scripts, profile=None, max_rounds=5, words=WORDS):
        scripter = FixedScripter(*(scripts or (hit_after(1000, 1000, 3000),)))
        engine = GameEngine(
            scheduler,
            catalog=WordCatalog(words, rng=random.Random(7)),
            profile=profile,
            scripter=scripter,
            max_rounds=max_rounds,
            countdown_sec=3,
            draw_duration_sec=30,
            correct_hold_ms=1500,
            game_code='TEST',
        )
        return engine
    return _make


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import doodleai.models  # noqa: F401
        db.create_all()
        yield application
        for code in application.extensions['doodleai_sessions'].codes():
            application.extensions['doodleai_sessions'].end(code)
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def app_scheduler(flask_app):
    return flask_app.extensions['doodleai_scheduler']


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass
