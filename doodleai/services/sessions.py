"""Live game sessions, one GameEngine per game code."""

import random
import string
import threading
from typing import Dict, List, Optional

from flask import current_app

from doodleai.services.games import GameEngine, WordCatalog
from doodleai.services.profiles import ProfileRecorder


def generate_game_code(taken, length=4):
    """Generate a unique, short game code."""
    while True:
        code = ''.join(random.choices(string.ascii_uppercase + string.digits, k=length))
        if code not in taken:
            return code


def room_for(game_code: str) -> str:
    return f"game:{game_code.upper()}"


class SessionRegistry:
    def __init__(self, app, scheduler, socketio=None):
        self.app = app
        self.scheduler = scheduler
        self.socketio = socketio
        self._engines: Dict[str, GameEngine] = {}
        self._lock = threading.Lock()

    def create(self, profile_key: Optional[str] = None, max_rounds: Optional[int] = None) -> GameEngine:
        cfg = self.app.config
        with self._lock:
            code = generate_game_code(self._engines)
            engine = GameEngine(
                self.scheduler,
                catalog=WordCatalog(),
                profile=ProfileRecorder(self.app, profile_key) if profile_key else None,
                max_rounds=int(max_rounds or cfg.get('MAX_ROUNDS', 5)),
                countdown_sec=int(cfg.get('COUNTDOWN_DURATION_SEC', 3)),
                draw_duration_sec=int(cfg.get('DRAW_DURATION_SEC', 30)),
                correct_hold_ms=int(cfg.get('CORRECT_GUESS_HOLD_MS', 1500)),
                heartbeat_sec=int(cfg.get('TIMER_HEARTBEAT_SEC', 0)),
                game_code=code,
            )
            if self.socketio is not None:
                engine.add_listener(
                    on_update=lambda state, code=code: self._emit('state_update', code, state.to_dict()),
                    on_guess=lambda guess, code=code: self._emit('ai_guess', code, guess.to_dict()),
                )
            self._engines[code] = engine
        self.app.logger.info(f"[session-create] game={code} profile={profile_key}")
        return engine

    def get(self, game_code: str) -> Optional[GameEngine]:
        if not game_code:
            return None
        return self._engines.get(game_code.upper())

    def end(self, game_code: str) -> Optional[GameEngine]:
        with self._lock:
            engine = self._engines.pop(game_code.upper(), None)
        if engine is not None:
            engine.shutdown()
        return engine

    def codes(self) -> List[str]:
        return list(self._engines)

    def __len__(self):
        return len(self._engines)

    def _emit(self, event: str, game_code: str, payload: dict) -> None:
        self.socketio.emit(event, {'game_code': game_code, **payload}, to=room_for(game_code), namespace='/ws')


def get_registry() -> SessionRegistry:
    return current_app.extensions['doodleai_sessions']
