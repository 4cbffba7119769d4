from flask import Blueprint, jsonify, request, current_app
from doodleai.services.games import ExhaustedCatalog, GameError, InvalidTransition, NoActiveRound
from doodleai.services.profiles import get_profile
from doodleai.services.sessions import get_registry
import time


games = Blueprint('games', __name__)

_last_controller_action: dict[str, float] = {}


def _debounced(action: str, game_code: str) -> bool:
    try:
        debounce_ms = int(current_app.config.get('CONTROLLER_DEBOUNCE_MS', 0))
    except (TypeError, ValueError):
        debounce_ms = 0
    if debounce_ms <= 0:
        return False
    key = f"{action}:{game_code.upper()}"
    now = time.time() * 1000.0
    last = _last_controller_action.get(key, 0)
    if now - last < debounce_ms:
        return True
    _last_controller_action[key] = now
    return False


def _engine_or_404(game_code):
    engine = get_registry().get(game_code)
    if engine is None:
        return None, (jsonify({'error': 'Game not found'}), 404)
    return engine, None


def _state_payload(engine):
    cfg = current_app.config
    payload = engine.snapshot().to_dict()
    payload['game_code'] = engine.game_code
    payload['guesses'] = [g.to_dict() for g in engine.guesses()]
    # Include stage durations so clients can show countdowns
    payload['durations'] = {
        'countdown': int(cfg.get('COUNTDOWN_DURATION_SEC', 3)),
        'drawing': int(cfg.get('DRAW_DURATION_SEC', 30)),
    }
    return payload


@games.errorhandler(ExhaustedCatalog)
def handle_exhausted_catalog(exc):
    return jsonify({'error': str(exc)}), 400


@games.errorhandler(InvalidTransition)
def handle_invalid_transition(exc):
    current_app.logger.info(f"[invalid-transition] {exc}")
    return jsonify({'error': str(exc)}), 409


@games.errorhandler(NoActiveRound)
def handle_no_active_round(exc):
    return jsonify({'error': str(exc), 'notice': 'Start a round before drawing'}), 409


@games.errorhandler(GameError)
def handle_game_error(exc):
    return jsonify({'error': str(exc)}), 400


@games.route('/create', methods=['POST'])
def create_game():
    data = request.get_json(silent=True) or {}
    profile_key = data.get('profile_id')
    if profile_key and not get_profile(profile_key):
        return jsonify({'error': 'Player not found'}), 404

    max_rounds = data.get('max_rounds')
    try:
        max_rounds = int(max_rounds) if max_rounds is not None else None
    except (TypeError, ValueError):
        return jsonify({'error': 'max_rounds must be an integer'}), 400
    if max_rounds is not None and not 1 <= max_rounds <= 20:
        return jsonify({'error': 'max_rounds must be between 1 and 20'}), 400

    engine = get_registry().create(profile_key=profile_key, max_rounds=max_rounds)
    return jsonify({
        'message': 'New game created!',
        'game_code': engine.game_code,
        'state': engine.snapshot().to_dict(),
    }), 201


@games.route('/<string:game_code>/state', methods=['GET'])
def get_game_state(game_code):
    engine, error = _engine_or_404(game_code)
    if error:
        return error
    return jsonify(_state_payload(engine))


@games.route('/<string:game_code>/start', methods=['POST'])
def start_round(game_code):
    if _debounced('start', game_code):
        return jsonify({'message': 'debounced'}), 202
    engine, error = _engine_or_404(game_code)
    if error:
        return error
    data = request.get_json(silent=True) or {}
    try:
        difficulty = int(data.get('difficulty', 1))
    except (TypeError, ValueError):
        return jsonify({'error': 'difficulty must be an integer'}), 400
    engine.start(difficulty)
    return jsonify(_state_payload(engine))


@games.route('/<string:game_code>/advance', methods=['POST'])
def advance_round(game_code):
    if _debounced('advance', game_code):
        return jsonify({'message': 'debounced'}), 202
    engine, error = _engine_or_404(game_code)
    if error:
        return error
    engine.advance()
    return jsonify(_state_payload(engine))


@games.route('/<string:game_code>/reset', methods=['POST'])
def reset_game(game_code):
    engine, error = _engine_or_404(game_code)
    if error:
        return error
    engine.reset()
    return jsonify(_state_payload(engine))


@games.route('/<string:game_code>/strokes', methods=['POST'])
def add_stroke(game_code):
    engine, error = _engine_or_404(game_code)
    if error:
        return error
    data = request.get_json(silent=True) or {}
    # Malformed payloads raise InvalidStroke, answered as 400 by handle_game_error
    drawing = engine.add_stroke(data.get('points'), color=data.get('color'), size=data.get('size'))
    return jsonify(drawing.to_dict()), 201


@games.route('/<string:game_code>/undo', methods=['POST'])
def undo_stroke(game_code):
    engine, error = _engine_or_404(game_code)
    if error:
        return error
    return jsonify(engine.undo().to_dict())


@games.route('/<string:game_code>/clear', methods=['POST'])
def clear_drawing(game_code):
    engine, error = _engine_or_404(game_code)
    if error:
        return error
    return jsonify(engine.clear().to_dict())


@games.route('/<string:game_code>/guesses', methods=['GET'])
def get_guesses(game_code):
    engine, error = _engine_or_404(game_code)
    if error:
        return error
    return jsonify(engine.guessing_summary().to_dict())


@games.route('/<string:game_code>/leave', methods=['POST'])
def leave_game(game_code):
    """Ends the session and cancels everything it still has scheduled."""
    from doodleai.socketio_events import _end_session
    if get_registry().get(game_code) is None:
        return jsonify({'error': 'Game not found'}), 404
    _end_session(game_code.upper())
    return jsonify({'message': 'You have left the game.'}), 200
