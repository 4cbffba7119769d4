from flask import Blueprint, request, jsonify
from doodleai.services.games import WordCatalog
from doodleai.services.games.words import DIFFICULTY_TIERS
from doodleai.services.profiles import (
    ProfileNotFound, create_profile, get_profile, reset_profile, unlock_profile_brush,
)

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the DoodleAI game server!'})

@main.route('/api/players', methods=['POST'])
def add_player():
    profile = create_profile()
    return jsonify(profile.to_dict()), 201

@main.route('/api/players/<string:profile_key>', methods=['GET'])
def get_player(profile_key):
    profile = get_profile(profile_key)
    if not profile:
        return jsonify({'error': 'Player not found'}), 404
    return jsonify(profile.to_dict())

@main.route('/api/players/<string:profile_key>/brushes', methods=['POST'])
def unlock_player_brush(profile_key):
    data = request.get_json(silent=True) or {}
    brush = data.get('brush')
    if not isinstance(brush, str) or not brush.strip():
        return jsonify({'error': 'brush is required'}), 400
    try:
        profile = unlock_profile_brush(profile_key, brush.strip())
    except ProfileNotFound:
        return jsonify({'error': 'Player not found'}), 404
    return jsonify(profile.to_dict())

@main.route('/api/players/<string:profile_key>/reset', methods=['POST'])
def reset_player(profile_key):
    try:
        profile = reset_profile(profile_key)
    except ProfileNotFound:
        return jsonify({'error': 'Player not found'}), 404
    return jsonify(profile.to_dict())

@main.route('/api/words', methods=['GET'])
def list_words():
    difficulty = request.args.get('difficulty', type=int)
    if difficulty not in DIFFICULTY_TIERS:
        return jsonify({'error': f'difficulty must be one of {list(DIFFICULTY_TIERS)}'}), 400
    words = WordCatalog().words_by_difficulty(difficulty)
    return jsonify([w.to_dict() for w in words])

@main.route('/api/words/daily', methods=['GET'])
def daily_word():
    return jsonify(WordCatalog().daily_challenge().to_dict())
