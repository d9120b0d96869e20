from flask import Blueprint, jsonify, request, current_app
from whackamole.services.games.scoring import high_score_entry
from whackamole.services.games.session import game_settings, get_session


games = Blueprint('games', __name__)


def parse_hole(data):
    """Return (hole, error). Out-of-range holes are valid; the engine ignores them."""
    if not isinstance(data, dict) or 'hole' not in data:
        return None, 'hole is required'
    hole = data.get('hole')
    # No coercion: 0.9 or "0" must not land on hole 0
    if isinstance(hole, bool) or not isinstance(hole, int):
        return None, 'hole must be an integer'
    return hole, None


@games.route('/state', methods=['GET'])
def get_game_state():
    payload = get_session().snapshot()
    # Include constants so clients can lay out the grid and timer
    payload['settings'] = game_settings()
    return jsonify(payload)


@games.route('/start', methods=['POST'])
def start_game():
    return jsonify(get_session().start())


@games.route('/pause', methods=['POST'])
def pause_game():
    return jsonify(get_session().pause())


@games.route('/reset', methods=['POST'])
def reset_game():
    return jsonify(get_session().reset())


@games.route('/whack', methods=['POST'])
def whack_hole():
    data = request.get_json(silent=True) or {}
    hole, error = parse_hole(data)
    if error:
        return jsonify({'error': error}), 400
    return jsonify(get_session().whack(hole))


@games.route('/high-score', methods=['GET'])
def get_high_score():
    key = current_app.config.get('HIGH_SCORE_KEY', 'HighScore')
    return jsonify(high_score_entry(key))
