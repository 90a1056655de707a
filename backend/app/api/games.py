from flask import Blueprint, jsonify, current_app
from app import get_table

games = Blueprint('games', __name__)


@games.route('/state', methods=['GET'])
def get_game_state():
    """
    Returns the current table: phase, lobby, seated players and round history.
    """
    payload = get_table().snapshot()
    try:
        payload['cooldown_sec'] = float(current_app.config.get('ROUND_COOLDOWN_SEC', 4))
    except (TypeError, ValueError):
        payload['cooldown_sec'] = 4.0
    return jsonify(payload)


@games.route('/scoring', methods=['GET'])
def get_scoring_policy():
    """
    Returns the role point table and guess targets in use.
    """
    return jsonify(get_table().policy.to_dict())


@games.route('/history/<int:round_number>', methods=['GET'])
def get_round(round_number):
    history = get_table().snapshot()['history']
    for entry in history:
        if entry['round'] == round_number:
            return jsonify(entry)
    return jsonify({'error': f'Round {round_number} has not been played'}), 404
