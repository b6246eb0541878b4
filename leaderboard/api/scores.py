from flask import Blueprint, current_app, jsonify, request
from leaderboard import get_store, socketio

scores = Blueprint('scores', __name__)

LEADERBOARD_ROOM = 'leaderboard'


def _requested_limit() -> int:
    # Missing, zero or non-numeric limits fall back to the default page size
    raw = request.args.get('limit')
    try:
        limit = int(raw) if raw is not None else 0
    except ValueError:
        limit = 0
    return limit or current_app.config.get('LEADERBOARD_DEFAULT_LIMIT', 10)


@scores.route('/score', methods=['POST'])
@scores.route('/record', methods=['POST'])  # older clients still post here
def submit_score():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    best = get_store().submit_score(data.get('token'), data.get('score'), data.get('name'))
    current_app.logger.info(f"[score] token={data.get('token')} score={data.get('score')} best={best}")
    socketio.emit(
        'leaderboard_update',
        {'token': data.get('token'), 'best': best},
        to=LEADERBOARD_ROOM,
        namespace='/ws',
    )
    return jsonify({'ok': True, 'best': best})


@scores.route('/leaders', methods=['GET'])
def list_leaders():
    records = get_store().list_top(_requested_limit())
    return jsonify([r.to_dict() for r in records])


@scores.route('/me', methods=['GET'])
def get_me():
    record = get_store().get_player(request.args.get('token'))
    return jsonify(record.to_dict())
