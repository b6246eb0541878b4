from flask_socketio import join_room, leave_room, emit
from flask import current_app
from leaderboard import socketio, get_store
from leaderboard.api.scores import LEADERBOARD_ROOM
from leaderboard.errors import LeaderboardError


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_subscribe_leaderboard(data):
    """Join the live room and send the current standings right away."""
    if not isinstance(data, dict):
        data = {}
    limit = data.get('limit') or current_app.config.get('LEADERBOARD_DEFAULT_LIMIT', 10)
    join_room(LEADERBOARD_ROOM)
    try:
        records = get_store().list_top(limit)
    except LeaderboardError as exc:
        current_app.logger.warning(f'[ws] leaderboard snapshot failed: {exc}')
        emit('error', {'message': 'leaderboard unavailable'})
        return
    emit('leaderboard', {'leaders': [r.to_dict() for r in records]})


def handle_unsubscribe_leaderboard(data=None):
    leave_room(LEADERBOARD_ROOM)
    emit('unsubscribed', {'room': LEADERBOARD_ROOM})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    handlers = {
        'connect': handle_connect,
        'subscribe_leaderboard': handle_subscribe_leaderboard,
        'unsubscribe_leaderboard': handle_unsubscribe_leaderboard,
    }
    for event, handler in handlers.items():
        socketio.on_event(event, handler, namespace='/ws')
    if testing:
        for event, handler in handlers.items():
            socketio.on_event(event, handler, namespace='/')
