from flask import request
from flask_socketio import emit
from app import socketio, get_table
from app.models import Participant
from typing import List


def deliver(event: str, payload: dict, recipients: List[Participant]) -> None:
    """Send a table notification to each recipient's own room."""
    # Use socketio.emit since this may be called from the cooldown task
    for participant in recipients:
        socketio.emit(event, payload, to=participant.id, namespace=participant.namespace)


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def handle_connect():
    get_table().connect(_get_sid(), request.namespace)
    emit('connected', {'message': 'Connected', 'sid': _get_sid()})


def handle_disconnect(*args):
    get_table().disconnect(_get_sid())


def handle_join(data=None):
    """Name this connection and queue it for the next game.

    After a `game_reset` the players are back in the waiting pool; a client
    re-sends `join` with any non-empty name (the first name is kept) to be
    matched again.
    """
    # Older clients send the bare name string
    name = data.get('name') if isinstance(data, dict) else data
    get_table().join(_get_sid(), name)


def handle_shuffle(data=None):
    get_table().start_round(_get_sid())


def handle_guess(data=None):
    get_table().guess(_get_sid(), data)


def handle_restart(data=None):
    """Send the table back to the lobby. Clients must re-send `join` to play again."""
    get_table().restart(_get_sid())


def handle_ping(data=None):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    namespaces = ['/ws', '/'] if testing else ['/ws']
    for namespace in namespaces:
        socketio.on_event('connect', handle_connect, namespace=namespace)
        socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
        socketio.on_event('join', handle_join, namespace=namespace)
        socketio.on_event('shuffle', handle_shuffle, namespace=namespace)
        socketio.on_event('guess', handle_guess, namespace=namespace)
        socketio.on_event('restart', handle_restart, namespace=namespace)
        socketio.on_event('ping', handle_ping, namespace=namespace)
