"""Socket.IO rooms for session watchers.

Clients join ``session:<id>`` and receive ``state_update`` hints after each
committed change, telling them to refetch ``GET /api/sessions/<id>``. State
itself is never pushed over the socket.
"""

from flask_socketio import join_room, leave_room, emit


def _room(session_id: str) -> str:
    return f"session:{session_id}"


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_join_session(data):
    session_id = (data or {}).get('session_id')
    if not session_id:
        emit('error', {'message': 'session_id is required'})
        return
    room = _room(session_id)
    join_room(room)
    emit('joined', {'room': room})


def handle_leave_session(data):
    session_id = (data or {}).get('session_id')
    if not session_id:
        emit('error', {'message': 'session_id is required'})
        return
    room = _room(session_id)
    leave_room(room)
    emit('left', {'room': room})


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    from tictactoe import socketio

    handlers = {
        'connect': handle_connect,
        'join_session': handle_join_session,
        'leave_session': handle_leave_session,
        'ping': handle_ping,
    }
    namespaces = ['/ws', '/'] if testing else ['/ws']
    for namespace in namespaces:
        for event, handler in handlers.items():
            socketio.on_event(event, handler, namespace=namespace)
