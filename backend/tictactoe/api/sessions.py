from flask import Blueprint, jsonify, request, current_app
from tictactoe.services.games.errors import GameError, InvalidRequest
from tictactoe.services.games.registry import (
    create_session, get_session, join_session, make_move, reset_session,
)


sessions = Blueprint('sessions', __name__)


@sessions.errorhandler(GameError)
def handle_game_error(exc: GameError):
    current_app.logger.info(
        f"[reject] path={request.path} reason={exc.reason} detail={exc.message}"
    )
    return jsonify(exc.to_dict()), exc.status_code


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidRequest('Request body must be a JSON object')
    return data


def _coordinate(data: dict, key: str) -> int:
    value = data.get(key)
    if value is None:
        raise InvalidRequest(f'{key} is required')
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidRequest(f'{key} must be an integer')
    return value


def _snapshot(game_session) -> dict:
    payload = game_session.to_dict()
    payload['poll_interval_ms'] = int(current_app.config.get('POLL_INTERVAL_MS', 1000))
    return payload


def shareable_url(session_id: str) -> str:
    base = str(current_app.config.get('CLIENT_URL') or '').rstrip('/')
    return f"{base}/session/{session_id}"


@sessions.route('', methods=['POST'])
def create():
    """Create an empty session and hand back its id and share link."""
    game_session = create_session()
    return jsonify({
        'session_id': game_session.session_id,
        'shareable_url': shareable_url(game_session.session_id),
        'session': _snapshot(game_session),
    }), 201


@sessions.route('/<string:session_id>', methods=['GET'])
def read(session_id):
    return jsonify(_snapshot(get_session(session_id)))


@sessions.route('/<string:session_id>/join', methods=['POST'])
def join(session_id):
    data = _json_body()
    return jsonify(_snapshot(join_session(session_id, data.get('name'))))


@sessions.route('/<string:session_id>/move', methods=['POST'])
def move(session_id):
    """
    Submit a move. Body: {"row": 0-2, "col": 0-2, "mark": "X"|"O"}.
    ``player`` is accepted in place of ``mark`` for older clients.
    """
    data = _json_body()
    row = _coordinate(data, 'row')
    col = _coordinate(data, 'col')
    mark = data.get('mark', data.get('player'))
    if mark is None:
        raise InvalidRequest('mark is required')
    return jsonify(_snapshot(make_move(session_id, row, col, mark)))


@sessions.route('/<string:session_id>/reset', methods=['POST'])
def reset(session_id):
    return jsonify(_snapshot(reset_session(session_id)))
