import pytest

from tictactoe.services.games.board import Mark, Outcome, board_to_cells
from tictactoe.services.games.errors import (
    GameOver, IllegalMove, InvalidRequest, NotFound, NotYourTurn, SessionFull,
)
from tictactoe.services.games.registry import (
    create_session, get_session, join_session, make_move, reset_session,
)


def _seated_session():
    sid = create_session().session_id
    join_session(sid, 'Alice')
    join_session(sid, 'Bob')
    return sid


def _cells(sid):
    return board_to_cells(get_session(sid).board)


def test_create_session_starts_empty(flask_app):
    game_session = create_session()
    assert len(game_session.session_id) == 8
    assert game_session.participants == []
    assert game_session.status == 'empty'
    assert game_session.turn is Mark.X
    assert game_session.result is Outcome.IN_PROGRESS
    assert game_session.version == 1
    assert game_session.created_at is not None


def test_session_ids_are_unique(flask_app):
    ids = {create_session().session_id for _ in range(20)}
    assert len(ids) == 20


def test_join_fills_x_then_o(flask_app):
    sid = create_session().session_id
    after_first = join_session(sid, 'Alice')
    assert after_first.status == 'waiting_for_opponent'
    assert after_first.slot_holder('X').name == 'Alice'

    after_second = join_session(sid, 'Bob')
    assert after_second.status == 'in_progress'
    assert [(p.name, p.slot) for p in after_second.participants] == [('Alice', 'X'), ('Bob', 'O')]
    assert all(p.joined_at is not None for p in after_second.participants)


def test_join_is_idempotent_by_name(flask_app):
    sid = create_session().session_id
    join_session(sid, 'Alice')
    version = get_session(sid).version
    again = join_session(sid, '  Alice ')
    assert [p.name for p in again.participants] == ['Alice']
    assert again.version == version


@pytest.mark.parametrize('name', [None, '', '   ', 42, 'x' * 65])
def test_join_requires_a_name(flask_app, name):
    sid = create_session().session_id
    with pytest.raises(InvalidRequest):
        join_session(sid, name)
    assert get_session(sid).participants == []


def test_third_name_is_refused(flask_app):
    sid = _seated_session()
    with pytest.raises(SessionFull):
        join_session(sid, 'Cara')
    assert [p.name for p in get_session(sid).participants] == ['Alice', 'Bob']
    # an existing player rejoining a full session is still fine
    assert len(join_session(sid, 'Bob').participants) == 2


def test_third_name_seated_as_observer_when_allowed(flask_app):
    flask_app.config['ALLOW_OBSERVERS'] = True
    sid = _seated_session()
    game_session = join_session(sid, 'Cara')
    assert [(p.name, p.slot) for p in game_session.participants][-1] == ('Cara', None)
    assert game_session.status == 'in_progress'


def test_unknown_session_is_not_found(flask_app):
    with pytest.raises(NotFound):
        get_session('nope0000')
    with pytest.raises(NotFound):
        join_session('nope0000', 'Alice')
    with pytest.raises(NotFound):
        make_move('nope0000', 0, 0, 'X')
    with pytest.raises(NotFound):
        reset_session('nope0000')


def test_turns_alternate(flask_app):
    sid = _seated_session()
    cells = [(0, 0), (1, 1), (2, 2), (0, 1), (2, 1), (2, 0)]
    mark = 'X'
    for n, (row, col) in enumerate(cells, start=1):
        game_session = make_move(sid, row, col, mark)
        assert game_session.result is Outcome.IN_PROGRESS
        assert game_session.current_player == ('X' if n % 2 == 0 else 'O')
        mark = game_session.current_player


def test_wrong_mark_is_not_your_turn(flask_app):
    sid = _seated_session()
    before = get_session(sid).version
    with pytest.raises(NotYourTurn):
        make_move(sid, 0, 0, 'O')
    game_session = get_session(sid)
    assert game_session.version == before
    assert game_session.current_player == 'X'
    assert _cells(sid)[0][0] == ''


def test_occupied_cell_is_illegal_and_leaves_board(flask_app):
    sid = _seated_session()
    make_move(sid, 1, 1, 'X')
    snapshot = _cells(sid)
    with pytest.raises(IllegalMove):
        make_move(sid, 1, 1, 'O')
    assert _cells(sid) == snapshot
    assert get_session(sid).current_player == 'O'


def test_off_board_move_is_illegal(flask_app):
    sid = _seated_session()
    with pytest.raises(IllegalMove):
        make_move(sid, 3, 0, 'X')
    assert get_session(sid).current_player == 'X'


def test_top_row_win_freezes_turn_and_locks_board(flask_app):
    sid = _seated_session()
    for row, col, mark in [(0, 0, 'X'), (1, 1, 'O'), (0, 1, 'X'), (2, 2, 'O'), (0, 2, 'X')]:
        game_session = make_move(sid, row, col, mark)
    assert game_session.result is Outcome.X_WINS
    assert game_session.status == 'finished'
    assert game_session.current_player == 'X'

    before = _cells(sid)
    for mark in ('X', 'O'):
        with pytest.raises(GameOver):
            make_move(sid, 2, 0, mark)
    assert _cells(sid) == before


def test_draw_scenario(flask_app):
    sid = _seated_session()
    moves = [
        (0, 0, 'X'), (0, 1, 'O'), (0, 2, 'X'),
        (1, 1, 'O'), (1, 0, 'X'), (2, 0, 'O'),
        (2, 1, 'X'), (1, 2, 'O'), (2, 2, 'X'),
    ]
    for row, col, mark in moves:
        game_session = make_move(sid, row, col, mark)
    assert _cells(sid) == [['X', 'O', 'X'], ['X', 'O', 'O'], ['O', 'X', 'X']]
    assert game_session.result is Outcome.DRAW
    assert game_session.status == 'finished'
    assert game_session.to_dict()['game_state']['winner'] == 'draw'
    with pytest.raises(GameOver):
        make_move(sid, 0, 0, 'O')


def test_reset_restores_game_and_keeps_players(flask_app):
    sid = _seated_session()
    for row, col, mark in [(0, 0, 'X'), (1, 1, 'O'), (0, 1, 'X'), (2, 2, 'O'), (0, 2, 'X')]:
        make_move(sid, row, col, mark)
    game_session = reset_session(sid)
    assert _cells(sid) == [['', '', ''], ['', '', ''], ['', '', '']]
    assert game_session.current_player == 'X'
    assert game_session.result is Outcome.IN_PROGRESS
    assert [(p.name, p.slot) for p in game_session.participants] == [('Alice', 'X'), ('Bob', 'O')]
    assert make_move(sid, 2, 2, 'X').current_player == 'O'


def test_reset_mid_game_is_allowed(flask_app):
    sid = _seated_session()
    make_move(sid, 0, 0, 'X')
    assert reset_session(sid).current_player == 'X'
    assert reset_session(sid).result is Outcome.IN_PROGRESS


def test_version_bumps_once_per_change(flask_app):
    sid = create_session().session_id
    assert join_session(sid, 'Alice').version == 2
    assert join_session(sid, 'Bob').version == 3
    assert make_move(sid, 0, 0, 'X').version == 4
    with pytest.raises(NotYourTurn):
        make_move(sid, 1, 1, 'X')
    assert get_session(sid).version == 4

