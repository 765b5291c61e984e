from tictactoe.models import EMPTY_BOARD_JSON, GameSession, Participant, utcnow
from .board import Mark, Outcome, apply_move, detect_outcome, empty_board, parse_mark
from .errors import GameOver, InvalidRequest, NotYourTurn, SessionFull

SLOT_ORDER = (Mark.X, Mark.O)
MAX_NAME_LENGTH = 64


def new_session() -> GameSession:
    """A fresh session: nobody seated, empty board, X to move."""
    return GameSession(
        board_state=EMPTY_BOARD_JSON,
        current_player=Mark.X.value,
        outcome=Outcome.IN_PROGRESS.value,
    )


def join(session: GameSession, name, allow_observers: bool = False) -> GameSession:
    """Seat ``name`` in the next open slot.

    Joining twice under the same name is a no-op. Once both slots are taken
    a new name is refused with SessionFull, or seated without a slot when
    observers are allowed.
    """
    if not isinstance(name, str) or not name.strip():
        raise InvalidRequest('Player name is required')
    name = name.strip()
    if len(name) > MAX_NAME_LENGTH:
        raise InvalidRequest(f'Player name must be at most {MAX_NAME_LENGTH} characters')

    if any(p.name == name for p in session.participants):
        return session

    taken = {p.slot for p in session.participants if p.slot}
    open_slots = [m.value for m in SLOT_ORDER if m.value not in taken]
    if not open_slots and not allow_observers:
        raise SessionFull()

    session.participants.append(
        Participant(name=name, slot=open_slots[0] if open_slots else None, joined_at=utcnow())
    )
    return session


def move(session: GameSession, row, col, mark) -> GameSession:
    """Apply one move for ``mark``.

    Checks run in a fixed order (game over, turn, legality) and nothing is
    written until all of them pass.
    """
    if session.result.decided:
        raise GameOver()
    mark = parse_mark(mark)
    if mark is not session.turn:
        raise NotYourTurn(f'It is {session.current_player}\'s turn')

    board = apply_move(session.board, row, col, mark)
    outcome = detect_outcome(board)

    session.board = board
    session.outcome = outcome.value
    if not outcome.decided:
        session.current_player = mark.other.value
    return session


def reset(session: GameSession) -> GameSession:
    """Start a new game in the same session; participants keep their slots."""
    session.board = empty_board()
    session.current_player = Mark.X.value
    session.outcome = Outcome.IN_PROGRESS.value
    return session
