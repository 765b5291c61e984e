"""Board engine: pure functions over a 3x3 tic-tac-toe grid.

Boards are immutable tuples of rows, each row a tuple of ``Mark`` values.
Nothing here touches the database or the Flask app.
"""

from enum import Enum
from typing import Iterable, List, Optional, Tuple

from .errors import IllegalMove, InvalidRequest


SIZE = 3


class Mark(str, Enum):
    EMPTY = ''
    X = 'X'
    O = 'O'

    @property
    def other(self) -> 'Mark':
        if self is Mark.X:
            return Mark.O
        if self is Mark.O:
            return Mark.X
        return Mark.EMPTY


class Outcome(str, Enum):
    IN_PROGRESS = 'in_progress'
    X_WINS = 'x_wins'
    O_WINS = 'o_wins'
    DRAW = 'draw'

    @property
    def decided(self) -> bool:
        return self is not Outcome.IN_PROGRESS

    @property
    def winner(self) -> Optional[str]:
        """Legacy ``winner`` value: None, 'X', 'O' or 'draw'."""
        return {
            Outcome.IN_PROGRESS: None,
            Outcome.X_WINS: 'X',
            Outcome.O_WINS: 'O',
            Outcome.DRAW: 'draw',
        }[self]

    @classmethod
    def win_for(cls, mark: Mark) -> 'Outcome':
        return cls.X_WINS if mark is Mark.X else cls.O_WINS


Board = Tuple[Tuple[Mark, ...], ...]
Line = Tuple[Tuple[int, int], ...]

WINNING_LINES: Tuple[Line, ...] = (
    # Rows
    ((0, 0), (0, 1), (0, 2)),
    ((1, 0), (1, 1), (1, 2)),
    ((2, 0), (2, 1), (2, 2)),
    # Columns
    ((0, 0), (1, 0), (2, 0)),
    ((0, 1), (1, 1), (2, 1)),
    ((0, 2), (1, 2), (2, 2)),
    # Diagonals
    ((0, 0), (1, 1), (2, 2)),
    ((0, 2), (1, 1), (2, 0)),
)


def empty_board() -> Board:
    return tuple(tuple(Mark.EMPTY for _ in range(SIZE)) for _ in range(SIZE))


def parse_mark(value) -> Mark:
    """Parse a player mark ('X' or 'O', case-insensitive)."""
    if isinstance(value, Mark) and value is not Mark.EMPTY:
        return value
    if isinstance(value, str) and value.strip().upper() in ('X', 'O'):
        return Mark(value.strip().upper())
    raise IllegalMove(f'Unknown mark {value!r}; expected X or O')


def _in_range(value) -> bool:
    # bool is an int subclass; True/False are not coordinates
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value < SIZE


def apply_move(board: Board, row: int, col: int, mark: Mark) -> Board:
    """Return a copy of ``board`` with ``mark`` placed at (row, col).

    Raises IllegalMove when the coordinates are off the grid, the cell is
    taken, or the mark is not X/O. Turn order and outcome are the caller's
    business.
    """
    mark = parse_mark(mark)
    if not (_in_range(row) and _in_range(col)):
        raise IllegalMove(f'Cell ({row}, {col}) is off the board')
    if board[row][col] is not Mark.EMPTY:
        raise IllegalMove(f'Cell ({row}, {col}) is already taken by {board[row][col].value}')
    return tuple(
        tuple(mark if (r, c) == (row, col) else cell for c, cell in enumerate(cells))
        for r, cells in enumerate(board)
    )


def winning_line(board: Board) -> Optional[Line]:
    for line in WINNING_LINES:
        (r0, c0), (r1, c1), (r2, c2) = line
        first = board[r0][c0]
        if first is not Mark.EMPTY and first is board[r1][c1] is board[r2][c2]:
            return line
    return None


def is_full(board: Board) -> bool:
    return all(cell is not Mark.EMPTY for cells in board for cell in cells)


def detect_outcome(board: Board) -> Outcome:
    line = winning_line(board)
    if line is not None:
        r, c = line[0]
        return Outcome.win_for(board[r][c])
    if is_full(board):
        return Outcome.DRAW
    return Outcome.IN_PROGRESS


def _parse_cell(value) -> Mark:
    if value is None or value == '':
        return Mark.EMPTY
    if isinstance(value, str) and value.upper() in ('X', 'O'):
        return Mark(value.upper())
    raise InvalidRequest(f'Invalid board cell {value!r}')


def board_from_cells(cells: Iterable) -> Board:
    """Build a board from its stored form.

    Accepts a 3x3 nested list or a flat list of 9 cells; '' and None both
    mean empty. A board with completed lines for both marks is rejected,
    since no sequence of single moves can produce it.
    """
    cells = list(cells)
    if len(cells) == SIZE * SIZE and not any(isinstance(c, (list, tuple)) for c in cells):
        rows = [cells[i:i + SIZE] for i in range(0, SIZE * SIZE, SIZE)]
    else:
        rows = [list(r) for r in cells]
    if len(rows) != SIZE or any(len(r) != SIZE for r in rows):
        raise InvalidRequest('Board must be 3x3 or a flat list of 9 cells')
    board = tuple(tuple(_parse_cell(c) for c in r) for r in rows)

    winners = set()
    for (r0, c0), (r1, c1), (r2, c2) in WINNING_LINES:
        first = board[r0][c0]
        if first is not Mark.EMPTY and first is board[r1][c1] is board[r2][c2]:
            winners.add(first)
    if len(winners) > 1:
        raise IllegalMove('Board has winning lines for both X and O')
    return board


def board_to_cells(board: Board) -> List[List[str]]:
    return [[cell.value for cell in cells] for cells in board]
