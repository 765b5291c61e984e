from tictactoe import db
from tictactoe.services.games.board import (
    Mark, Outcome, board_from_cells, board_to_cells, empty_board, winning_line,
)
from datetime import datetime, timezone
import json
import uuid


def utcnow():
    return datetime.now(timezone.utc)


def _isoformat(value):
    if value is None:
        return None
    # SQLite drops tzinfo on the way back
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


EMPTY_BOARD_JSON = json.dumps(board_to_cells(empty_board()))


class Participant(db.Model):
    __tablename__ = 'participant'
    __table_args__ = (
        db.UniqueConstraint('game_session_id', 'name', name='uq_participant_session_name'),
    )
    id = db.Column(db.Integer, primary_key=True)
    game_session_id = db.Column(db.Integer, db.ForeignKey('game_session.id'), nullable=False)
    name = db.Column(db.String(64), nullable=False)
    slot = db.Column(db.String(1), nullable=True)  # X, O, or NULL for an observer
    joined_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    game_session = db.relationship('GameSession', back_populates='participants')

    def to_dict(self):
        return {
            'name': self.name,
            'slot': self.slot,
            'joined_at': _isoformat(self.joined_at),
        }


def generate_session_id(length=8):
    """Generate a unique, short, shareable session id."""
    while True:
        code = uuid.uuid4().hex[:length]
        if not GameSession.query.filter_by(session_id=code).first():
            return code


class GameSession(db.Model):
    __tablename__ = 'game_session'
    id = db.Column(db.Integer, primary_key=True)
    session_id = db.Column(db.String(16), unique=True, index=True, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    board_state = db.Column(db.Text, nullable=False, default=EMPTY_BOARD_JSON)  # JSON-encoded 3x3 of '', 'X', 'O'
    current_player = db.Column(db.String(1), nullable=False, default=Mark.X.value)
    outcome = db.Column(db.String(16), nullable=False, default=Outcome.IN_PROGRESS.value)
    # Bumped by the registry on every committed change; the UPDATE is a compare-and-set on it
    version = db.Column(db.Integer, nullable=False, default=1)
    participants = db.relationship(
        'Participant',
        back_populates='game_session',
        order_by='Participant.id',
        cascade='all, delete-orphan',
    )

    __mapper_args__ = {
        'version_id_col': version,
        'version_id_generator': False,
    }

    def __init__(self, **kwargs):
        super(GameSession, self).__init__(**kwargs)
        if not self.session_id:
            self.session_id = generate_session_id()
        if self.version is None:
            self.version = 1
        if self.board_state is None:
            self.board_state = EMPTY_BOARD_JSON
        if self.current_player is None:
            self.current_player = Mark.X.value
        if self.outcome is None:
            self.outcome = Outcome.IN_PROGRESS.value
        if self.created_at is None:
            self.created_at = utcnow()

    @property
    def board(self):
        return board_from_cells(json.loads(self.board_state))

    @board.setter
    def board(self, value):
        self.board_state = json.dumps(board_to_cells(value))

    @property
    def turn(self) -> Mark:
        return Mark(self.current_player)

    @property
    def result(self) -> Outcome:
        return Outcome(self.outcome)

    def slot_holder(self, mark):
        for p in self.participants:
            if p.slot == Mark(mark).value:
                return p
        return None

    @property
    def status(self):
        if self.result.decided:
            return 'finished'
        seated = sum(1 for p in self.participants if p.slot)
        if seated == 0:
            return 'empty'
        if seated == 1:
            return 'waiting_for_opponent'
        return 'in_progress'

    def to_dict(self):
        board = self.board
        line = winning_line(board)
        return {
            'session_id': self.session_id,
            'created_at': _isoformat(self.created_at),
            'status': self.status,
            'version': self.version,
            'participants': [p.to_dict() for p in self.participants],
            'game_state': {
                'board': board_to_cells(board),
                'current_player': self.current_player,
                'outcome': self.outcome,
                'winner': self.result.winner,
                'winning_line': [list(cell) for cell in line] if line else None,
            },
        }
