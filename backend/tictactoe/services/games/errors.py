"""Caller errors raised by the game services.

None of these is a system failure: each one maps to a rejected request
and leaves the stored session untouched.
"""


class GameError(Exception):
    reason = 'game_error'
    status_code = 400

    def __init__(self, message=None):
        super().__init__(message or self.__class__.__doc__)
        self.message = message or self.__class__.__doc__

    def to_dict(self):
        return {'error': self.message, 'reason': self.reason}


class NotFound(GameError):
    """Session not found"""
    reason = 'not_found'
    status_code = 404


class InvalidRequest(GameError):
    """Invalid request"""
    reason = 'invalid_request'
    status_code = 400


class IllegalMove(GameError):
    """Invalid move"""
    reason = 'illegal_move'
    status_code = 400


class NotYourTurn(GameError):
    """It is not your turn"""
    reason = 'not_your_turn'
    status_code = 409


class GameOver(GameError):
    """The game is already over"""
    reason = 'game_over'
    status_code = 409


class SessionFull(GameError):
    """Both player slots are already taken"""
    reason = 'session_full'
    status_code = 409
