"""Process-wide session registry.

Every change to a session goes through ``SessionRegistry.mutate``, which
serializes the read-modify-write per session id:

- an in-process lock per id (sessions never share a lock),
- ``SELECT ... FOR UPDATE`` on the row (PostgreSQL; SQLite ignores it),
- a compare-and-set on ``GameSession.version`` at commit time, retried
  from a fresh read when another writer got there first.

The loser of a race therefore re-validates against the winner's board and
gets NotYourTurn / IllegalMove instead of silently overwriting it.
"""

import threading
import weakref
from typing import Callable

from flask import current_app
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.exc import StaleDataError

from tictactoe import db, socketio
from tictactoe.models import GameSession
from . import machine
from .errors import NotFound


Transition = Callable[[GameSession], GameSession]


class SessionRegistry:

    def __init__(self):
        # Entries disappear once no thread holds or waits on the lock
        self._locks = weakref.WeakValueDictionary()
        self._guard = threading.Lock()

    def lock_for(self, session_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(session_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[session_id] = lock
            return lock

    def create(self) -> GameSession:
        retries = max(1, int(current_app.config.get('SESSION_WRITE_RETRIES', 3)))
        for attempt in range(1, retries + 1):
            game_session = machine.new_session()
            db.session.add(game_session)
            try:
                db.session.commit()
            except IntegrityError:
                # Another writer took the same id between the check and the insert
                db.session.rollback()
                if attempt >= retries:
                    raise
                current_app.logger.warning(f"[retry] action=create attempt={attempt} cause=IntegrityError")
                continue
            current_app.logger.info(f"[create] session={game_session.session_id}")
            return game_session

    def get(self, session_id: str) -> GameSession:
        game_session = db.session.execute(
            self._query(session_id).execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if game_session is None:
            raise NotFound(f'Session {session_id} not found')
        return game_session

    def mutate(self, session_id: str, transition: Transition, action: str = 'update') -> GameSession:
        """Run ``transition`` against the stored session and commit it.

        Caller errors raised by the transition roll back and propagate; the
        stored session is left as it was.
        """
        retries = max(1, int(current_app.config.get('SESSION_WRITE_RETRIES', 3)))
        with self.lock_for(session_id):
            for attempt in range(1, retries + 1):
                try:
                    game_session = self._load_for_update(session_id)
                    transition(game_session)
                    changed = bool(db.session.new or db.session.dirty)
                    if changed:
                        game_session.version += 1
                    db.session.commit()
                except (StaleDataError, IntegrityError) as exc:
                    db.session.rollback()
                    if attempt >= retries:
                        raise
                    current_app.logger.warning(
                        f"[retry] session={session_id} action={action} attempt={attempt} cause={type(exc).__name__}"
                    )
                    continue
                except Exception:
                    db.session.rollback()
                    raise

                if changed:
                    current_app.logger.info(
                        f"[{action}] session={session_id} status={game_session.status} "
                        f"turn={game_session.current_player} outcome={game_session.outcome} version={game_session.version}"
                    )
                    notify_state_update(game_session)
                return game_session

    def _query(self, session_id: str):
        return (
            select(GameSession)
            .filter_by(session_id=session_id)
            .options(selectinload(GameSession.participants))
        )

    def _load_for_update(self, session_id: str) -> GameSession:
        game_session = db.session.execute(
            self._query(session_id).with_for_update().execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if game_session is None:
            raise NotFound(f'Session {session_id} not found')
        return game_session


registry = SessionRegistry()


def notify_state_update(game_session: GameSession) -> None:
    """Tell clients watching this session to refetch it."""
    socketio.emit(
        'state_update',
        {'session_id': game_session.session_id, 'version': game_session.version},
        to=f"session:{game_session.session_id}",
        namespace='/ws',
    )


def create_session() -> GameSession:
    return registry.create()


def get_session(session_id: str) -> GameSession:
    return registry.get(session_id)


def join_session(session_id: str, name) -> GameSession:
    allow_observers = bool(current_app.config.get('ALLOW_OBSERVERS', False))
    return registry.mutate(
        session_id,
        lambda s: machine.join(s, name, allow_observers=allow_observers),
        action='join',
    )


def make_move(session_id: str, row, col, mark) -> GameSession:
    return registry.mutate(session_id, lambda s: machine.move(s, row, col, mark), action='move')


def reset_session(session_id: str) -> GameSession:
    return registry.mutate(session_id, machine.reset, action='reset')
