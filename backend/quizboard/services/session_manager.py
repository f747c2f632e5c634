"""Registry of live quiz attempts for one application instance."""

from __future__ import annotations

import logging
import threading
import time
import uuid
from typing import Callable

from quizboard.services.errors import (
    AlreadyCompletedError,
    SessionCapacityError,
    SessionNotFoundError,
)
from quizboard.services.quiz_session import (
    Clock,
    Monotonic,
    QuizSession,
    SessionState,
    SessionStore,
    utcnow,
)

logger = logging.getLogger(__name__)

SessionKey = tuple[uuid.UUID, uuid.UUID]

_FINISHED = (SessionState.COMPLETE, SessionState.BLOCKED)


class SessionManager:
    """Holds at most one live ``QuizSession`` per (quiz, participant).

    Sessions that complete or get blocked are dropped as soon as the call
    that finished them returns. Sessions nobody has touched for
    ``idle_ttl`` seconds count as abandoned: they are evicted without
    saving anything, even if their countdown ran out in the meantime.
    """

    def __init__(
        self,
        max_sessions: int,
        idle_ttl: float = 1800,
        clock: Clock = utcnow,
        monotonic: Monotonic = time.monotonic,
    ) -> None:
        self._max_sessions = max_sessions
        self._idle_ttl = idle_ttl
        self._clock = clock
        self._monotonic = monotonic
        self._sessions: dict[SessionKey, QuizSession] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def open(self, store: SessionStore, quiz_id: uuid.UUID, user_id: uuid.UUID) -> QuizSession:
        """Return the participant's live attempt, starting one if needed."""
        key = (quiz_id, user_id)
        self.evict_idle()
        with self._lock:
            existing = self._sessions.get(key)
        if existing is not None:
            logger.debug("Resuming session quiz=%s user=%s", quiz_id, user_id)
            return self.run(store, quiz_id, user_id, lambda session: None)

        with self._lock:
            if len(self._sessions) >= self._max_sessions:
                logger.warning("Session capacity reached (%d live)", len(self._sessions))
                raise SessionCapacityError()

        session = QuizSession(quiz_id, user_id, clock=self._clock, monotonic=self._monotonic)
        session.load(store)  # raises when blocked; nothing is registered

        with self._lock:
            # Another request for the same pair may have won while we loaded.
            current = self._sessions.setdefault(key, session)
        return current

    def run(
        self,
        store: SessionStore,
        quiz_id: uuid.UUID,
        user_id: uuid.UUID,
        action: Callable[[QuizSession], object],
    ) -> QuizSession:
        """Apply the countdown, then *action* if the attempt is still active."""
        key = (quiz_id, user_id)
        session = self._lookup(store, key)
        with session.lock:
            try:
                session.touch()
                session.tick(store)
                if session.state is SessionState.ACTIVE:
                    action(session)
            finally:
                if session.state in _FINISHED:
                    self._discard(key, session)
        return session

    def abandon(self, quiz_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        """Drop a live attempt without saving anything."""
        with self._lock:
            session = self._sessions.pop((quiz_id, user_id), None)
        if session is None:
            return False
        session.close()
        logger.info("Session abandoned: quiz=%s user=%s", quiz_id, user_id)
        return True

    def discard_quiz(self, quiz_id: uuid.UUID) -> int:
        """Drop every live attempt on a quiz (used when the quiz is deleted)."""
        with self._lock:
            keys = [key for key in self._sessions if key[0] == quiz_id]
            dropped = [self._sessions.pop(key) for key in keys]
        for session in dropped:
            session.close()
        return len(dropped)

    def evict_idle(self) -> int:
        """Drop attempts idle for longer than the TTL; nothing is persisted."""
        with self._lock:
            stale = [key for key, s in self._sessions.items() if self._is_stale(s)]
            dropped = [self._sessions.pop(key) for key in stale]
        for session in dropped:
            session.close()
        if dropped:
            logger.info("Evicted %d idle session(s)", len(dropped))
        return len(dropped)

    def _is_stale(self, session: QuizSession) -> bool:
        return session.idle_seconds > self._idle_ttl

    def _lookup(self, store: SessionStore, key: SessionKey) -> QuizSession:
        with self._lock:
            session = self._sessions.get(key)
            stale = session is not None and self._is_stale(session)
            if stale:
                del self._sessions[key]
        if stale:
            # Closed outside the registry lock; run() nests them the other way.
            session.close()
            logger.info("Idle session expired: quiz=%s user=%s", *key)
        elif session is not None:
            return session
        if store.has_submission(*key):
            raise AlreadyCompletedError()
        raise SessionNotFoundError()

    def _discard(self, key: SessionKey, session: QuizSession) -> None:
        with self._lock:
            if self._sessions.get(key) is session:
                del self._sessions[key]
