"""
Interview session manager for in-memory session storage.

Each session tracks one problem through the guided interview phases and keeps
a transcript of the conversation. Sessions are removed explicitly (end or
reveal) or by the periodic expiry sweep once idle past the timeout.

All access to the session map goes through one lock, so concurrent requests
and the sweep never observe a half-updated session.
"""
import asyncio
import logging
import re
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from codementor.core.config import InterviewConfig
from codementor.core.state_transitions import InterviewPhase, initial_phase, next_phase, validate_transition
from codementor.domain.models import SessionStatus

logger = logging.getLogger(__name__)


# ==================== Session State ====================

@dataclass
class Turn:
    role: str
    content: str
    timestamp: datetime


@dataclass
class InterviewSession:
    id: str
    problem: str
    phase: InterviewPhase
    max_interactions: int
    started_at: datetime
    last_activity: datetime
    interactions: int = 0
    history: List[Turn] = field(default_factory=list)

    def status(self) -> SessionStatus:
        return SessionStatus(
            id=self.id,
            phase=self.phase.value,
            interactions=self.interactions,
            max_interactions=self.max_interactions,
            interactions_remaining=max(0, self.max_interactions - self.interactions),
            started_at=self.started_at,
            last_activity=self.last_activity,
            history_length=len(self.history),
        )

    def conversation_history(self) -> List[Dict[str, str]]:
        return [{"role": turn.role, "content": turn.content} for turn in self.history]


def keyword_pattern(keyword: str) -> "re.Pattern[str]":
    """Case-insensitive pattern for the trigger phrase, tolerant of spacing between words."""
    words = [re.escape(word) for word in keyword.split()]
    return re.compile(r"\s*".join(words), re.IGNORECASE)


def strip_keyword(problem: str, keyword: str) -> str:
    cleaned = keyword_pattern(keyword).sub("", problem)
    return cleaned.strip(" \t\r\n:-,")


# ==================== Session Manager ====================

class SessionManager:
    """
    Owns every interview session.

    `clock` is injectable so expiry can be exercised without waiting.
    """

    def __init__(self, config: InterviewConfig, clock: Callable[[], datetime] = datetime.utcnow):
        self.config = config
        self._clock = clock
        self._sessions: Dict[str, InterviewSession] = {}
        self._lock = threading.Lock()

    @property
    def timeout(self) -> timedelta:
        return timedelta(minutes=self.config.session_timeout_minutes)

    def create_session(self, problem: str) -> InterviewSession:
        now = self._clock()
        session = InterviewSession(
            id=str(uuid.uuid4()),
            problem=strip_keyword(problem, self.config.keyword),
            phase=initial_phase(),
            max_interactions=self.config.max_interactions,
            started_at=now,
            last_activity=now,
        )
        with self._lock:
            self._sessions[session.id] = session
        logger.info(f"[SESSION] Created interview session: {session.id}")
        return session

    def get_session(self, session_id: str) -> Optional[InterviewSession]:
        """Look up a session and mark it active. None if unknown or expired."""
        with self._lock:
            session = self._sessions.get(session_id)
            if session:
                session.last_activity = self._clock()
            return session

    def get_status(self, session_id: str) -> Optional[SessionStatus]:
        with self._lock:
            session = self._sessions.get(session_id)
            return session.status() if session else None

    def advance(self, session_id: str, user_response: Optional[str] = None) -> Optional[InterviewSession]:
        """Record a guided turn and move the phase forward. None if the session is unknown."""
        with self._lock:
            session = self._sessions.get(session_id)
            if not session:
                return None

            session.interactions += 1
            session.last_activity = self._clock()
            if user_response:
                session.history.append(Turn(role="user", content=user_response, timestamp=session.last_activity))

            target = next_phase(session.phase, session.interactions, session.max_interactions)
            if validate_transition(session.phase, target):
                session.phase = target

        logger.info(f"[SESSION] Session {session_id} progressed to phase: {session.phase.value}")
        return session

    def record_assistant_turn(self, session_id: str, response: str) -> Optional[InterviewSession]:
        with self._lock:
            session = self._sessions.get(session_id)
            if not session:
                return None
            session.history.append(Turn(role="assistant", content=response, timestamp=self._clock()))
            return session

    def force_reveal(self, session_id: str) -> Optional[InterviewSession]:
        with self._lock:
            session = self._sessions.get(session_id)
            if not session:
                return None
            if validate_transition(session.phase, InterviewPhase.REVEAL):
                session.phase = InterviewPhase.REVEAL
            session.last_activity = self._clock()

        logger.info(f"[SESSION] Session {session_id} forced to reveal phase")
        return session

    def end(self, session_id: str) -> Optional[InterviewSession]:
        """Remove a session; ending an unknown session is a no-op."""
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session:
            logger.info(f"[SESSION] Ended interview session: {session_id}")
        return session

    def active_count(self) -> int:
        with self._lock:
            return len(self._sessions)

    # ==================== Expiry ====================

    def sweep_expired(self) -> int:
        """Drop sessions idle for longer than the timeout. Returns how many were removed."""
        cutoff = self._clock() - self.timeout
        with self._lock:
            expired = [sid for sid, s in self._sessions.items() if s.last_activity < cutoff]
            for sid in expired:
                del self._sessions[sid]

        if expired:
            logger.info(f"[SESSION] Cleaned up {len(expired)} expired interview sessions")
        return len(expired)

    async def run_expiry_loop(self) -> None:
        """Sweep forever at the configured interval; cancel the task to stop."""
        interval = self.config.sweep_interval_minutes * 60
        while True:
            await asyncio.sleep(interval)
            self.sweep_expired()
