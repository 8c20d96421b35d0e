"""
Session Manager - Hosts game sessions behind one process.

LIFECYCLE:
1. Client creates a session -> new engine with a fresh SessionState
2. Client sends intents -> applied one at a time under the session lock
3. Client ends the session (or it goes stale) -> session dropped

PERSISTENCE RULES:
- Sessions are in-memory only; no game history is kept
- The settings store and word corpus are shared by every session
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterable
import logging
import random
import threading
import time
import uuid

from ..engine_core import GameEngine, GamePhase, FeedbackSink
from ..words import WordCorpus
from ..settings import SettingsStore

logger = logging.getLogger(__name__)


@dataclass
class Session:
    """
    One hosted game.

    All mutations of the engine must happen while holding `lock`.
    """
    session_id: str
    engine: GameEngine
    created_at: float
    last_active: float = 0.0
    seed: int | None = None
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    def is_active(self) -> bool:
        """A session on the home screen with no roster is idle."""
        return self.engine.phase != GamePhase.HOME or bool(self.engine.state.players)

    def touch(self):
        self.last_active = time.time()


class SessionManager:
    """
    Manages game sessions.

    Responsibilities:
    - Create sessions that share one corpus and settings store
    - Track live sessions
    - Drop ended or stale sessions
    """

    def __init__(
        self,
        corpus: WordCorpus | None = None,
        settings: SettingsStore | None = None,
    ):
        self.corpus = corpus if corpus is not None else WordCorpus.default()
        self.settings = settings if settings is not None else SettingsStore()
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()

    def create_session(
        self,
        seed: int | None = None,
        sinks: Iterable[FeedbackSink] | None = None,
    ) -> Session:
        """
        Create a new session sitting on the home screen.

        Args:
            seed: Seed for reproducible role and word draws
            sinks: Feedback sinks for this session's engine

        Returns:
            The new Session
        """
        session_id = str(uuid.uuid4())
        engine = GameEngine(
            corpus=self.corpus,
            settings=self.settings,
            rng=random.Random(seed),
            sinks=sinks,
        )
        now = time.time()
        session = Session(
            session_id=session_id,
            engine=engine,
            created_at=now,
            last_active=now,
            seed=seed,
        )

        with self._lock:
            self._sessions[session_id] = session
        logger.info("Session created: %s", session_id)
        return session

    def get_session(self, session_id: str) -> Session | None:
        return self._sessions.get(session_id)

    def end_session(self, session_id: str, reason: str = "completed") -> bool:
        """
        End a session and forget it.

        Returns False if the session did not exist.
        """
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if not session:
            return False

        with session.lock:
            session.engine.return_home()
        logger.info("Session ended: %s (%s)", session_id, reason)
        return True

    def list_sessions(self) -> list[str]:
        with self._lock:
            return list(self._sessions)

    def list_active_sessions(self) -> list[str]:
        """List IDs of sessions with a game in progress."""
        with self._lock:
            sessions = list(self._sessions.items())
        return [sid for sid, session in sessions if session.is_active()]

    def cleanup_stale_sessions(self, max_age_seconds: int = 3600) -> int:
        """
        Drop sessions idle for longer than max_age_seconds.

        Returns the number of sessions removed.
        """
        current_time = time.time()
        with self._lock:
            sessions = list(self._sessions.items())
        stale = [
            sid for sid, session in sessions
            if current_time - session.last_active > max_age_seconds
        ]
        for session_id in stale:
            self.end_session(session_id, reason="stale")
        return len(stale)
