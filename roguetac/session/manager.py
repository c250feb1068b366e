"""
Session Manager - Creates and manages game sessions.

LIFECYCLE:
1. Client creates a session -> a GameLoop with its own RNG and scheduler,
   and a run already started on floor 1
2. During play:
   - Client issues commands through the session's loop
   - Reading state advances the scheduler, so the opponent replies
     once its delay has elapsed
3. Client deletes the session -> removed from memory

PERSISTENCE RULES:
- Everything is in memory
- Nothing survives a process restart
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
import logging
import time
import uuid

from ..config import EngineConfig
from ..engine_core.state import GamePhase
from .game_loop import GameLoop
from .scheduler import Clock

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """State of a game session."""
    ACTIVE = "active"  # Fight in progress
    REWARD = "reward"  # Waiting for a reward choice
    GAME_OVER = "game_over"  # Run lost, waiting for restart
    DRAW = "draw"  # Score-mode draw, waiting for rematch
    ENDED = "ended"  # Removed by the client


PHASE_TO_SESSION_STATE = {
    GamePhase.PLAYING: SessionState.ACTIVE,
    GamePhase.REWARD: SessionState.REWARD,
    GamePhase.GAMEOVER: SessionState.GAME_OVER,
    GamePhase.DRAW: SessionState.DRAW,
}


@dataclass
class Session:
    """
    An ephemeral game session: one player, one run at a time.

    The session is destroyed when the client ends it.
    """
    session_id: str
    loop: GameLoop
    created_at: float
    last_active_at: float = 0.0
    ended: bool = False

    @property
    def state(self) -> SessionState:
        if self.ended:
            return SessionState.ENDED
        if self.loop.state is None:
            return SessionState.ACTIVE
        return PHASE_TO_SESSION_STATE[self.loop.state.phase]

    @property
    def config(self) -> EngineConfig:
        return self.loop.config

    def is_active(self) -> bool:
        return not self.ended

    def touch(self) -> None:
        self.last_active_at = time.time()


class SessionManager:
    """
    Manages game sessions.

    Responsibilities:
    - Create sessions with their own engine and scheduler
    - Track active sessions
    - Clean up idle sessions

    No persistence - sessions are in-memory only.
    """

    def __init__(self, default_config: EngineConfig | None = None, clock: Clock | None = None):
        self.default_config = default_config or EngineConfig()
        self.clock = clock
        self._sessions: dict[str, Session] = {}

    def create_session(self, config: EngineConfig | None = None) -> Session:
        """
        Create a new session and start its first run.

        Args:
            config: Engine configuration; defaults to the manager's

        Returns:
            New Session with a run in progress
        """
        config = (config or self.default_config).validate()
        session_id = str(uuid.uuid4())

        loop = GameLoop(config=config, clock=self.clock)
        loop.start_run(run_id=session_id)

        now = time.time()
        session = Session(
            session_id=session_id,
            loop=loop,
            created_at=now,
            last_active_at=now,
        )
        self._sessions[session_id] = session
        logger.info("Session %s created (%s mode)", session_id, config.mode.value)
        return session

    def get_session(self, session_id: str) -> Session | None:
        """Get a session by ID."""
        return self._sessions.get(session_id)

    def end_session(self, session_id: str) -> bool:
        """
        End a session and drop it from memory.

        Returns False if the session did not exist.
        """
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        session.ended = True
        session.loop.scheduler.clear()
        logger.info("Session %s ended", session_id)
        return True

    def list_active_sessions(self) -> list[str]:
        """List IDs of active sessions."""
        return [
            sid for sid, session in self._sessions.items()
            if session.is_active()
        ]

    def cleanup_idle_sessions(self, max_idle_seconds: int = 3600) -> int:
        """
        End sessions idle for longer than max_idle_seconds.

        Returns how many were removed.
        """
        current_time = time.time()
        to_remove = [
            session_id
            for session_id, session in self._sessions.items()
            if current_time - session.last_active_at > max_idle_seconds
        ]
        for session_id in to_remove:
            self.end_session(session_id)
        return len(to_remove)
