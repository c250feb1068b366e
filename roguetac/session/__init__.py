"""
Session Module - Drives runs over time.

A session represents one player's play-through:
- Created when a client starts a game
- Holds a GameLoop (reducer + scheduler + current RunState)
- Fires the delayed opponent move when its time comes
- Destroyed when the client ends it

Sessions are EPHEMERAL: in memory only.
"""

from .scheduler import Scheduler, ScheduledAction
from .game_loop import GameLoop, GameSnapshot, build_snapshot
from .manager import SessionManager, Session, SessionState

__all__ = [
    "Scheduler",
    "ScheduledAction",
    "GameLoop",
    "GameSnapshot",
    "build_snapshot",
    "SessionManager",
    "Session",
    "SessionState",
]
