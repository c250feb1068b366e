"""
API Module - HTTP interface.

Exposes the engine via REST API. A client:
1. Creates a session (a run starts on floor 1)
2. Issues moves, card plays and reward choices
3. Polls state to see the opponent's delayed reply
4. Restarts or rematches when a fight ends

All state is session-scoped and in memory.
"""

from .schemas import (
    CreateSessionRequest,
    MoveRequest,
    ArmCardRequest,
    TargetRequest,
    RewardRequest,
    CommandResponse,
    SessionResponse,
    GameStateResponse,
    ErrorResponse,
    ErrorCode,
)
from .service import APIService
from .app import create_app

__all__ = [
    # Requests
    "CreateSessionRequest",
    "MoveRequest",
    "ArmCardRequest",
    "TargetRequest",
    "RewardRequest",
    # Responses
    "CommandResponse",
    "SessionResponse",
    "GameStateResponse",
    "ErrorResponse",
    "ErrorCode",
    # Service
    "APIService",
    "create_app",
]
