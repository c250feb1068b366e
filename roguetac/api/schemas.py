"""
API Schemas - Pydantic models for request/response validation.

These schemas define the exact JSON contract for the REST API.
FastAPI uses them for:
- Request validation
- Response serialization
- OpenAPI documentation generation
"""

from __future__ import annotations
from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================

class ModeName(str, Enum):
    """Game modes."""
    CLASSIC = "classic"
    SCORE = "score"


class PhaseName(str, Enum):
    """Run phases."""
    PLAYING = "playing"
    REWARD = "reward"
    GAMEOVER = "gameover"
    DRAW = "draw"


class SessionStatus(str, Enum):
    """Session lifecycle status."""
    ACTIVE = "active"
    REWARD = "reward"
    GAME_OVER = "game_over"
    DRAW = "draw"
    ENDED = "ended"


class ErrorCode(str, Enum):
    """Structured error codes. Command rejections reuse the engine's codes."""
    WRONG_PHASE = "WRONG_PHASE"
    NOT_YOUR_TURN = "NOT_YOUR_TURN"
    OPPONENT_THINKING = "OPPONENT_THINKING"
    OUT_OF_RANGE = "OUT_OF_RANGE"
    CELL_OCCUPIED = "CELL_OCCUPIED"
    CELL_LOCKED = "CELL_LOCKED"
    CELL_EMPTY = "CELL_EMPTY"
    UNKNOWN_CARD = "UNKNOWN_CARD"
    CARD_NOT_OWNED = "CARD_NOT_OWNED"
    NOT_ENOUGH_ENERGY = "NOT_ENOUGH_ENERGY"
    NO_CHARGES = "NO_CHARGES"
    NO_PENDING_CARD = "NO_PENDING_CARD"
    INVALID_TARGET = "INVALID_TARGET"
    INVALID_REWARD = "INVALID_REWARD"
    STALE_ACTION = "STALE_ACTION"
    NO_HANDLER = "NO_HANDLER"
    HANDLER_ERROR = "HANDLER_ERROR"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Shared Models
# =============================================================================

class HandCardInfo(BaseModel):
    """An owned card and its charges."""
    card_id: str
    name: str
    cost: int
    targets: int = Field(description="Cells to select before the card resolves")
    description: str = ""
    charges: int
    max_charges: int
    playable: bool = False


class EncounterInfo(BaseModel):
    """The opponent faced on this floor."""
    encounter_id: str
    name: str
    passives: list[str] = Field(default_factory=list)
    is_boss: bool = False


class PendingCardInfo(BaseModel):
    """An armed card and the targets selected so far."""
    card_id: str
    targets: list[int] = Field(default_factory=list)


class RewardOptionInfo(BaseModel):
    """A reward offered after clearing a floor."""
    index: int
    reward_type: str
    label: str


class LastMoveInfo(BaseModel):
    """The most recent mark, for move feedback."""
    symbol: str
    index: int
    source: str = Field(description="player, opponent or double_tap")
    score_delta: Optional[int] = None


# =============================================================================
# Request Models
# =============================================================================

class CreateSessionRequest(BaseModel):
    """Request to create a new game session."""
    mode: Optional[ModeName] = Field(None, description="classic or score; defaults to the server's mode")
    seed: Optional[int] = Field(None, description="Seed for reproducible games")
    score_to_win: Optional[int] = Field(None, ge=1, description="Score-mode threshold")
    boss_interval: Optional[int] = Field(None, ge=1, description="Boss every N floors")
    opponent_delay_ms: Optional[int] = Field(None, ge=0, description="Opponent reply delay")


class MoveRequest(BaseModel):
    """Place the player's mark."""
    cell_index: int = Field(..., description="Row-major cell index")


class ArmCardRequest(BaseModel):
    """Arm a card from the hand."""
    card_id: str = Field(..., description="ERASE, SWAP or SHIELD")


class TargetRequest(BaseModel):
    """Select a target cell for the armed card."""
    cell_index: int = Field(..., description="Row-major cell index")


class RewardRequest(BaseModel):
    """Pick one of the offered rewards."""
    option_index: int = Field(..., description="Index into reward_options")


# =============================================================================
# Response Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    details: Optional[dict[str, Any]] = Field(None, description="Additional error context")
    api_version: str = Field("v1", description="API version")


class GameStateResponse(BaseModel):
    """Complete observable state of a session's run."""
    session_id: str
    status: SessionStatus
    mode: ModeName
    phase: PhaseName
    floor: int
    size: int
    board: list[Optional[str]] = Field(description="Row-major cells: X, O or null")
    turn: str
    generation: int
    energy: int
    max_energy: int
    hand: list[HandCardInfo] = Field(default_factory=list)
    locks: dict[int, int] = Field(default_factory=dict, description="Locked cell -> turns left")
    encounter: EncounterInfo
    pending_card: Optional[PendingCardInfo] = None
    reward_options: list[RewardOptionInfo] = Field(default_factory=list)
    scores: Optional[dict[str, int]] = None
    score_to_win: Optional[int] = None
    opponent_thinking: bool = False
    last_move: Optional[LastMoveInfo] = None
    history_length: int = 1
    api_version: str = "v1"


class CommandResponse(BaseModel):
    """Result of an accepted command."""
    success: bool = True
    changes: list[str] = Field(default_factory=list)
    state: GameStateResponse


class SessionResponse(BaseModel):
    """Response containing session information."""
    session_id: str
    status: SessionStatus
    mode: ModeName
    created_at: float = 0.0
    state: Optional[GameStateResponse] = None
    api_version: str = "v1"


class SessionListResponse(BaseModel):
    """Response listing active sessions."""
    sessions: list[str]
    count: int


class EndSessionResponse(BaseModel):
    """Response after ending a session."""
    success: bool
    session_id: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
