"""
Action System - Commands, payloads, and results.

Actions represent:
1. Player commands (move, cards, rewards, restart, rematch)
2. The scheduled opponent move

All state changes flow through actions.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ActionType(Enum):
    """Types of actions in the system."""
    # Run lifecycle
    START_RUN = "start_run"
    RESTART_RUN = "restart_run"
    REMATCH = "rematch"

    # Player actions
    PLAY_MOVE = "play_move"
    ARM_CARD = "arm_card"
    CLEAR_CARD = "clear_card"
    TARGET_CELL = "target_cell"
    CHOOSE_REWARD = "choose_reward"

    # Scheduled
    OPPONENT_MOVE = "opponent_move"


class RejectReason(str, Enum):
    """Machine-readable reasons for a rejected command."""
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


@dataclass
class ActionPayload:
    """
    Payload for an action - contains the action parameters.

    Different action types use different fields.
    Validation happens in the reducer.
    """
    cell_index: int | None = None
    card_id: str | None = None
    option_index: int | None = None

    # For scheduled actions: the RunState generation they were issued against
    generation: int | None = None

    params: dict[str, Any] = field(default_factory=dict)


@dataclass
class Action:
    """
    A complete action to be applied to the run state.

    Actions are:
    - Validated before application
    - Applied atomically by the reducer
    """
    action_type: ActionType
    payload: ActionPayload = field(default_factory=ActionPayload)

    @classmethod
    def start_run(cls) -> Action:
        return cls(action_type=ActionType.START_RUN)

    @classmethod
    def restart_run(cls) -> Action:
        return cls(action_type=ActionType.RESTART_RUN)

    @classmethod
    def rematch(cls) -> Action:
        return cls(action_type=ActionType.REMATCH)

    @classmethod
    def play_move(cls, cell_index: int) -> Action:
        return cls(
            action_type=ActionType.PLAY_MOVE,
            payload=ActionPayload(cell_index=cell_index),
        )

    @classmethod
    def arm_card(cls, card_id: str) -> Action:
        return cls(
            action_type=ActionType.ARM_CARD,
            payload=ActionPayload(card_id=card_id),
        )

    @classmethod
    def clear_card(cls) -> Action:
        return cls(action_type=ActionType.CLEAR_CARD)

    @classmethod
    def target_cell(cls, cell_index: int) -> Action:
        return cls(
            action_type=ActionType.TARGET_CELL,
            payload=ActionPayload(cell_index=cell_index),
        )

    @classmethod
    def choose_reward(cls, option_index: int) -> Action:
        return cls(
            action_type=ActionType.CHOOSE_REWARD,
            payload=ActionPayload(option_index=option_index),
        )

    @classmethod
    def opponent_move(cls, generation: int) -> Action:
        return cls(
            action_type=ActionType.OPPONENT_MOVE,
            payload=ActionPayload(generation=generation),
        )


@dataclass
class ActionResult:
    """
    Result of applying an action.

    Contains:
    - Whether the action was accepted
    - New state (if accepted)
    - Error and reason code (if rejected)
    - Human-readable changes (for UI/logging)
    """
    success: bool
    new_state: Any | None = None  # RunState
    error: str | None = None
    error_code: RejectReason | None = None

    state_changes: list[str] = field(default_factory=list)

    # Set when the opponent move should be scheduled after this action
    opponent_move_due: bool = False

    @classmethod
    def failure(cls, error: str, error_code: RejectReason | None = None) -> ActionResult:
        """Create a failure result."""
        return cls(success=False, error=error, error_code=error_code)

    @classmethod
    def success_with_state(
        cls,
        state: Any,
        changes: list[str] | None = None,
    ) -> ActionResult:
        """Create a success result with new state."""
        return cls(
            success=True,
            new_state=state,
            state_changes=changes or [],
        )
