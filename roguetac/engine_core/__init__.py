"""
Engine Core - Deterministic run state management and rule resolution.

The engine is the runtime that:
1. Holds the board, locks and score state of a fight
2. Manages RunState across floors
3. Generates legal actions
4. Applies actions via the reducer
5. Resolves cards and opponent passives step-by-step
"""

from .board import Board, Symbol, empty_board, make_lines, check_full_line_winner, render
from .state import RunState, FightState, GamePhase, RewardOption, RewardType, CardInstance
from .action import Action, ActionType, ActionPayload, ActionResult, RejectReason
from .modes import ModePolicy, ClassicMode, ScoreMode, Verdict, mode_policy
from .reducer import Reducer, apply_action
from .action_generator import legal_actions

__all__ = [
    "Board",
    "Symbol",
    "empty_board",
    "make_lines",
    "check_full_line_winner",
    "render",
    "RunState",
    "FightState",
    "GamePhase",
    "RewardOption",
    "RewardType",
    "CardInstance",
    "Action",
    "ActionType",
    "ActionPayload",
    "ActionResult",
    "RejectReason",
    "ModePolicy",
    "ClassicMode",
    "ScoreMode",
    "Verdict",
    "mode_policy",
    "Reducer",
    "apply_action",
    "legal_actions",
]
