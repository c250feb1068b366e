"""
Bot Policy - Interface for move selection.

A BotPolicy looks at a board and returns a decision:
- Which cell to mark
- Why (for UI/debugging)
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional
import random

from ..engine_core.board import Board, Symbol
from ..engine_core.locks import LockList, playable_cells

# (cell index, symbol) -> would marking it win?
WinPredicate = Callable[[int, Symbol], bool]


@dataclass
class BotDecision:
    """
    A decision made by a bot.

    reason is one of "win", "block", "random".
    """
    cell: int
    reason: str = "random"
    explanation: str = ""
    evaluated_cells: int = 0


class BotPolicy(ABC):
    """
    Abstract base class for bot policies.

    A policy defines how a bot selects a cell.
    """

    @abstractmethod
    def select_move(
        self,
        board: Board,
        size: int,
        locks: LockList,
        own: Symbol,
        opponent: Symbol,
        is_winning: Optional[WinPredicate] = None,
    ) -> BotDecision | None:
        """
        Select a cell to mark.

        Args:
            board: Current board
            size: Board side length
            locks: Per-cell lock countdowns
            own: Symbol the bot plays
            opponent: The other symbol
            is_winning: Mode-specific "would this mark win" check

        Returns:
            BotDecision, or None when no cell is playable
        """
        pass


class RandomPolicy(BotPolicy):
    """
    Random policy - selects a playable cell uniformly at random.

    Used for:
    - Autoplay of the player side in simulations
    - Testing
    """

    def __init__(self, seed: int | None = None, rng: random.Random | None = None):
        self.rng = rng or random.Random(seed)

    def select_move(
        self,
        board: Board,
        size: int,
        locks: LockList,
        own: Symbol,
        opponent: Symbol,
        is_winning: Optional[WinPredicate] = None,
    ) -> BotDecision | None:
        candidates = playable_cells(board, locks)
        if not candidates:
            return None

        return BotDecision(
            cell=self.rng.choice(candidates),
            reason="random",
            explanation="Selected randomly",
            evaluated_cells=len(candidates),
        )
