"""
Enemy AI - Win, else block, else random.

The opponent scans playable cells in row-major order:
1. The first cell that wins for itself
2. Else the first cell that would win for the player (block)
3. Else a uniformly random playable cell
4. Else nothing (the turn is skipped)

The same routine serves Double Tap extra moves.

The bot does NOT:
- Look more than one move ahead
- Consider cards or passives
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional
import logging
import random

from ..engine_core.board import Board, Symbol, has_full_line, place
from ..engine_core.locks import LockList
from .policy import BotDecision, BotPolicy, WinPredicate, playable_cells

logger = logging.getLogger(__name__)


def full_line_predicate(board: Board, size: int) -> WinPredicate:
    """Classic-mode check: does marking the cell complete a line?"""
    def is_winning(index: int, symbol: Symbol) -> bool:
        return has_full_line(place(board, index, symbol), size, symbol)
    return is_winning


def find_immediate_win(
    candidates: list[int],
    symbol: Symbol,
    is_winning: WinPredicate,
) -> int | None:
    for index in candidates:
        if is_winning(index, symbol):
            return index
    return None


def choose_move(
    board: Board,
    size: int,
    locks: LockList,
    own: Symbol,
    opponent: Symbol,
    rng: random.Random,
    is_winning: Optional[WinPredicate] = None,
) -> int | None:
    """Pick a cell for `own`, or None if no cell is playable."""
    decision = EnemyAI(rng=rng).select_move(board, size, locks, own, opponent, is_winning)
    return decision.cell if decision else None


@dataclass
class EnemyAI(BotPolicy):
    """
    Deterministic-priority opponent.

    Usage:
        ai = EnemyAI(rng=random.Random(7))
        decision = ai.select_move(board, size, locks, Symbol.O, Symbol.X)
    """
    rng: random.Random = field(default_factory=random.Random)

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
            logger.debug("No playable cell for %s, turn skipped", own.value)
            return None

        check = is_winning or full_line_predicate(board, size)

        win = find_immediate_win(candidates, own, check)
        if win is not None:
            return BotDecision(
                cell=win,
                reason="win",
                explanation=f"Cell {win} wins for {own.value}",
                evaluated_cells=len(candidates),
            )

        block = find_immediate_win(candidates, opponent, check)
        if block is not None:
            return BotDecision(
                cell=block,
                reason="block",
                explanation=f"Cell {block} blocks {opponent.value}",
                evaluated_cells=len(candidates),
            )

        cell = self.rng.choice(candidates)
        return BotDecision(
            cell=cell,
            reason="random",
            explanation="No immediate win or threat",
            evaluated_cells=len(candidates),
        )
