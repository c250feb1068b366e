"""
Effect Resolver - Card playability and card effect resolution.

This module handles:
- Whether a card may be armed right now
- Resolving an armed card against its accumulated targets

Resolution is pure: it returns the new board and locks and never
touches energy, charges or history. The reducer does the bookkeeping.
"""

from __future__ import annotations
from dataclasses import dataclass

from ..rules.cards import CARD_CATALOG, SHIELD_LOCK_TURNS, CardId
from .action import RejectReason
from .board import Board
from .locks import LockList, lock_cell
from .state import GamePhase, RunState


@dataclass
class CardResolution:
    """Outcome of resolving a card against its targets."""
    ok: bool
    board: Board
    locks: LockList
    error: str | None = None
    error_code: RejectReason | None = None
    description: str = ""
    board_changed: bool = False


def card_blocker(state: RunState, card_id: CardId) -> tuple[str, RejectReason] | None:
    """
    Check whether a card may be armed or targeted right now.

    Returns (message, reason) if blocked, None if playable.
    """
    if state.phase != GamePhase.PLAYING:
        return f"Cards can only be played while PLAYING (phase is {state.phase.value})", RejectReason.WRONG_PHASE
    if state.fight.opponent_pending:
        return "Opponent is thinking", RejectReason.OPPONENT_THINKING
    if not state.is_player_turn:
        return "Not your turn", RejectReason.NOT_YOUR_TURN

    card = state.get_card(card_id)
    if card is None:
        return f"Card {card_id.value} is not in hand", RejectReason.CARD_NOT_OWNED

    definition = CARD_CATALOG[card_id]
    if state.energy.current < definition.cost:
        return (
            f"{definition.name} costs {definition.cost} energy, have {state.energy.current}",
            RejectReason.NOT_ENOUGH_ENERGY,
        )
    if card.charges <= 0:
        return f"{definition.name} has no charges left", RejectReason.NO_CHARGES

    return None


def resolve_card(
    card_id: CardId,
    targets: list[int],
    board: Board,
    locks: LockList,
) -> CardResolution:
    """Apply a card's effect to its targets."""
    if card_id is CardId.ERASE:
        result = _resolve_erase(targets[0], board, locks)
    elif card_id is CardId.SHIELD:
        result = _resolve_shield(targets[0], board, locks)
    elif card_id is CardId.SWAP:
        result = _resolve_swap(targets[0], targets[1], board, locks)
    else:
        raise ValueError(f"No resolution for card {card_id}")

    result.board_changed = result.ok and result.board != board
    return result


def _fail(board: Board, locks: LockList, error: str, code: RejectReason) -> CardResolution:
    return CardResolution(ok=False, board=board, locks=locks, error=error, error_code=code)


def _resolve_erase(index: int, board: Board, locks: LockList) -> CardResolution:
    if locks[index] > 0:
        return _fail(board, locks, f"Cell {index} is locked", RejectReason.CELL_LOCKED)
    if board[index] is None:
        return _fail(board, locks, f"Cell {index} is already empty", RejectReason.CELL_EMPTY)

    cells = list(board)
    removed = cells[index]
    cells[index] = None
    return CardResolution(
        ok=True,
        board=tuple(cells),
        locks=locks,
        description=f"Erased {removed.value} at {index}",
    )


def _resolve_shield(index: int, board: Board, locks: LockList) -> CardResolution:
    if locks[index] > 0:
        return _fail(board, locks, f"Cell {index} is locked", RejectReason.CELL_LOCKED)

    return CardResolution(
        ok=True,
        board=board,
        locks=lock_cell(locks, index, SHIELD_LOCK_TURNS),
        description=f"Shielded cell {index} for {SHIELD_LOCK_TURNS} turns",
    )


def _resolve_swap(first: int, second: int, board: Board, locks: LockList) -> CardResolution:
    if first == second:
        return _fail(board, locks, "Swap needs two different cells", RejectReason.INVALID_TARGET)
    if locks[first] > 0 or locks[second] > 0:
        return _fail(board, locks, "Swap target is locked", RejectReason.CELL_LOCKED)

    cells = list(board)
    cells[first], cells[second] = cells[second], cells[first]
    return CardResolution(
        ok=True,
        board=tuple(cells),
        locks=locks,
        description=f"Swapped cells {first} and {second}",
    )
