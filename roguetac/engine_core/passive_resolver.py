"""
Passive Resolver - Opponent passive effects.

Each function operates on a FightState that the reducer has already
cloned, and uses the engine's RNG so outcomes are replayable.
Board changes are folded into the current history snapshot; they are
part of the move that triggered them, not separate moves.
"""

from __future__ import annotations
import logging
import random

from ..rules.encounters import PassiveParameters
from .board import place
from .locks import playable_cells
from .state import OPPONENT_SYMBOL, PLAYER_SYMBOL, FightState

logger = logging.getLogger(__name__)


def _triggers(chance: float, rng: random.Random) -> bool:
    return rng.random() < chance


def apply_thorns(
    fight: FightState, params: PassiveParameters, rng: random.Random
) -> int | None:
    """With probability p, drop an opponent mark on a random playable cell."""
    if not _triggers(params.chance, rng):
        return None

    candidates = playable_cells(fight.board, fight.locks)
    if not candidates:
        return None

    index = rng.choice(candidates)
    fight.replace_current(place(fight.board, index, OPPONENT_SYMBOL))
    logger.debug("Thorns placed %s at %d", OPPONENT_SYMBOL.value, index)
    return index


def apply_lockdown(
    fight: FightState, params: PassiveParameters, rng: random.Random
) -> list[int]:
    """Lock up to `count` distinct random empty cells for `duration` turns."""
    candidates = playable_cells(fight.board, fight.locks)
    count = min(params.count, len(candidates))
    if count <= 0 or params.duration <= 0:
        return []

    chosen = sorted(rng.sample(candidates, count))
    new_locks = fight.locks.copy()
    for index in chosen:
        new_locks[index] = params.duration
    fight.locks = new_locks
    logger.debug("Lockdown locked %s for %d turns", chosen, params.duration)
    return chosen


def apply_corrupt(
    fight: FightState, params: PassiveParameters, rng: random.Random
) -> int | None:
    """With probability p, clear one random unlocked player mark."""
    if not _triggers(params.chance, rng):
        return None

    candidates = [
        i for i, cell in enumerate(fight.board)
        if cell is PLAYER_SYMBOL and fight.locks[i] <= 0
    ]
    if not candidates:
        return None

    index = rng.choice(candidates)
    fight.replace_current(place(fight.board, index, None))
    logger.debug("Corrupt removed %s at %d", PLAYER_SYMBOL.value, index)
    return index


def rolls_double_tap(params: PassiveParameters, rng: random.Random) -> bool:
    """Whether the opponent earns an extra move this turn."""
    return _triggers(params.chance, rng)
