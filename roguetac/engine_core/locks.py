"""
Lock Registry - Per-cell countdowns that make cells temporarily unplayable.

Locks are stored as a fixed-size list indexed by cell, 0 meaning unlocked.
A locked cell cannot receive a move, cannot be targeted by a card, and is
skipped by the enemy AI.

tick() runs exactly once per committed move (player move, enemy move,
enemy extra move). Card plays never tick.
"""

from __future__ import annotations
from typing import Mapping, Union

LockList = list[int]


def empty_locks(n: int) -> LockList:
    return [0] * (n * n)


def tick(locks: Union[LockList, Mapping[int, int]]) -> Union[LockList, dict[int, int]]:
    """
    Decrement every active lock by one turn.

    Accepts either the dense list form or a sparse {index: turns} mapping
    and returns the same form. Entries that reach zero are dropped.
    """
    if isinstance(locks, Mapping):
        return {i: t - 1 for i, t in locks.items() if t - 1 > 0}
    return [t - 1 if t > 1 else 0 for t in locks]


def is_locked(locks: LockList, index: int) -> bool:
    return locks[index] > 0


def playable_cells(board, locks: LockList) -> list[int]:
    """Empty, unlocked cells in row-major order."""
    return [
        i for i, cell in enumerate(board)
        if cell is None and locks[i] <= 0
    ]


def lock_cell(locks: LockList, index: int, turns: int) -> LockList:
    """Return new locks with the cell set to exactly `turns` remaining."""
    if turns < 0:
        raise ValueError(f"Lock duration must be non-negative, got {turns}")
    new_locks = locks.copy()
    new_locks[index] = turns
    return new_locks


def as_mapping(locks: LockList) -> dict[int, int]:
    """Sparse view for observers: only locked cells."""
    return {i: t for i, t in enumerate(locks) if t > 0}


def from_mapping(mapping: Mapping[int, int], n: int) -> LockList:
    locks = empty_locks(n)
    for index, turns in mapping.items():
        if turns > 0:
            locks[index] = turns
    return locks
