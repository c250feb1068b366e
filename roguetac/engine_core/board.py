"""
Board Model - Grid representation and line geometry.

A board is a flat, row-major tuple of N*N cells. Each cell is either
None (empty) or a Symbol. Two rule families read the board:
- Full-line wins (classic mode): a whole row, column or main diagonal
- Run lengths (score mode): contiguous marks through a cell along an axis
"""

from __future__ import annotations
from enum import Enum
from functools import lru_cache
from typing import Optional

from ..rules.validation import ConfigurationError


class Symbol(Enum):
    """The two marks that can occupy a cell."""
    X = "X"
    O = "O"

    @property
    def other(self) -> Symbol:
        return Symbol.O if self is Symbol.X else Symbol.X


Cell = Optional[Symbol]
Board = tuple  # tuple[Cell, ...]

# (dr, dc) for horizontal, vertical, diagonal, anti-diagonal
AXES: tuple[tuple[int, int], ...] = ((0, 1), (1, 0), (1, 1), (1, -1))


def empty_board(n: int) -> Board:
    """Create an empty n x n board."""
    if n < 1:
        raise ConfigurationError([f"Board size must be positive, got {n}"])
    return (None,) * (n * n)


def to_row_col(index: int, n: int) -> tuple[int, int]:
    return divmod(index, n)


def in_bounds(index: int, n: int) -> bool:
    return 0 <= index < n * n


@lru_cache(maxsize=64)
def make_lines(n: int) -> tuple[tuple[int, ...], ...]:
    """
    All lines that count for a full-line win.

    Rows, then columns, then the two full-length diagonals:
    exactly 2n + 2 lines, not every possible diagonal.
    """
    if n < 1:
        raise ConfigurationError([f"Board size must be positive, got {n}"])

    lines: list[tuple[int, ...]] = []
    for r in range(n):
        lines.append(tuple(r * n + c for c in range(n)))
    for c in range(n):
        lines.append(tuple(r * n + c for r in range(n)))
    lines.append(tuple(r * n + r for r in range(n)))
    lines.append(tuple(r * n + (n - 1 - r) for r in range(n)))
    return tuple(lines)


def check_full_line_winner(board: Board, n: int) -> Symbol | None:
    """Return the symbol owning a complete line, or None."""
    for line in make_lines(n):
        first = board[line[0]]
        if first is None:
            continue
        if all(board[i] == first for i in line):
            return first
    return None


def has_full_line(board: Board, n: int, symbol: Symbol) -> bool:
    """Check whether a specific symbol owns a complete line."""
    return any(
        all(board[i] == symbol for i in line)
        for line in make_lines(n)
    )


def is_full(board: Board) -> bool:
    return all(cell is not None for cell in board)


def place(board: Board, index: int, symbol: Cell) -> Board:
    """Return a new board with the cell set (None clears it)."""
    cells = list(board)
    cells[index] = symbol
    return tuple(cells)


def run_bounds(
    board: Board,
    n: int,
    index: int,
    symbol: Symbol,
    dr: int,
    dc: int,
) -> tuple[int, int]:
    """
    Count contiguous `symbol` cells on either side of `index`.

    Returns (back, forward): steps walked along (-dr, -dc) and (+dr, +dc).
    The cell at `index` itself is not counted in either.
    """
    row, col = to_row_col(index, n)

    back = 0
    r, c = row - dr, col - dc
    while 0 <= r < n and 0 <= c < n and board[r * n + c] == symbol:
        back += 1
        r, c = r - dr, c - dc

    forward = 0
    r, c = row + dr, col + dc
    while 0 <= r < n and 0 <= c < n and board[r * n + c] == symbol:
        forward += 1
        r, c = r + dr, c + dc

    return back, forward


def run_length(
    board: Board,
    n: int,
    index: int,
    symbol: Symbol,
    dr: int,
    dc: int,
) -> int:
    """Length of the contiguous run of `symbol` through `index` on one axis."""
    back, forward = run_bounds(board, n, index, symbol, dr, dc)
    return back + forward + 1


def render(board: Board, n: int, locks: list[int] | None = None) -> str:
    """Plain-text rendering, used by the CLI and in log messages."""
    width = len(str(n * n - 1))
    rows = []
    for r in range(n):
        cells = []
        for c in range(n):
            i = r * n + c
            if board[i] is not None:
                text = board[i].value
            elif locks and locks[i] > 0:
                text = "#"
            else:
                text = str(i)
            cells.append(text.rjust(width))
        rows.append(" ".join(cells))
    return "\n".join(rows)
