"""
Tests for the board model.

Tests:
- Line geometry
- Full-line win detection
- Run measurement
- Rendering
"""

import pytest

from ..engine_core.board import (
    Symbol,
    check_full_line_winner,
    empty_board,
    has_full_line,
    in_bounds,
    is_full,
    make_lines,
    place,
    render,
    run_bounds,
    run_length,
    to_row_col,
)
from ..rules.validation import ConfigurationError
from .conftest import parse_board


class TestGeometry:
    """Tests for board construction and lines."""

    def test_empty_board(self):
        board = empty_board(4)
        assert len(board) == 16
        assert all(cell is None for cell in board)

    def test_empty_board_rejects_zero(self):
        with pytest.raises(ConfigurationError):
            empty_board(0)

    @pytest.mark.parametrize("n", [3, 4, 5, 8])
    def test_line_count(self, n):
        """Rows, columns and the two main diagonals only."""
        lines = make_lines(n)
        assert len(lines) == 2 * n + 2
        assert all(len(line) == n for line in lines)

    def test_diagonals_are_last(self):
        lines = make_lines(3)
        assert lines[-2] == (0, 4, 8)
        assert lines[-1] == (2, 4, 6)

    def test_row_col_and_bounds(self):
        assert to_row_col(7, 3) == (2, 1)
        assert in_bounds(8, 3)
        assert not in_bounds(9, 3)
        assert not in_bounds(-1, 3)

    def test_place_returns_new_board(self):
        board = empty_board(3)
        new_board = place(board, 4, Symbol.X)
        assert board[4] is None
        assert new_board[4] is Symbol.X
        assert place(new_board, 4, None)[4] is None

    def test_other_symbol(self):
        assert Symbol.X.other is Symbol.O
        assert Symbol.O.other is Symbol.X


class TestFullLineWin:
    """Tests for classic-mode line detection."""

    def test_row_win(self):
        board = parse_board("XXX OO. ...")
        assert check_full_line_winner(board, 3) is Symbol.X
        assert has_full_line(board, 3, Symbol.X)
        assert not has_full_line(board, 3, Symbol.O)

    def test_column_win(self):
        board = parse_board("OX. OX. O..")
        assert check_full_line_winner(board, 3) is Symbol.O

    def test_main_diagonal_win(self):
        board = parse_board("XO. OX. ..X")
        assert check_full_line_winner(board, 3) is Symbol.X

    def test_anti_diagonal_win(self):
        board = parse_board("..X .X. X..")
        assert check_full_line_winner(board, 3) is Symbol.X

    def test_short_diagonal_does_not_count(self):
        """On 4x4 only the full-length diagonals are lines."""
        board = parse_board(".X.. ..X. ...X ....")
        assert check_full_line_winner(board, 4) is None

    def test_no_winner(self):
        board = parse_board("XOX XOO OXX")
        assert check_full_line_winner(board, 3) is None
        assert is_full(board)


class TestRuns:
    """Tests for run measurement along axes."""

    def test_run_bounds_horizontal(self):
        board = parse_board("XXX. .... .... ....")
        assert run_bounds(board, 4, 1, Symbol.X, 0, 1) == (1, 1)
        assert run_length(board, 4, 0, Symbol.X, 0, 1) == 3

    def test_run_stops_at_other_symbol(self):
        board = parse_board("XXOX .... .... ....")
        assert run_length(board, 4, 0, Symbol.X, 0, 1) == 2

    def test_run_along_diagonal(self):
        board = parse_board("X... .X.. ..X. ....")
        assert run_length(board, 4, 5, Symbol.X, 1, 1) == 3
        assert run_length(board, 4, 5, Symbol.X, 1, -1) == 1


class TestRender:
    def test_render_marks_and_locks(self):
        board = parse_board("X.. .O. ...")
        locks = [0, 2, 0, 0, 0, 0, 0, 0, 0]
        text = render(board, 3, locks)
        assert text.splitlines() == ["X # 2", "3 O 5", "6 7 8"]
