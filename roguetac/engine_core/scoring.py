"""
Scoring Engine - Incremental, overlap-safe run scoring (score mode).

After a mark is placed, each of the four axes through it is measured.
A run of length L >= 3 is worth L - 2 points. Credit is tracked per
player per line identity as disjoint segments, so extending a run only
awards the growth:

    row 0: X X X      -> +1 (segment [0,2] worth 1)
    row 0: X X X X    -> +1 (merged segment [0,3] worth 2)
"""

from __future__ import annotations
from dataclasses import dataclass, field

from .board import AXES, Board, Symbol, run_bounds, to_row_col

MIN_SCORING_RUN = 3

LineKey = tuple  # ("row", r) | ("col", c) | ("diag", r - c) | ("anti", r + c)


@dataclass(frozen=True)
class Segment:
    """A credited contiguous range along one line identity."""
    start: int
    end: int
    points: int

    def overlaps(self, start: int, end: int) -> bool:
        return self.start <= end and start <= self.end


@dataclass
class ScoreState:
    """Per-player cumulative scores and credited segments."""
    scores: dict[Symbol, int] = field(
        default_factory=lambda: {Symbol.X: 0, Symbol.O: 0}
    )
    # (symbol, line key) -> disjoint segments
    segments: dict[tuple, list[Segment]] = field(default_factory=dict)

    def score(self, symbol: Symbol) -> int:
        return self.scores.get(symbol, 0)

    def segments_for(self, symbol: Symbol, line: LineKey) -> list[Segment]:
        return self.segments.get((symbol, line), [])

    def copy(self) -> ScoreState:
        return ScoreState(
            scores=dict(self.scores),
            segments={k: list(v) for k, v in self.segments.items()},
        )


@dataclass(frozen=True)
class AxisRun:
    """A measured run through a placed mark."""
    line: LineKey
    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    @property
    def points(self) -> int:
        return max(0, self.length - (MIN_SCORING_RUN - 1))


def points_for_length(length: int) -> int:
    """3 -> 1, 4 -> 2, 5 -> 3, ..."""
    if length < MIN_SCORING_RUN:
        return 0
    return length - (MIN_SCORING_RUN - 1)


def line_key(index: int, n: int, dr: int, dc: int) -> LineKey:
    """Stable identity of the line through `index` along an axis."""
    row, col = to_row_col(index, n)
    if (dr, dc) == (0, 1):
        return ("row", row)
    if (dr, dc) == (1, 0):
        return ("col", col)
    if (dr, dc) == (1, 1):
        return ("diag", row - col)
    if (dr, dc) == (1, -1):
        return ("anti", row + col)
    raise ValueError(f"Unknown axis ({dr}, {dc})")


def axis_position(index: int, n: int, dr: int, dc: int) -> int:
    """Position of a cell along an axis: column for rows, row otherwise."""
    row, col = to_row_col(index, n)
    return col if dr == 0 else row


def measure_runs(board: Board, n: int, index: int, symbol: Symbol) -> list[AxisRun]:
    """Runs through `index` on all four axes."""
    runs = []
    for dr, dc in AXES:
        back, forward = run_bounds(board, n, index, symbol, dr, dc)
        pos = axis_position(index, n, dr, dc)
        runs.append(
            AxisRun(
                line=line_key(index, n, dr, dc),
                start=pos - back,
                end=pos + forward,
            )
        )
    return runs


def _credit(existing: list[Segment], run: AxisRun) -> tuple[int, list[Segment]]:
    """Return (awarded points, new segment list) for one run."""
    overlapping = [s for s in existing if s.overlaps(run.start, run.end)]
    prior = max((s.points for s in overlapping), default=0)
    awarded = max(0, run.points - prior)

    merged = Segment(
        start=min([run.start] + [s.start for s in overlapping]),
        end=max([run.end] + [s.end for s in overlapping]),
        points=max(run.points, prior),
    )
    kept = [s for s in existing if s not in overlapping]
    kept.append(merged)
    kept.sort(key=lambda s: s.start)
    return awarded, kept


def score_placement(
    state: ScoreState,
    board: Board,
    n: int,
    index: int,
    symbol: Symbol,
) -> tuple[ScoreState, int]:
    """
    Credit a newly placed mark.

    Returns (new score state, points awarded). The input is not mutated.
    """
    new_state = state.copy()
    total = 0
    for run in measure_runs(board, n, index, symbol):
        if run.points == 0:
            continue
        key = (symbol, run.line)
        awarded, segments = _credit(new_state.segments.get(key, []), run)
        new_state.segments[key] = segments
        total += awarded

    new_state.scores[symbol] = new_state.score(symbol) + total
    return new_state, total


def preview_points(
    state: ScoreState,
    board: Board,
    n: int,
    index: int,
    symbol: Symbol,
) -> int:
    """Points a mark at `index` would earn, without committing anything."""
    cells = list(board)
    cells[index] = symbol
    _, awarded = score_placement(state, tuple(cells), n, index, symbol)
    return awarded
