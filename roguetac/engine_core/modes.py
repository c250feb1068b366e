"""
Mode Policies - The per-mode parts of the rules.

Classic and score mode share one engine. A ModePolicy supplies:
- board size per floor
- the win-condition check after a move
- the "would this move win" predicate used by the enemy AI
- whether a draw is representable
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from ..config import EngineConfig, GameMode
from .board import Symbol, has_full_line, is_full, place
from .scoring import preview_points

if TYPE_CHECKING:
    from .state import FightState


class Verdict(Enum):
    """Outcome of a terminal check."""
    UNDECIDED = "undecided"
    X_WINS = "x_wins"
    O_WINS = "o_wins"
    DRAW = "draw"
    STALEMATE = "stalemate"  # classic mode: full board, no line

    @classmethod
    def win_for(cls, symbol: Symbol) -> Verdict:
        return cls.X_WINS if symbol is Symbol.X else cls.O_WINS


class ModePolicy(ABC):
    """Rules that differ between game modes."""

    mode: GameMode
    allows_draw: bool = False

    @abstractmethod
    def board_size(self, floor: int) -> int:
        pass

    @abstractmethod
    def has_won(self, fight: FightState, symbol: Symbol) -> bool:
        pass

    @abstractmethod
    def is_winning_move(self, fight: FightState, index: int, symbol: Symbol) -> bool:
        pass

    def evaluate(self, fight: FightState, acting: Symbol) -> Verdict:
        """
        Terminal check after a committed move.

        The acting symbol's win condition is checked first. A full-board
        draw in a mode without draws becomes a stalemate.
        """
        for symbol in (acting, acting.other):
            if self.has_won(fight, symbol):
                return Verdict.win_for(symbol)
        if not is_full(fight.board):
            return Verdict.UNDECIDED

        verdict = self.full_board_verdict(fight)
        if verdict == Verdict.DRAW and not self.allows_draw:
            return Verdict.STALEMATE
        return verdict

    @abstractmethod
    def full_board_verdict(self, fight: FightState) -> Verdict:
        pass


@dataclass
class ClassicMode(ModePolicy):
    """Full-line wins on a board that grows by one every floor."""
    mode: GameMode = GameMode.CLASSIC
    allows_draw: bool = False

    def board_size(self, floor: int) -> int:
        return 2 + floor

    def has_won(self, fight: FightState, symbol: Symbol) -> bool:
        return has_full_line(fight.board, fight.size, symbol)

    def is_winning_move(self, fight: FightState, index: int, symbol: Symbol) -> bool:
        return has_full_line(place(fight.board, index, symbol), fight.size, symbol)

    def full_board_verdict(self, fight: FightState) -> Verdict:
        return Verdict.DRAW


@dataclass
class ScoreMode(ModePolicy):
    """Score-to-win on a board that grows by one every two floors from 8."""
    score_to_win: int = 5
    mode: GameMode = GameMode.SCORE
    allows_draw: bool = True

    def board_size(self, floor: int) -> int:
        return 8 + (floor - 1) // 2

    def has_won(self, fight: FightState, symbol: Symbol) -> bool:
        return fight.score.score(symbol) >= self.score_to_win

    def is_winning_move(self, fight: FightState, index: int, symbol: Symbol) -> bool:
        gained = preview_points(fight.score, fight.board, fight.size, index, symbol)
        return fight.score.score(symbol) + gained >= self.score_to_win

    def full_board_verdict(self, fight: FightState) -> Verdict:
        x_score = fight.score.score(Symbol.X)
        o_score = fight.score.score(Symbol.O)
        if x_score > o_score:
            return Verdict.X_WINS
        if o_score > x_score:
            return Verdict.O_WINS
        return Verdict.DRAW


def mode_policy(config: EngineConfig) -> ModePolicy:
    """Build the policy for a configured mode."""
    if config.mode is GameMode.CLASSIC:
        return ClassicMode()
    if config.mode is GameMode.SCORE:
        return ScoreMode(score_to_win=config.score_to_win)
    raise ValueError(f"Unknown game mode: {config.mode}")
