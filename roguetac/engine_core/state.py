"""
Run State - The single value the engine operates on.

Design principles:
- Immutable-friendly: the reducer clones, never mutates its input
- Two scopes: RunState persists across fights, FightState is rebuilt
  on every fight reset
- Observable: the presentation layer reads snapshots of this state
"""

from __future__ import annotations
from dataclasses import dataclass, field
from copy import deepcopy
from enum import Enum

from ..config import GameMode
from ..rules.cards import CardId
from ..rules.encounters import Encounter, Passive, PassiveParameters
from .board import Board, Symbol, empty_board
from .locks import LockList, empty_locks, as_mapping
from .scoring import ScoreState

PLAYER_SYMBOL = Symbol.X
OPPONENT_SYMBOL = Symbol.O


class GamePhase(Enum):
    """High-level run phases. Exactly one is active."""
    PLAYING = "playing"
    REWARD = "reward"
    GAMEOVER = "gameover"
    DRAW = "draw"  # score mode only


class RewardType(Enum):
    ENERGY_UP = "energy_up"
    CHARGES_UP = "charges_up"
    NEW_CARD = "new_card"


REWARD_LABELS = {
    RewardType.ENERGY_UP: "+1 Max Energy",
    RewardType.CHARGES_UP: "+1 Max Charges (random card)",
    RewardType.NEW_CARD: "Gain a New Card",
}


@dataclass(frozen=True)
class RewardOption:
    reward_type: RewardType

    @property
    def label(self) -> str:
        return REWARD_LABELS[self.reward_type]


@dataclass
class CardInstance:
    """An owned card and its charges for the current fight."""
    card_id: CardId
    charges: int = 1
    max_charges: int = 1

    def refilled(self) -> CardInstance:
        return CardInstance(
            card_id=self.card_id,
            charges=self.max_charges,
            max_charges=self.max_charges,
        )


@dataclass
class EnergyPool:
    current: int = 1
    maximum: int = 1

    def refilled(self) -> EnergyPool:
        return EnergyPool(current=self.maximum, maximum=self.maximum)


@dataclass
class PendingCard:
    """An armed card waiting for its targets."""
    card_id: CardId
    targets: list[int] = field(default_factory=list)


@dataclass(frozen=True)
class LastMove:
    """
    Notification of the most recent mark, for presentation feedback only.

    source: "player", "opponent" or "double_tap"
    """
    symbol: Symbol
    index: int
    source: str
    score_delta: int | None = None


@dataclass
class FightState:
    """
    Everything scoped to one fight.

    Replaced wholesale when a fight resets.
    """
    size: int
    encounter: Encounter
    passive_params: dict[Passive, PassiveParameters] = field(default_factory=dict)
    history: list[Board] = field(default_factory=list)
    locks: LockList = field(default_factory=list)
    turn: Symbol = PLAYER_SYMBOL
    pending_card: PendingCard | None = None
    score: ScoreState = field(default_factory=ScoreState)
    opponent_pending: bool = False
    last_move: LastMove | None = None

    @classmethod
    def create(
        cls,
        size: int,
        encounter: Encounter,
        passive_params: dict[Passive, PassiveParameters],
    ) -> FightState:
        """Fresh fight: empty board, no locks, player to move."""
        return cls(
            size=size,
            encounter=encounter,
            passive_params=dict(passive_params),
            history=[empty_board(size)],
            locks=empty_locks(size),
        )

    @property
    def board(self) -> Board:
        """Current board: the last history entry."""
        return self.history[-1]

    def commit(self, board: Board) -> None:
        """Append a board snapshot."""
        self.history.append(board)

    def replace_current(self, board: Board) -> None:
        """Fold a passive's board change into the current snapshot."""
        self.history[-1] = board

    @property
    def lock_map(self) -> dict[int, int]:
        return as_mapping(self.locks)

    def params(self, passive: Passive) -> PassiveParameters | None:
        return self.passive_params.get(passive)


@dataclass
class RunState:
    """
    Complete run state at a point in time.

    All state changes go through the reducer.
    """
    run_id: str
    mode: GameMode
    fight: FightState
    floor: int = 1
    phase: GamePhase = GamePhase.PLAYING
    hand: list[CardInstance] = field(default_factory=list)
    energy: EnergyPool = field(default_factory=EnergyPool)
    reward_options: list[RewardOption] = field(default_factory=list)

    # Bumped whenever a new fight starts; stale scheduled actions carry an old value
    generation: int = 0

    @property
    def is_player_turn(self) -> bool:
        return self.fight.turn is PLAYER_SYMBOL

    def get_card(self, card_id: CardId) -> CardInstance | None:
        for card in self.hand:
            if card.card_id == card_id:
                return card
        return None

    def owned_card_ids(self) -> set[CardId]:
        return {c.card_id for c in self.hand}

    def clone(self) -> RunState:
        """Deep copy the state."""
        return deepcopy(self)
