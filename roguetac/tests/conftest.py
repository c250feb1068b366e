"""
Pytest fixtures for RogueTac tests.
"""

import random

import pytest

from ..config import EngineConfig, GameMode
from ..engine_core.board import Symbol
from ..engine_core.reducer import Reducer
from ..engine_core.state import (
    CardInstance,
    EnergyPool,
    FightState,
    RunState,
)
from ..rules.cards import CardId
from ..rules.encounters import Encounter


class FixedRandom(random.Random):
    """
    Random whose random() always returns `value`.

    Passive triggers compare random() against a chance, so 0.0 always
    fires and 0.999 never does. choice/sample/shuffle still draw from
    the seeded bit generator.
    """

    def __init__(self, value: float, seed: int = 0):
        super().__init__(seed)
        self.value = value

    def random(self):
        return self.value

    def getrandbits(self, k):
        return super().getrandbits(k)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def parse_board(cells: str):
    """'XO.......' -> board tuple. Whitespace is ignored."""
    mapping = {"X": Symbol.X, "O": Symbol.O, ".": None}
    return tuple(mapping[c] for c in cells if not c.isspace())


QUIET_ENCOUNTER = Encounter(encounter_id="training_dummy", name="Training Dummy")


def make_state(
    cells: str | None = None,
    size: int = 3,
    mode: GameMode = GameMode.CLASSIC,
    encounter: Encounter = QUIET_ENCOUNTER,
    passive_params=None,
    hand=None,
    energy: int = 1,
    turn: Symbol = Symbol.X,
    opponent_pending: bool = False,
) -> RunState:
    """Build a RunState directly, bypassing encounter rolls."""
    fight = FightState.create(size, encounter, passive_params or {})
    if cells is not None:
        board = parse_board(cells)
        assert len(board) == size * size
        fight.history = [board]
    fight.turn = turn
    fight.opponent_pending = opponent_pending

    if hand is None:
        hand = [CardInstance(card_id) for card_id in (CardId.ERASE, CardId.SWAP, CardId.SHIELD)]

    return RunState(
        run_id="test_run",
        mode=mode,
        fight=fight,
        hand=hand,
        energy=EnergyPool(current=energy, maximum=max(energy, 1)),
    )


@pytest.fixture
def quiet_encounter() -> Encounter:
    """An encounter with no passives, for deterministic fights."""
    return QUIET_ENCOUNTER


@pytest.fixture
def classic_config() -> EngineConfig:
    return EngineConfig(mode=GameMode.CLASSIC, seed=7)


@pytest.fixture
def score_config() -> EngineConfig:
    return EngineConfig(mode=GameMode.SCORE, seed=7)


@pytest.fixture
def classic_reducer(classic_config) -> Reducer:
    """Classic-mode reducer with a seeded RNG."""
    return Reducer(config=classic_config, rng=random.Random(7))


@pytest.fixture
def score_reducer(score_config) -> Reducer:
    """Score-mode reducer with a seeded RNG."""
    return Reducer(config=score_config, rng=random.Random(7))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
