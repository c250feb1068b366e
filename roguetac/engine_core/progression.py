"""
Progression - Floors, rewards, and fight/run resets.

A run starts on floor 1 with the starting hand. Winning a fight offers
three rewards; choosing one advances the floor and starts a new fight
on a larger board against a freshly rolled encounter. Losing ends the
run until it is restarted.
"""

from __future__ import annotations
import logging
import random
import uuid

from ..config import EngineConfig
from ..rules.cards import CARD_CATALOG, get_card
from ..rules.encounters import Encounter, encounter_parameters, roll_encounter
from .modes import ModePolicy
from .state import (
    CardInstance,
    EnergyPool,
    FightState,
    GamePhase,
    RewardOption,
    RewardType,
    RunState,
)

logger = logging.getLogger(__name__)

REWARD_CHOICES = 3


def starting_hand(config: EngineConfig) -> list[CardInstance]:
    """Fresh hand: each starting card at 1/1 charges."""
    return [
        CardInstance(card_id=get_card(card_id).card_id, charges=1, max_charges=1)
        for card_id in config.starting_cards
    ]


def build_fight(
    floor: int,
    config: EngineConfig,
    mode: ModePolicy,
    rng: random.Random,
    encounter: Encounter | None = None,
) -> FightState:
    """Fight for a floor. Rolls an encounter unless one is given."""
    if encounter is None:
        encounter = roll_encounter(floor, config.boss_interval, rng)
    return FightState.create(
        size=mode.board_size(floor),
        encounter=encounter,
        passive_params=encounter_parameters(encounter, floor),
    )


def new_run(
    config: EngineConfig,
    mode: ModePolicy,
    rng: random.Random,
    run_id: str | None = None,
) -> RunState:
    """Floor 1, starting hand, starting energy."""
    state = RunState(
        run_id=run_id or str(uuid.uuid4()),
        mode=mode.mode,
        fight=build_fight(1, config, mode, rng),
        floor=1,
        phase=GamePhase.PLAYING,
        hand=starting_hand(config),
        energy=EnergyPool(current=config.starting_energy, maximum=config.starting_energy),
    )
    logger.info(
        "Run %s started: floor 1 vs %s", state.run_id, state.fight.encounter.name
    )
    return state


def reset_fight(
    state: RunState,
    config: EngineConfig,
    mode: ModePolicy,
    rng: random.Random,
    reroll: bool = True,
) -> None:
    """
    Start a new fight on the current floor (in place, on a cloned state).

    Clears board, locks and scores, refills energy and charges, and bumps
    the generation so stale scheduled actions are discarded.
    """
    encounter = None if reroll else state.fight.encounter
    state.fight = build_fight(state.floor, config, mode, rng, encounter=encounter)
    state.hand = [card.refilled() for card in state.hand]
    state.energy = state.energy.refilled()
    state.reward_options = []
    state.phase = GamePhase.PLAYING
    state.generation += 1


def make_reward_options(hand: list[CardInstance], rng: random.Random) -> list[RewardOption]:
    """
    Three distinct rewards in random order.

    NEW_CARD becomes a second CHARGES_UP when every catalog card is owned.
    """
    options = [
        RewardOption(RewardType.ENERGY_UP),
        RewardOption(RewardType.CHARGES_UP),
        RewardOption(RewardType.NEW_CARD),
    ]

    owned = {c.card_id for c in hand}
    if all(card_id in owned for card_id in CARD_CATALOG):
        options[2] = RewardOption(RewardType.CHARGES_UP)

    rng.shuffle(options)
    return options[:REWARD_CHOICES]


def apply_reward(state: RunState, option: RewardOption, rng: random.Random) -> str:
    """Apply one reward to a cloned state. Returns a description."""
    if option.reward_type is RewardType.ENERGY_UP:
        state.energy.maximum += 1
        state.energy.current = min(state.energy.current + 1, state.energy.maximum)
        return f"Max energy is now {state.energy.maximum}"

    if option.reward_type is RewardType.CHARGES_UP:
        if not state.hand:
            return "No cards to upgrade"
        card = rng.choice(state.hand)
        card.max_charges += 1
        card.charges = card.max_charges
        return f"{CARD_CATALOG[card.card_id].name} max charges is now {card.max_charges}"

    if option.reward_type is RewardType.NEW_CARD:
        owned = state.owned_card_ids()
        unowned = [card_id for card_id in CARD_CATALOG if card_id not in owned]
        if not unowned:
            return "Every card is already owned"
        card_id = rng.choice(unowned)
        state.hand.append(CardInstance(card_id=card_id, charges=1, max_charges=1))
        return f"Gained {CARD_CATALOG[card_id].name}"

    raise ValueError(f"Unknown reward type: {option.reward_type}")


def advance_floor(
    state: RunState,
    config: EngineConfig,
    mode: ModePolicy,
    rng: random.Random,
) -> None:
    """Next floor with a fresh fight and a new encounter."""
    state.floor += 1
    reset_fight(state, config, mode, rng, reroll=True)
    logger.info(
        "Floor %d: %dx%d board vs %s%s",
        state.floor,
        state.fight.size,
        state.fight.size,
        state.fight.encounter.name,
        " (boss)" if state.fight.encounter.is_boss else "",
    )


def restart_run(
    state: RunState,
    config: EngineConfig,
    mode: ModePolicy,
    rng: random.Random,
) -> None:
    """Back to floor 1 with the starting hand and energy."""
    state.floor = 1
    state.hand = starting_hand(config)
    state.energy = EnergyPool(current=config.starting_energy, maximum=config.starting_energy)
    reset_fight(state, config, mode, rng, reroll=True)
    logger.info("Run %s restarted vs %s", state.run_id, state.fight.encounter.name)
