"""
Encounters - Opponent definitions, encounter rolls and passive scaling.

Every fight has exactly one Encounter. Normal floors draw from a pool of
single-passive encounters; boss floors (every `boss_interval` floors)
draw from a pool of two-passive encounters.

Passive strength is derived per fight from the floor number plus the
encounter's fixed modifiers (see passive_parameters()).
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
import random

from .validation import ConfigurationError


class Passive(Enum):
    """Opponent passive abilities."""
    THORNS = "THORNS"  # after player move: chance to drop an O
    LOCKDOWN = "LOCKDOWN"  # after opponent move: lock empty cells
    CORRUPT = "CORRUPT"  # after opponent move: chance to clear an X
    DOUBLE_TAP = "DOUBLE_TAP"  # after opponent move: chance of an extra move


class PassiveTiming(Enum):
    AFTER_PLAYER_MOVE = "after_player_move"
    AFTER_OPPONENT_MOVE = "after_opponent_move"


PASSIVE_TIMING: dict[Passive, PassiveTiming] = {
    Passive.THORNS: PassiveTiming.AFTER_PLAYER_MOVE,
    Passive.LOCKDOWN: PassiveTiming.AFTER_OPPONENT_MOVE,
    Passive.CORRUPT: PassiveTiming.AFTER_OPPONENT_MOVE,
    Passive.DOUBLE_TAP: PassiveTiming.AFTER_OPPONENT_MOVE,
}

# Resolution order for post-opponent hooks
OPPONENT_HOOK_ORDER: tuple[Passive, ...] = (
    Passive.LOCKDOWN,
    Passive.CORRUPT,
    Passive.DOUBLE_TAP,
)

MAX_CHANCE = 0.9


@dataclass(frozen=True)
class ChanceCurve:
    """Linear-in-floor trigger chance with a ceiling."""
    base: float
    per_floor: float
    cap: float

    def at(self, floor: int) -> float:
        return min(self.base + self.per_floor * (floor - 1), self.cap)


CHANCE_CURVES: dict[Passive, ChanceCurve] = {
    Passive.THORNS: ChanceCurve(base=0.10, per_floor=0.04, cap=0.65),
    Passive.CORRUPT: ChanceCurve(base=0.08, per_floor=0.03, cap=0.50),
    Passive.DOUBLE_TAP: ChanceCurve(base=0.05, per_floor=0.03, cap=0.45),
}

LOCKDOWN_MAX_BASE_COUNT = 3


@dataclass(frozen=True)
class EncounterModifiers:
    """Fixed per-encounter adjustments applied on top of floor scaling."""
    chance: float = 0.0
    lock_count: int = 0
    lock_duration: int = 0


@dataclass(frozen=True)
class Encounter:
    """An opponent configuration for one fight."""
    encounter_id: str
    name: str
    passives: frozenset = field(default_factory=frozenset)  # frozenset[Passive]
    modifiers: EncounterModifiers = field(default_factory=EncounterModifiers)
    is_boss: bool = False


@dataclass(frozen=True)
class PassiveParameters:
    """Trigger parameters for one passive in one fight."""
    chance: float = 0.0
    count: int = 0
    duration: int = 0


NORMAL_ENCOUNTERS: tuple[Encounter, ...] = (
    Encounter(
        encounter_id="thorn_sentinel",
        name="Thorn Sentinel",
        passives=frozenset({Passive.THORNS}),
    ),
    Encounter(
        encounter_id="gaoler",
        name="Gaoler",
        passives=frozenset({Passive.LOCKDOWN}),
    ),
    Encounter(
        encounter_id="blight_acolyte",
        name="Blight Acolyte",
        passives=frozenset({Passive.CORRUPT}),
        modifiers=EncounterModifiers(chance=0.02),
    ),
    Encounter(
        encounter_id="twin_fang",
        name="Twin Fang",
        passives=frozenset({Passive.DOUBLE_TAP}),
    ),
)

BOSS_ENCOUNTERS: tuple[Encounter, ...] = (
    Encounter(
        encounter_id="bramble_warden",
        name="Bramble Warden",
        passives=frozenset({Passive.THORNS, Passive.LOCKDOWN}),
        modifiers=EncounterModifiers(chance=0.05, lock_duration=1),
        is_boss=True,
    ),
    Encounter(
        encounter_id="rot_monarch",
        name="Rot Monarch",
        passives=frozenset({Passive.CORRUPT, Passive.DOUBLE_TAP}),
        modifiers=EncounterModifiers(chance=0.05),
        is_boss=True,
    ),
    Encounter(
        encounter_id="iron_hydra",
        name="Iron Hydra",
        passives=frozenset({Passive.LOCKDOWN, Passive.DOUBLE_TAP}),
        modifiers=EncounterModifiers(lock_count=1),
        is_boss=True,
    ),
    Encounter(
        encounter_id="hexweaver",
        name="Hexweaver",
        passives=frozenset({Passive.THORNS, Passive.CORRUPT}),
        modifiers=EncounterModifiers(chance=0.08),
        is_boss=True,
    ),
)

ENCOUNTERS_BY_ID: dict[str, Encounter] = {
    e.encounter_id: e for e in NORMAL_ENCOUNTERS + BOSS_ENCOUNTERS
}


def get_encounter(encounter_id: str) -> Encounter:
    try:
        return ENCOUNTERS_BY_ID[encounter_id]
    except KeyError:
        raise ConfigurationError([f"Unknown encounter id '{encounter_id}'"]) from None


def is_boss_floor(floor: int, boss_interval: int) -> bool:
    return floor % boss_interval == 0


def roll_encounter(floor: int, boss_interval: int, rng: random.Random) -> Encounter:
    """Draw this floor's encounter uniformly from the right pool."""
    pool = BOSS_ENCOUNTERS if is_boss_floor(floor, boss_interval) else NORMAL_ENCOUNTERS
    return rng.choice(pool)


def passive_parameters(
    passive: Passive, floor: int, modifiers: EncounterModifiers
) -> PassiveParameters:
    """Scale one passive for a floor."""
    if passive is Passive.LOCKDOWN:
        base_count = min(1 + (floor - 1) // 3, LOCKDOWN_MAX_BASE_COUNT)
        return PassiveParameters(
            chance=1.0,
            count=max(1, base_count + modifiers.lock_count),
            duration=max(1, 2 + (floor - 1) // 4 + modifiers.lock_duration),
        )

    if passive in CHANCE_CURVES:
        chance = CHANCE_CURVES[passive].at(floor) + modifiers.chance
        return PassiveParameters(chance=max(0.0, min(chance, MAX_CHANCE)))

    raise ConfigurationError([f"Unknown passive '{passive}'"])


def encounter_parameters(
    encounter: Encounter, floor: int
) -> dict[Passive, PassiveParameters]:
    """Parameters for every passive the encounter carries."""
    return {
        passive: passive_parameters(passive, floor, encounter.modifiers)
        for passive in encounter.passives
    }
