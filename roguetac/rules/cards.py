"""
Card Catalog - Definitions of the ability cards.

Definitions are static. Runtime ownership and charges live in
CardInstance on the run state.

To add a card: add a CardId member, a CardDefinition in CARD_CATALOG,
and a resolution branch in engine_core/effect_resolver.py.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum

from .validation import ConfigurationError


class CardId(Enum):
    ERASE = "ERASE"
    SWAP = "SWAP"
    SHIELD = "SHIELD"


class TargetArity(Enum):
    """How many cells a card needs before it resolves."""
    SINGLE = 1
    DOUBLE = 2


@dataclass(frozen=True)
class CardDefinition:
    card_id: CardId
    name: str
    cost: int
    target_arity: TargetArity
    description: str = ""


CARD_CATALOG: dict[CardId, CardDefinition] = {
    CardId.ERASE: CardDefinition(
        card_id=CardId.ERASE,
        name="Erase",
        cost=1,
        target_arity=TargetArity.SINGLE,
        description="Clear an occupied, unlocked cell",
    ),
    CardId.SWAP: CardDefinition(
        card_id=CardId.SWAP,
        name="Swap",
        cost=1,
        target_arity=TargetArity.DOUBLE,
        description="Exchange the contents of two unlocked cells",
    ),
    CardId.SHIELD: CardDefinition(
        card_id=CardId.SHIELD,
        name="Shield",
        cost=1,
        target_arity=TargetArity.SINGLE,
        description="Lock a cell for 2 turns",
    ),
}

SHIELD_LOCK_TURNS = 2


def parse_card_id(raw: str | CardId) -> CardId | None:
    """Lenient lookup for command input. Returns None for unknown ids."""
    if isinstance(raw, CardId):
        return raw
    try:
        return CardId(str(raw).upper())
    except ValueError:
        return None


def get_card(card_id: str | CardId) -> CardDefinition:
    """Strict lookup for setup code. Unknown ids are construction errors."""
    parsed = parse_card_id(card_id)
    if parsed is None:
        raise ConfigurationError([f"Unknown card id '{card_id}'"])
    return CARD_CATALOG[parsed]
