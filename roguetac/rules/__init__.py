"""Static game rules - card catalog, encounters, and config validation."""

from .cards import CardId, CardDefinition, TargetArity, CARD_CATALOG, get_card, parse_card_id
from .encounters import (
    Passive,
    PassiveTiming,
    Encounter,
    EncounterModifiers,
    PassiveParameters,
    NORMAL_ENCOUNTERS,
    BOSS_ENCOUNTERS,
    roll_encounter,
    passive_parameters,
    encounter_parameters,
)
from .validation import validate_config, ConfigurationError

__all__ = [
    "CardId",
    "CardDefinition",
    "TargetArity",
    "CARD_CATALOG",
    "get_card",
    "parse_card_id",
    "Passive",
    "PassiveTiming",
    "Encounter",
    "EncounterModifiers",
    "PassiveParameters",
    "NORMAL_ENCOUNTERS",
    "BOSS_ENCOUNTERS",
    "roll_encounter",
    "passive_parameters",
    "encounter_parameters",
    "validate_config",
    "ConfigurationError",
]
