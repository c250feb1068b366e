"""
Config Validation - Fail-fast checks on static engine parameters.

Validates that:
1. Sizes, intervals and thresholds are positive
2. Card ids in the starting hand exist in the catalog
3. Encounter pools reference known passives with the right arity

Errors here are construction errors: they are raised before any fight
begins and never during play.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..config import EngineConfig
    from .encounters import Encounter


class ConfigurationError(Exception):
    """Raised when static engine parameters are invalid."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(
            f"Configuration invalid with {len(errors)} error(s): " + "; ".join(errors)
        )


@dataclass
class ValidationResult:
    """Result of validation, with errors and warnings."""
    valid: bool
    errors: list[str]
    warnings: list[str]


def validate_config(config: EngineConfig) -> ValidationResult:
    """
    Validate an engine configuration.

    Returns ValidationResult with errors and warnings.
    """
    from .cards import CARD_CATALOG, CardId
    from .encounters import BOSS_ENCOUNTERS, NORMAL_ENCOUNTERS

    errors: list[str] = []
    warnings: list[str] = []

    if config.boss_interval < 1:
        errors.append("boss_interval must be >= 1")
    if config.score_to_win < 1:
        errors.append("score_to_win must be >= 1")
    if config.opponent_delay_ms < 0:
        errors.append("opponent_delay_ms must be >= 0")
    if config.starting_energy < 0:
        errors.append("starting_energy must be >= 0")

    seen: set[str] = set()
    for raw_id in config.starting_cards:
        card_id = raw_id.value if isinstance(raw_id, CardId) else str(raw_id)
        if card_id not in {c.value for c in CARD_CATALOG}:
            errors.append(f"Unknown card id '{card_id}' in starting hand")
        elif card_id in seen:
            errors.append(f"Duplicate card id '{card_id}' in starting hand")
        seen.add(card_id)

    errors.extend(validate_encounter_pool(NORMAL_ENCOUNTERS, passives_per_encounter=1))
    errors.extend(validate_encounter_pool(BOSS_ENCOUNTERS, passives_per_encounter=2))

    if not config.starting_cards:
        warnings.append("Starting hand is empty - cards can only be gained as rewards")
    if config.starting_energy == 0:
        warnings.append("Starting energy is 0 - no card is playable until ENERGY_UP")

    return ValidationResult(
        valid=len(errors) == 0,
        errors=errors,
        warnings=warnings,
    )


def validate_encounter_pool(
    pool: tuple[Encounter, ...], passives_per_encounter: int
) -> list[str]:
    """Validate that every encounter in a pool carries the expected passives."""
    from .encounters import Passive

    errors = []
    if not pool:
        errors.append("Encounter pool is empty")

    ids = set()
    for encounter in pool:
        if encounter.encounter_id in ids:
            errors.append(f"Duplicate encounter id '{encounter.encounter_id}'")
        ids.add(encounter.encounter_id)

        if len(encounter.passives) != passives_per_encounter:
            errors.append(
                f"Encounter '{encounter.encounter_id}' has {len(encounter.passives)} "
                f"passive(s), expected {passives_per_encounter}"
            )
        for passive in encounter.passives:
            if not isinstance(passive, Passive):
                errors.append(
                    f"Encounter '{encounter.encounter_id}' references unknown passive '{passive}'"
                )

    return errors
