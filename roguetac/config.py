"""
Engine Configuration - Static parameters for a run.

Values come from code (EngineConfig(...)) or from the environment
(EngineConfig.from_env()). Invalid values fail fast in validate(),
before any fight begins.

Environment variables:
    ROGUETAC_MODE               classic | score
    ROGUETAC_SEED               integer seed for the engine RNG
    ROGUETAC_OPPONENT_DELAY_MS  delay before the opponent moves
    ROGUETAC_SCORE_TO_WIN       score-mode threshold
    ROGUETAC_BOSS_INTERVAL      boss encounter every N floors
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
import os

from .rules.cards import CardId
from .rules.validation import ConfigurationError, validate_config


class GameMode(Enum):
    """Win-condition family for a run."""
    CLASSIC = "classic"  # complete a full row, column or main diagonal
    SCORE = "score"  # reach a score threshold from runs of 3+


@dataclass(frozen=True)
class EngineConfig:
    mode: GameMode = GameMode.CLASSIC
    boss_interval: int = 3
    score_to_win: int = 5
    opponent_delay_ms: int = 350
    starting_energy: int = 1
    starting_cards: tuple = field(
        default_factory=lambda: (CardId.ERASE, CardId.SWAP, CardId.SHIELD)
    )
    seed: int | None = None

    def validate(self) -> EngineConfig:
        """Raise ConfigurationError if invalid, else return self."""
        result = validate_config(self)
        if not result.valid:
            raise ConfigurationError(result.errors)
        return self

    @classmethod
    def from_env(cls, **overrides) -> EngineConfig:
        """Build a config from ROGUETAC_* environment variables."""
        values: dict = {}

        mode = os.getenv("ROGUETAC_MODE")
        if mode:
            try:
                values["mode"] = GameMode(mode.lower())
            except ValueError:
                raise ConfigurationError([f"Unknown ROGUETAC_MODE '{mode}'"]) from None

        int_vars = {
            "seed": "ROGUETAC_SEED",
            "opponent_delay_ms": "ROGUETAC_OPPONENT_DELAY_MS",
            "score_to_win": "ROGUETAC_SCORE_TO_WIN",
            "boss_interval": "ROGUETAC_BOSS_INTERVAL",
        }
        for key, env_name in int_vars.items():
            raw = os.getenv(env_name)
            if raw is None or raw == "":
                continue
            try:
                values[key] = int(raw)
            except ValueError:
                raise ConfigurationError([f"{env_name} must be an integer, got '{raw}'"]) from None

        values.update(overrides)
        return cls(**values).validate()
