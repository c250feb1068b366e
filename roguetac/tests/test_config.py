"""
Tests for engine configuration and fail-fast validation.
"""

import pytest

from ..config import EngineConfig, GameMode
from ..engine_core.reducer import Reducer
from ..rules.encounters import Encounter, Passive
from ..rules.validation import ConfigurationError, validate_config, validate_encounter_pool


class TestEngineConfig:
    def test_defaults_are_valid(self):
        config = EngineConfig()
        assert config.validate() is config
        assert config.mode is GameMode.CLASSIC
        assert config.boss_interval == 3

    @pytest.mark.parametrize("values", [
        {"boss_interval": 0},
        {"score_to_win": 0},
        {"opponent_delay_ms": -5},
        {"starting_cards": ("FIREBALL",)},
    ])
    def test_invalid_values(self, values):
        with pytest.raises(ConfigurationError) as excinfo:
            EngineConfig(**values).validate()
        assert len(excinfo.value.errors) == 1

    def test_duplicate_starting_card(self):
        result = validate_config(EngineConfig(starting_cards=("ERASE", "ERASE")))
        assert not result.valid

    def test_empty_hand_warns(self):
        result = validate_config(EngineConfig(starting_cards=()))
        assert result.valid
        assert result.warnings

    def test_reducer_rejects_invalid_config(self):
        with pytest.raises(ConfigurationError):
            Reducer(config=EngineConfig(boss_interval=0))


class TestFromEnv:
    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("ROGUETAC_MODE", "SCORE")
        monkeypatch.setenv("ROGUETAC_SEED", "42")
        monkeypatch.setenv("ROGUETAC_OPPONENT_DELAY_MS", "0")
        config = EngineConfig.from_env()
        assert config.mode is GameMode.SCORE
        assert config.seed == 42
        assert config.opponent_delay_ms == 0

    def test_overrides_win(self, monkeypatch):
        monkeypatch.setenv("ROGUETAC_SCORE_TO_WIN", "3")
        assert EngineConfig.from_env(score_to_win=8).score_to_win == 8

    def test_bad_integer(self, monkeypatch):
        monkeypatch.setenv("ROGUETAC_BOSS_INTERVAL", "often")
        with pytest.raises(ConfigurationError):
            EngineConfig.from_env()

    def test_bad_mode(self, monkeypatch):
        monkeypatch.setenv("ROGUETAC_MODE", "blitz")
        with pytest.raises(ConfigurationError):
            EngineConfig.from_env()


class TestEncounterPoolValidation:
    def test_wrong_arity(self):
        pool = (Encounter("a", "A", frozenset({Passive.THORNS, Passive.CORRUPT})),)
        errors = validate_encounter_pool(pool, passives_per_encounter=1)
        assert len(errors) == 1

    def test_duplicate_ids(self):
        encounter = Encounter("a", "A", frozenset({Passive.THORNS}))
        errors = validate_encounter_pool((encounter, encounter), passives_per_encounter=1)
        assert any("Duplicate" in e for e in errors)

    def test_empty_pool(self):
        assert validate_encounter_pool((), passives_per_encounter=1)
