"""
Tests for the reducer (state transitions).

Tests:
- Run lifecycle and phase gating
- Player and opponent move pipelines
- Card arming, targeting and fizzles
- Opponent passives inside the pipelines
- Terminal outcomes in both modes
"""

import random

import pytest

from ..config import EngineConfig, GameMode
from ..engine_core.action import Action, ActionType, RejectReason
from ..engine_core.action_generator import legal_actions
from ..engine_core.board import Symbol
from ..engine_core.locks import from_mapping
from ..engine_core.modes import ClassicMode, ScoreMode, Verdict
from ..engine_core.reducer import Reducer, apply_action
from ..engine_core.state import CardInstance, GamePhase
from ..rules.cards import CardId
from ..rules.encounters import Encounter, Passive, PassiveParameters
from .conftest import FixedRandom, make_state, parse_board


def opponent_turn(cells: str, **kwargs):
    """A state where the opponent's reply is pending."""
    return make_state(cells, turn=Symbol.O, opponent_pending=True, **kwargs)


class TestRunLifecycle:
    """Tests for start, restart, rematch and phase gating."""

    def test_start_run(self, classic_reducer):
        result = classic_reducer.apply(None, Action.start_run())
        assert result.success
        state = result.new_state
        assert state.phase is GamePhase.PLAYING
        assert state.floor == 1
        assert state.fight.size == 3
        assert state.generation == 0
        assert state.is_player_turn

    def test_start_run_with_id(self, classic_reducer):
        action = Action.start_run()
        action.payload.params["run_id"] = "session-1"
        result = classic_reducer.apply(None, action)
        assert result.new_state.run_id == "session-1"

    def test_start_over_existing_bumps_generation(self, classic_reducer):
        state = make_state()
        state.generation = 4
        result = classic_reducer.apply(state, Action.start_run())
        assert result.new_state.generation == 5
        assert result.new_state.run_id == state.run_id

    def test_no_run_rejects_commands(self, classic_reducer):
        result = classic_reducer.apply(None, Action.play_move(0))
        assert not result.success
        assert result.error_code is RejectReason.WRONG_PHASE

    def test_restart_from_game_over(self, classic_reducer):
        state = make_state(hand=[CardInstance(CardId.ERASE, charges=0, max_charges=4)])
        state.phase = GamePhase.GAMEOVER
        state.floor = 4
        result = classic_reducer.apply(state, Action.restart_run())
        assert result.success
        assert result.new_state.floor == 1
        assert result.new_state.phase is GamePhase.PLAYING
        assert len(result.new_state.hand) == 3

    def test_rematch_requires_draw(self, classic_reducer):
        result = classic_reducer.apply(make_state(), Action.rematch())
        assert result.error_code is RejectReason.WRONG_PHASE

    def test_rematch_keeps_encounter(self, score_reducer, quiet_encounter):
        state = make_state(size=8, mode=GameMode.SCORE)
        state.phase = GamePhase.DRAW
        result = score_reducer.apply(state, Action.rematch())
        assert result.success
        new_state = result.new_state
        assert new_state.phase is GamePhase.PLAYING
        assert new_state.fight.encounter == quiet_encounter
        assert new_state.generation == 1
        assert new_state.floor == 1

    def test_fight_actions_rejected_outside_fight(self, classic_reducer):
        state = make_state()
        state.phase = GamePhase.REWARD
        for action in (Action.play_move(0), Action.arm_card("ERASE"), Action.clear_card(), Action.target_cell(0)):
            result = classic_reducer.apply(state, action)
            assert result.error_code is RejectReason.WRONG_PHASE

    def test_apply_action_helper(self, classic_config):
        result = apply_action(classic_config, None, Action.start_run())
        assert result.success


class TestPlayerMove:
    """Tests for the player move pipeline."""

    def test_places_mark_and_hands_over(self, classic_reducer):
        state = make_state()
        result = classic_reducer.apply(state, Action.play_move(4))

        assert result.success
        assert result.opponent_move_due
        fight = result.new_state.fight
        assert fight.board[4] is Symbol.X
        assert fight.turn is Symbol.O
        assert fight.opponent_pending
        assert len(fight.history) == 2
        assert fight.last_move.source == "player"

    def test_input_state_untouched(self, classic_reducer):
        state = make_state()
        classic_reducer.apply(state, Action.play_move(4))
        assert state.fight.board[4] is None
        assert len(state.fight.history) == 1

    def test_occupied(self, classic_reducer):
        result = classic_reducer.apply(make_state("O.. ... ..."), Action.play_move(0))
        assert result.error_code is RejectReason.CELL_OCCUPIED

    def test_locked(self, classic_reducer):
        state = make_state()
        state.fight.locks = from_mapping({3: 1}, 3)
        result = classic_reducer.apply(state, Action.play_move(3))
        assert result.error_code is RejectReason.CELL_LOCKED

    @pytest.mark.parametrize("index", [-1, 9, None])
    def test_out_of_range(self, classic_reducer, index):
        result = classic_reducer.apply(make_state(), Action.play_move(index))
        assert result.error_code is RejectReason.OUT_OF_RANGE

    def test_opponent_thinking(self, classic_reducer):
        result = classic_reducer.apply(opponent_turn("X.. ... ..."), Action.play_move(4))
        assert result.error_code is RejectReason.OPPONENT_THINKING

    def test_move_ticks_locks(self, classic_reducer):
        state = make_state()
        state.fight.locks = from_mapping({8: 2, 7: 1}, 3)
        result = classic_reducer.apply(state, Action.play_move(0))
        assert result.new_state.fight.lock_map == {8: 1}

    def test_move_refills_energy(self, classic_reducer):
        state = make_state(energy=0)
        result = classic_reducer.apply(state, Action.play_move(0))
        assert result.new_state.energy.current == result.new_state.energy.maximum

    def test_move_clears_armed_card(self, classic_reducer):
        state = classic_reducer.apply(make_state(), Action.arm_card("SHIELD")).new_state
        result = classic_reducer.apply(state, Action.play_move(0))
        assert result.new_state.fight.pending_card is None

    def test_winning_move_offers_rewards(self, classic_reducer):
        state = make_state("XX. OO. ...")
        result = classic_reducer.apply(state, Action.play_move(2))

        assert result.success
        assert not result.opponent_move_due
        new_state = result.new_state
        assert new_state.phase is GamePhase.REWARD
        assert len(new_state.reward_options) == 3
        assert not new_state.fight.opponent_pending

    def test_main_diagonal_win(self, classic_reducer):
        state = make_state("XO. OX. ...")
        result = classic_reducer.apply(state, Action.play_move(8))
        assert result.new_state.phase is GamePhase.REWARD
        assert not result.opponent_move_due

    def test_full_board_restarts_fight(self, classic_reducer, quiet_encounter):
        """Classic mode has no draw: a full board with no line restarts the fight."""
        state = make_state("XOX XOO OX.")
        result = classic_reducer.apply(state, Action.play_move(8))

        assert result.success
        new_state = result.new_state
        assert new_state.phase is GamePhase.PLAYING
        assert new_state.generation == 1
        assert new_state.fight.encounter == quiet_encounter
        assert all(cell is None for cell in new_state.fight.board)


class TestOpponentMove:
    """Tests for the opponent move pipeline."""

    def test_blocks_and_returns_turn(self, classic_reducer):
        state = opponent_turn("XX. .O. ...")
        result = classic_reducer.apply(state, Action.opponent_move(state.generation))

        assert result.success
        fight = result.new_state.fight
        assert fight.board[2] is Symbol.O
        assert fight.turn is Symbol.X
        assert not fight.opponent_pending
        assert fight.last_move.source == "opponent"

    def test_opponent_win_ends_run(self, classic_reducer):
        state = opponent_turn("XX. OO. X..")
        result = classic_reducer.apply(state, Action.opponent_move(state.generation))
        assert result.new_state.fight.board[5] is Symbol.O
        assert result.new_state.phase is GamePhase.GAMEOVER

    def test_stale_generation(self, classic_reducer):
        state = opponent_turn("X.. ... ...")
        state.generation = 3
        result = classic_reducer.apply(state, Action.opponent_move(2))
        assert result.error_code is RejectReason.STALE_ACTION

    def test_nothing_pending(self, classic_reducer):
        state = make_state("X.. ... ...")
        result = classic_reducer.apply(state, Action.opponent_move(state.generation))
        assert result.error_code is RejectReason.STALE_ACTION

    def test_player_without_playable_cell_is_skipped(self, classic_reducer):
        """Every empty cell locked after the reply: the turn goes back to O."""
        state = opponent_turn("XOX OXX O..")
        state.fight.locks = from_mapping({8: 3}, 3)
        result = classic_reducer.apply(state, Action.opponent_move(state.generation))

        assert result.success
        assert result.opponent_move_due
        fight = result.new_state.fight
        assert fight.board[7] is Symbol.O
        assert fight.turn is Symbol.O
        assert fight.opponent_pending
        assert fight.locks[8] == 1

    def test_opponent_without_playable_cell_is_skipped(self, classic_reducer):
        """Neither side can move: both turns pass and the lock counts down once."""
        state = opponent_turn("XOX OXX OX.")
        state.fight.locks = from_mapping({8: 2}, 3)
        result = classic_reducer.apply(state, Action.opponent_move(state.generation))

        assert result.success
        assert result.opponent_move_due
        assert "O has no playable cell, turn skipped" in result.state_changes
        fight = result.new_state.fight
        assert fight.board == state.fight.board
        assert fight.turn is Symbol.O
        assert fight.locks[8] == 1


class TestCards:
    """Tests for arming and targeting cards."""

    def test_erase(self, classic_reducer):
        state = make_state("XO. ... ...")
        state = classic_reducer.apply(state, Action.arm_card("erase")).new_state
        assert state.fight.pending_card.card_id is CardId.ERASE

        result = classic_reducer.apply(state, Action.target_cell(1))
        assert result.success
        new_state = result.new_state
        assert new_state.fight.board[1] is None
        assert new_state.fight.pending_card is None
        assert new_state.get_card(CardId.ERASE).charges == 0
        assert new_state.energy.current == 0
        assert len(new_state.fight.history) == 2
        assert new_state.is_player_turn

    def test_card_play_does_not_tick_locks(self, classic_reducer):
        state = make_state("XO. ... ...")
        state.fight.locks = from_mapping({8: 1}, 3)
        state = classic_reducer.apply(state, Action.arm_card("ERASE")).new_state
        result = classic_reducer.apply(state, Action.target_cell(1))
        assert result.new_state.fight.locks[8] == 1

    def test_shield(self, classic_reducer):
        state = classic_reducer.apply(make_state(), Action.arm_card("SHIELD")).new_state
        result = classic_reducer.apply(state, Action.target_cell(4))
        assert result.new_state.fight.locks[4] == 2
        assert len(result.new_state.fight.history) == 1

    def test_failed_single_target_is_rejected(self, classic_reducer):
        """Erasing an empty cell is rejected and costs nothing."""
        state = classic_reducer.apply(make_state(), Action.arm_card("ERASE")).new_state
        result = classic_reducer.apply(state, Action.target_cell(4))

        assert result.error_code is RejectReason.CELL_EMPTY
        assert result.new_state is None
        assert state.fight.pending_card.card_id is CardId.ERASE
        assert state.energy.current == 1
        assert state.get_card(CardId.ERASE).charges == 1
        assert len(state.fight.history) == 1

    def test_swap_needs_two_targets(self, classic_reducer):
        state = make_state("XO. ... ...")
        state = classic_reducer.apply(state, Action.arm_card("SWAP")).new_state
        state = classic_reducer.apply(state, Action.target_cell(0)).new_state
        assert state.fight.pending_card.targets == [0]

        result = classic_reducer.apply(state, Action.target_cell(8))
        assert result.new_state.fight.board[8] is Symbol.X
        assert result.new_state.fight.board[0] is None

    def test_swap_fizzle_costs_nothing(self, classic_reducer):
        state = make_state("XO. ... ...")
        state = classic_reducer.apply(state, Action.arm_card("SWAP")).new_state
        state = classic_reducer.apply(state, Action.target_cell(0)).new_state
        result = classic_reducer.apply(state, Action.target_cell(0))

        assert result.success
        assert "fizzled" in result.state_changes[0]
        new_state = result.new_state
        assert new_state.fight.pending_card is None
        assert new_state.get_card(CardId.SWAP).charges == 1
        assert new_state.energy.current == 1

    def test_card_can_win_the_fight(self, classic_reducer):
        state = make_state("XXO ..X ...")
        state = classic_reducer.apply(state, Action.arm_card("SWAP")).new_state
        state = classic_reducer.apply(state, Action.target_cell(2)).new_state
        result = classic_reducer.apply(state, Action.target_cell(5))
        assert result.new_state.phase is GamePhase.REWARD

    def test_not_enough_energy(self, classic_reducer):
        result = classic_reducer.apply(make_state(energy=0), Action.arm_card("ERASE"))
        assert result.error_code is RejectReason.NOT_ENOUGH_ENERGY

    def test_unknown_card(self, classic_reducer):
        result = classic_reducer.apply(make_state(), Action.arm_card("FIREBALL"))
        assert result.error_code is RejectReason.UNKNOWN_CARD

    def test_not_owned(self, classic_reducer):
        state = make_state(hand=[CardInstance(CardId.ERASE)])
        result = classic_reducer.apply(state, Action.arm_card("SWAP"))
        assert result.error_code is RejectReason.CARD_NOT_OWNED

    def test_clear_and_target_need_armed_card(self, classic_reducer):
        state = make_state()
        assert classic_reducer.apply(state, Action.clear_card()).error_code is RejectReason.NO_PENDING_CARD
        assert classic_reducer.apply(state, Action.target_cell(0)).error_code is RejectReason.NO_PENDING_CARD

    def test_clear_card(self, classic_reducer):
        state = classic_reducer.apply(make_state(), Action.arm_card("ERASE")).new_state
        result = classic_reducer.apply(state, Action.clear_card())
        assert result.new_state.fight.pending_card is None


class TestRewards:
    def test_choose_reward_advances_floor(self, classic_reducer):
        state = classic_reducer.apply(make_state("XX. OO. ..."), Action.play_move(2)).new_state
        result = classic_reducer.apply(state, Action.choose_reward(0))

        assert result.success
        new_state = result.new_state
        assert new_state.floor == 2
        assert new_state.fight.size == 4
        assert new_state.phase is GamePhase.PLAYING
        assert new_state.reward_options == []
        assert new_state.generation == state.generation + 1

    def test_invalid_reward_index(self, classic_reducer):
        state = classic_reducer.apply(make_state("XX. OO. ..."), Action.play_move(2)).new_state
        result = classic_reducer.apply(state, Action.choose_reward(3))
        assert result.error_code is RejectReason.INVALID_REWARD

    def test_reward_outside_reward_phase(self, classic_reducer):
        result = classic_reducer.apply(make_state(), Action.choose_reward(0))
        assert result.error_code is RejectReason.WRONG_PHASE


class TestPassivesInPipeline:
    """Opponent passives fire at their hook points."""

    def encounter(self, *passives):
        return Encounter(encounter_id="test", name="Test", passives=frozenset(passives))

    def test_thorns_after_player_move(self):
        reducer = Reducer(config=EngineConfig(), rng=FixedRandom(0.0))
        state = make_state(
            encounter=self.encounter(Passive.THORNS),
            passive_params={Passive.THORNS: PassiveParameters(chance=0.5)},
        )
        result = reducer.apply(state, Action.play_move(0))
        fight = result.new_state.fight
        assert fight.board.count(Symbol.O) == 1
        assert len(fight.history) == 2

    def test_lockdown_after_opponent_move(self):
        reducer = Reducer(config=EngineConfig(), rng=random.Random(5))
        state = opponent_turn(
            "X.. ... ...",
            encounter=self.encounter(Passive.LOCKDOWN),
            passive_params={Passive.LOCKDOWN: PassiveParameters(chance=1.0, count=2, duration=2)},
        )
        result = reducer.apply(state, Action.opponent_move(state.generation))
        fight = result.new_state.fight
        assert sorted(fight.lock_map.values()) == [2, 2]
        assert all(fight.board[i] is None for i in fight.lock_map)

    def test_lockdown_lock_counts_down_then_frees(self):
        """A duration-2 lock survives one committed move and clears on the second."""
        reducer = Reducer(config=EngineConfig(), rng=random.Random(5))
        state = opponent_turn(
            "X... .... .... ....",
            size=4,
            encounter=self.encounter(Passive.LOCKDOWN),
            passive_params={Passive.LOCKDOWN: PassiveParameters(chance=1.0, count=1, duration=2)},
        )
        state = reducer.apply(state, Action.opponent_move(state.generation)).new_state
        assert len(state.fight.lock_map) == 1
        (locked, turns), = state.fight.lock_map.items()
        assert turns == 2

        state.fight.passive_params = {}
        cell = next(
            i for i, mark in enumerate(state.fight.board)
            if mark is None and i != locked
        )
        state = reducer.apply(state, Action.play_move(cell)).new_state
        assert state.fight.locks[locked] == 1

        state = reducer.apply(state, Action.opponent_move(state.generation)).new_state
        assert state.fight.locks[locked] == 0
        assert state.fight.lock_map == {}

    def test_corrupt_after_opponent_move(self):
        reducer = Reducer(config=EngineConfig(), rng=FixedRandom(0.0))
        state = opponent_turn(
            "X.. ... ...",
            encounter=self.encounter(Passive.CORRUPT),
            passive_params={Passive.CORRUPT: PassiveParameters(chance=0.3)},
        )
        result = reducer.apply(state, Action.opponent_move(state.generation))
        fight = result.new_state.fight
        assert fight.board[0] is None
        assert fight.board.count(Symbol.O) == 1

    def test_double_tap_extra_move(self):
        reducer = Reducer(config=EngineConfig(), rng=FixedRandom(0.0))
        state = opponent_turn(
            "X.. ... ...",
            encounter=self.encounter(Passive.DOUBLE_TAP),
            passive_params={Passive.DOUBLE_TAP: PassiveParameters(chance=0.3)},
        )
        result = reducer.apply(state, Action.opponent_move(state.generation))
        fight = result.new_state.fight
        assert fight.board.count(Symbol.O) == 2
        assert len(fight.history) == 3
        assert fight.last_move.source == "double_tap"

    def test_no_double_tap_after_win(self):
        reducer = Reducer(config=EngineConfig(), rng=FixedRandom(0.0))
        state = opponent_turn(
            "XX. OO. X..",
            encounter=self.encounter(Passive.DOUBLE_TAP),
            passive_params={Passive.DOUBLE_TAP: PassiveParameters(chance=0.3)},
        )
        result = reducer.apply(state, Action.opponent_move(state.generation))
        assert result.new_state.phase is GamePhase.GAMEOVER
        assert result.new_state.fight.board.count(Symbol.O) == 3


class TestScoreMode:
    def test_reaching_threshold_wins(self):
        reducer = Reducer(config=EngineConfig(mode=GameMode.SCORE, score_to_win=1), rng=random.Random(1))
        state = make_state("XX......" + "." * 56, size=8, mode=GameMode.SCORE)
        result = reducer.apply(state, Action.play_move(2))

        new_state = result.new_state
        assert new_state.fight.score.score(Symbol.X) == 1
        assert new_state.fight.last_move.score_delta == 1
        assert new_state.phase is GamePhase.REWARD

    def test_full_board_tie_is_draw(self, score_reducer):
        state = make_state("XO O.", size=2, mode=GameMode.SCORE)
        result = score_reducer.apply(state, Action.play_move(3))
        assert result.new_state.phase is GamePhase.DRAW
        assert any(a.action_type is ActionType.REMATCH for a in legal_actions(result.new_state))

    def test_tie_without_draws_is_stalemate(self):
        fight = make_state("XO OX", size=2, mode=GameMode.SCORE).fight
        assert ScoreMode().evaluate(fight, Symbol.X) is Verdict.DRAW
        assert ScoreMode(allows_draw=False).evaluate(fight, Symbol.X) is Verdict.STALEMATE

    def test_classic_full_board_is_stalemate(self):
        fight = make_state("XOX XOO OXO").fight
        assert not ClassicMode().allows_draw
        assert ClassicMode().evaluate(fight, Symbol.X) is Verdict.STALEMATE

    def test_classic_mode_does_not_score(self, classic_reducer):
        state = make_state("XX. ... ...")
        result = classic_reducer.apply(state, Action.play_move(4))
        assert result.new_state.fight.last_move.score_delta is None


class TestResourceBounds:
    def assert_in_bounds(self, state):
        assert 0 <= state.energy.current <= state.energy.maximum
        for card in state.hand:
            assert 0 <= card.charges <= card.max_charges

    def next_action(self, state):
        if state.phase is GamePhase.REWARD:
            return Action.choose_reward(0)
        if state.fight.opponent_pending:
            return Action.opponent_move(state.generation)
        return next(a for a in legal_actions(state) if a.action_type is ActionType.PLAY_MOVE)

    def test_energy_and_charges_stay_in_range(self, classic_reducer):
        state = make_state("XO. ... ...")
        for action in (Action.arm_card("ERASE"), Action.target_cell(1)):
            state = classic_reducer.apply(state, action).new_state
            self.assert_in_bounds(state)
        assert state.energy.current == 0

        state = classic_reducer.apply(state, self.next_action(state)).new_state
        state = classic_reducer.apply(state, self.next_action(state)).new_state
        shield_cell = self.next_action(state).payload.cell_index
        for action in (Action.arm_card("SHIELD"), Action.target_cell(shield_cell)):
            state = classic_reducer.apply(state, action).new_state
            self.assert_in_bounds(state)

        for _ in range(20):
            if state.phase is GamePhase.GAMEOVER:
                break
            result = classic_reducer.apply(state, self.next_action(state))
            assert result.success
            state = result.new_state
            self.assert_in_bounds(state)


class TestLegalActions:
    def test_no_run(self):
        actions = legal_actions(None)
        assert [a.action_type for a in actions] == [ActionType.START_RUN]

    def test_player_turn(self):
        state = make_state("XO. ... ...")
        types = [a.action_type for a in legal_actions(state)]
        assert types.count(ActionType.PLAY_MOVE) == 7
        assert types.count(ActionType.ARM_CARD) == 3
        assert ActionType.RESTART_RUN in types

    def test_opponent_thinking(self):
        state = opponent_turn("X.. ... ...")
        assert [a.action_type for a in legal_actions(state)] == [ActionType.RESTART_RUN]

    def test_armed_card(self, classic_reducer):
        state = classic_reducer.apply(make_state(), Action.arm_card("ERASE")).new_state
        types = {a.action_type for a in legal_actions(state)}
        assert types == {ActionType.RESTART_RUN, ActionType.CLEAR_CARD, ActionType.TARGET_CELL}
