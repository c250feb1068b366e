"""
Reducer - Applies actions to run state.

The reducer is the single point of state mutation.
All state changes must go through apply().

Design principles:
- Pure from the caller's view: (state, action) -> new state, input untouched
- Validates before applying
- Returns ActionResult with success/failure and a RejectReason code
- Delegates card effects to EffectResolver and passives to PassiveResolver
- Owns the RNG, so a seeded reducer replays identically
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import TYPE_CHECKING
import logging
import random

from ..config import EngineConfig, GameMode
from ..rules.cards import CARD_CATALOG, parse_card_id
from ..rules.encounters import OPPONENT_HOOK_ORDER, Passive, PassiveParameters
from .action import Action, ActionResult, ActionType, RejectReason
from .board import in_bounds, place
from .effect_resolver import card_blocker, resolve_card
from .locks import playable_cells, tick
from .modes import ModePolicy, Verdict, mode_policy
from .passive_resolver import apply_corrupt, apply_lockdown, apply_thorns, rolls_double_tap
from .progression import (
    advance_floor,
    apply_reward,
    make_reward_options,
    new_run,
    reset_fight,
    restart_run,
)
from .scoring import score_placement
from .state import (
    OPPONENT_SYMBOL,
    PLAYER_SYMBOL,
    FightState,
    GamePhase,
    LastMove,
    PendingCard,
    RunState,
)

if TYPE_CHECKING:
    from ..bots.policy import BotPolicy

logger = logging.getLogger(__name__)

# Actions that act on the current fight's board
FIGHT_ACTIONS = {
    ActionType.PLAY_MOVE,
    ActionType.ARM_CARD,
    ActionType.CLEAR_CARD,
    ActionType.TARGET_CELL,
}


@dataclass
class Reducer:
    """
    Reducer applies actions to run state.

    Holds the static configuration, the mode policy, the enemy AI and
    the RNG; everything that changes lives in RunState.
    """
    config: EngineConfig = field(default_factory=EngineConfig)
    rng: random.Random | None = None
    mode: ModePolicy = field(init=False)
    enemy: BotPolicy = field(init=False)

    def __post_init__(self):
        self.config.validate()
        if self.rng is None:
            self.rng = random.Random(self.config.seed)
        self.mode = mode_policy(self.config)

        # Imported here: bots depend on engine_core
        from ..bots.enemy_ai import EnemyAI
        self.enemy = EnemyAI(rng=self.rng)

    def apply(self, state: RunState | None, action: Action) -> ActionResult:
        """
        Apply an action to the run state.

        Returns ActionResult with new state or error.
        """
        rejection = self._validate_action(state, action)
        if rejection:
            message, code = rejection
            return ActionResult.failure(message, error_code=code)

        handler = self._get_handler(action.action_type)
        if not handler:
            return ActionResult.failure(
                f"No handler for action type: {action.action_type}",
                error_code=RejectReason.NO_HANDLER,
            )

        try:
            return handler(state, action)
        except Exception as e:
            logger.exception("Handler for %s failed", action.action_type.value)
            return ActionResult.failure(str(e), error_code=RejectReason.HANDLER_ERROR)

    def _validate_action(
        self, state: RunState | None, action: Action
    ) -> tuple[str, RejectReason] | None:
        """
        Validate that an action is legal in the current state.

        Returns (message, reason) if invalid, None if valid.
        """
        if state is None:
            if action.action_type != ActionType.START_RUN:
                return "No run in progress", RejectReason.WRONG_PHASE
            return None

        if action.action_type == ActionType.OPPONENT_MOVE:
            generation = action.payload.generation
            if generation is not None and generation != state.generation:
                return (
                    f"Opponent move from generation {generation}, run is at {state.generation}",
                    RejectReason.STALE_ACTION,
                )
            if state.phase != GamePhase.PLAYING or not state.fight.opponent_pending:
                return "No opponent move is pending", RejectReason.STALE_ACTION
            return None

        if action.action_type in FIGHT_ACTIONS and state.phase != GamePhase.PLAYING:
            return f"Not in a fight (phase is {state.phase.value})", RejectReason.WRONG_PHASE

        if action.action_type in {ActionType.PLAY_MOVE, ActionType.ARM_CARD, ActionType.TARGET_CELL}:
            if state.fight.opponent_pending:
                return "Opponent is thinking", RejectReason.OPPONENT_THINKING
            if not state.is_player_turn:
                return "Not your turn", RejectReason.NOT_YOUR_TURN

        if action.action_type == ActionType.CHOOSE_REWARD and state.phase != GamePhase.REWARD:
            return "No reward to choose", RejectReason.WRONG_PHASE

        if action.action_type == ActionType.REMATCH and state.phase != GamePhase.DRAW:
            return "Rematch is only available after a draw", RejectReason.WRONG_PHASE

        return None

    def _get_handler(self, action_type: ActionType):
        """Get the handler function for an action type."""
        handlers = {
            ActionType.START_RUN: self._handle_start_run,
            ActionType.RESTART_RUN: self._handle_restart_run,
            ActionType.REMATCH: self._handle_rematch,
            ActionType.PLAY_MOVE: self._handle_play_move,
            ActionType.ARM_CARD: self._handle_arm_card,
            ActionType.CLEAR_CARD: self._handle_clear_card,
            ActionType.TARGET_CELL: self._handle_target_cell,
            ActionType.CHOOSE_REWARD: self._handle_choose_reward,
            ActionType.OPPONENT_MOVE: self._handle_opponent_move,
        }
        return handlers.get(action_type)

    # ------------------------------------------------------------------
    # Run lifecycle
    # ------------------------------------------------------------------

    def _handle_start_run(self, state: RunState | None, action: Action) -> ActionResult:
        run_id = action.payload.params.get("run_id")
        if run_id is None and state is not None:
            run_id = state.run_id
        new_state = new_run(self.config, self.mode, self.rng, run_id=run_id)
        if state is not None:
            new_state.generation = state.generation + 1
        return ActionResult.success_with_state(
            new_state,
            changes=[f"Floor 1 against {new_state.fight.encounter.name}"],
        )

    def _handle_restart_run(self, state: RunState, action: Action) -> ActionResult:
        new_state = state.clone()
        restart_run(new_state, self.config, self.mode, self.rng)
        return ActionResult.success_with_state(
            new_state,
            changes=[f"Run restarted: floor 1 against {new_state.fight.encounter.name}"],
        )

    def _handle_rematch(self, state: RunState, action: Action) -> ActionResult:
        new_state = state.clone()
        reset_fight(new_state, self.config, self.mode, self.rng, reroll=False)
        logger.info("Rematch on floor %d vs %s", new_state.floor, new_state.fight.encounter.name)
        return ActionResult.success_with_state(
            new_state,
            changes=[f"Rematch against {new_state.fight.encounter.name}"],
        )

    def _handle_choose_reward(self, state: RunState, action: Action) -> ActionResult:
        index = action.payload.option_index
        if index is None or not 0 <= index < len(state.reward_options):
            return ActionResult.failure(
                f"Reward option {index} does not exist",
                error_code=RejectReason.INVALID_REWARD,
            )

        new_state = state.clone()
        option = new_state.reward_options[index]
        description = apply_reward(new_state, option, self.rng)
        advance_floor(new_state, self.config, self.mode, self.rng)

        return ActionResult.success_with_state(
            new_state,
            changes=[
                f"Reward: {option.label} ({description})",
                f"Floor {new_state.floor} against {new_state.fight.encounter.name}",
            ],
        )

    # ------------------------------------------------------------------
    # Player moves
    # ------------------------------------------------------------------

    def _handle_play_move(self, state: RunState, action: Action) -> ActionResult:
        """
        Player move pipeline:
        place X -> tick -> THORNS -> score -> terminal check -> hand over to O.
        """
        fight = state.fight
        index = action.payload.cell_index
        if index is None or not in_bounds(index, fight.size):
            return ActionResult.failure(
                f"Cell {index} is outside the {fight.size}x{fight.size} board",
                error_code=RejectReason.OUT_OF_RANGE,
            )
        if fight.locks[index] > 0:
            return ActionResult.failure(f"Cell {index} is locked", error_code=RejectReason.CELL_LOCKED)
        if fight.board[index] is not None:
            return ActionResult.failure(f"Cell {index} is occupied", error_code=RejectReason.CELL_OCCUPIED)

        new_state = state.clone()
        fight = new_state.fight
        fight.pending_card = None
        changes = [f"{PLAYER_SYMBOL.value} at {index}"]

        fight.commit(place(fight.board, index, PLAYER_SYMBOL))
        fight.locks = tick(fight.locks)

        thorns = fight.params(Passive.THORNS)
        if thorns is not None:
            hit = apply_thorns(fight, thorns, self.rng)
            if hit is not None:
                changes.append(f"Thorns: {OPPONENT_SYMBOL.value} appeared at {hit}")

        delta = self._score(fight, index, PLAYER_SYMBOL)
        fight.last_move = LastMove(PLAYER_SYMBOL, index, "player", delta)
        if delta:
            changes.append(f"{PLAYER_SYMBOL.value} scored {delta}")

        verdict = self.mode.evaluate(fight, PLAYER_SYMBOL)
        if verdict != Verdict.UNDECIDED:
            self._conclude(new_state, verdict, changes)
            return ActionResult.success_with_state(new_state, changes=changes)

        fight.turn = OPPONENT_SYMBOL
        fight.opponent_pending = True
        new_state.energy = new_state.energy.refilled()

        result = ActionResult.success_with_state(new_state, changes=changes)
        result.opponent_move_due = True
        return result

    def _handle_arm_card(self, state: RunState, action: Action) -> ActionResult:
        card_id = parse_card_id(action.payload.card_id)
        if card_id is None:
            return ActionResult.failure(
                f"Unknown card '{action.payload.card_id}'",
                error_code=RejectReason.UNKNOWN_CARD,
            )

        blocked = card_blocker(state, card_id)
        if blocked:
            message, code = blocked
            return ActionResult.failure(message, error_code=code)

        new_state = state.clone()
        new_state.fight.pending_card = PendingCard(card_id=card_id)
        return ActionResult.success_with_state(
            new_state,
            changes=[f"Armed {CARD_CATALOG[card_id].name}"],
        )

    def _handle_clear_card(self, state: RunState, action: Action) -> ActionResult:
        if state.fight.pending_card is None:
            return ActionResult.failure("No card is armed", error_code=RejectReason.NO_PENDING_CARD)

        new_state = state.clone()
        new_state.fight.pending_card = None
        return ActionResult.success_with_state(new_state, changes=["Card selection cleared"])

    def _handle_target_cell(self, state: RunState, action: Action) -> ActionResult:
        """
        Add a target to the armed card, resolving it once it has enough.

        A failed single-target card is rejected and stays armed. A failed
        double-target card fizzles: accepted, disarmed, nothing spent.
        """
        pending = state.fight.pending_card
        if pending is None:
            return ActionResult.failure("No card is armed", error_code=RejectReason.NO_PENDING_CARD)

        index = action.payload.cell_index
        if index is None or not in_bounds(index, state.fight.size):
            return ActionResult.failure(
                f"Cell {index} is outside the {state.fight.size}x{state.fight.size} board",
                error_code=RejectReason.OUT_OF_RANGE,
            )

        blocked = card_blocker(state, pending.card_id)
        if blocked:
            message, code = blocked
            return ActionResult.failure(message, error_code=code)

        definition = CARD_CATALOG[pending.card_id]
        targets = pending.targets + [index]

        if len(targets) < definition.target_arity.value:
            new_state = state.clone()
            new_state.fight.pending_card = PendingCard(pending.card_id, targets)
            return ActionResult.success_with_state(
                new_state,
                changes=[f"{definition.name}: selected cell {index}"],
            )

        resolution = resolve_card(pending.card_id, targets, state.fight.board, state.fight.locks)

        if not resolution.ok:
            if len(targets) == 1:
                return ActionResult.failure(resolution.error, error_code=resolution.error_code)
            new_state = state.clone()
            new_state.fight.pending_card = None
            return ActionResult.success_with_state(
                new_state,
                changes=[f"{definition.name} fizzled: {resolution.error}"],
            )

        new_state = state.clone()
        fight = new_state.fight
        card = new_state.get_card(pending.card_id)
        card.charges -= 1
        new_state.energy.current -= definition.cost
        fight.pending_card = None
        fight.locks = list(resolution.locks)
        changes = [resolution.description]

        if resolution.board_changed:
            fight.commit(resolution.board)
            verdict = self.mode.evaluate(fight, PLAYER_SYMBOL)
            if verdict != Verdict.UNDECIDED:
                self._conclude(new_state, verdict, changes)

        return ActionResult.success_with_state(new_state, changes=changes)

    # ------------------------------------------------------------------
    # Opponent turn
    # ------------------------------------------------------------------

    def _handle_opponent_move(self, state: RunState, action: Action) -> ActionResult:
        """
        Opponent pipeline:
        choose -> place O -> tick -> score -> terminal check, then
        LOCKDOWN -> CORRUPT -> DOUBLE_TAP -> terminal check -> hand over to X.
        """
        new_state = state.clone()
        fight = new_state.fight
        changes: list[str] = []

        index = self._enemy_move(fight, "opponent", changes)
        if index is None:
            changes.append(f"{OPPONENT_SYMBOL.value} has no playable cell, turn skipped")
            return self._hand_to_player(new_state, changes)

        verdict = self.mode.evaluate(fight, OPPONENT_SYMBOL)
        if verdict != Verdict.UNDECIDED:
            self._conclude(new_state, verdict, changes)
            return ActionResult.success_with_state(new_state, changes=changes)

        for passive in OPPONENT_HOOK_ORDER:
            params = fight.params(passive)
            if params is not None:
                self._after_opponent_move(passive, params, fight, changes)

        verdict = self.mode.evaluate(fight, OPPONENT_SYMBOL)
        if verdict != Verdict.UNDECIDED:
            self._conclude(new_state, verdict, changes)
            return ActionResult.success_with_state(new_state, changes=changes)

        return self._hand_to_player(new_state, changes)

    def _after_opponent_move(
        self,
        passive: Passive,
        params: PassiveParameters,
        fight: FightState,
        changes: list[str],
    ) -> None:
        """Run one after-opponent-move passive on the cloned fight."""
        if passive == Passive.LOCKDOWN:
            locked = apply_lockdown(fight, params, self.rng)
            if locked:
                changes.append(f"Lockdown: locked {locked} for {params.duration} turns")
        elif passive == Passive.CORRUPT:
            cleared = apply_corrupt(fight, params, self.rng)
            if cleared is not None:
                changes.append(f"Corrupt: {PLAYER_SYMBOL.value} at {cleared} erased")
        elif passive == Passive.DOUBLE_TAP:
            if self.mode.evaluate(fight, OPPONENT_SYMBOL) != Verdict.UNDECIDED:
                return
            if rolls_double_tap(params, self.rng):
                extra = self._enemy_move(fight, "double_tap", changes)
                if extra is not None:
                    changes.append(f"Double Tap: extra move at {extra}")

    def _enemy_move(self, fight: FightState, source: str, changes: list[str]) -> int | None:
        """Choose, place, tick and score one opponent mark. None if no cell is playable."""
        def is_winning(index, symbol):
            return self.mode.is_winning_move(fight, index, symbol)

        decision = self.enemy.select_move(
            fight.board,
            fight.size,
            fight.locks,
            OPPONENT_SYMBOL,
            PLAYER_SYMBOL,
            is_winning=is_winning,
        )
        if decision is None:
            return None

        logger.debug("Opponent %s: cell %d (%s)", source, decision.cell, decision.reason)
        fight.commit(place(fight.board, decision.cell, OPPONENT_SYMBOL))
        fight.locks = tick(fight.locks)

        delta = self._score(fight, decision.cell, OPPONENT_SYMBOL)
        fight.last_move = LastMove(OPPONENT_SYMBOL, decision.cell, source, delta)
        changes.append(f"{OPPONENT_SYMBOL.value} at {decision.cell}")
        if delta:
            changes.append(f"{OPPONENT_SYMBOL.value} scored {delta}")
        return decision.cell

    def _hand_to_player(self, state: RunState, changes: list[str]) -> ActionResult:
        """
        Give the turn back to the player.

        If every empty cell is locked the player cannot move: their turn
        is skipped and the locks tick once so the board eventually opens.
        """
        fight = state.fight
        fight.opponent_pending = False

        if playable_cells(fight.board, fight.locks):
            fight.turn = PLAYER_SYMBOL
            return ActionResult.success_with_state(state, changes=changes)

        fight.locks = tick(fight.locks)
        fight.turn = OPPONENT_SYMBOL
        fight.opponent_pending = True
        changes.append(f"{PLAYER_SYMBOL.value} has no playable cell, turn skipped")

        result = ActionResult.success_with_state(state, changes=changes)
        result.opponent_move_due = True
        return result

    # ------------------------------------------------------------------
    # Shared steps
    # ------------------------------------------------------------------

    def _score(self, fight: FightState, index: int, symbol) -> int | None:
        """Credit a mark in score mode. Returns None in classic mode."""
        if self.mode.mode != GameMode.SCORE:
            return None
        fight.score, awarded = score_placement(fight.score, fight.board, fight.size, index, symbol)
        if awarded:
            logger.debug("%s +%d at %d (total %d)", symbol.value, awarded, index, fight.score.score(symbol))
        return awarded

    def _conclude(self, state: RunState, verdict: Verdict, changes: list[str]) -> None:
        """Move a cloned state out of PLAYING for a terminal verdict."""
        fight = state.fight
        fight.opponent_pending = False
        fight.pending_card = None

        if verdict == Verdict.X_WINS:
            state.phase = GamePhase.REWARD
            state.reward_options = make_reward_options(state.hand, self.rng)
            changes.append(f"Floor {state.floor} cleared")
            logger.info("Run %s cleared floor %d", state.run_id, state.floor)
        elif verdict == Verdict.O_WINS:
            state.phase = GamePhase.GAMEOVER
            changes.append(f"Defeated on floor {state.floor}")
            logger.info("Run %s lost on floor %d", state.run_id, state.floor)
        elif verdict == Verdict.DRAW:
            state.phase = GamePhase.DRAW
            changes.append(f"Draw on floor {state.floor}")
            logger.info("Run %s drew on floor %d", state.run_id, state.floor)
        elif verdict == Verdict.STALEMATE:
            reset_fight(state, self.config, self.mode, self.rng, reroll=False)
            changes.append("Board full with no line, fight restarted")
            logger.info("Run %s stalemate on floor %d, fight restarted", state.run_id, state.floor)
        else:
            raise ValueError(f"Cannot conclude an undecided fight: {verdict}")


def apply_action(
    config: EngineConfig, state: RunState | None, action: Action
) -> ActionResult:
    """
    Convenience function to apply an action.

    Creates a Reducer and applies the action.
    """
    reducer = Reducer(config=config)
    return reducer.apply(state, action)
