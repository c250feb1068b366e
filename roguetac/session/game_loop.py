"""
Game Loop - The command facade a presentation layer talks to.

The loop:
1. Presentation issues a command (move, card, reward, restart, rematch)
2. The reducer validates and applies it
3. If the opponent owes a reply, it is scheduled with a short delay
4. Presentation calls advance(now) as time passes, or flush() to
   resolve everything at once
5. Presentation reads snapshot() and renders
6. Repeat

No method raises on caller misuse; rejections come back as a failed
ActionResult with a RejectReason code.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any
import logging
import random

from ..config import EngineConfig, GameMode
from ..engine_core.action import Action, ActionResult, ActionType, RejectReason
from ..engine_core.effect_resolver import card_blocker
from ..engine_core.reducer import Reducer
from ..engine_core.state import RunState
from ..rules.cards import CARD_CATALOG
from .scheduler import Clock, Scheduler

logger = logging.getLogger(__name__)

# Safety limit for flush(); each fired action schedules at most one more
MAX_FLUSH_STEPS = 1000


@dataclass
class GameSnapshot:
    """
    Everything a renderer needs, as plain values.

    Board cells are "X", "O" or None. Locks are sparse {index: turns}.
    """
    run_id: str
    mode: str
    phase: str
    floor: int
    size: int
    board: list[str | None]
    turn: str
    generation: int
    energy: int
    max_energy: int
    hand: list[dict[str, Any]] = field(default_factory=list)
    locks: dict[int, int] = field(default_factory=dict)
    encounter: dict[str, Any] = field(default_factory=dict)
    pending_card: dict[str, Any] | None = None
    reward_options: list[dict[str, Any]] = field(default_factory=list)
    scores: dict[str, int] | None = None
    score_to_win: int | None = None
    opponent_thinking: bool = False
    last_move: dict[str, Any] | None = None
    history_length: int = 1


def build_snapshot(state: RunState, config: EngineConfig) -> GameSnapshot:
    """Flatten a RunState for observers."""
    fight = state.fight
    encounter = fight.encounter

    hand = []
    for card in state.hand:
        definition = CARD_CATALOG[card.card_id]
        hand.append({
            "card_id": card.card_id.value,
            "name": definition.name,
            "cost": definition.cost,
            "targets": definition.target_arity.value,
            "description": definition.description,
            "charges": card.charges,
            "max_charges": card.max_charges,
            "playable": card_blocker(state, card.card_id) is None,
        })

    pending = None
    if fight.pending_card is not None:
        pending = {
            "card_id": fight.pending_card.card_id.value,
            "targets": list(fight.pending_card.targets),
        }

    last_move = None
    if fight.last_move is not None:
        last_move = {
            "symbol": fight.last_move.symbol.value,
            "index": fight.last_move.index,
            "source": fight.last_move.source,
            "score_delta": fight.last_move.score_delta,
        }

    scores = None
    score_to_win = None
    if state.mode == GameMode.SCORE:
        scores = {symbol.value: value for symbol, value in fight.score.scores.items()}
        score_to_win = config.score_to_win

    return GameSnapshot(
        run_id=state.run_id,
        mode=state.mode.value,
        phase=state.phase.value,
        floor=state.floor,
        size=fight.size,
        board=[cell.value if cell is not None else None for cell in fight.board],
        turn=fight.turn.value,
        generation=state.generation,
        energy=state.energy.current,
        max_energy=state.energy.maximum,
        hand=hand,
        locks=fight.lock_map,
        encounter={
            "encounter_id": encounter.encounter_id,
            "name": encounter.name,
            "passives": sorted(p.value for p in encounter.passives),
            "is_boss": encounter.is_boss,
        },
        pending_card=pending,
        reward_options=[
            {"index": i, "reward_type": option.reward_type.value, "label": option.label}
            for i, option in enumerate(state.reward_options)
        ],
        scores=scores,
        score_to_win=score_to_win,
        opponent_thinking=fight.opponent_pending,
        last_move=last_move,
        history_length=len(fight.history),
    )


class GameLoop:
    """
    The main game loop driver.

    Usage:
        loop = GameLoop(EngineConfig(seed=7))
        loop.start_run()

        result = loop.play_move(4)
        if not result.success:
            show_error(result.error_code)

        # Later, as time passes
        loop.advance()
        render(loop.snapshot())
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        rng: random.Random | None = None,
        clock: Clock | None = None,
        reducer: Reducer | None = None,
    ):
        self.config = config or EngineConfig()
        self.reducer = reducer or Reducer(config=self.config, rng=rng)
        self.scheduler = Scheduler(clock=clock)
        self.state: RunState | None = None
        self.last_result: ActionResult | None = None

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def start_run(self, run_id: str | None = None) -> ActionResult:
        action = Action.start_run()
        if run_id is not None:
            action.payload.params["run_id"] = run_id
        self.scheduler.clear()
        return self._dispatch(action)

    def restart_run(self) -> ActionResult:
        return self._dispatch(Action.restart_run())

    def play_move(self, cell_index: int) -> ActionResult:
        return self._dispatch(Action.play_move(cell_index))

    def arm_card(self, card_id: str) -> ActionResult:
        return self._dispatch(Action.arm_card(card_id))

    def clear_card_selection(self) -> ActionResult:
        return self._dispatch(Action.clear_card())

    def target_cell(self, cell_index: int) -> ActionResult:
        return self._dispatch(Action.target_cell(cell_index))

    def choose_reward(self, option_index: int) -> ActionResult:
        return self._dispatch(Action.choose_reward(option_index))

    def rematch(self) -> ActionResult:
        return self._dispatch(Action.rematch())

    # ------------------------------------------------------------------
    # Time
    # ------------------------------------------------------------------

    def advance(self, now: float | None = None) -> ActionResult:
        """Fire every scheduled action due at `now` (default: the clock)."""
        now = self.scheduler.clock() if now is None else now
        changes: list[str] = []

        for _ in range(MAX_FLUSH_STEPS):
            if self.state is None:
                break
            ready = self.scheduler.due(now, current_generation=self.state.generation)
            if not ready:
                break
            for item in ready:
                changes.extend(self._fire(item.action))

        return ActionResult.success_with_state(self.state, changes=changes)

    def flush(self) -> ActionResult:
        """Fire every outstanding scheduled action immediately."""
        changes: list[str] = []

        for _ in range(MAX_FLUSH_STEPS):
            if self.state is None:
                break
            ready = self.scheduler.drain(current_generation=self.state.generation)
            if not ready:
                break
            for item in ready:
                changes.extend(self._fire(item.action))
        else:
            logger.warning("flush() stopped after %d steps", MAX_FLUSH_STEPS)

        return ActionResult.success_with_state(self.state, changes=changes)

    @property
    def has_pending(self) -> bool:
        return len(self.scheduler) > 0

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    def snapshot(self) -> GameSnapshot | None:
        """Current observable state, or None before the first run."""
        if self.state is None:
            return None
        return build_snapshot(self.state, self.config)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _dispatch(self, action: Action) -> ActionResult:
        result = self.reducer.apply(self.state, action)
        self.last_result = result

        if not result.success:
            logger.debug(
                "%s rejected: %s (%s)",
                action.action_type.value,
                result.error,
                result.error_code.value if result.error_code else None,
            )
            return result

        self.state = result.new_state
        self.scheduler.cancel_stale(self.state.generation)

        if result.opponent_move_due:
            self.scheduler.schedule(
                Action.opponent_move(self.state.generation),
                delay_ms=self.config.opponent_delay_ms,
                generation=self.state.generation,
            )
        return result

    def _fire(self, action: Action) -> list[str]:
        result = self._dispatch(action)
        if result.success:
            return result.state_changes
        if result.error_code == RejectReason.STALE_ACTION:
            logger.warning("Dropped stale %s: %s", action.action_type.value, result.error)
        elif action.action_type == ActionType.OPPONENT_MOVE:
            logger.error("Opponent move failed: %s", result.error)
        return []
