"""
Action Generator - Generates all legal player actions from a run state.

The action generator lists what a client may send next, and backs the
tests that check which commands a state accepts.

Scheduled opponent moves are never generated; the session layer
issues those.
"""

from __future__ import annotations

from ..rules.cards import CARD_CATALOG
from .action import Action
from .effect_resolver import card_blocker
from .locks import playable_cells
from .state import GamePhase, RunState


def legal_actions(state: RunState | None) -> list[Action]:
    """
    Generate every legal player action.

    Returns a list of fully-specified Action objects.
    """
    if state is None:
        return [Action.start_run()]

    actions = [Action.restart_run()]

    if state.phase == GamePhase.REWARD:
        actions.extend(Action.choose_reward(i) for i in range(len(state.reward_options)))
        return actions

    if state.phase == GamePhase.DRAW:
        actions.append(Action.rematch())
        return actions

    if state.phase != GamePhase.PLAYING:
        return actions

    fight = state.fight
    if fight.opponent_pending or not state.is_player_turn:
        return actions

    if fight.pending_card is not None:
        actions.append(Action.clear_card())
        actions.extend(Action.target_cell(i) for i in range(fight.size * fight.size))
        return actions

    actions.extend(Action.play_move(i) for i in playable_cells(fight.board, fight.locks))

    for card in state.hand:
        if card_blocker(state, card.card_id) is None:
            actions.append(Action.arm_card(CARD_CATALOG[card.card_id].card_id.value))

    return actions
