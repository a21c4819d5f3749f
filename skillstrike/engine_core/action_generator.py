"""
Action Generator - Generates the legal actions for a player.

Clients poll it to show which cards are playable.

Design: Generates Action objects, not just action types.
Every generated action would be accepted by the reducer as-is.
"""

from __future__ import annotations

from .state import GameState
from .action import Action
from .effects import can_place_effect


def legal_actions(state: GameState, player_id: str) -> list[Action]:
    """
    Generate all actions the reducer would accept from player_id now.

    Idle: the active player may place effects, play attacks or end the turn.
    AttackPending: defending-team players may resolve either way.
    """
    if state.is_over:
        return []

    team_id = state.find_team(player_id)
    if team_id is None:
        return []

    if state.pending_attack:
        if team_id != state.pending_attack.defender_team:
            return []
        return [
            Action.resolve_attack(success=True, player_id=player_id),
            Action.resolve_attack(success=False, player_id=player_id),
        ]

    if state.active_player_id != player_id:
        return []

    actions = []
    effects_open = can_place_effect(state, team_id) is None
    for card in state.hand_of(player_id):
        if card.type.is_effect and effects_open:
            actions.append(Action.play_effect(player_id, card.id))
        elif card.type.is_attack:
            actions.append(Action.play_attack(player_id, card.id))

    actions.append(Action.end_turn(player_id))
    return actions
