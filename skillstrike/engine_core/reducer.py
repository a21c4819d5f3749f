"""
Reducer - Applies actions to game state.

The reducer is the single point of state mutation.
All state changes must go through apply_action().

Design principles:
- Pure function: (state, action) -> new_state
- Validates before applying; a rejected action leaves state untouched
- Returns ActionResult with success/failure
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable
import logging
import time

from .state import (
    GameState,
    GamePhase,
    EffectEntry,
    PendingAttack,
    TeamId,
    HAND_SIZE,
    BLOCK_STREAK_FOR_COUNTER,
    COUNTER_DAMAGE,
    DEFAULT_ATTACK_DAMAGE,
)
from .action import Action, ActionType, ActionResult, ErrorCode
from .effects import can_place_effect, consume_best_effect, record_effect_played
from .hands import ensure_hand_size
from .turns import next_turn

logger = logging.getLogger(__name__)


def pick_defender(state: GameState, attacker_id: str) -> str | None:
    """
    Default defender for an attacker.

    Mirrors the attacker's seat onto the opposing roster, falling back to
    the opposing team's first player.
    """
    attacker_team = state.find_team(attacker_id)
    if attacker_team is None:
        return None
    attacker = state.team(attacker_team).get_player(attacker_id)
    opponents = state.team(attacker_team.opponent).players
    seat = attacker.seat if attacker else 0
    for player in opponents:
        if player.seat == seat:
            return player.id
    return opponents[0].id if opponents else None


@dataclass
class Reducer:
    """
    Reducer applies actions to game state.

    Stateless - all state is in GameState. The clock only stamps
    pending attacks that arrive without a timestamp.
    """
    clock: Callable[[], float] = field(default=time.time)

    def apply(self, state: GameState, action: Action) -> ActionResult:
        """
        Apply an action to the game state.

        Returns ActionResult with new state or error.
        """
        if state.is_over:
            return self._reject(state, action, "Game is over - no actions allowed", ErrorCode.GAME_OVER)

        handler = self._get_handler(action.action_type)
        if not handler:
            return ActionResult.failure(
                f"No handler for action type: {action.action_type}",
                error_code=ErrorCode.NO_HANDLER,
            )

        try:
            result = handler(state, action)
        except Exception as e:
            logger.exception("game=%s %s handler failed", state.game_id, action.action_type.value)
            return ActionResult.failure(str(e), error_code=ErrorCode.HANDLER_ERROR)

        if not result.success:
            return self._reject(state, action, result.error, result.error_code)

        # Log action to history on the new state only
        new_state = result.new_state._copy_with(
            action_history=[
                *result.new_state.action_history,
                action.to_log_entry(state.turn_number),
            ]
        )
        result.new_state = new_state
        logger.info(
            "game=%s turn=%d %s applied: %s",
            state.game_id,
            state.turn_number,
            action.action_type.value,
            "; ".join(result.state_changes),
        )
        return result

    def _reject(
        self,
        state: GameState,
        action: Action,
        error: str | None,
        error_code: ErrorCode | None,
    ) -> ActionResult:
        logger.info(
            "game=%s %s rejected [%s]: %s",
            state.game_id,
            action.action_type.value,
            error_code.value if error_code else "-",
            error,
        )
        return ActionResult.failure(error or "Action rejected", error_code=error_code)

    def _get_handler(self, action_type: ActionType):
        """Get the handler function for an action type."""
        handlers = {
            ActionType.PLAY_EFFECT: self._handle_play_effect,
            ActionType.PLAY_ATTACK: self._handle_play_attack,
            ActionType.RESOLVE_ATTACK: self._handle_resolve_attack,
            ActionType.END_TURN: self._handle_end_turn,
        }
        return handlers.get(action_type)

    def _check_actor(self, state: GameState, player_id: str | None) -> ActionResult | None:
        """Shared checks for actions taken by the active player."""
        if state.find_team(player_id) is None:
            return ActionResult.failure(f"Player {player_id} not in game", ErrorCode.PLAYER_NOT_IN_GAME)
        if state.active_player_id != player_id:
            return ActionResult.failure("Not your turn", ErrorCode.NOT_YOUR_TURN)
        return None

    def _handle_play_effect(self, state: GameState, action: Action) -> ActionResult:
        """Place a shield or negate from hand into the team's effects."""
        player_id = action.payload.player_id
        card_id = action.payload.card_id
        if not player_id or not card_id:
            return ActionResult.failure("Missing player/card", ErrorCode.MISSING_FIELD)

        if state.pending_attack:
            return ActionResult.failure("Resolve the current attack first", ErrorCode.ATTACK_PENDING)

        error = self._check_actor(state, player_id)
        if error:
            return error
        team_id = state.find_team(player_id)

        card = state.find_card_in_hand(player_id, card_id)
        if not card:
            return ActionResult.failure(f"Card {card_id} not in hand", ErrorCode.CARD_NOT_IN_HAND)
        if not card.type.is_effect:
            return ActionResult.failure("Invalid effect card", ErrorCode.INVALID_CARD_TYPE)

        cap = can_place_effect(state, team_id)
        if cap == ErrorCode.MAX_EFFECTS_IN_PLAY:
            return ActionResult.failure("Max effects already in play", cap)
        if cap == ErrorCode.MAX_EFFECTS_PER_TURN:
            return ActionResult.failure("Max 2 effects per turn", cap)

        team = state.team(team_id)
        new_team = team._copy_with(
            effects_in_play=[
                *team.effects_in_play,
                EffectEntry(card=card, placed_turn=state.turn_number),
            ]
        )
        new_state = (
            state.without_card_in_hand(player_id, card_id)
            .with_team(team_id, new_team)
        )
        new_state = new_state._copy_with(
            turn_effects_played=record_effect_played(state, team_id),
        )
        return ActionResult.success_with_state(
            new_state,
            changes=[f"Team {team_id.value.upper()} placed {card.label}"],
        )

    def _handle_play_attack(self, state: GameState, action: Action) -> ActionResult:
        """Stage an attack as the pending attack."""
        payload = action.payload
        player_id = payload.player_id
        card_id = payload.card_id
        if not player_id or not card_id:
            return ActionResult.failure("Missing player/card", ErrorCode.MISSING_FIELD)

        if state.pending_attack:
            return ActionResult.failure("Resolve the current attack first", ErrorCode.ATTACK_PENDING)

        error = self._check_actor(state, player_id)
        if error:
            return error
        team_id = state.find_team(player_id)

        card = state.find_card_in_hand(player_id, card_id)
        if not card:
            return ActionResult.failure(f"Card {card_id} not in hand", ErrorCode.CARD_NOT_IN_HAND)
        if not card.type.is_attack:
            return ActionResult.failure("Invalid attack card", ErrorCode.INVALID_CARD_TYPE)

        if payload.defender_id:
            if not state.team(team_id.opponent).has_player(payload.defender_id):
                return ActionResult.failure(
                    f"Defender {payload.defender_id} is not on the opposing team",
                    ErrorCode.INVALID_DEFENDER,
                )
            defender_id = payload.defender_id
        else:
            defender_id = pick_defender(state, player_id)
            if not defender_id:
                return ActionResult.failure("Opposing team has no players", ErrorCode.INVALID_DEFENDER)

        damage = max(1, card.damage if card.damage is not None else DEFAULT_ATTACK_DAMAGE)
        pending = PendingAttack(
            attacker_team=team_id,
            attacker_id=player_id,
            defender_id=defender_id,
            card=card,
            damage=damage,
            category=card.category,
            skill_id=payload.skill_id or None,
            created_at=action.timestamp if action.timestamp is not None else self.clock(),
        )
        new_state = state.without_card_in_hand(player_id, card_id)._copy_with(pending_attack=pending)
        return ActionResult.success_with_state(
            new_state,
            changes=[f"{player_id} attacks {defender_id} with {card.label} for {damage}"],
        )

    def _handle_resolve_attack(self, state: GameState, action: Action) -> ActionResult:
        """
        Apply the defender's outcome to the pending attack.

        Blocked: the block streak grows; the third block in a row deals
        counter damage to the attacking team and resets the streak.
        Hit: the best eligible effect (negate, else strongest shield) is
        consumed and the remaining damage lands; the streak resets.
        """
        success = action.payload.success
        if success is None:
            return ActionResult.failure("Missing success flag", ErrorCode.MISSING_FIELD)

        pending = state.pending_attack
        if not pending:
            return ActionResult.failure("No pending attack", ErrorCode.NO_PENDING_ATTACK)

        defender_team_id = pending.defender_team
        actor = action.payload.player_id
        if actor:
            actor_team = state.find_team(actor)
            if actor_team is None:
                return ActionResult.failure(f"Player {actor} not in game", ErrorCode.PLAYER_NOT_IN_GAME)
            if actor_team != defender_team_id:
                return ActionResult.failure("Only the defending team resolves an attack", ErrorCode.NOT_YOUR_TURN)

        defender = state.team(defender_team_id)
        attacker = state.team(pending.attacker_team)
        changes = []

        if success:
            block_count = defender.block_count + 1
            attacker_hp = attacker.hp
            if block_count >= BLOCK_STREAK_FOR_COUNTER:
                attacker_hp = max(0, attacker_hp - COUNTER_DAMAGE)
                block_count = 0
                changes.append(
                    f"Team {defender_team_id.value.upper()} blocked three in a row: "
                    f"{COUNTER_DAMAGE} counter damage to team {pending.attacker_team.value.upper()}"
                )
            else:
                changes.append(f"Team {defender_team_id.value.upper()} blocked ({block_count} in a row)")

            new_state = (
                state.with_team(defender_team_id, defender._copy_with(block_count=block_count))
                .with_team(pending.attacker_team, attacker._copy_with(hp=attacker_hp))
                .with_discard(pending.card)
            )
        else:
            outcome = consume_best_effect(defender.effects_in_play, state.turn_number, pending.damage)
            discarded = [pending.card]
            if outcome.consumed:
                discarded.append(outcome.consumed.card)
                changes.append(f"{outcome.consumed.card.label} absorbed the hit")
            hp = max(0, defender.hp - outcome.damage)
            changes.append(f"Team {defender_team_id.value.upper()} took {outcome.damage} damage")

            new_state = state.with_team(
                defender_team_id,
                defender._copy_with(hp=hp, effects_in_play=outcome.remaining, block_count=0),
            ).with_discard(*discarded)

        new_state = self._check_game_over(new_state._copy_with(pending_attack=None))
        if new_state.is_over:
            changes.append(f"Team {new_state.winner.value.upper()} wins")
        return ActionResult.success_with_state(new_state, changes=changes)

    def _handle_end_turn(self, state: GameState, action: Action) -> ActionResult:
        """Refill the active player's hand, then pass the turn."""
        if state.pending_attack:
            return ActionResult.failure("Resolve the current attack first", ErrorCode.ATTACK_PENDING)

        actor = action.payload.player_id
        if actor:
            error = self._check_actor(state, actor)
            if error:
                return error

        active = state.active_player_id
        new_state = ensure_hand_size(state, active, HAND_SIZE)
        new_state = next_turn(new_state)
        return ActionResult.success_with_state(
            new_state,
            changes=[f"Turn {state.turn_number} ended. Next player: {new_state.active_player_id}"],
        )

    def _check_game_over(self, state: GameState) -> GameState:
        """Move to GAME_OVER once a team is out of hp."""
        for team_id in (TeamId.A, TeamId.B):
            if state.team(team_id).hp <= 0:
                return state._copy_with(phase=GamePhase.GAME_OVER, winner=team_id.opponent)
        return state


def apply_action(state: GameState, action: Action) -> ActionResult:
    """
    Convenience function to apply an action.

    Creates a Reducer and applies the action.
    """
    reducer = Reducer()
    return reducer.apply(state, action)
