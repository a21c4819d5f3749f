"""
Effect Stack - defensive cards a team has in play.

Rules:
- An effect can only defend once the turn it was placed on has passed.
- When a hit lands, an eligible negate is consumed before any shield.
- Among shields, the highest shield_value is consumed first.
"""

from __future__ import annotations
from dataclasses import dataclass

from .action import ErrorCode
from .state import (
    CardType,
    EffectEntry,
    GameState,
    TeamId,
    TurnEffectsPlayed,
    MAX_EFFECTS_PER_TURN,
)


@dataclass(frozen=True)
class EffectOutcome:
    """Result of running an incoming hit through the effect stack."""
    damage: int
    remaining: list[EffectEntry]
    consumed: EffectEntry | None = None


def eligible_effects(effects: list[EffectEntry], turn_number: int) -> list[EffectEntry]:
    """Effects that were placed on an earlier turn."""
    return [e for e in effects if e.is_ready(turn_number)]


def consume_best_effect(
    effects: list[EffectEntry],
    turn_number: int,
    damage: int,
) -> EffectOutcome:
    """
    Apply the best eligible effect to an incoming hit.

    A negate cancels the hit outright; otherwise the strongest shield
    reduces it, floored at zero. At most one effect is consumed.
    """
    available = eligible_effects(effects, turn_number)

    negate = next((e for e in available if e.card.type == CardType.NEGATE), None)
    if negate is not None:
        return EffectOutcome(
            damage=0,
            remaining=[e for e in effects if e is not negate],
            consumed=negate,
        )

    shields = [e for e in available if e.card.type == CardType.SHIELD]
    if not shields:
        return EffectOutcome(damage=damage, remaining=list(effects))

    # max() keeps the first of equal values, i.e. the earliest placed
    best = max(shields, key=_shield_strength)
    return EffectOutcome(
        damage=max(0, damage - _shield_strength(best)),
        remaining=[e for e in effects if e is not best],
        consumed=best,
    )


def _shield_strength(entry: EffectEntry) -> int:
    return max(0, entry.card.shield_value or 0)


def record_effect_played(state: GameState, team_id: TeamId) -> list[TurnEffectsPlayed]:
    """Per-turn counters with this team's count for the current turn bumped."""
    turn = state.turn_number
    count = state.effects_played(team_id, turn)
    others = [
        t for t in state.turn_effects_played
        if not (t.team == team_id and t.turn == turn)
    ]
    return [*others, TurnEffectsPlayed(team=team_id, turn=turn, count=count + 1)]


def can_place_effect(state: GameState, team_id: TeamId) -> ErrorCode | None:
    """
    Check the team-level effect caps.

    Returns an error code if the team cannot place another effect.
    """
    team = state.team(team_id)
    if len(team.effects_in_play) >= state.settings.max_effects_in_play:
        return ErrorCode.MAX_EFFECTS_IN_PLAY
    if state.effects_played(team_id, state.turn_number) >= MAX_EFFECTS_PER_TURN:
        return ErrorCode.MAX_EFFECTS_PER_TURN
    return None
