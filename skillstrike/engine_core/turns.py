"""
Turn Scheduler - who acts next.

Teams alternate strictly. Each team walks its own roster in seat order,
so with uneven teams the smaller side simply cycles faster.

`TurnState.cursors[team]` is the roster index of the player who will act
the next time that team gets the turn.
"""

from __future__ import annotations

from .state import GameState, TeamId, TurnState


def first_turn(state: GameState) -> TurnState:
    """Turn 1 belongs to team A seat 0."""
    players = state.team(TeamId.A).players
    return TurnState(
        turn_number=1,
        active_team=TeamId.A,
        active_player_id=players[0].id,
        cursors={TeamId.A: 1 % len(players), TeamId.B: 0},
    )


def next_turn(state: GameState) -> GameState:
    """
    Advance to the next player.

    Switches active team, seats that team's next player, bumps
    turn_number, and drops per-turn effect counters from past turns.
    """
    turn = state.turn
    next_team = turn.active_team.opponent
    players = state.team(next_team).players
    if not players:
        return state

    index = turn.cursors.get(next_team, 0) % len(players)
    cursors = dict(turn.cursors)
    cursors[next_team] = (index + 1) % len(players)

    new_turn = TurnState(
        turn_number=turn.turn_number + 1,
        active_team=next_team,
        active_player_id=players[index].id,
        cursors=cursors,
    )
    return state._copy_with(
        turn=new_turn,
        turn_effects_played=[
            t for t in state.turn_effects_played if t.turn >= new_turn.turn_number
        ],
    )
