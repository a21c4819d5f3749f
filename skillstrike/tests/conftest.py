"""
Pytest fixtures for Skill Strike tests.
"""

import pytest

from ..engine_core.state import (
    GameState,
    GameSettings,
    Card,
    CardType,
    Player,
    Team,
    TeamId,
    Deck,
    EffectEntry,
    TurnState,
)


def make_card(card_id: str, card_type: CardType, damage=None, shield_value=None, category=None) -> Card:
    """Hand-built card with a readable id."""
    if card_type == CardType.ATTACK:
        label = f"{category or 'Attack'} {damage if damage is not None else ''}".strip()
    elif card_type == CardType.SHIELD:
        label = f"Shield -{shield_value or 1}"
    else:
        label = card_type.value.capitalize()
    return Card(
        id=card_id,
        type=card_type,
        label=label,
        damage=damage,
        shield_value=shield_value,
        category=category,
    )


def starting_hand(player_id: str) -> list[Card]:
    """
    Five cards:
        <id>_atk8   Kicks 8
        <id>_atk4   Strikes 4
        <id>_sh3    Shield -3
        <id>_neg    Negate
        <id>_joker  Joker without printed damage
    """
    return [
        make_card(f"{player_id}_atk8", CardType.ATTACK, damage=8, category="Kicks"),
        make_card(f"{player_id}_atk4", CardType.ATTACK, damage=4, category="Strikes"),
        make_card(f"{player_id}_sh3", CardType.SHIELD, shield_value=3),
        make_card(f"{player_id}_neg", CardType.NEGATE),
        make_card(f"{player_id}_joker", CardType.JOKER),
    ]


@pytest.fixture
def card():
    """Factory fixture for single cards."""
    return make_card


@pytest.fixture
def battle_state() -> GameState:
    """
    Two teams of two at 30 hp, team A seat 0 to act on turn 1.

    Every player holds starting_hand(); the draw pile holds ten 5-damage
    attacks (draw_0 .. draw_9).
    """
    players_a = [
        Player(id="a1", name="Ava", team=TeamId.A, seat=0),
        Player(id="a2", name="Ben", team=TeamId.A, seat=1),
    ]
    players_b = [
        Player(id="b1", name="Cleo", team=TeamId.B, seat=0),
        Player(id="b2", name="Dev", team=TeamId.B, seat=1),
    ]
    return GameState(
        game_id="test_game",
        settings=GameSettings(hp_start=30),
        teams={
            TeamId.A: Team(hp=30, players=players_a),
            TeamId.B: Team(hp=30, players=players_b),
        },
        hands={p.id: starting_hand(p.id) for p in players_a + players_b},
        deck=Deck(
            draw=[make_card(f"draw_{i}", CardType.ATTACK, damage=5) for i in range(10)],
            discard=[],
        ),
        turn=TurnState(
            turn_number=1,
            active_team=TeamId.A,
            active_player_id="a1",
            cursors={TeamId.A: 1, TeamId.B: 0},
        ),
        random_seed=42,
    )


@pytest.fixture
def with_effects():
    """Return a helper that puts effects in play for a team."""

    def _apply(state: GameState, team_id: TeamId, *entries: tuple[Card, int]) -> GameState:
        team = state.team(team_id)
        return state.with_team(
            team_id,
            team._copy_with(effects_in_play=[
                EffectEntry(card=c, placed_turn=turn) for c, turn in entries
            ]),
        )

    return _apply


@pytest.fixture
def roster():
    """Plain roster dicts as the lobby sends them."""
    return {
        "team_a": [{"id": "a1", "name": "Ava"}, {"id": "a2", "name": "Ben"}],
        "team_b": [{"id": "b1", "name": "Cleo"}, {"id": "b2", "name": "Dev"}],
    }
