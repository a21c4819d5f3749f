"""
Game Setup - Creates the initial battle state.

This module handles:
- Seating both rosters (seat = index within the team)
- Building and shuffling the deck with a seed for determinism
- Dealing opening hands
- Handing turn 1 to team A seat 0
"""

from __future__ import annotations
from typing import Any, Iterable
import random
import time
import uuid

from .state import (
    GameState,
    GameSettings,
    Player,
    Team,
    TeamId,
    Deck,
    HAND_SIZE,
)
from .deck import CardDefinition, DEFAULT_CARD_DEFINITIONS, build_deck
from .hands import deal_hands
from .turns import first_turn


def setup_game(
    team_a: Iterable[dict[str, Any]],
    team_b: Iterable[dict[str, Any]],
    settings: GameSettings | None = None,
    card_definitions: Iterable[CardDefinition] | None = None,
    random_seed: int | None = None,
    game_id: str | None = None,
) -> GameState:
    """
    Set up a new Skill Strike game.

    Args:
        team_a: Roster entries for team A ({"id", "name", "level", "points"})
        team_b: Roster entries for team B
        settings: Game settings (defaults if not provided)
        card_definitions: Card catalogue (DEFAULT_CARD_DEFINITIONS if not provided)
        random_seed: Seed for deterministic shuffling
        game_id: Explicit id (random uuid if not provided)

    Returns:
        Initial GameState ready for play
    """
    settings = settings or GameSettings()
    seed = random_seed if random_seed is not None else random.randrange(2**31)
    rng = random.Random(seed)

    players_a = _seat_players(team_a, TeamId.A, settings.max_team_size)
    players_b = _seat_players(team_b, TeamId.B, settings.max_team_size)
    if not players_a or not players_b:
        raise ValueError("Select Team A and Team B players.")

    ids = [p.id for p in players_a + players_b]
    duplicates = sorted({i for i in ids if ids.count(i) > 1})
    if duplicates:
        raise ValueError(f"Duplicate players: {', '.join(duplicates)}")

    definitions = list(card_definitions) if card_definitions is not None else DEFAULT_CARD_DEFINITIONS
    draw_pile = build_deck(definitions, rng)
    hands, remaining = deal_hands(draw_pile, players_a + players_b, HAND_SIZE)

    state = GameState(
        game_id=game_id or str(uuid.uuid4()),
        settings=settings,
        teams={
            TeamId.A: Team(hp=settings.hp_start, players=players_a),
            TeamId.B: Team(hp=settings.hp_start, players=players_b),
        },
        hands=hands,
        deck=Deck(draw=remaining, discard=[]),
        random_seed=seed,
        started_at=time.time(),
    )
    return state._copy_with(turn=first_turn(state))


def _seat_players(
    roster: Iterable[dict[str, Any]],
    team_id: TeamId,
    max_team_size: int,
) -> list[Player]:
    """Create players, truncated to max_team_size and seated in order."""
    players = []
    for entry in roster:
        player_id = str(entry.get("id") or "").strip()
        if not player_id:
            continue
        players.append(Player(
            id=player_id,
            name=entry.get("name") or "Student",
            team=team_id,
            seat=len(players),
            level=entry.get("level"),
            points=entry.get("points"),
        ))
        if len(players) >= max_team_size:
            break
    return players
