"""
Game State - Typed state container for one Skill Strike battle.

Design principles:
- Immutable-friendly: all mutations return new state
- Serializable: the whole state round-trips through a plain dict blob
- No hidden state: everything the engine needs lives here
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Any
from copy import deepcopy
from enum import Enum


HAND_SIZE = 5
MAX_EFFECTS_PER_TURN = 2
BLOCK_STREAK_FOR_COUNTER = 3
COUNTER_DAMAGE = 3
DEFAULT_ATTACK_DAMAGE = 5


class GamePhase(Enum):
    """High-level game phases."""
    PLAYING = "playing"
    GAME_OVER = "game_over"


class CardType(Enum):
    """Card variants."""
    ATTACK = "attack"
    SHIELD = "shield"
    NEGATE = "negate"
    JOKER = "joker"

    @property
    def is_attack(self) -> bool:
        return self in (CardType.ATTACK, CardType.JOKER)

    @property
    def is_effect(self) -> bool:
        return self in (CardType.SHIELD, CardType.NEGATE)


class TeamId(Enum):
    """The two sides of a battle."""
    A = "a"
    B = "b"

    @property
    def opponent(self) -> TeamId:
        return TeamId.B if self is TeamId.A else TeamId.A


@dataclass(frozen=True)
class Card:
    """
    A card instance in the game.

    Immutable once drawn. `def_id` points back at the CardDefinition
    it was built from; `id` is unique per game.
    """
    id: str
    type: CardType
    label: str
    def_id: str | None = None
    damage: int | None = None  # attack / joker only
    shield_value: int | None = None  # shield only
    category: str | None = None
    image_url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "def_id": self.def_id,
            "type": self.type.value,
            "damage": self.damage,
            "shield_value": self.shield_value,
            "category": self.category,
            "image_url": self.image_url,
            "label": self.label,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Card:
        return cls(
            id=str(data["id"]),
            type=CardType(data["type"]),
            label=data.get("label") or "",
            def_id=data.get("def_id"),
            damage=data.get("damage"),
            shield_value=data.get("shield_value"),
            category=data.get("category"),
            image_url=data.get("image_url"),
        )


@dataclass(frozen=True)
class Player:
    """A seated player. Seat decides default defender mirroring."""
    id: str
    name: str
    team: TeamId
    seat: int
    level: int | None = None
    points: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "team": self.team.value,
            "seat": self.seat,
            "level": self.level,
            "points": self.points,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Player:
        return cls(
            id=str(data["id"]),
            name=data.get("name") or "Student",
            team=TeamId(data["team"]),
            seat=int(data.get("seat", 0)),
            level=data.get("level"),
            points=data.get("points"),
        )


@dataclass(frozen=True)
class EffectEntry:
    """A defensive card in play. Usable once turn_number > placed_turn."""
    card: Card
    placed_turn: int

    def is_ready(self, turn_number: int) -> bool:
        return self.placed_turn < turn_number


@dataclass
class Team:
    """One side: shared hp, roster, effects in play and block streak."""
    hp: int
    players: list[Player] = field(default_factory=list)
    effects_in_play: list[EffectEntry] = field(default_factory=list)
    block_count: int = 0

    def has_player(self, player_id: str) -> bool:
        return any(p.id == player_id for p in self.players)

    def get_player(self, player_id: str) -> Player | None:
        for p in self.players:
            if p.id == player_id:
                return p
        return None

    def _copy_with(self, **kwargs) -> Team:
        return replace(self, **kwargs)


@dataclass
class Deck:
    """
    Shared draw and discard piles.

    Cards move draw -> hand on refill and hand -> discard on resolution.
    """
    draw: list[Card] = field(default_factory=list)
    discard: list[Card] = field(default_factory=list)

    def _copy_with(self, **kwargs) -> Deck:
        return replace(self, **kwargs)


@dataclass(frozen=True)
class PendingAttack:
    """An attack waiting for the defender's decision."""
    attacker_team: TeamId
    attacker_id: str
    defender_id: str
    card: Card
    damage: int
    category: str | None = None
    skill_id: str | None = None
    created_at: float = 0.0

    @property
    def defender_team(self) -> TeamId:
        return self.attacker_team.opponent


@dataclass(frozen=True)
class TurnEffectsPlayed:
    """How many effects a team placed on a given turn."""
    team: TeamId
    turn: int
    count: int


@dataclass
class TurnState:
    """
    Whose turn it is.

    `cursors` holds each team's round-robin position into its roster.
    """
    turn_number: int = 1
    active_team: TeamId = TeamId.A
    active_player_id: str = ""
    cursors: dict[TeamId, int] = field(
        default_factory=lambda: {TeamId.A: 0, TeamId.B: 0}
    )

    def _copy_with(self, **kwargs) -> TurnState:
        return replace(self, **kwargs)


@dataclass(frozen=True)
class GameSettings:
    """Per-game tunables, clamped to sane minimums."""
    hp_start: int = 50
    max_team_size: int = 4
    max_effects_in_play: int = 3

    @classmethod
    def clamped(
        cls,
        hp_start: int | None = None,
        max_team_size: int | None = None,
        max_effects_in_play: int | None = None,
    ) -> GameSettings:
        defaults = cls()
        return cls(
            hp_start=max(1, int(hp_start if hp_start is not None else defaults.hp_start)),
            max_team_size=max(2, int(
                max_team_size if max_team_size is not None else defaults.max_team_size
            )),
            max_effects_in_play=max(1, int(
                max_effects_in_play if max_effects_in_play is not None
                else defaults.max_effects_in_play
            )),
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "hp_start": self.hp_start,
            "max_team_size": self.max_team_size,
            "max_effects_in_play": self.max_effects_in_play,
        }


@dataclass
class GameState:
    """
    Complete game state at a point in time.

    This is the canonical state that the engine operates on.
    All state changes go through the reducer.
    """
    game_id: str
    settings: GameSettings = field(default_factory=GameSettings)
    teams: dict[TeamId, Team] = field(default_factory=dict)
    hands: dict[str, list[Card]] = field(default_factory=dict)
    deck: Deck = field(default_factory=Deck)
    turn: TurnState = field(default_factory=TurnState)
    pending_attack: PendingAttack | None = None
    turn_effects_played: list[TurnEffectsPlayed] = field(default_factory=list)

    phase: GamePhase = GamePhase.PLAYING
    winner: TeamId | None = None

    # Seeded reshuffles keep the engine deterministic
    random_seed: int = 0
    reshuffle_count: int = 0

    action_history: list[dict[str, Any]] = field(default_factory=list)
    started_at: float | None = None

    @property
    def turn_number(self) -> int:
        return self.turn.turn_number

    @property
    def active_player_id(self) -> str:
        return self.turn.active_player_id

    @property
    def is_over(self) -> bool:
        return self.phase == GamePhase.GAME_OVER

    def team(self, team_id: TeamId) -> Team:
        return self.teams[team_id]

    def find_team(self, player_id: str) -> TeamId | None:
        """Which team a player is on, if any."""
        for team_id in (TeamId.A, TeamId.B):
            team = self.teams.get(team_id)
            if team and team.has_player(player_id):
                return team_id
        return None

    def get_player(self, player_id: str) -> Player | None:
        for team in self.teams.values():
            player = team.get_player(player_id)
            if player:
                return player
        return None

    def all_players(self) -> list[Player]:
        return [p for team_id in (TeamId.A, TeamId.B) for p in self.teams[team_id].players]

    def hand_of(self, player_id: str) -> list[Card]:
        return self.hands.get(player_id, [])

    def find_card_in_hand(self, player_id: str, card_id: str) -> Card | None:
        for card in self.hand_of(player_id):
            if card.id == card_id:
                return card
        return None

    def effects_played(self, team_id: TeamId, turn: int) -> int:
        for entry in self.turn_effects_played:
            if entry.team == team_id and entry.turn == turn:
                return entry.count
        return 0

    def all_cards(self) -> list[Card]:
        """Every card the game owns, wherever it currently sits."""
        cards: list[Card] = []
        for hand in self.hands.values():
            cards.extend(hand)
        for team in self.teams.values():
            cards.extend(e.card for e in team.effects_in_play)
        cards.extend(self.deck.draw)
        cards.extend(self.deck.discard)
        if self.pending_attack:
            cards.append(self.pending_attack.card)
        return cards

    def with_team(self, team_id: TeamId, team: Team) -> GameState:
        """Return new state with updated team."""
        new_teams = self.teams.copy()
        new_teams[team_id] = team
        return self._copy_with(teams=new_teams)

    def with_hand(self, player_id: str, hand: list[Card]) -> GameState:
        """Return new state with updated hand."""
        new_hands = self.hands.copy()
        new_hands[player_id] = hand
        return self._copy_with(hands=new_hands)

    def without_card_in_hand(self, player_id: str, card_id: str) -> GameState:
        return self.with_hand(
            player_id, [c for c in self.hand_of(player_id) if c.id != card_id]
        )

    def with_discard(self, *cards: Card) -> GameState:
        """Return new state with cards appended to the discard pile."""
        return self._copy_with(
            deck=self.deck._copy_with(discard=[*self.deck.discard, *cards])
        )

    def _copy_with(self, **kwargs) -> GameState:
        """Create a copy with some fields replaced."""
        return replace(self, **kwargs)

    def clone(self) -> GameState:
        """Deep copy the state."""
        return deepcopy(self)

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_dict(self) -> dict[str, Any]:
        """Plain-dict blob suitable for JSON persistence."""
        pending = self.pending_attack
        return {
            "game_id": self.game_id,
            "settings": self.settings.to_dict(),
            "teams": {
                team_id.value: {
                    "hp": team.hp,
                    "players": [p.to_dict() for p in team.players],
                    "block_count": team.block_count,
                    "effects_in_play": [
                        {"card": e.card.to_dict(), "placed_turn": e.placed_turn}
                        for e in team.effects_in_play
                    ],
                }
                for team_id, team in self.teams.items()
            },
            "hands": {
                player_id: [c.to_dict() for c in hand]
                for player_id, hand in self.hands.items()
            },
            "deck": {
                "draw": [c.to_dict() for c in self.deck.draw],
                "discard": [c.to_dict() for c in self.deck.discard],
            },
            "turn": {
                "turn_number": self.turn.turn_number,
                "active_team": self.turn.active_team.value,
                "active_player_id": self.turn.active_player_id,
                "cursors": {t.value: i for t, i in self.turn.cursors.items()},
            },
            "pending_attack": {
                "attacker_team": pending.attacker_team.value,
                "attacker_id": pending.attacker_id,
                "defender_id": pending.defender_id,
                "card": pending.card.to_dict(),
                "damage": pending.damage,
                "category": pending.category,
                "skill_id": pending.skill_id,
                "created_at": pending.created_at,
            } if pending else None,
            "turn_effects_played": [
                {"team": t.team.value, "turn": t.turn, "count": t.count}
                for t in self.turn_effects_played
            ],
            "phase": self.phase.value,
            "winner": self.winner.value if self.winner else None,
            "random_seed": self.random_seed,
            "reshuffle_count": self.reshuffle_count,
            "action_history": list(self.action_history),
            "started_at": self.started_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GameState:
        """Rebuild a state from a blob produced by to_dict()."""
        teams = {}
        for key, raw in data.get("teams", {}).items():
            teams[TeamId(key)] = Team(
                hp=int(raw["hp"]),
                players=[Player.from_dict(p) for p in raw.get("players", [])],
                block_count=int(raw.get("block_count", 0)),
                effects_in_play=[
                    EffectEntry(card=Card.from_dict(e["card"]), placed_turn=int(e["placed_turn"]))
                    for e in raw.get("effects_in_play", [])
                ],
            )

        raw_turn = data.get("turn", {})
        turn = TurnState(
            turn_number=int(raw_turn.get("turn_number", 1)),
            active_team=TeamId(raw_turn.get("active_team", "a")),
            active_player_id=raw_turn.get("active_player_id", ""),
            cursors={
                TeamId(k): int(v)
                for k, v in raw_turn.get("cursors", {"a": 0, "b": 0}).items()
            },
        )

        raw_pending = data.get("pending_attack")
        pending = None
        if raw_pending:
            pending = PendingAttack(
                attacker_team=TeamId(raw_pending["attacker_team"]),
                attacker_id=raw_pending["attacker_id"],
                defender_id=raw_pending["defender_id"],
                card=Card.from_dict(raw_pending["card"]),
                damage=int(raw_pending["damage"]),
                category=raw_pending.get("category"),
                skill_id=raw_pending.get("skill_id"),
                created_at=float(raw_pending.get("created_at") or 0.0),
            )

        raw_deck = data.get("deck", {})
        winner = data.get("winner")
        return cls(
            game_id=data["game_id"],
            settings=GameSettings.clamped(**data.get("settings", {})),
            teams=teams,
            hands={
                player_id: [Card.from_dict(c) for c in hand]
                for player_id, hand in data.get("hands", {}).items()
            },
            deck=Deck(
                draw=[Card.from_dict(c) for c in raw_deck.get("draw", [])],
                discard=[Card.from_dict(c) for c in raw_deck.get("discard", [])],
            ),
            turn=turn,
            pending_attack=pending,
            turn_effects_played=[
                TurnEffectsPlayed(team=TeamId(t["team"]), turn=int(t["turn"]), count=int(t["count"]))
                for t in data.get("turn_effects_played", [])
            ],
            phase=GamePhase(data.get("phase", GamePhase.PLAYING.value)),
            winner=TeamId(winner) if winner else None,
            random_seed=int(data.get("random_seed", 0)),
            reshuffle_count=int(data.get("reshuffle_count", 0)),
            action_history=list(data.get("action_history", [])),
            started_at=data.get("started_at"),
        )
