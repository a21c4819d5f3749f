"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the exact contract between game clients and the engine.
The game state response mirrors GameState.to_dict() field for field.

Error Codes:
- Engine rejections (NOT_YOUR_TURN, ATTACK_PENDING, ...): action refused, state unchanged
- GAME_NOT_FOUND: Game does not exist or was removed
- VERSION_CONFLICT: expected_version is stale
- VALIDATION_ERROR: Lobby input is invalid
"""

from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union
from pydantic import BaseModel, Field, RootModel


API_VERSION = "v1"


# =============================================================================
# Enums
# =============================================================================

class GameStatus(str, Enum):
    """Lifecycle of a stored game."""
    ACTIVE = "active"
    ENDED = "ended"


class ErrorCode(str, Enum):
    """Structured error codes."""
    MISSING_FIELD = "MISSING_FIELD"
    CARD_NOT_IN_HAND = "CARD_NOT_IN_HAND"
    INVALID_CARD_TYPE = "INVALID_CARD_TYPE"
    NOT_YOUR_TURN = "NOT_YOUR_TURN"
    ATTACK_PENDING = "ATTACK_PENDING"
    MAX_EFFECTS_IN_PLAY = "MAX_EFFECTS_IN_PLAY"
    MAX_EFFECTS_PER_TURN = "MAX_EFFECTS_PER_TURN"
    NO_PENDING_ATTACK = "NO_PENDING_ATTACK"
    PLAYER_NOT_IN_GAME = "PLAYER_NOT_IN_GAME"
    INVALID_DEFENDER = "INVALID_DEFENDER"
    GAME_OVER = "GAME_OVER"
    NO_HANDLER = "NO_HANDLER"
    HANDLER_ERROR = "HANDLER_ERROR"
    GAME_NOT_FOUND = "GAME_NOT_FOUND"
    VERSION_CONFLICT = "VERSION_CONFLICT"
    VALIDATION_ERROR = "VALIDATION_ERROR"


# =============================================================================
# Shared Models
# =============================================================================

class CardInfo(BaseModel):
    """A card as clients see it."""
    id: str
    def_id: Optional[str] = None
    type: Literal["attack", "shield", "negate", "joker"]
    damage: Optional[int] = None
    shield_value: Optional[int] = None
    category: Optional[str] = None
    image_url: Optional[str] = None
    label: str


class PlayerInfo(BaseModel):
    """A seated player."""
    id: str
    name: str
    team: Literal["a", "b"]
    seat: int
    level: Optional[int] = None
    points: Optional[int] = None


class EffectInfo(BaseModel):
    """A defensive card in play."""
    card: CardInfo
    placed_turn: int


class TeamInfo(BaseModel):
    """One side of the battle."""
    hp: int
    players: list[PlayerInfo] = Field(default_factory=list)
    block_count: int = 0
    effects_in_play: list[EffectInfo] = Field(default_factory=list)


class DeckInfo(BaseModel):
    """Shared draw and discard piles."""
    draw: list[CardInfo] = Field(default_factory=list)
    discard: list[CardInfo] = Field(default_factory=list)


class TurnInfo(BaseModel):
    """Whose turn it is."""
    turn_number: int
    active_team: Literal["a", "b"]
    active_player_id: str
    cursors: dict[str, int] = Field(default_factory=dict)


class PendingAttackInfo(BaseModel):
    """An attack awaiting the defender's decision."""
    attacker_team: Literal["a", "b"]
    attacker_id: str
    defender_id: str
    card: CardInfo
    damage: int
    category: Optional[str] = None
    skill_id: Optional[str] = None
    created_at: float


class TurnEffectsInfo(BaseModel):
    """Effects a team placed on one turn."""
    team: Literal["a", "b"]
    turn: int
    count: int


class SettingsInfo(BaseModel):
    """Game settings."""
    hp_start: int = 50
    max_team_size: int = 4
    max_effects_in_play: int = 3


class GameStateInfo(BaseModel):
    """Complete battle state."""
    game_id: str
    settings: SettingsInfo
    teams: dict[str, TeamInfo]
    hands: dict[str, list[CardInfo]]
    deck: DeckInfo
    turn: TurnInfo
    pending_attack: Optional[PendingAttackInfo] = None
    turn_effects_played: list[TurnEffectsInfo] = Field(default_factory=list)
    phase: Literal["playing", "game_over"]
    winner: Optional[Literal["a", "b"]] = None
    random_seed: int
    reshuffle_count: int = 0
    action_history: list[dict[str, Any]] = Field(default_factory=list)
    started_at: Optional[float] = None


class CardDefInfo(BaseModel):
    """A card definition in the catalogue."""
    id: str
    card_type: Literal["attack", "shield", "negate", "joker"]
    copies: int = Field(default=0, description="Copies in the deck; negative values clamp to 0")
    category: Optional[str] = None
    damage: Optional[int] = None
    shield_value: Optional[int] = Field(default=None, ge=0)
    image_url: Optional[str] = None
    enabled: bool = True


# =============================================================================
# Request Models
# =============================================================================

class RosterEntry(BaseModel):
    """A player picked for a team."""
    id: str = Field(min_length=1)
    name: str = "Student"
    level: Optional[int] = None
    points: Optional[int] = None


class CreateGameRequest(BaseModel):
    """
    Request to create a new game.

    POST /api/v1/games
    """
    team_a: list[RosterEntry]
    team_b: list[RosterEntry]
    hp_start: Optional[int] = Field(default=None, description="Overrides the configured default")
    seed: Optional[int] = Field(default=None, description="Shuffle seed for reproducible games")


class PlayEffectRequest(BaseModel):
    """Place a shield or negate from hand."""
    action: Literal["play_effect"]
    player_id: str
    card_id: str
    expected_version: Optional[int] = None


class PlayAttackRequest(BaseModel):
    """Play an attack or joker from hand."""
    action: Literal["play_attack"]
    player_id: str
    card_id: str
    skill_id: Optional[str] = Field(default=None, description="Display-only skill label")
    defender_id: Optional[str] = Field(default=None, description="Defaults to the seat-mirrored opponent")
    expected_version: Optional[int] = None


class ResolveAttackRequest(BaseModel):
    """Resolve the pending attack. success=true means the defender blocked."""
    action: Literal["resolve_attack"]
    success: bool
    player_id: Optional[str] = None
    expected_version: Optional[int] = None


class EndTurnRequest(BaseModel):
    """End the active player's turn."""
    action: Literal["end_turn"]
    player_id: Optional[str] = None
    expected_version: Optional[int] = None


class ActionRequest(RootModel[Annotated[
    Union[PlayEffectRequest, PlayAttackRequest, ResolveAttackRequest, EndTurnRequest],
    Field(discriminator="action"),
]]):
    """
    One action, discriminated on `action`.

    POST /api/v1/games/{game_id}/action
    """


class SettingsUpdateRequest(BaseModel):
    """Partial settings update; omitted fields keep their value."""
    hp_start: Optional[int] = None
    max_team_size: Optional[int] = None
    max_effects_in_play: Optional[int] = None


class CardDefsRequest(BaseModel):
    """Replace the card catalogue."""
    defs: list[CardDefInfo]


# =============================================================================
# Response Models
# =============================================================================

class GameResponse(BaseModel):
    """A stored game with its current state."""
    game_id: str
    code: str
    status: GameStatus
    version: int
    created_at: float
    ended_at: Optional[float] = None
    state: GameStateInfo
    api_version: str = API_VERSION


class ActionResponse(BaseModel):
    """Outcome of an accepted action."""
    ok: bool = True
    changes: list[str] = Field(default_factory=list)
    game: GameResponse
    api_version: str = API_VERSION


class GameSummary(BaseModel):
    """Lobby listing entry."""
    game_id: str
    code: str
    status: GameStatus
    created_at: float
    started_at: Optional[float] = None
    ended_at: Optional[float] = None


class GameListResponse(BaseModel):
    """Recent games, newest first."""
    games: list[GameSummary] = Field(default_factory=list)
    count: int = 0


class LegalActionInfo(BaseModel):
    """An action the reducer would accept right now."""
    action: Literal["play_effect", "play_attack", "resolve_attack", "end_turn"]
    player_id: Optional[str] = None
    card_id: Optional[str] = None
    success: Optional[bool] = None


class LegalActionsResponse(BaseModel):
    """Legal actions for one player."""
    game_id: str
    player_id: str
    version: int
    actions: list[LegalActionInfo] = Field(default_factory=list)


class CardDefsResponse(BaseModel):
    """The card catalogue."""
    defs: list[CardDefInfo] = Field(default_factory=list)


class EndGameResponse(BaseModel):
    """Response to removing a game."""
    success: bool
    game_id: str


class ErrorResponse(BaseModel):
    """
    Error response.

    Returned for any 4xx or 5xx status.
    """
    error: str
    error_code: ErrorCode
    details: Optional[dict[str, Any]] = None
    api_version: str = API_VERSION


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "healthy"
    service: str = "skillstrike-engine"
    version: str = "1.0.0"
