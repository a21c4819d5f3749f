"""
API Service - Business logic layer between API and engine.

The service:
1. Translates API requests to engine actions
2. Manages games through the SessionManager
3. Holds the lobby configuration (settings, card catalogue)
4. Formats responses for clients

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging

from .schemas import (
    # Requests
    CreateGameRequest,
    PlayEffectRequest,
    PlayAttackRequest,
    ResolveAttackRequest,
    EndTurnRequest,
    SettingsUpdateRequest,
    CardDefsRequest,
    # Responses
    GameResponse,
    ActionResponse,
    GameSummary,
    GameListResponse,
    LegalActionInfo,
    LegalActionsResponse,
    CardDefsResponse,
    ErrorResponse,
    # Shared
    GameStateInfo,
    SettingsInfo,
    CardDefInfo,
    # Enums
    ErrorCode,
    GameStatus,
)
from ..engine_core import (
    Action,
    GameSettings,
    CardDefinition,
    DEFAULT_CARD_DEFINITIONS,
    legal_actions,
)
from ..session import (
    SessionManager,
    GameRecord,
    GameNotFoundError,
    VersionConflictError,
)

logger = logging.getLogger(__name__)


@dataclass
class APIService:
    """
    Main API service for game clients.

    Usage:
        service = APIService()

        # Create game
        game = service.create_game(request)

        # Submit an action
        response = service.apply_action(game.game_id, request)
    """
    session_manager: SessionManager = field(default_factory=SessionManager)
    settings: GameSettings = field(default_factory=GameSettings)
    card_definitions: list[CardDefinition] = field(
        default_factory=lambda: list(DEFAULT_CARD_DEFINITIONS)
    )

    def create_game(self, request: CreateGameRequest) -> GameResponse:
        """
        Create a new game from two rosters.

        Raises ValueError for an unusable roster.
        """
        settings = self.settings
        if request.hp_start is not None:
            settings = GameSettings.clamped(
                hp_start=request.hp_start,
                max_team_size=settings.max_team_size,
                max_effects_in_play=settings.max_effects_in_play,
            )

        record = self.session_manager.create_game(
            team_a=[entry.model_dump() for entry in request.team_a],
            team_b=[entry.model_dump() for entry in request.team_b],
            settings=settings,
            card_definitions=self.card_definitions,
            random_seed=request.seed,
        )
        return self._record_to_response(record)

    def list_games(self, limit: int = 20) -> GameListResponse:
        """List recent games, newest first."""
        games = [
            GameSummary(
                game_id=r.game_id,
                code=r.code,
                status=GameStatus(r.status),
                created_at=r.created_at,
                started_at=r.state.started_at,
                ended_at=r.ended_at,
            )
            for r in self.session_manager.list_games(limit)
        ]
        return GameListResponse(games=games, count=len(games))

    def get_game(self, game_id: str) -> GameResponse | ErrorResponse:
        """Get a game and its current state."""
        try:
            record = self.session_manager.get_game(game_id)
        except GameNotFoundError as e:
            return ErrorResponse(error=str(e), error_code=ErrorCode.GAME_NOT_FOUND)
        return self._record_to_response(record)

    def apply_action(
        self,
        game_id: str,
        request: PlayEffectRequest | PlayAttackRequest | ResolveAttackRequest | EndTurnRequest,
    ) -> ActionResponse | ErrorResponse:
        """
        Apply one client action to a game.

        Rejections come back as ErrorResponse with the engine's error code.
        """
        action = self._request_to_action(request)
        try:
            outcome = self.session_manager.apply_action(
                game_id, action, expected_version=request.expected_version
            )
        except GameNotFoundError as e:
            return ErrorResponse(error=str(e), error_code=ErrorCode.GAME_NOT_FOUND)
        except VersionConflictError as e:
            return ErrorResponse(
                error=str(e),
                error_code=ErrorCode.VERSION_CONFLICT,
                details={"expected": e.expected, "actual": e.actual},
            )

        result = outcome.result
        if not result.success:
            return ErrorResponse(
                error=result.error or "Action rejected",
                error_code=ErrorCode(result.error_code.value) if result.error_code else ErrorCode.VALIDATION_ERROR,
                details={"version": outcome.record.version},
            )

        return ActionResponse(
            changes=result.state_changes,
            game=self._record_to_response(outcome.record),
        )

    def get_legal_actions(self, game_id: str, player_id: str) -> LegalActionsResponse | ErrorResponse:
        """List the actions a player could take right now."""
        try:
            record = self.session_manager.get_game(game_id)
        except GameNotFoundError as e:
            return ErrorResponse(error=str(e), error_code=ErrorCode.GAME_NOT_FOUND)

        return LegalActionsResponse(
            game_id=game_id,
            player_id=player_id,
            version=record.version,
            actions=[
                LegalActionInfo(
                    action=a.action_type.value,
                    player_id=a.payload.player_id,
                    card_id=a.payload.card_id,
                    success=a.payload.success,
                )
                for a in legal_actions(record.state, player_id)
            ],
        )

    def end_game(self, game_id: str) -> bool:
        """Remove a game."""
        return self.session_manager.end_game(game_id)

    # =========================================================================
    # Lobby configuration
    # =========================================================================

    def get_settings(self) -> SettingsInfo:
        return SettingsInfo(**self.settings.to_dict())

    def update_settings(self, request: SettingsUpdateRequest) -> SettingsInfo:
        """Update settings; values are clamped to their minimums."""
        current = self.settings
        self.settings = GameSettings.clamped(
            hp_start=request.hp_start if request.hp_start is not None else current.hp_start,
            max_team_size=(
                request.max_team_size if request.max_team_size is not None
                else current.max_team_size
            ),
            max_effects_in_play=(
                request.max_effects_in_play if request.max_effects_in_play is not None
                else current.max_effects_in_play
            ),
        )
        logger.info("settings updated: %s", self.settings.to_dict())
        return self.get_settings()

    def get_card_defs(self) -> CardDefsResponse:
        return CardDefsResponse(
            defs=[CardDefInfo(**d.to_dict()) for d in self.card_definitions]
        )

    def replace_card_defs(self, request: CardDefsRequest) -> CardDefsResponse:
        """Replace the catalogue used for games created from now on."""
        self.card_definitions = [
            CardDefinition.from_dict(d.model_dump()) for d in request.defs
        ]
        logger.info("card catalogue replaced: %d definitions", len(self.card_definitions))
        return self.get_card_defs()

    # =========================================================================
    # Helper methods
    # =========================================================================

    def _request_to_action(self, request) -> Action:
        """Convert an API action request to an engine Action."""
        if isinstance(request, PlayEffectRequest):
            return Action.play_effect(request.player_id, request.card_id)
        if isinstance(request, PlayAttackRequest):
            return Action.play_attack(
                request.player_id,
                request.card_id,
                skill_id=request.skill_id,
                defender_id=request.defender_id,
            )
        if isinstance(request, ResolveAttackRequest):
            return Action.resolve_attack(request.success, player_id=request.player_id)
        return Action.end_turn(request.player_id)

    def _record_to_response(self, record: GameRecord) -> GameResponse:
        """Convert a stored game to GameResponse."""
        return GameResponse(
            game_id=record.game_id,
            code=record.code,
            status=GameStatus(record.status),
            version=record.version,
            created_at=record.created_at,
            ended_at=record.ended_at,
            state=GameStateInfo.model_validate(record.state.to_dict()),
        )
