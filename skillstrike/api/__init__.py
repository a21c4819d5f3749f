"""
API Module - HTTP interface for game clients.

Exposes the engine via REST API:
1. Lobby creates a game from two rosters
2. Clients poll (or subscribe to) the game state
3. Each client submits one action at a time
4. The engine returns the updated state or a rejection

Games are stored by the session layer; this module holds no game state.
"""

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
    GameListResponse,
    LegalActionsResponse,
    ErrorResponse,
    # Shared
    GameStateInfo,
    CardInfo,
    PlayerInfo,
    TeamInfo,
)
from .service import APIService

__all__ = [
    # Requests
    "CreateGameRequest",
    "PlayEffectRequest",
    "PlayAttackRequest",
    "ResolveAttackRequest",
    "EndTurnRequest",
    "SettingsUpdateRequest",
    "CardDefsRequest",
    # Responses
    "GameResponse",
    "ActionResponse",
    "GameListResponse",
    "LegalActionsResponse",
    "ErrorResponse",
    # Shared
    "GameStateInfo",
    "CardInfo",
    "PlayerInfo",
    "TeamInfo",
    # Service
    "APIService",
]
