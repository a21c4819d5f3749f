"""
FastAPI Application - REST API for Skill Strike clients.

Endpoints:
    POST   /api/v1/games                     Create a game
    GET    /api/v1/games                     List recent games
    GET    /api/v1/games/{id}                Get game state
    DELETE /api/v1/games/{id}                Remove a game
    POST   /api/v1/games/{id}/action         Submit one action
    GET    /api/v1/games/{id}/legal-actions  Actions a player may take
    GET    /api/v1/settings                  Lobby settings
    PUT    /api/v1/settings                  Update lobby settings
    GET    /api/v1/card-defs                 Card catalogue
    PUT    /api/v1/card-defs                 Replace card catalogue
    WS     /api/v1/games/{id}/ws             Push state updates

One action in, one updated state out. Rejected actions return the
error code and leave the game untouched; clients re-fetch state.

All responses are JSON with explicit Pydantic schemas.
"""

from typing import Annotated, Optional, Union
import json
import logging
import os

from fastapi import FastAPI, Query, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..logging_config import setup_logging
from ..session import SessionManager, InMemoryGameStore, JsonFileGameStore
from .service import APIService
from .schemas import (
    # Request models
    CreateGameRequest,
    ActionRequest,
    SettingsUpdateRequest,
    CardDefsRequest,
    # Response models
    GameResponse,
    ActionResponse,
    GameListResponse,
    LegalActionsResponse,
    SettingsInfo,
    CardDefsResponse,
    EndGameResponse,
    ErrorResponse,
    HealthResponse,
    # Enums
    ErrorCode,
)

# Environment configuration
SKILLSTRIKE_ENV = os.getenv("SKILLSTRIKE_ENV", "development")
SKILLSTRIKE_STORE_DIR = os.getenv("SKILLSTRIKE_STORE_DIR", None)
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")

logger = logging.getLogger(__name__)

STATUS_BY_CODE = {
    ErrorCode.GAME_NOT_FOUND: 404,
    ErrorCode.VERSION_CONFLICT: 409,
    ErrorCode.HANDLER_ERROR: 500,
    ErrorCode.NO_HANDLER: 500,
}


def create_app(service: Optional[APIService] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates new if not provided)

    Returns:
        FastAPI application instance
    """
    setup_logging()

    app = FastAPI(
        title="Skill Strike Engine API",
        description="""
Turn-based two-team card battle engine.

## Turn Flow

1. The active player may place up to 2 effects (shield/negate) per turn
2. The active player plays an attack; it becomes the **pending attack**
3. The defending team resolves it: `success=true` (blocked) or `false` (hit)
4. The active player ends the turn; their hand is refilled to 5

## Error Codes

| Code | Description |
|------|-------------|
| `NOT_YOUR_TURN` | Acting player is not the active player |
| `ATTACK_PENDING` | Resolve the current attack first |
| `MAX_EFFECTS_IN_PLAY` | Team effect slots are full |
| `MAX_EFFECTS_PER_TURN` | Team already placed 2 effects this turn |
| `GAME_OVER` | A team is out of hp |
| `GAME_NOT_FOUND` | Game does not exist |
| `VERSION_CONFLICT` | `expected_version` is stale |
        """,
        version="1.0.0",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Service instance
    if service is None:
        store = JsonFileGameStore(SKILLSTRIKE_STORE_DIR) if SKILLSTRIKE_STORE_DIR else InMemoryGameStore()
        service = APIService(session_manager=SessionManager(store=store))
    api_service = service
    app.state.service = api_service

    # WebSocket connections
    ws_connections: dict[str, list[WebSocket]] = {}
    app.state.ws_connections = ws_connections

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[dict] = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code or STATUS_BY_CODE.get(error_code, 400),
            content=ErrorResponse(
                error=message,
                error_code=error_code,
                details=details,
            ).model_dump(mode="json"),
        )

    def error_to_json(response: ErrorResponse) -> JSONResponse:
        return make_error_response(response.error_code, response.error, details=response.details)

    async def broadcast_to_game(game_id: str, message: dict):
        """Broadcast a message to all WebSocket connections for a game."""
        if game_id in ws_connections:
            dead_connections = []
            for ws in ws_connections[game_id]:
                try:
                    await ws.send_json(message)
                except (WebSocketDisconnect, RuntimeError):
                    dead_connections.append(ws)
            for ws in dead_connections:
                drop_connection(game_id, ws)

    def drop_connection(game_id: str, websocket: WebSocket):
        """Forget a socket, and the game's entry once it has none left."""
        sockets = ws_connections.get(game_id)
        if sockets is None:
            return
        if websocket in sockets:
            sockets.remove(websocket)
        if not sockets:
            del ws_connections[game_id]

    # =========================================================================
    # Game Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/games",
        response_model=GameResponse,
        responses={400: {"model": ErrorResponse, "description": "Invalid rosters"}},
        tags=["Games"],
        summary="Create a new game",
    )
    async def create_game(body: CreateGameRequest) -> Union[GameResponse, JSONResponse]:
        """
        Create a new game from two rosters.

        Seats follow roster order; rosters longer than `max_team_size`
        are truncated. Pass `seed` for a reproducible shuffle.
        """
        try:
            return api_service.create_game(body)
        except ValueError as e:
            return make_error_response(ErrorCode.VALIDATION_ERROR, str(e))

    @app.get(
        "/api/v1/games",
        response_model=GameListResponse,
        tags=["Games"],
        summary="List recent games",
    )
    async def list_games(
        limit: Annotated[int, Query(ge=1, le=100, description="Max games to return")] = 20,
    ) -> GameListResponse:
        """List the most recently created games, newest first."""
        return api_service.list_games(limit)

    @app.get(
        "/api/v1/games/{game_id}",
        response_model=GameResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Games"],
        summary="Get game state",
    )
    async def get_game(game_id: str) -> Union[GameResponse, JSONResponse]:
        """Get the complete current game state and its version."""
        response = api_service.get_game(game_id)
        if isinstance(response, ErrorResponse):
            return error_to_json(response)
        return response

    @app.delete(
        "/api/v1/games/{game_id}",
        response_model=EndGameResponse,
        tags=["Games"],
        summary="Remove a game",
    )
    async def end_game(game_id: str) -> EndGameResponse:
        """Remove a game and release its resources."""
        success = api_service.end_game(game_id)
        return EndGameResponse(success=success, game_id=game_id)

    # =========================================================================
    # Action Endpoint
    # =========================================================================

    @app.post(
        "/api/v1/games/{game_id}/action",
        response_model=ActionResponse,
        responses={
            400: {"model": ErrorResponse, "description": "Action rejected"},
            404: {"model": ErrorResponse, "description": "Game not found"},
            409: {"model": ErrorResponse, "description": "Stale expected_version"},
        },
        tags=["Game Loop"],
        summary="Submit one action",
    )
    async def submit_action(
        game_id: str,
        body: ActionRequest,
    ) -> Union[ActionResponse, JSONResponse]:
        """
        Submit one action against the current state.

        **Request Body** (discriminated on `action`):
        ```json
        {"action": "play_attack", "player_id": "p1", "card_id": "c1"}
        {"action": "resolve_attack", "success": false}
        {"action": "end_turn"}
        ```
        """
        response = api_service.apply_action(game_id, body.root)
        if isinstance(response, ErrorResponse):
            return error_to_json(response)

        await broadcast_to_game(game_id, {
            "type": "state_update",
            "payload": response.game.model_dump(mode="json"),
        })
        return response

    @app.get(
        "/api/v1/games/{game_id}/legal-actions",
        response_model=LegalActionsResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game Loop"],
        summary="Get legal actions for a player",
    )
    async def get_legal_actions(
        game_id: str,
        player_id: Annotated[str, Query(min_length=1, description="Player to list actions for")],
    ) -> Union[LegalActionsResponse, JSONResponse]:
        """List every action the engine would currently accept from `player_id`."""
        response = api_service.get_legal_actions(game_id, player_id)
        if isinstance(response, ErrorResponse):
            return error_to_json(response)
        return response

    # =========================================================================
    # Lobby configuration
    # =========================================================================

    @app.get("/api/v1/settings", response_model=SettingsInfo, tags=["Settings"])
    async def get_settings() -> SettingsInfo:
        """Settings applied to newly created games."""
        return api_service.get_settings()

    @app.put("/api/v1/settings", response_model=SettingsInfo, tags=["Settings"])
    async def update_settings(body: SettingsUpdateRequest) -> SettingsInfo:
        """Update settings. hp_start >= 1, max_team_size >= 2, max_effects_in_play >= 1."""
        return api_service.update_settings(body)

    @app.get("/api/v1/card-defs", response_model=CardDefsResponse, tags=["Settings"])
    async def get_card_defs() -> CardDefsResponse:
        """The card catalogue used to build decks."""
        return api_service.get_card_defs()

    @app.put("/api/v1/card-defs", response_model=CardDefsResponse, tags=["Settings"])
    async def replace_card_defs(body: CardDefsRequest) -> CardDefsResponse:
        """Replace the card catalogue. Existing games keep their decks."""
        return api_service.replace_card_defs(body)

    # =========================================================================
    # WebSocket Endpoint
    # =========================================================================

    @app.websocket("/api/v1/games/{game_id}/ws")
    async def websocket_endpoint(websocket: WebSocket, game_id: str):
        """
        WebSocket for real-time updates.

        Messages from server:
        - state_update: Game state changed
        - error: Error occurred

        Messages from client:
        - ping: Keep-alive
        """
        await websocket.accept()

        response = api_service.get_game(game_id)
        if isinstance(response, ErrorResponse):
            await websocket.send_json({
                "type": "error",
                "payload": {"message": response.error, "error_code": response.error_code.value},
            })
            await websocket.close()
            return

        ws_connections.setdefault(game_id, []).append(websocket)
        try:
            # Send initial state
            await websocket.send_json({
                "type": "state_update",
                "payload": response.model_dump(mode="json"),
            })

            # Listen for messages
            while True:
                data = await websocket.receive_text()
                try:
                    message = json.loads(data)
                except json.JSONDecodeError:
                    await websocket.send_json({
                        "type": "error",
                        "payload": {"message": "Invalid JSON"},
                    })
                    continue
                if message.get("type") == "ping":
                    await websocket.send_json({"type": "pong"})

        except WebSocketDisconnect:
            logger.debug("game=%s websocket disconnected", game_id)
        finally:
            drop_connection(game_id, websocket)

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return HealthResponse()

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Skill Strike Engine API",
            "version": "1.0.0",
            "env": SKILLSTRIKE_ENV,
            "docs": "/api/docs",
            "health": "/health",
        }

    return app


# For running directly: uvicorn skillstrike.api.app:app
app = create_app()
