"""
FastAPI Application - REST API for client apps.

Endpoints:
    POST   /api/v1/sessions                 Create game session
    GET    /api/v1/sessions                 List sessions
    GET    /api/v1/sessions/{id}            Get session status
    DELETE /api/v1/sessions/{id}            End session
    POST   /api/v1/sessions/{id}/actions    Apply an intent
    GET    /api/v1/sessions/{id}/state      Get public game state
    GET    /api/v1/sessions/{id}/card       Get the flipped role card
    WS     /api/v1/sessions/{id}/ws         WebSocket for real-time updates
    GET    /api/v1/words/categories         List word categories
    GET    /api/v1/settings                 Get settings
    PATCH  /api/v1/settings                 Update settings

All responses are JSON with explicit Pydantic schemas.
Run with: uvicorn --factory imposter.api.app:create_app
"""

from typing import Optional, Union
import json
import logging
import os

logger = logging.getLogger(__name__)

# Environment configuration
IMPOSTER_ENV = os.getenv("IMPOSTER_ENV", "development")
IMPOSTER_SETTINGS_PATH = os.getenv("IMPOSTER_SETTINGS_PATH", None)
IMPOSTER_WORD_DATA = os.getenv("IMPOSTER_WORD_DATA", None)
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")

API_VERSION = "1.0.0"


def create_app(service=None):
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates new if not provided)

    Returns:
        FastAPI application instance
    """
    try:
        from fastapi import FastAPI, WebSocket, WebSocketDisconnect, Query
        from fastapi.middleware.cors import CORSMiddleware
        from fastapi.responses import JSONResponse
    except ImportError:
        raise ImportError(
            "FastAPI not installed. Install with: pip install fastapi uvicorn"
        )

    from .service import APIService
    from .schemas import (
        # Request models
        CreateSessionRequest,
        ActionRequest,
        SettingsUpdateRequest,
        # Response models
        SessionResponse,
        GameStateResponse,
        ActionResponse,
        RoleCardResponse,
        SettingsResponse,
        CategoryListResponse,
        ErrorResponse,
        SessionListResponse,
        EndSessionResponse,
        HealthResponse,
        # Enums
        ErrorCode,
    )

    app = FastAPI(
        title="Imposter Game API",
        description="""
Pass-and-play party word game. One device, one secret word, hidden imposters.

## Game Flow

1. `start_new_game`, name the players, `proceed_to_settings`
2. `begin_role_reveal`, then per player: `player_ready`, `flip_card`
   (read `GET /card`), `move_to_next_player`
3. Discuss, then `end_game`, `reveal_imposters`, `reveal_word`
4. `play_again` or `return_home`

Refused intents return `success=false` with a `refusal` reason.

## Error Codes

| Code | Description |
|------|-------------|
| `SESSION_NOT_FOUND` | Session does not exist |
| `CARD_NOT_FLIPPED` | No role card is showing |
| `VALIDATION_ERROR` | Request values are invalid |
        """,
        version=API_VERSION,
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
        from ..session import SessionManager
        from ..settings import SettingsStore, JSONFileBackend
        from ..words import WordCorpus

        corpus = WordCorpus.load(IMPOSTER_WORD_DATA) if IMPOSTER_WORD_DATA else WordCorpus.default()
        settings = SettingsStore(JSONFileBackend(IMPOSTER_SETTINGS_PATH))
        service = APIService(session_manager=SessionManager(corpus=corpus, settings=settings))
    api_service = service

    logger.info("Imposter API created (env=%s)", IMPOSTER_ENV)

    # WebSocket connections
    ws_connections: dict[str, list[WebSocket]] = {}
    app.state.ws_connections = ws_connections

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Optional[dict] = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=message,
                error_code=error_code,
                details=details,
            ).model_dump(mode="json"),
        )

    def error_status(response: ErrorResponse) -> int:
        return {
            ErrorCode.SESSION_NOT_FOUND: 404,
            ErrorCode.CARD_NOT_FLIPPED: 409,
        }.get(response.error_code, 400)

    async def broadcast_to_session(session_id: str, message: dict):
        """Broadcast a message to all WebSocket connections for a session."""
        if session_id in ws_connections:
            dead_connections = []
            for ws in ws_connections[session_id]:
                try:
                    await ws.send_json(message)
                except Exception:
                    logger.debug("Dropping dead websocket for session %s", session_id)
                    dead_connections.append(ws)
            for ws in dead_connections:
                ws_connections[session_id].remove(ws)
            if not ws_connections[session_id]:
                del ws_connections[session_id]

    # =========================================================================
    # Session Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions",
        response_model=SessionResponse,
        tags=["Sessions"],
        summary="Create a new game session",
    )
    async def create_session(body: Optional[CreateSessionRequest] = None) -> SessionResponse:
        """Create a session sitting on the home screen."""
        return api_service.create_session(body)

    @app.get(
        "/api/v1/sessions",
        response_model=SessionListResponse,
        tags=["Sessions"],
        summary="List sessions",
    )
    async def list_sessions() -> SessionListResponse:
        sessions = api_service.list_sessions()
        return SessionListResponse(sessions=sessions, count=len(sessions))

    @app.get(
        "/api/v1/sessions/{session_id}",
        response_model=SessionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Get session status",
    )
    async def get_session(session_id: str) -> Union[SessionResponse, JSONResponse]:
        response = api_service.get_session(session_id)
        if isinstance(response, ErrorResponse):
            return make_error_response(response.error_code, response.error, error_status(response))
        return response

    @app.delete(
        "/api/v1/sessions/{session_id}",
        response_model=EndSessionResponse,
        tags=["Sessions"],
        summary="End a game session",
    )
    async def end_session(
        session_id: str,
        reason: str = Query("user_ended", description="Reason for ending"),
    ) -> EndSessionResponse:
        """End a game session and release resources."""
        success = api_service.end_session(session_id, reason)
        return EndSessionResponse(success=success, session_id=session_id)

    # =========================================================================
    # Game Loop Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions/{session_id}/actions",
        response_model=ActionResponse,
        responses={404: {"model": ErrorResponse, "description": "Session not found"}},
        tags=["Game Loop"],
        summary="Apply an intent to the session",
    )
    async def apply_action(
        session_id: str,
        body: ActionRequest,
    ) -> Union[ActionResponse, JSONResponse]:
        """
        Apply one intent.

        **Request Body:**
        ```json
        {"action_type": "update_player_name", "player_index": 0, "name": "Ann"}
        ```
        """
        response = api_service.apply_action(session_id, body)
        if isinstance(response, ErrorResponse):
            return make_error_response(response.error_code, response.error, error_status(response))

        if response.success:
            await broadcast_to_session(session_id, {
                "type": "state_update",
                "payload": response.game_state.model_dump(mode="json"),
            })
        return response

    @app.get(
        "/api/v1/sessions/{session_id}/state",
        response_model=GameStateResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game Loop"],
        summary="Get public game state",
    )
    async def get_game_state(session_id: str) -> Union[GameStateResponse, JSONResponse]:
        response = api_service.get_game_state(session_id)
        if isinstance(response, ErrorResponse):
            return make_error_response(response.error_code, response.error, error_status(response))
        return response

    @app.get(
        "/api/v1/sessions/{session_id}/card",
        response_model=RoleCardResponse,
        responses={
            404: {"model": ErrorResponse, "description": "Session not found"},
            409: {"model": ErrorResponse, "description": "No card flipped"},
        },
        tags=["Game Loop"],
        summary="Get the current player's flipped role card",
    )
    async def get_role_card(session_id: str) -> Union[RoleCardResponse, JSONResponse]:
        response = api_service.get_role_card(session_id)
        if isinstance(response, ErrorResponse):
            return make_error_response(response.error_code, response.error, error_status(response))
        return response

    # =========================================================================
    # Words & Settings Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/words/categories",
        response_model=CategoryListResponse,
        tags=["Words"],
        summary="List word categories",
    )
    async def list_categories() -> CategoryListResponse:
        return api_service.list_categories()

    @app.get(
        "/api/v1/settings",
        response_model=SettingsResponse,
        tags=["Settings"],
        summary="Get settings",
    )
    async def get_settings() -> SettingsResponse:
        return api_service.get_settings()

    @app.patch(
        "/api/v1/settings",
        response_model=SettingsResponse,
        responses={400: {"model": ErrorResponse}},
        tags=["Settings"],
        summary="Update settings",
    )
    async def update_settings(body: SettingsUpdateRequest) -> Union[SettingsResponse, JSONResponse]:
        response = api_service.update_settings(body)
        if isinstance(response, ErrorResponse):
            return make_error_response(
                response.error_code, response.error, error_status(response), response.details,
            )
        return response

    # =========================================================================
    # WebSocket Endpoint
    # =========================================================================

    @app.websocket("/api/v1/sessions/{session_id}/ws")
    async def websocket_endpoint(websocket: WebSocket, session_id: str):
        """
        WebSocket for real-time updates.

        Messages from server:
        - state_update: Game state changed
        - error: Error occurred

        Messages from client:
        - ping: Keep-alive
        """
        await websocket.accept()

        # Send initial state
        response = api_service.get_game_state(session_id)
        if isinstance(response, ErrorResponse):
            await websocket.send_json({
                "type": "error",
                "payload": {"message": response.error},
            })
            await websocket.close(code=4404)
            return

        if session_id not in ws_connections:
            ws_connections[session_id] = []
        ws_connections[session_id].append(websocket)

        try:
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
                if isinstance(message, dict) and message.get("type") == "ping":
                    await websocket.send_json({"type": "pong"})

        except WebSocketDisconnect:
            logger.debug("WebSocket disconnected for session %s", session_id)
        finally:
            connections = ws_connections.get(session_id)
            if connections is not None:
                if websocket in connections:
                    connections.remove(websocket)
                if not connections:
                    del ws_connections[session_id]

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
        return HealthResponse(
            status="healthy",
            service="imposter-engine",
            version=API_VERSION,
        )

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Imposter Game API",
            "version": API_VERSION,
            "docs": "/api/docs",
            "health": "/health",
        }

    return app
