"""
FastAPI Application - REST API for tic-tac-toe sessions.

Endpoints:
    POST   /api/v1/sessions                 Create game session
    GET    /api/v1/sessions                 List sessions
    GET    /api/v1/sessions/{id}            Get session snapshot
    POST   /api/v1/sessions/{id}/join       Take the O seat
    POST   /api/v1/sessions/{id}/move       Mark a cell
    POST   /api/v1/sessions/{id}/forfeit    Concede
    GET    /api/v1/sessions/{id}/state      State query (wire form)
    WS     /api/v1/sessions/{id}/ws         Notifications for a session

Notification Flow:
    Each accepted join/move/forfeit returns its notifications in the
    response body and pushes them to WebSocket subscribers of the
    session. A subscriber connected with ?player_id=... only receives
    notifications addressed to that player.

All responses are JSON with explicit Pydantic schemas.
"""

from typing import Annotated, Optional, Union
import json
import logging
import os

from fastapi import FastAPI, Query, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .service import APIService
from .schemas import (
    # Request models
    CreateSessionRequest,
    JoinRequest,
    MoveRequest,
    ForfeitRequest,
    # Response models
    ActionResponse,
    SessionResponse,
    StateResponseModel,
    SessionListResponse,
    ErrorResponse,
    HealthResponse,
    NotificationInfo,
    # Enums
    ErrorCode,
    UINT64_MAX,
)

logger = logging.getLogger(__name__)

# Environment configuration
NOUGHTS_ENV = os.getenv("NOUGHTS_ENV", "development")
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")


def create_app(service: Optional[APIService] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates new if not provided)

    Returns:
        FastAPI application instance
    """
    app = FastAPI(
        title="Noughts Engine API",
        description="""
Two-player tic-tac-toe sessions.

## Flow

1. `POST /sessions` with the creator's `player_id` (seated as X)
2. `POST /sessions/{id}/join` with the opponent's `player_id` (seated as O)
3. Alternate `POST /sessions/{id}/move` from X, then O, ...
4. The game ends on a line, a full board, or `POST /sessions/{id}/forfeit`

## Error Codes

| Code | HTTP | Description |
|------|------|-------------|
| `SESSION_NOT_FOUND` | 404 | Session does not exist |
| `WRONG_PHASE` | 409 | Not valid in the current phase |
| `SLOT_TAKEN` | 409 | Second seat already filled |
| `SELF_PLAY` | 409 | Creator cannot join their own game |
| `OUT_OF_RANGE` | 409 | Position outside 0..8 |
| `CELL_OCCUPIED` | 409 | Cell already marked |
| `NOT_YOUR_TURN` | 409 | Other mark is on turn |
| `NOT_A_PARTICIPANT` | 409 | Requester is not seated |
        """,
        version="0.1.0",
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

    api_service = service or APIService()

    # WebSocket connections: session_id -> [(websocket, player filter)]
    ws_connections: dict[int, list[tuple[WebSocket, Optional[str]]]] = {}

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(
        error: ErrorResponse,
        status_code: Optional[int] = None,
    ) -> JSONResponse:
        """Render an ErrorResponse with the matching status code."""
        if status_code is None:
            status_code = 404 if error.error_code == ErrorCode.SESSION_NOT_FOUND else 409
            if error.error_code == ErrorCode.INTERNAL_ERROR:
                status_code = 500
        return JSONResponse(status_code=status_code, content=error.model_dump(mode="json"))

    async def broadcast_to_session(session_id: int, notifications: list[NotificationInfo]):
        """Push notifications to WebSocket subscribers of a session."""
        connections = ws_connections.get(session_id)
        if not connections:
            return

        dead_connections = []
        for ws, player_filter in connections:
            for notification in notifications:
                if player_filter is not None and notification.recipient != player_filter:
                    continue
                try:
                    await ws.send_json(notification.model_dump())
                except Exception:
                    logger.exception(f"Dropping WebSocket for session {session_id}")
                    dead_connections.append((ws, player_filter))
                    break

        for entry in dead_connections:
            if entry in connections:
                connections.remove(entry)

    async def finish_action(
        session_id: int,
        response: Union[ActionResponse, ErrorResponse],
    ) -> Union[ActionResponse, JSONResponse]:
        if isinstance(response, ErrorResponse):
            return make_error_response(response)
        await broadcast_to_session(session_id, response.notifications)
        return response

    # =========================================================================
    # Session Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions",
        response_model=SessionResponse,
        tags=["Sessions"],
        summary="Create a new game session",
    )
    async def create_session(body: CreateSessionRequest) -> SessionResponse:
        """Create a new session. The requester is seated as X."""
        return api_service.create_session(body)

    @app.get(
        "/api/v1/sessions",
        response_model=SessionListResponse,
        tags=["Sessions"],
        summary="List sessions",
    )
    async def list_sessions(
        active_only: Annotated[bool, Query(description="Only non-terminal sessions")] = False,
    ) -> SessionListResponse:
        return api_service.list_sessions(active_only=active_only)

    @app.get(
        "/api/v1/sessions/{session_id}",
        response_model=SessionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Get session snapshot",
    )
    async def get_session(session_id: int) -> Union[SessionResponse, JSONResponse]:
        response = api_service.get_session(session_id)
        if isinstance(response, ErrorResponse):
            return make_error_response(response)
        return response

    # =========================================================================
    # Game Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions/{session_id}/join",
        response_model=ActionResponse,
        responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Join as the second player",
    )
    async def join_session(
        session_id: int,
        body: JoinRequest,
    ) -> Union[ActionResponse, JSONResponse]:
        return await finish_action(session_id, api_service.join(session_id, body))

    @app.post(
        "/api/v1/sessions/{session_id}/move",
        response_model=ActionResponse,
        responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Mark a cell",
    )
    async def make_move(
        session_id: int,
        body: MoveRequest,
    ) -> Union[ActionResponse, JSONResponse]:
        return await finish_action(session_id, api_service.move(session_id, body))

    @app.post(
        "/api/v1/sessions/{session_id}/forfeit",
        response_model=ActionResponse,
        responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Forfeit the game",
    )
    async def forfeit(
        session_id: int,
        body: ForfeitRequest,
    ) -> Union[ActionResponse, JSONResponse]:
        return await finish_action(session_id, api_service.forfeit(session_id, body))

    @app.get(
        "/api/v1/sessions/{session_id}/state",
        response_model=StateResponseModel,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Query session state",
    )
    async def query_state(
        session_id: int,
        player_id: Annotated[str, Query(min_length=1, description="Requester identity")],
        correlation_id: Annotated[int, Query(ge=0, le=UINT64_MAX)] = 0,
    ) -> Union[StateResponseModel, JSONResponse]:
        """Read-only snapshot; works in every phase."""
        response = api_service.query_state(session_id, player_id, correlation_id)
        if isinstance(response, ErrorResponse):
            return make_error_response(response)
        return response

    # =========================================================================
    # WebSocket Endpoint
    # =========================================================================

    @app.websocket("/api/v1/sessions/{session_id}/ws")
    async def websocket_endpoint(
        websocket: WebSocket,
        session_id: int,
        player_id: Optional[str] = None,
    ):
        """
        WebSocket for notifications.

        Messages from server:
        - player_joined, move_made, game_ended: engine notifications
        - pong: reply to ping
        - error: malformed client message

        Messages from client:
        - ping: Keep-alive
        """
        # Register before accepting so no notification is missed after the handshake
        entry = (websocket, player_id)
        ws_connections.setdefault(session_id, []).append(entry)

        try:
            await websocket.accept()
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
            logger.debug(f"WebSocket closed for session {session_id}")
        finally:
            connections = ws_connections.get(session_id, [])
            if entry in connections:
                connections.remove(entry)

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
        return HealthResponse(status="healthy")

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Noughts Engine API",
            "version": "0.1.0",
            "env": NOUGHTS_ENV,
            "docs": "/api/docs",
            "health": "/health",
        }

    return app


# For running directly: uvicorn noughts.api.app:app
app = create_app()
