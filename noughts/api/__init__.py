"""
API Module - HTTP interface.

Exposes the engine via REST API plus a WebSocket notification stream.
A client:
1. Creates a session (seated as X)
2. Shares the session id with an opponent, who joins as O
3. Submits moves in turn
4. Receives notifications as they happen

All state is in-memory and session-scoped.
"""

from .schemas import (
    # Requests
    CreateSessionRequest,
    JoinRequest,
    MoveRequest,
    ForfeitRequest,
    # Responses
    ActionResponse,
    SessionResponse,
    StateResponseModel,
    SessionListResponse,
    ErrorResponse,
    HealthResponse,
    NotificationInfo,
    # Enums
    ErrorCode,
    SessionStatus,
)
from .service import APIService
from .app import create_app

__all__ = [
    # Requests
    "CreateSessionRequest",
    "JoinRequest",
    "MoveRequest",
    "ForfeitRequest",
    # Responses
    "ActionResponse",
    "SessionResponse",
    "StateResponseModel",
    "SessionListResponse",
    "ErrorResponse",
    "HealthResponse",
    "NotificationInfo",
    # Enums
    "ErrorCode",
    "SessionStatus",
    # Service
    "APIService",
    "create_app",
]
