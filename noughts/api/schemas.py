"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between clients and the engine.
Identities arrive already authenticated; the API only carries them.

Error Codes:
- SESSION_NOT_FOUND: Session does not exist
- WRONG_PHASE: Request not valid in the session's current phase
- SLOT_TAKEN: Second seat already filled
- SELF_PLAY: Creator tried to join their own game
- OUT_OF_RANGE: Move position outside 0..8
- CELL_OCCUPIED: Move targets a taken cell
- NOT_YOUR_TURN: Move by someone whose mark is not on turn
- NOT_A_PARTICIPANT: Forfeit by someone not seated
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field


UINT64_MAX = 2**64 - 1


# =============================================================================
# Enums
# =============================================================================

class SessionStatus(str, Enum):
    """Session phase names."""
    WAITING = "WAITING"
    ACTIVE = "ACTIVE"
    X_WON = "X_WON"
    O_WON = "O_WON"
    DRAW = "DRAW"


class ErrorCode(str, Enum):
    """Structured error codes."""
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    WRONG_PHASE = "WRONG_PHASE"
    SLOT_TAKEN = "SLOT_TAKEN"
    SELF_PLAY = "SELF_PLAY"
    OUT_OF_RANGE = "OUT_OF_RANGE"
    CELL_OCCUPIED = "CELL_OCCUPIED"
    NOT_YOUR_TURN = "NOT_YOUR_TURN"
    NOT_A_PARTICIPANT = "NOT_A_PARTICIPANT"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Requests
# =============================================================================

class CreateSessionRequest(BaseModel):
    """Create a session; the requester becomes X."""
    player_id: str = Field(min_length=1, description="Creator identity")


class JoinRequest(BaseModel):
    """Take the O seat."""
    player_id: str = Field(min_length=1)


class MoveRequest(BaseModel):
    """Mark a cell. Positions above 8 are accepted here and rejected by the engine."""
    player_id: str = Field(min_length=1)
    position: int = Field(ge=0, le=255, description="Cell index 0..8, row-major")


class ForfeitRequest(BaseModel):
    """Concede the game to the opponent."""
    player_id: str = Field(min_length=1)


# =============================================================================
# Responses
# =============================================================================

class SessionResponse(BaseModel):
    """Session snapshot."""
    session_id: int
    address: str
    status: SessionStatus
    player_x: str
    player_o: Optional[str] = None
    current_turn: str = Field(description="X or O; meaningful only while ACTIVE")
    total_moves: int = 0
    x_board: int = Field(0, ge=0, le=0x1FF)
    o_board: int = Field(0, ge=0, le=0x1FF)
    winner: Optional[str] = None
    board: list[Optional[str]] = Field(
        default_factory=list,
        description="Nine cells, row-major: X, O or null",
    )
    created_at: float = 0.0

    model_config = {"from_attributes": True}


class NotificationInfo(BaseModel):
    """One outbound notification and who it is addressed to."""
    type: str = Field(description="player_joined, move_made, game_ended, state_response")
    recipient: str
    payload: dict[str, Any] = Field(default_factory=dict)


class ActionResponse(BaseModel):
    """Result of an accepted join/move/forfeit."""
    success: bool = True
    session: SessionResponse
    notifications: list[NotificationInfo] = Field(default_factory=list)


class StateResponseModel(BaseModel):
    """Answer to a state query, in wire form (enums as integers)."""
    correlation_id: int = Field(ge=0, le=UINT64_MAX)
    session_id: int
    state: int = Field(ge=0, le=4)
    player_x: str
    player_o: Optional[str] = None
    current_turn: int = Field(ge=1, le=2)
    total_moves: int = Field(ge=0, le=9)
    winner: Optional[str] = None
    x_board: int = Field(ge=0, le=0x1FF)
    o_board: int = Field(ge=0, le=0x1FF)


class SessionListResponse(BaseModel):
    """List of session IDs."""
    sessions: list[int]
    count: int
    next_session_id: int


class ErrorResponse(BaseModel):
    """Error payload."""
    error: str
    error_code: ErrorCode
    details: Optional[dict[str, Any]] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "healthy"
    service: str = "noughts-engine"
    version: str = "0.1.0"
