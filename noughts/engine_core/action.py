"""
Action System - Requests, payloads, and results.

Every interaction with a session is one of four requests:
1. JOIN - second player takes the O seat
2. MOVE - mark a cell
3. FORFEIT - concede to the opponent
4. QUERY_STATE - read-only snapshot

All state changes flow through actions. Rule violations come back as
failed ActionResults carrying a RejectionKind, never as exceptions.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .notifications import Delivery


class ActionType(Enum):
    """Request variants accepted by a session."""
    JOIN = "join"
    MOVE = "move"
    FORFEIT = "forfeit"
    QUERY_STATE = "query_state"


class RejectionKind(str, Enum):
    """Why a request was refused."""
    WRONG_PHASE = "WRONG_PHASE"
    SLOT_TAKEN = "SLOT_TAKEN"
    SELF_PLAY = "SELF_PLAY"
    OUT_OF_RANGE = "OUT_OF_RANGE"
    CELL_OCCUPIED = "CELL_OCCUPIED"
    NOT_YOUR_TURN = "NOT_YOUR_TURN"
    NOT_A_PARTICIPANT = "NOT_A_PARTICIPANT"


@dataclass(frozen=True)
class ActionPayload:
    """
    Parameters of a request.

    player_id is the already-authenticated sender. The other fields
    are only meaningful for the action types that use them.
    """
    player_id: str
    position: int | None = None  # MOVE
    correlation_id: int | None = None  # QUERY_STATE


@dataclass(frozen=True)
class Action:
    """A complete request to be applied to a session."""
    action_type: ActionType
    payload: ActionPayload

    @property
    def player_id(self) -> str:
        return self.payload.player_id

    @classmethod
    def join(cls, player_id: str) -> Action:
        """Factory for join request."""
        return cls(
            action_type=ActionType.JOIN,
            payload=ActionPayload(player_id=player_id),
        )

    @classmethod
    def move(cls, player_id: str, position: int) -> Action:
        """Factory for move request."""
        return cls(
            action_type=ActionType.MOVE,
            payload=ActionPayload(player_id=player_id, position=position),
        )

    @classmethod
    def forfeit(cls, player_id: str) -> Action:
        """Factory for forfeit request."""
        return cls(
            action_type=ActionType.FORFEIT,
            payload=ActionPayload(player_id=player_id),
        )

    @classmethod
    def query_state(cls, player_id: str, correlation_id: int = 0) -> Action:
        """Factory for state query."""
        return cls(
            action_type=ActionType.QUERY_STATE,
            payload=ActionPayload(player_id=player_id, correlation_id=correlation_id),
        )


@dataclass
class ActionResult:
    """
    Result of applying an action.

    Contains:
    - Whether action succeeded
    - New state (if succeeded; unchanged state for queries)
    - Error message and code (if rejected)
    - Deliveries to hand to observers
    """
    success: bool
    new_state: Any | None = None  # GameState
    error: str | None = None
    error_code: RejectionKind | str | None = None

    deliveries: list[Delivery] = field(default_factory=list)

    @property
    def rejection(self) -> RejectionKind | None:
        """The rejection kind, when the failure was a rule violation."""
        if isinstance(self.error_code, RejectionKind):
            return self.error_code
        return None

    @classmethod
    def failure(cls, error: str, error_code: RejectionKind | str | None = None) -> ActionResult:
        """Create a failure result."""
        return cls(success=False, error=error, error_code=error_code)

    @classmethod
    def success_with_state(
        cls,
        state: Any,
        deliveries: list[Delivery] | None = None,
    ) -> ActionResult:
        """Create a success result with new state."""
        return cls(
            success=True,
            new_state=state,
            deliveries=deliveries or [],
        )
