"""
API Service - Business logic layer between API and engine.

The service:
1. Translates API requests to engine actions
2. Owns the session registry
3. Maps rejections to error codes
4. Formats responses

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging

from .schemas import (
    # Requests
    CreateSessionRequest,
    JoinRequest,
    MoveRequest,
    ForfeitRequest,
    # Responses
    ActionResponse,
    ErrorResponse,
    NotificationInfo,
    SessionListResponse,
    SessionResponse,
    StateResponseModel,
    # Enums
    ErrorCode,
    SessionStatus,
)
from ..engine_core.action import Action, ActionResult
from ..engine_core.bitboard import cells
from ..engine_core.notifications import StateResponse
from ..session import SessionManager, Session

logger = logging.getLogger(__name__)


@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService()

        # Create session
        created = service.create_session(CreateSessionRequest(player_id="alice"))

        # Play
        service.join(created.session_id, JoinRequest(player_id="bob"))
        service.move(created.session_id, MoveRequest(player_id="alice", position=4))
    """
    session_manager: SessionManager = field(default_factory=SessionManager)

    def create_session(self, request: CreateSessionRequest) -> SessionResponse:
        """Create a session with the requester seated as X."""
        session_id = self.session_manager.create_session(request.player_id)
        session = self.session_manager.get_session(session_id)
        return self._session_response(session)

    def get_session(self, session_id: int) -> SessionResponse | ErrorResponse:
        """Get session snapshot."""
        session = self.session_manager.get_session(session_id)
        if not session:
            return self._not_found(session_id)
        return self._session_response(session)

    def list_sessions(self, active_only: bool = False) -> SessionListResponse:
        """List session IDs."""
        if active_only:
            sessions = self.session_manager.list_active_sessions()
        else:
            sessions = self.session_manager.list_sessions()
        return SessionListResponse(
            sessions=sessions,
            count=len(sessions),
            next_session_id=self.session_manager.next_session_id,
        )

    def join(self, session_id: int, request: JoinRequest) -> ActionResponse | ErrorResponse:
        return self._perform(session_id, Action.join(request.player_id))

    def move(self, session_id: int, request: MoveRequest) -> ActionResponse | ErrorResponse:
        return self._perform(session_id, Action.move(request.player_id, request.position))

    def forfeit(self, session_id: int, request: ForfeitRequest) -> ActionResponse | ErrorResponse:
        return self._perform(session_id, Action.forfeit(request.player_id))

    def query_state(
        self,
        session_id: int,
        player_id: str,
        correlation_id: int = 0,
    ) -> StateResponseModel | ErrorResponse:
        """
        Answer a state query.

        Goes through the session like any other request, so the reply is
        the StateResponse delivery the engine produced.
        """
        session = self.session_manager.get_session(session_id)
        if not session:
            return self._not_found(session_id)

        result = session.query_state(player_id, correlation_id)
        for delivery in result.deliveries:
            if isinstance(delivery.notification, StateResponse):
                return StateResponseModel(**delivery.notification.to_dict())

        # Queries always produce a StateResponse
        raise RuntimeError(f"Session {session_id} answered a query without a StateResponse")

    def _perform(self, session_id: int, action: Action) -> ActionResponse | ErrorResponse:
        """Route an action to its session and format the outcome."""
        session = self.session_manager.get_session(session_id)
        if not session:
            return self._not_found(session_id)

        result = session.handle(action)
        if not result.success:
            return self._rejection(result)

        return ActionResponse(
            success=True,
            session=self._session_response(session),
            notifications=[
                NotificationInfo(**delivery.to_dict())
                for delivery in result.deliveries
            ],
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _session_response(self, session: Session) -> SessionResponse:
        state = session.state
        return SessionResponse(
            session_id=session.session_id,
            address=session.address,
            status=SessionStatus(state.phase.name),
            player_x=state.player_x,
            player_o=state.player_o,
            current_turn=state.current_turn.name,
            total_moves=state.total_moves,
            x_board=state.x_board,
            o_board=state.o_board,
            winner=state.winner,
            board=cells(state.x_board, state.o_board),
            created_at=session.created_at,
        )

    def _not_found(self, session_id: int) -> ErrorResponse:
        return ErrorResponse(
            error=f"Session {session_id} not found",
            error_code=ErrorCode.SESSION_NOT_FOUND,
        )

    def _rejection(self, result: ActionResult) -> ErrorResponse:
        kind = result.rejection
        if kind is None:
            logger.error(f"Unexpected engine failure: {result.error} ({result.error_code})")
            return ErrorResponse(
                error=result.error or "Request failed",
                error_code=ErrorCode.INTERNAL_ERROR,
            )
        return ErrorResponse(
            error=result.error or kind.value,
            error_code=ErrorCode(kind.value),
        )
