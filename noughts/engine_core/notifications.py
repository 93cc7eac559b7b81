"""
Notifications - Outbound messages emitted by a session.

Handlers never send anything themselves. They attach Delivery objects
to the ActionResult; the owning Session hands them to its observers.

Wire conventions:
- enum fields serialize to their integer values
- boards are the low 9 bits of a 16-bit field
- optional identities serialize as None
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Union

from .bitboard import BOARD_MASK
from .state import GamePhase, GameState, Mark


@dataclass(frozen=True)
class PlayerJoined:
    """Second player accepted into a session."""
    session_id: int
    player: str

    kind = "player_joined"

    def to_dict(self) -> dict[str, Any]:
        return {"session_id": self.session_id, "player": self.player}


@dataclass(frozen=True)
class MoveMade:
    """A move was accepted. Carries both boards after the move."""
    session_id: int
    player: str
    position: int
    x_board: int
    o_board: int

    kind = "move_made"

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "player": self.player,
            "position": self.position,
            "x_board": self.x_board & BOARD_MASK,
            "o_board": self.o_board & BOARD_MASK,
        }


@dataclass(frozen=True)
class GameEnded:
    """Session reached a terminal phase. winner is None for a draw."""
    session_id: int
    winner: str | None
    state: GamePhase

    kind = "game_ended"

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "winner": self.winner,
            "state": int(self.state),
        }


@dataclass(frozen=True)
class StateResponse:
    """Full snapshot answering a state query."""
    correlation_id: int
    session_id: int
    state: GamePhase
    player_x: str
    player_o: str | None
    current_turn: Mark
    total_moves: int
    winner: str | None
    x_board: int
    o_board: int

    kind = "state_response"

    @classmethod
    def from_state(cls, state: GameState, correlation_id: int) -> StateResponse:
        return cls(
            correlation_id=correlation_id,
            session_id=state.session_id,
            state=state.phase,
            player_x=state.player_x,
            player_o=state.player_o,
            current_turn=state.current_turn,
            total_moves=state.total_moves,
            winner=state.winner,
            x_board=state.x_board,
            o_board=state.o_board,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "correlation_id": self.correlation_id,
            "session_id": self.session_id,
            "state": int(self.state),
            "player_x": self.player_x,
            "player_o": self.player_o,
            "current_turn": int(self.current_turn),
            "total_moves": self.total_moves,
            "winner": self.winner,
            "x_board": self.x_board & BOARD_MASK,
            "o_board": self.o_board & BOARD_MASK,
        }


Notification = Union[PlayerJoined, MoveMade, GameEnded, StateResponse]


@dataclass(frozen=True)
class Delivery:
    """One notification addressed to one participant."""
    recipient: str
    notification: Notification

    @property
    def kind(self) -> str:
        return self.notification.kind

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.kind,
            "recipient": self.recipient,
            "payload": self.notification.to_dict(),
        }
