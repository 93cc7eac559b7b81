"""
Game State - Immutable snapshot of one tic-tac-toe session.

Design principles:
- Immutable: every accepted request produces a new GameState
- Serializable: enum fields carry their wire integer values
- Checkable: invariant_violations() reports anything inconsistent
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import IntEnum

from .bitboard import BOARD_MASK, WIN_MASKS, popcount


MAX_SESSION_ID = 2**32 - 1


class GamePhase(IntEnum):
    """Session phases. Values are the wire `state` byte."""
    WAITING = 0
    ACTIVE = 1
    X_WON = 2
    O_WON = 3
    DRAW = 4

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_PHASES


TERMINAL_PHASES = frozenset({GamePhase.X_WON, GamePhase.O_WON, GamePhase.DRAW})


class Mark(IntEnum):
    """Player marks. Values are the wire `currentTurn` byte."""
    X = 1
    O = 2

    @property
    def other(self) -> Mark:
        return Mark.O if self is Mark.X else Mark.X

    @property
    def won_phase(self) -> GamePhase:
        return GamePhase.X_WON if self is Mark.X else GamePhase.O_WON


@dataclass(frozen=True)
class GameState:
    """
    Complete state of one session at a point in time.

    player_x is fixed at creation. player_o and winner are None until
    set; they are never filled with placeholder identities.
    """
    session_id: int
    player_x: str
    player_o: str | None = None

    phase: GamePhase = GamePhase.WAITING
    current_turn: Mark = Mark.X

    # Bitboards (low 9 bits)
    x_board: int = 0
    o_board: int = 0
    total_moves: int = 0

    winner: str | None = None

    @classmethod
    def create(cls, session_id: int, creator: str) -> GameState:
        """Fresh WAITING state owned by the creator."""
        if not 1 <= session_id <= MAX_SESSION_ID:
            raise ValueError(f"Session id {session_id} is outside the 32-bit range")
        return cls(session_id=session_id, player_x=creator)

    @property
    def is_terminal(self) -> bool:
        return self.phase.is_terminal

    @property
    def occupied(self) -> int:
        """Cells taken by either mark."""
        return self.x_board | self.o_board

    def board_for(self, mark: Mark) -> int:
        return self.x_board if mark is Mark.X else self.o_board

    def player_for(self, mark: Mark) -> str | None:
        return self.player_x if mark is Mark.X else self.player_o

    def mark_of(self, player_id: str) -> Mark | None:
        """Which mark a participant plays, or None for outsiders."""
        if player_id == self.player_x:
            return Mark.X
        if self.player_o is not None and player_id == self.player_o:
            return Mark.O
        return None

    def invariant_violations(self) -> list[str]:
        """
        Check the structural invariants.

        Returns a list of human-readable problems; empty when sound.
        """
        problems = []

        if self.x_board & self.o_board:
            problems.append("a cell is held by both marks")
        if self.x_board & ~BOARD_MASK or self.o_board & ~BOARD_MASK:
            problems.append("a board has bits set above cell 8")
        if popcount(self.x_board) + popcount(self.o_board) != self.total_moves:
            problems.append("total_moves does not match the number of marks")

        won = self.phase in (GamePhase.X_WON, GamePhase.O_WON)
        if won != (self.winner is not None):
            problems.append("winner is set only for won phases")
        if self.phase == GamePhase.X_WON and self.winner != self.player_x:
            problems.append("X_WON but winner is not player_x")
        if self.phase == GamePhase.O_WON and self.winner != self.player_o:
            problems.append("O_WON but winner is not player_o")

        if self.player_o is not None and self.player_o == self.player_x:
            problems.append("player_o equals player_x")

        if self.phase == GamePhase.WAITING:
            if self.player_o is not None:
                problems.append("WAITING with player_o assigned")
            if self.total_moves:
                problems.append("WAITING with moves on the board")

        # A board holding a complete line must have ended the game
        for mark in Mark:
            board = self.board_for(mark)
            holds_line = any(board & mask == mask for mask in WIN_MASKS)
            if holds_line and self.phase != mark.won_phase:
                problems.append(f"{mark.name} holds a line but phase is {self.phase.name}")

        return problems

    def _copy_with(self, **kwargs) -> GameState:
        """Create a copy with some fields replaced."""
        return GameState(
            session_id=kwargs.get("session_id", self.session_id),
            player_x=kwargs.get("player_x", self.player_x),
            player_o=kwargs.get("player_o", self.player_o),
            phase=kwargs.get("phase", self.phase),
            current_turn=kwargs.get("current_turn", self.current_turn),
            x_board=kwargs.get("x_board", self.x_board),
            o_board=kwargs.get("o_board", self.o_board),
            total_moves=kwargs.get("total_moves", self.total_moves),
            winner=kwargs.get("winner", self.winner),
        )
