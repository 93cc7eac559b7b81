"""
Action Generator - Enumerates legal moves from a game state.

Used by:
1. The CLI prompt, to show which cells are open
2. Tests, to check that every generated move is accepted

Design: Generates Action objects, not just positions.
Join, forfeit and queries are not enumerated.
"""

from __future__ import annotations

from .action import Action, ActionType
from .bitboard import CELL_COUNT
from .state import GamePhase, GameState


def legal_positions(state: GameState) -> list[int]:
    """Free cells, or nothing when the game is not being played."""
    if state.phase != GamePhase.ACTIVE:
        return []
    occupied = state.occupied
    return [p for p in range(CELL_COUNT) if not occupied & (1 << p)]


def legal_actions(state: GameState, player_id: str) -> list[Action]:
    """
    Move actions the given player may make right now.

    Empty unless it is that player's turn.
    """
    if player_id != state.player_for(state.current_turn):
        return []
    return [Action.move(player_id, p) for p in legal_positions(state)]


def is_legal(state: GameState, action: Action) -> bool:
    """Check if a specific move is legal."""
    if action.action_type != ActionType.MOVE:
        return False
    for a in legal_actions(state, action.player_id):
        if a.payload.position == action.payload.position:
            return True
    return False
