"""
Engine Core - Deterministic tic-tac-toe state machine.

The engine is the runtime that:
1. Holds an immutable GameState (two 9-bit boards plus seats and phase)
2. Validates requests against the rules
3. Applies accepted requests via the reducer
4. Detects wins and draws after every move
5. Produces notifications for the session to deliver
"""

from .bitboard import BOARD_MASK, CELL_COUNT, WIN_LINES, WIN_MASKS, render, winning_mask
from .state import GameState, GamePhase, Mark, MAX_SESSION_ID
from .action import Action, ActionType, ActionPayload, ActionResult, RejectionKind
from .notifications import Delivery, GameEnded, MoveMade, Notification, PlayerJoined, StateResponse
from .reducer import Reducer, apply_action
from .action_generator import legal_actions, legal_positions, is_legal

__all__ = [
    "BOARD_MASK",
    "CELL_COUNT",
    "WIN_LINES",
    "WIN_MASKS",
    "render",
    "winning_mask",
    "GameState",
    "GamePhase",
    "Mark",
    "MAX_SESSION_ID",
    "Action",
    "ActionType",
    "ActionPayload",
    "ActionResult",
    "RejectionKind",
    "Delivery",
    "GameEnded",
    "MoveMade",
    "Notification",
    "PlayerJoined",
    "StateResponse",
    "Reducer",
    "apply_action",
    "legal_actions",
    "legal_positions",
    "is_legal",
]
