"""
Session Module - In-memory registry and per-match sessions.

A session represents one match:
- Created by the registry with the creator seated as X
- Holds the current game state
- Serializes requests and delivers notifications to observers
- Stays queryable after the game ends

Sessions are EPHEMERAL:
- No persistence to database
- Fully independent of each other
"""

from .manager import (
    SessionManager,
    Session,
    SessionIdAllocator,
    derive_session_address,
)

__all__ = [
    "SessionManager",
    "Session",
    "SessionIdAllocator",
    "derive_session_address",
]
