"""
Noughts - Tic-Tac-Toe Session Engine

A deterministic, rules-driven engine for two-player tic-tac-toe matches.
The engine provides:
- A session registry minting sequential session ids
- A per-session state machine (join, move, forfeit, state query)
- Bitboard win/draw detection
- Notifications for every accepted request
- An HTTP API and a terminal CLI on top
"""

__version__ = "0.1.0"
