"""
Pytest fixtures for Noughts tests.
"""

import pytest

from noughts.engine_core import Action, GameState, apply_action
from noughts.session import SessionManager


PLAYER_X = "alice"
PLAYER_O = "bob"
OUTSIDER = "carol"


def play_moves(state: GameState, positions: list[int]) -> GameState:
    """Apply moves for whichever player is on turn; every move must be accepted."""
    for position in positions:
        mover = state.player_for(state.current_turn)
        result = apply_action(state, Action.move(mover, position))
        assert result.success, f"move {position} rejected: {result.error}"
        state = result.new_state
    return state


@pytest.fixture
def waiting_state() -> GameState:
    """Fresh session state owned by PLAYER_X."""
    return GameState.create(1, PLAYER_X)


@pytest.fixture
def active_state(waiting_state: GameState) -> GameState:
    """State after PLAYER_O joined."""
    result = apply_action(waiting_state, Action.join(PLAYER_O))
    assert result.success
    return result.new_state


@pytest.fixture
def play():
    """The play_moves helper."""
    return play_moves


@pytest.fixture
def manager() -> SessionManager:
    return SessionManager()


@pytest.fixture
def active_session(manager: SessionManager):
    """Registered session with both seats filled."""
    session_id = manager.create_session(PLAYER_X)
    session = manager.get_session(session_id)
    assert session.join(PLAYER_O).success
    return session
