"""
Reducer - Applies actions to game state.

The reducer is the single point of state mutation.
All state changes must go through apply_action().

Design principles:
- Pure function: (state, action) -> new_state
- Validates every precondition before building the new state
- Returns ActionResult with success/failure
- Notifications ride on the result as deliveries
"""

from __future__ import annotations
import logging

from .action import Action, ActionResult, ActionType, RejectionKind
from .bitboard import cell_bit, is_valid_position, winning_mask, CELL_COUNT
from .notifications import Delivery, GameEnded, MoveMade, PlayerJoined, StateResponse
from .state import GamePhase, GameState, Mark

logger = logging.getLogger(__name__)


class Reducer:
    """
    Reducer applies actions to game state.

    Stateless - all state is in GameState.
    """

    def apply(self, state: GameState, action: Action) -> ActionResult:
        """
        Apply an action to the game state.

        Returns ActionResult with new state or error. A rejected action
        never touches the input state.
        """
        handler = self._get_handler(action.action_type)
        if not handler:
            return ActionResult.failure(
                f"No handler for action type: {action.action_type}",
                error_code="NO_HANDLER",
            )

        result = handler(state, action)
        if not result.success:
            logger.debug(
                f"Session {state.session_id}: rejected {action.action_type.value} "
                f"from {action.player_id}: {result.error_code}"
            )
        return result

    def _get_handler(self, action_type: ActionType):
        """Get the handler function for an action type."""
        handlers = {
            ActionType.JOIN: self._handle_join,
            ActionType.MOVE: self._handle_move,
            ActionType.FORFEIT: self._handle_forfeit,
            ActionType.QUERY_STATE: self._handle_query_state,
        }
        return handlers.get(action_type)

    def _handle_join(self, state: GameState, action: Action) -> ActionResult:
        """
        Handle join request.

        Order of checks: terminal phase, self-play, seat taken, phase.
        """
        player_id = action.player_id

        if state.is_terminal:
            return ActionResult.failure(
                f"Game is over ({state.phase.name})", RejectionKind.WRONG_PHASE
            )
        if player_id == state.player_x:
            return ActionResult.failure(
                "Creator cannot join their own game", RejectionKind.SELF_PLAY
            )
        if state.player_o is not None:
            return ActionResult.failure(
                "Game already has a second player", RejectionKind.SLOT_TAKEN
            )
        if state.phase != GamePhase.WAITING:
            return ActionResult.failure(
                f"Cannot join while {state.phase.name}", RejectionKind.WRONG_PHASE
            )

        new_state = state._copy_with(player_o=player_id, phase=GamePhase.ACTIVE)
        logger.info(f"Session {state.session_id}: {player_id} joined as O")

        return ActionResult.success_with_state(
            new_state,
            deliveries=[
                Delivery(player_id, PlayerJoined(session_id=state.session_id, player=player_id)),
            ],
        )

    def _handle_move(self, state: GameState, action: Action) -> ActionResult:
        """Handle move request."""
        player_id = action.player_id
        position = action.payload.position

        if state.phase != GamePhase.ACTIVE:
            return ActionResult.failure(
                f"Cannot move while {state.phase.name}", RejectionKind.WRONG_PHASE
            )
        if position is None or not is_valid_position(position):
            return ActionResult.failure(
                f"Position {position} is outside 0..{CELL_COUNT - 1}",
                RejectionKind.OUT_OF_RANGE,
            )

        bit = cell_bit(position)
        if state.occupied & bit:
            return ActionResult.failure(
                f"Cell {position} is already taken", RejectionKind.CELL_OCCUPIED
            )

        mark = state.current_turn
        if player_id != state.player_for(mark):
            return ActionResult.failure(
                f"Not {player_id}'s turn", RejectionKind.NOT_YOUR_TURN
            )

        board = state.board_for(mark) | bit
        total_moves = state.total_moves + 1
        if mark is Mark.X:
            new_state = state._copy_with(x_board=board, total_moves=total_moves)
        else:
            new_state = state._copy_with(o_board=board, total_moves=total_moves)

        new_state = self._resolve(new_state, mark)

        deliveries = [
            Delivery(player_id, MoveMade(
                session_id=state.session_id,
                player=player_id,
                position=position,
                x_board=new_state.x_board,
                o_board=new_state.o_board,
            )),
        ]
        if new_state.is_terminal:
            deliveries.extend(self._game_ended(new_state))

        return ActionResult.success_with_state(new_state, deliveries=deliveries)

    def _resolve(self, state: GameState, mover: Mark) -> GameState:
        """
        Post-move resolution: win, then draw, then pass the turn.

        Only the mover's board is scanned. Each move adds one bit to one
        board, so the opponent's lines cannot change.
        """
        line = winning_mask(state.board_for(mover))
        if line is not None:
            winner = state.player_for(mover)
            logger.info(
                f"Session {state.session_id}: {mover.name} wins with line {line:#05x}"
            )
            return state._copy_with(phase=mover.won_phase, winner=winner)

        if state.total_moves == CELL_COUNT:
            logger.info(f"Session {state.session_id}: draw")
            return state._copy_with(phase=GamePhase.DRAW)

        return state._copy_with(current_turn=mover.other)

    def _handle_forfeit(self, state: GameState, action: Action) -> ActionResult:
        """Handle forfeit. Victory goes to the opponent of the requester."""
        player_id = action.player_id

        if state.phase != GamePhase.ACTIVE:
            return ActionResult.failure(
                f"Cannot forfeit while {state.phase.name}", RejectionKind.WRONG_PHASE
            )

        mark = state.mark_of(player_id)
        if mark is None:
            return ActionResult.failure(
                f"{player_id} is not playing in this game",
                RejectionKind.NOT_A_PARTICIPANT,
            )

        opponent = mark.other
        new_state = state._copy_with(
            phase=opponent.won_phase,
            winner=state.player_for(opponent),
        )
        logger.info(
            f"Session {state.session_id}: {player_id} forfeited, {opponent.name} wins"
        )

        return ActionResult.success_with_state(
            new_state, deliveries=self._game_ended(new_state)
        )

    def _handle_query_state(self, state: GameState, action: Action) -> ActionResult:
        """Handle state query. Read-only; permitted in every phase."""
        correlation_id = action.payload.correlation_id or 0
        response = StateResponse.from_state(state, correlation_id)
        return ActionResult.success_with_state(
            state, deliveries=[Delivery(action.player_id, response)]
        )

    def _game_ended(self, state: GameState) -> list[Delivery]:
        """GameEnded for player_x, and for player_o when assigned."""
        message = GameEnded(
            session_id=state.session_id,
            winner=state.winner,
            state=state.phase,
        )
        deliveries = [Delivery(state.player_x, message)]
        if state.player_o is not None:
            deliveries.append(Delivery(state.player_o, message))
        return deliveries


def apply_action(state: GameState, action: Action) -> ActionResult:
    """
    Convenience function to apply an action.

    Creates a reducer and applies the action.
    """
    reducer = Reducer()
    return reducer.apply(state, action)
