"""
Noughts CLI - Command-line interface for the engine.

Usage:
    noughts play [--x NAME] [--o NAME]    Local two-player game
    noughts serve [--host H] [--port P]   Run the HTTP API
"""

import argparse
import logging
import sys
from typing import Callable

from .engine_core import legal_positions, render
from .session import SessionManager


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Noughts - tic-tac-toe session engine",
        prog="noughts",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Play command
    play_parser = subparsers.add_parser("play", help="Play a local game in the terminal")
    play_parser.add_argument("--x", default="player-x", help="Name of the X player")
    play_parser.add_argument("--o", default="player-o", help="Name of the O player")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "play":
        cmd_play(args)
    elif args.command == "serve":
        cmd_serve(args)
    else:
        parser.print_help()
        sys.exit(1)


def cmd_play(args):
    """Local hot-seat game."""
    if args.x == args.o:
        print("Error: the two players need different names")
        sys.exit(1)
    run_local_game(args.x, args.o)


def cmd_serve(args):
    """Run the API under uvicorn."""
    import uvicorn

    uvicorn.run("noughts.api.app:app", host=args.host, port=args.port)


def run_local_game(
    player_x: str,
    player_o: str,
    read: Callable[[str], str] = input,
    write: Callable[[str], None] = print,
):
    """
    Drive one session from the terminal.

    Each prompt accepts a cell number or "forfeit". Rejected input is
    reported with its rejection code and the same player is asked again.
    Returns the final GameState.
    """
    manager = SessionManager()
    session_id = manager.create_session(player_x)
    session = manager.get_session(session_id)
    session.join(player_o)

    write(f"Session {session_id}: {player_x} (X) vs {player_o} (O)")

    while session.is_active():
        state = session.state
        mover = state.player_for(state.current_turn)
        write("")
        write(render(state.x_board, state.o_board))
        open_cells = ", ".join(str(p) for p in legal_positions(state))
        try:
            answer = read(f"{mover} ({state.current_turn.name}) - cell [{open_cells}] or 'forfeit': ")
        except EOFError:
            answer = "forfeit"
        answer = answer.strip().lower()

        if answer == "forfeit":
            result = session.forfeit(mover)
        else:
            try:
                position = int(answer)
            except ValueError:
                write(f"Not a cell number: {answer!r}")
                continue
            result = session.move(mover, position)

        if not result.success:
            write(f"Rejected ({result.error_code.value}): {result.error}")

    state = session.state
    write("")
    write(render(state.x_board, state.o_board))
    if state.winner is not None:
        write(f"{state.winner} wins ({state.phase.name})")
    else:
        write("Draw")
    return state


if __name__ == "__main__":
    main()
