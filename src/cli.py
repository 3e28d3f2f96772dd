"""
Command line entrypoint.

Usage:
    blocks serve --port 3000
    blocks play
"""

import argparse
from typing import Callable, Optional

import uvicorn

from src.blocks.game import Game
from src.blocks.geometry import BOARD_SIZE, is_within_bounds, to_index
from src.blocks.rules import winning_lines
from src.core.config import Settings
from src.core.exceptions import GameError
from src.core.shared_types import DRAW, GameMode

PROMPT_HELP = "Enter a cell as an index (0-48) or as 'row,col'. 'undo' takes back the last block, 'quit' leaves."


def parse_cell(text: str) -> int:
    """'24' or '3,3' -> 24"""
    text = text.strip()
    if "," in text:
        row, col = (int(part) for part in text.split(",", 1))
        if not is_within_bounds(row, col):
            raise ValueError(f"({row},{col}) is not on the {BOARD_SIZE}x{BOARD_SIZE} board")
        return to_index(row, col)
    return int(text)


def play(
    read: Callable[[str], str] = input, write: Callable[[str], None] = print
) -> Game:
    """Offline hot-seat game in the terminal. Returns the game once it ends (or the players quit)."""
    game = Game.new_game(GameMode.OFFLINE)
    write(PROMPT_HELP)
    while not game.is_finished:
        write(game.board.render())
        write(
            f"red: {game.supply.red} left, blue: {game.supply.blue} left. "
            f"{game.current_player} to move."
        )
        try:
            answer = read(f"{game.current_player}> ").strip().lower()
        except EOFError:
            break
        if answer in ("quit", "exit"):
            break
        try:
            if answer == "undo":
                game.undo()
            else:
                game.place(parse_cell(answer))
        except ValueError:
            write(PROMPT_HELP)
        except GameError as e:
            write(str(e))

    if game.is_finished:
        write(game.board.render())
        if game.outcome == DRAW:
            write("Draw!")
        else:
            assert game.winner is not None
            line = next(iter(winning_lines(game.board, game.winner)), [])
            write(f"{game.winner.upper()} wins! ({', '.join(map(str, line))})")
    return game


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="blocks")
    subcommands = parser.add_subparsers(dest="command", required=True)

    serve_parser = subcommands.add_parser("serve", help="run the online relay server")
    serve_parser.add_argument("--host", default=None)
    serve_parser.add_argument("--port", type=int, default=None)

    subcommands.add_parser("play", help="offline game on this terminal")

    args = parser.parse_args(argv)
    if args.command == "play":
        play()
        return

    settings = Settings.from_env()
    uvicorn.run(
        "src.api.server:create_app",
        factory=True,
        host=args.host or settings.host,
        port=args.port or settings.port,
    )


if __name__ == "__main__":
    main()
