"""Unit tests for /src/blocks/mirror.py"""

import pytest

from src.blocks.game import Game
from src.blocks.mirror import BoardMirror
from src.core.shared_types import DRAW, Color, GameMode


@pytest.fixture
def mirror() -> BoardMirror:
    return BoardMirror(my_color=Color.BLUE)


def placed(index: int, player: str, red: int, blue: int) -> dict:
    return {"index": index, "player": player, "redCount": red, "blueCount": blue}


def test_initial_state(mirror: BoardMirror) -> None:
    assert mirror.current_player == Color.RED
    assert not mirror.is_my_turn
    assert mirror.hint_legal_placements() == []
    assert (mirror.supply.red, mirror.supply.blue) == (23, 24)


def test_apply_placements_and_turn(mirror: BoardMirror) -> None:
    mirror.apply("centralBlockPlaced", placed(24, "red", 23, 24))
    mirror.apply("turnChange", {"currentPlayer": "blue"})
    assert mirror.board.holds(24, Color.RED)
    assert mirror.is_my_turn
    assert mirror.hint_legal_placements() == [16, 17, 18, 23, 25, 30, 31, 32]

    mirror.apply("blockPlaced", placed(17, "blue", 23, 23))
    mirror.apply("turnChange", {"currentPlayer": "red"})
    assert mirror.board.holds(17, Color.BLUE)
    assert mirror.supply.blue == 23
    assert not mirror.is_my_turn
    assert mirror.history.to_list() == [(24, "red"), (17, "blue")]


def test_apply_undo(mirror: BoardMirror) -> None:
    mirror.apply("centralBlockPlaced", placed(24, "red", 23, 24))
    mirror.apply("blockPlaced", placed(17, "blue", 23, 23))
    mirror.apply("moveUndone", {"index": 17, "redCount": 23, "blueCount": 24, "currentPlayer": "blue"})

    assert mirror.board.is_empty(17)
    assert mirror.supply.blue == 24
    assert mirror.current_player == Color.BLUE
    assert mirror.history.to_list() == [(24, "red")]


def test_game_over_and_disconnect(mirror: BoardMirror) -> None:
    mirror.apply("centralBlockPlaced", placed(24, "red", 23, 24))
    mirror.apply("turnChange", {"currentPlayer": "blue"})
    mirror.apply("gameOver", {"winner": DRAW})
    assert mirror.outcome == DRAW
    assert not mirror.is_my_turn

    other = BoardMirror(my_color=Color.RED)
    other.apply("opponentDisconnected")
    assert other.opponent_left
    assert not other.is_my_turn


def test_unrelated_events_are_ignored(mirror: BoardMirror) -> None:
    before = mirror.board.to_text()
    mirror.apply("chatMessage", {"nickname": "x", "text": "hi"})
    mirror.apply("receiveEmoji", {"symbol": "👍"})
    assert mirror.board.to_text() == before


def test_mirror_follows_authoritative_game(red_wins_sequence: list[int]) -> None:
    """Feed the mirror the same deltas the server would send and compare with the server's game"""
    game = Game.new_game(GameMode.OFFLINE)
    mirror = BoardMirror(my_color=Color.RED)
    for index in red_wins_sequence:
        result = game.place(index)
        mirror.apply(
            "centralBlockPlaced" if result.is_central else "blockPlaced",
            placed(index, str(result.placement.player), result.red_remaining, result.blue_remaining),
        )
        if result.outcome is not None:
            mirror.apply("gameOver", {"winner": result.outcome})
        else:
            mirror.apply("turnChange", {"currentPlayer": str(result.current_player)})

    assert mirror.board == game.board
    assert mirror.supply == game.supply
    assert mirror.history == game.history
    assert mirror.outcome == "red"
