"""
Placement and win rules

Key idea: play has to hug the frontier.
---

* The first block always goes in the center.
* After that, a block must touch the block placed last, as long as that block still has an empty neighbour.
* Once the last block is completely surrounded, any empty cell touching one of the last mover's blocks will do.

Legality is checked here, the Game applies the move.
"""

from typing import Iterable, Protocol

from src.blocks.board import Supply
from src.blocks.geometry import (
    BOARD_SIZE,
    CENTER_INDEX,
    LINE_DIRECTIONS,
    is_adjacent,
    is_valid_index,
    is_within_bounds,
    surrounding_indices,
    to_index,
    to_row_col,
)
from src.blocks.history import Placement
from src.core.exceptions import InvalidPlacementError
from src.core.shared_types import Color

WINNING_RUN = 4
# How far to look from the last placed block in each direction
SCAN_DISTANCE = WINNING_RUN - 1


class Board(Protocol):
    """Just the parts the rules need"""

    def is_empty(self, index: int) -> bool: ...
    def holds(self, index: int, color: Color) -> bool: ...
    def has_empty_neighbour(self, index: int) -> bool: ...
    def empty_indices(self) -> list[int]: ...


class History(Protocol):
    @property
    def last(self) -> Placement | None: ...
    def __len__(self) -> int: ...


# --- PLACEMENT ---
def validate_placement(board: Board, history: History, index: int, player: Color) -> None:
    """Raise InvalidPlacementError with the reason if `player` may not put a block on `index`."""
    if not is_valid_index(index):
        raise InvalidPlacementError(f"Cell index {index} out of range.")

    last = history.last
    if last is None:
        if index != CENTER_INDEX:
            raise InvalidPlacementError("You must place the center block first.")
        return

    if not board.is_empty(index):
        raise InvalidPlacementError(f"Cell {index} is already occupied.")

    if not _touches_frontier(board, last, index):
        raise InvalidPlacementError(
            f"Cell {index} is not adjacent to the frontier of play (last block at {last.index})."
        )


def is_legal_placement(board: Board, history: History, index: int, player: Color) -> bool:
    try:
        validate_placement(board, history, index, player)
    except InvalidPlacementError:
        return False
    return True


def legal_placements(board: Board, history: History, player: Color) -> list[int]:
    """Every cell the player could use right now (UI hint / terminal game)."""
    if history.last is None:
        return [CENTER_INDEX]
    return [
        index
        for index in board.empty_indices()
        if is_legal_placement(board, history, index, player)
    ]


def _touches_frontier(board: Board, last: Placement, index: int) -> bool:
    """
    1. The last block still has room around it? --> must be next to it
    2. Saturated? --> next to any block of whoever placed it
    """
    if board.has_empty_neighbour(last.index):
        return is_adjacent(index, last.index)
    return any(board.holds(idx, last.player) for idx in surrounding_indices(index))


# --- GAME END ---
def check_win(board: Board, last_index: int, player: Color) -> bool:
    """Does a line of at least 4 of the player's blocks run through the last placed block?"""
    row, col = to_row_col(last_index)
    for d_row, d_col in LINE_DIRECTIONS:
        run = 1
        run += _count_direction(board, row, col, d_row, d_col, player)
        run += _count_direction(board, row, col, -d_row, -d_col, player)
        if run >= WINNING_RUN:
            return True
    return False


def _count_direction(
    board: Board, row: int, col: int, d_row: int, d_col: int, player: Color
) -> int:
    """Contiguous blocks of the player along one direction. Stops at the edge or at the first other cell."""
    count = 0
    for step in range(1, SCAN_DISTANCE + 1):
        new_row, new_col = row + d_row * step, col + d_col * step
        if not is_within_bounds(new_row, new_col):
            break
        if not board.holds(to_index(new_row, new_col), player):
            break
        count += 1
    return count


def is_draw(supply: Supply, board: Board, last_index: int, player: Color) -> bool:
    """Both players ran out of blocks and the last block did not complete a line."""
    return supply.is_exhausted() and not check_win(board, last_index, player)


def winning_lines(board: Board, player: Color) -> Iterable[list[int]]:
    """All runs of exactly WINNING_RUN cells held by the player. Used to check boards in tests / the terminal."""
    for row in range(BOARD_SIZE):
        for col in range(BOARD_SIZE):
            for d_row, d_col in LINE_DIRECTIONS:
                cells = [
                    (row + d_row * step, col + d_col * step) for step in range(WINNING_RUN)
                ]
                if not all(is_within_bounds(r, c) for r, c in cells):
                    continue
                indices = [to_index(r, c) for r, c in cells]
                if all(board.holds(idx, player) for idx in indices):
                    yield indices
