"""
Cell indices and their neighbourhoods

(placed in its own module as multiple other modules need to import it)

The board is linearized row-major: index = row * BOARD_SIZE + col.
"""

# Board is always 7x7. Just in case we want to try some funky stuff, make it adjustable
BOARD_SIZE = 7
CELL_COUNT = BOARD_SIZE * BOARD_SIZE
CENTER_INDEX = CELL_COUNT // 2

Vector = tuple[int, int]

# (d_row, d_col) for the Moore neighbourhood
NEIGHBOUR_DELTAS: list[Vector] = [
    (d_row, d_col)
    for d_row in (-1, 0, 1)
    for d_col in (-1, 0, 1)
    if (d_row, d_col) != (0, 0)
]

# Only need one half of each axis: lines are scanned in both directions
LINE_DIRECTIONS: list[Vector] = [
    (0, 1),  # horizontal
    (1, 0),  # vertical
    (1, 1),  # diagonal ↘
    (1, -1),  # diagonal ↗
]


def to_row_col(index: int) -> tuple[int, int]:
    return divmod(index, BOARD_SIZE)


def to_index(row: int, col: int) -> int:
    return row * BOARD_SIZE + col


def is_within_bounds(row: int, col: int) -> bool:
    return (0 <= row < BOARD_SIZE) and (0 <= col < BOARD_SIZE)


def is_valid_index(index: int) -> bool:
    return 0 <= index < CELL_COUNT


def surrounding_indices(index: int) -> list[int]:
    """All (at most 8) neighbours of a cell that are still on the board. The cell itself is not included."""
    row, col = to_row_col(index)
    neighbours: list[int] = []
    for d_row, d_col in NEIGHBOUR_DELTAS:
        new_row, new_col = row + d_row, col + d_col
        if is_within_bounds(new_row, new_col):
            neighbours.append(to_index(new_row, new_col))
    return neighbours


def is_adjacent(a: int, b: int) -> bool:
    """Chebyshev distance of at most one (NOTE: a cell counts as adjacent to itself)"""
    row_a, col_a = to_row_col(a)
    row_b, col_b = to_row_col(b)
    return max(abs(row_a - row_b), abs(col_a - col_b)) <= 1
