"""The Board holds the 49 cells, the supply of blocks each player has left, and nothing else."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Self

from src.blocks.geometry import (
    BOARD_SIZE,
    CELL_COUNT,
    CENTER_INDEX,
    surrounding_indices,
)
from src.core.exceptions import InvalidPlacementError
from src.core.shared_types import Color

STARTING_SUPPLY: dict[Color, int] = {Color.RED: 23, Color.BLUE: 24}


class Cell(Enum):
    EMPTY = "."
    RED = "R"
    BLUE = "B"

    @classmethod
    def of(cls, color: Color) -> "Cell":
        return cls.RED if color == Color.RED else cls.BLUE

    @property
    def color(self) -> Color | None:
        if self == Cell.RED:
            return Color.RED
        if self == Cell.BLUE:
            return Color.BLUE
        return None


@dataclass
class Supply:
    """Blocks each player still has in hand."""

    red: int = STARTING_SUPPLY[Color.RED]
    blue: int = STARTING_SUPPLY[Color.BLUE]

    def remaining(self, color: Color) -> int:
        return self.red if color == Color.RED else self.blue

    def take(self, color: Color) -> None:
        if self.remaining(color) <= 0:
            raise InvalidPlacementError(f"No {color} blocks remaining.")
        self._add(color, -1)

    def restore(self, color: Color) -> None:
        self._add(color, 1)

    def is_exhausted(self) -> bool:
        """Both players are out of blocks"""
        return self.red == 0 and self.blue == 0

    def _add(self, color: Color, amount: int) -> None:
        if color == Color.RED:
            self.red += amount
        else:
            self.blue += amount


@dataclass
class Board:
    cells: list[Cell] = field(default_factory=lambda: [Cell.EMPTY] * CELL_COUNT)

    def __post_init__(self) -> None:
        if len(self.cells) != CELL_COUNT:
            raise ValueError(f"A board has {CELL_COUNT} cells, got {len(self.cells)}")

    @classmethod
    def empty(cls) -> Self:
        return cls()

    @classmethod
    def from_text(cls, text: str) -> Self:
        """
        Compact text notation, one character per cell and rows separated by slashes.

        ex. a board with only the central block placed by red:
        ......./......./......./...R.../......./......./.......
        """
        rows = text.split("/")
        if len(rows) != BOARD_SIZE or any(len(row) != BOARD_SIZE for row in rows):
            raise ValueError(f"Cannot read board from {text!r}")
        return cls([Cell(character) for row in rows for character in row])

    def to_text(self) -> str:
        characters = "".join(cell.value for cell in self.cells)
        return "/".join(
            characters[start : start + BOARD_SIZE]
            for start in range(0, CELL_COUNT, BOARD_SIZE)
        )

    def render(self) -> str:
        """Grid with row/column labels, for the terminal"""
        header = "   " + " ".join(str(col) for col in range(BOARD_SIZE))
        lines = [header]
        for row, row_text in enumerate(self.to_text().split("/")):
            lines.append(f"{row}  " + " ".join(row_text))
        return "\n".join(lines)

    @property
    def central_placed(self) -> bool:
        return not self.is_empty(CENTER_INDEX)

    def cell(self, index: int) -> Cell:
        return self.cells[index]

    def is_empty(self, index: int) -> bool:
        return self.cells[index] == Cell.EMPTY

    def holds(self, index: int, color: Color) -> bool:
        return self.cells[index] == Cell.of(color)

    def place(self, index: int, color: Color) -> None:
        self.cells[index] = Cell.of(color)

    def clear(self, index: int) -> None:
        self.cells[index] = Cell.EMPTY

    def locate_color(self, color: Color) -> list[int]:
        target = Cell.of(color)
        return [index for index, cell in enumerate(self.cells) if cell == target]

    def empty_indices(self) -> list[int]:
        return [index for index, cell in enumerate(self.cells) if cell == Cell.EMPTY]

    def filled_count(self) -> int:
        return CELL_COUNT - len(self.empty_indices())

    def has_empty_neighbour(self, index: int) -> bool:
        return any(self.is_empty(idx) for idx in surrounding_indices(index))
