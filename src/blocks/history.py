"""Append-only log of placements, and the only place a placement can be taken back."""

from dataclasses import dataclass, field
from typing import Iterator, Optional, Self

from src.core.exceptions import CenterImmutableError, NothingToUndoError
from src.core.shared_types import Color


@dataclass(frozen=True)
class Placement:
    index: int
    player: Color


@dataclass
class MoveHistory:
    placements: list[Placement] = field(default_factory=list)

    @classmethod
    def from_list(cls, moves: list[tuple[int, str]]) -> Self:
        return cls([Placement(index, Color(player)) for index, player in moves])

    def to_list(self) -> list[tuple[int, str]]:
        return [(placement.index, str(placement.player)) for placement in self.placements]

    def __len__(self) -> int:
        return len(self.placements)

    def __iter__(self) -> Iterator[Placement]:
        return iter(self.placements)

    @property
    def last(self) -> Optional[Placement]:
        return self.placements[-1] if self.placements else None

    def record(self, placement: Placement) -> None:
        self.placements.append(placement)

    def pop_for_undo(self) -> Placement:
        """
        Remove and return the most recent placement.
        ---

        The first entry is always the central block, which is fixed for the rest of the match.
        So undo is refused whenever it is the only entry left (checked BEFORE popping, nothing changes on failure).
        """
        if not self.placements:
            raise NothingToUndoError("There is no move to undo.")
        if len(self.placements) == 1:
            raise CenterImmutableError("The central block cannot be undone.")
        return self.placements.pop()
