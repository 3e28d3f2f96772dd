"""
Boundary layer data model(s).

These objects are used to communicate between the domain layer (src/blocks), the services and the archive.
(Decouples the data model specific to the DB layer or domain layer from the information needed to send across boundaries)
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

# Type aliases to make the models easier to read
PieceColor = str
ParticipantId = str


@dataclass
class GameModel:
    """Transport-safe representation of a game used between Game, Services, and DB layers."""

    board: str
    red_remaining: int
    blue_remaining: int
    moves: list[tuple[int, PieceColor]]
    current_player: PieceColor
    status: str
    mode: str
    players: dict[PieceColor, ParticipantId] = field(default_factory=dict)
    outcome: Optional[str] = None


@dataclass
class MatchRecord:
    """What is left of a finished (or abandoned) online match."""

    room_id: str
    red_player: str
    blue_player: str
    moves: list[tuple[int, PieceColor]]
    final_board: str
    outcome: Optional[str]
    reason: str
    finished_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
