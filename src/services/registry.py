"""
All mutable server state in one place: who is connected, who is waiting, and which rooms are open.

The registry is created once by the app and handed to the lobby / session coordinator (no module globals),
so a single room can be tested without a running server.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Optional
from uuid import uuid4

from src.blocks.game import Game
from src.core.exceptions import LobbyError, RoomNotFoundError
from src.core.shared_types import Color, GameMode

logger = logging.getLogger(__name__)

ANONYMOUS = "anonymous"
# How many of their own chat lines a participant cannot repeat
RECENT_MESSAGES = 50


@dataclass
class Participant:
    id: str
    nickname: Optional[str] = None
    in_lobby: bool = False
    recent_messages: deque[str] = field(
        default_factory=lambda: deque(maxlen=RECENT_MESSAGES)
    )

    @property
    def display_name(self) -> str:
        return self.nickname or ANONYMOUS


@dataclass
class Room:
    id: str
    game: Game

    @property
    def participants(self) -> list[str]:
        return list(self.game.players.values())

    def opponent_of(self, participant_id: str) -> Optional[str]:
        return next((pid for pid in self.participants if pid != participant_id), None)


class SessionRegistry:
    def __init__(self) -> None:
        self.participants: dict[str, Participant] = {}
        self.rooms: dict[str, Room] = {}
        self.waiting: deque[str] = deque()

    # -- participants --
    def add_participant(self, participant_id: str) -> Participant:
        participant = Participant(participant_id)
        self.participants[participant_id] = participant
        return participant

    def remove_participant(self, participant_id: str) -> Optional[Participant]:
        self.discard_waiting(participant_id)
        return self.participants.pop(participant_id, None)

    def participant(self, participant_id: str) -> Participant:
        participant = self.participants.get(participant_id)
        if participant is None:
            raise LobbyError(f"Unknown participant {participant_id!r}.")
        return participant

    def lobby_members(self) -> list[Participant]:
        return [p for p in self.participants.values() if p.in_lobby]

    # -- rooms --
    def open_room(self, red_id: str, blue_id: str) -> Room:
        """New online game. Red (the first mover) is always the first argument."""
        game = Game.new_game(
            mode=GameMode.ONLINE, players={Color.RED: red_id, Color.BLUE: blue_id}
        )
        room = Room(id=f"room_{uuid4().hex}", game=game)
        self.rooms[room.id] = room
        logger.info(f"Opened {room.id}: red={red_id} blue={blue_id}")
        return room

    def room(self, room_id: str) -> Room:
        room = self.rooms.get(room_id)
        if room is None:
            raise RoomNotFoundError(f"Room {room_id!r} not found.")
        return room

    def close_room(self, room_id: str) -> Optional[Room]:
        room = self.rooms.pop(room_id, None)
        if room is not None:
            logger.info(f"Closed {room_id}")
        return room

    def room_of(self, participant_id: str) -> Optional[Room]:
        return next(
            (room for room in self.rooms.values() if participant_id in room.participants),
            None,
        )

    # -- FIFO queue --
    def enqueue_waiting(self, participant_id: str) -> None:
        if participant_id not in self.waiting:
            self.waiting.append(participant_id)

    def pop_waiting(self) -> Optional[str]:
        return self.waiting.popleft() if self.waiting else None

    def discard_waiting(self, participant_id: str) -> None:
        if participant_id in self.waiting:
            self.waiting.remove(participant_id)
