"""Wire models: client commands in, archive responses out"""

from datetime import datetime
from typing import Any, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)

from src.blocks.geometry import CELL_COUNT
from src.core.exceptions import InvalidRequestError
from src.core.shared_types import Color


class Command(BaseModel):
    """Accept both the camelCase names used on the wire and the python names."""

    model_config = ConfigDict(populate_by_name=True)


# --- LOBBY COMMANDS ---
class LoginCommand(Command):
    nickname: str

    @field_validator("nickname")
    @classmethod
    def validate_nickname(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Nickname cannot be empty.")
        return value


class EnterLobbyCommand(Command):
    pass


class LeaveLobbyCommand(Command):
    pass


class ChatMessageCommand(Command):
    text: str = Field(validation_alias=AliasChoices("text", "message"))


class SendMatchRequestCommand(Command):
    target_id: str = Field(validation_alias=AliasChoices("targetId", "target_id"))


class AcceptMatchCommand(Command):
    requester_id: str = Field(
        validation_alias=AliasChoices("requesterId", "requester_id")
    )


class DeclineMatchCommand(Command):
    requester_id: str = Field(
        validation_alias=AliasChoices("requesterId", "requester_id")
    )


class FindMatchCommand(Command):
    pass


# --- GAME COMMANDS ---
class RoomCommand(Command):
    room_id: str = Field(validation_alias=AliasChoices("roomId", "room_id"))


class PlaceCentralBlockCommand(RoomCommand):
    index: int = Field(ge=0, lt=CELL_COUNT)
    color: Optional[Color] = Field(
        default=None, validation_alias=AliasChoices("color", "player")
    )


class PlaceBlockCommand(RoomCommand):
    index: int = Field(ge=0, lt=CELL_COUNT)
    color: Optional[Color] = Field(
        default=None, validation_alias=AliasChoices("color", "player")
    )


class UndoMoveCommand(RoomCommand):
    pass


class SendEmojiCommand(RoomCommand):
    symbol: str = Field(validation_alias=AliasChoices("symbol", "emoji"))


class ExitGameCommand(RoomCommand):
    pass


COMMANDS: dict[str, type[Command]] = {
    "login": LoginCommand,
    "enterLobby": EnterLobbyCommand,
    "leaveLobby": LeaveLobbyCommand,
    "chatMessage": ChatMessageCommand,
    "sendMatchRequest": SendMatchRequestCommand,
    "acceptMatch": AcceptMatchCommand,
    "declineMatch": DeclineMatchCommand,
    "findMatch": FindMatchCommand,
    "placeCentralBlock": PlaceCentralBlockCommand,
    "placeBlock": PlaceBlockCommand,
    "undoMove": UndoMoveCommand,
    "sendEmoji": SendEmojiCommand,
    "exitGame": ExitGameCommand,
}


def parse_command(frame: Any) -> Command:
    """
    Frames look like {"event": "placeBlock", "data": {"roomId": "...", "index": 23, "color": "blue"}}

    ---
    `data` may be left out for commands without arguments.
    """
    if not isinstance(frame, dict):
        raise InvalidRequestError("Expected a JSON object.")
    event = frame.get("event")
    command_type = COMMANDS.get(event) if isinstance(event, str) else None
    if command_type is None:
        raise InvalidRequestError(f"Unknown event: {event!r}")

    data = frame.get("data") or {}
    try:
        return command_type.model_validate(data)
    except ValidationError as e:
        raise InvalidRequestError(f"Invalid {event!r} message: {e.errors()[0]['msg']}")


# --- RESPONSE MODELS ---
class MatchResponse(BaseModel):
    match_id: str
    room_id: str
    red_player: str
    blue_player: str
    moves: list[tuple[int, str]]
    final_board: str
    outcome: Optional[str]
    reason: str
    finished_at: datetime


class HealthResponse(BaseModel):
    status: str
    connected: int
    rooms: int
    waiting: int
