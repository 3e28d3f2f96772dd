"""Server -> client events produced by the services. The transport decides how to deliver them."""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Iterable

from src.core.exceptions import GameError


class Event(StrEnum):
    UPDATE_ONLINE_USERS = "updateOnlineUsers"
    CHAT_MESSAGE = "chatMessage"
    MATCH_REQUEST = "matchRequest"
    MATCH_ACCEPTED = "matchAccepted"
    MATCH_DECLINED = "matchDeclined"
    WAITING = "waiting"
    GAME_START = "gameStart"
    CENTRAL_BLOCK_PLACED = "centralBlockPlaced"
    BLOCK_PLACED = "blockPlaced"
    TURN_CHANGE = "turnChange"
    MOVE_UNDONE = "moveUndone"
    GAME_OVER = "gameOver"
    RECEIVE_EMOJI = "receiveEmoji"
    OPPONENT_DISCONNECTED = "opponentDisconnected"
    ERROR = "error"


@dataclass(frozen=True)
class Outbound:
    recipients: tuple[str, ...]
    event: Event
    payload: dict[str, Any] = field(default_factory=dict)

    def to_frame(self) -> dict[str, Any]:
        return {"event": str(self.event), "data": self.payload}


def send(recipients: Iterable[str], event: Event, **payload: Any) -> Outbound:
    return Outbound(tuple(recipients), event, payload)


def error_to(participant_id: str, error: GameError) -> Outbound:
    """Errors only ever go back to whoever sent the command."""
    return send([participant_id], Event.ERROR, message=str(error), code=error.code)
