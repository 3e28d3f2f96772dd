"""
Orchestration of incoming commands to the lobby and to the game rooms (and of the outgoing events in the reverse direction).

The coordinator is the single source of truth for online games: clients send intents, the coordinator validates
them against the room's Game, and returns the events to broadcast. Nothing here awaits I/O, so handling one
command (including building its broadcast) always runs to completion before the next one.
"""

import logging
from typing import Any, Callable, Optional

from pydantic import BaseModel

from src.api.models import (
    AcceptMatchCommand,
    ChatMessageCommand,
    DeclineMatchCommand,
    EnterLobbyCommand,
    ExitGameCommand,
    FindMatchCommand,
    LeaveLobbyCommand,
    LoginCommand,
    PlaceBlockCommand,
    PlaceCentralBlockCommand,
    SendEmojiCommand,
    SendMatchRequestCommand,
    UndoMoveCommand,
)
from src.blocks.game import PlacementResult
from src.blocks.geometry import CENTER_INDEX
from src.core.config import Settings
from src.core.exceptions import (
    GameError,
    InvalidPlacementError,
    InvalidRequestError,
    NotYourTurnError,
    RepositoryError,
    RoomNotFoundError,
)
from src.core.models import MatchRecord
from src.core.shared_types import DRAW, Color
from src.db.repository import MatchRepository
from src.services.lobby import LobbyService
from src.services.outbound import Event, Outbound, error_to, send
from src.services.registry import Room, SessionRegistry

logger = logging.getLogger(__name__)

ABANDONED = "abandoned"


class SessionCoordinator:
    """Owns the registry of rooms and drives every online game."""

    def __init__(
        self,
        registry: SessionRegistry,
        settings: Settings,
        repository: Optional[MatchRepository] = None,
    ) -> None:
        self.registry = registry
        self.settings = settings
        self.repo = repository
        self.lobby = LobbyService(registry, settings)

    # -- connection lifecycle ---
    def connect(self, participant_id: str) -> None:
        self.registry.add_participant(participant_id)
        logger.info(f"Participant connected: {participant_id}")

    def disconnect(self, participant_id: str) -> list[Outbound]:
        """Connection is gone: end their game (if any), and forget about them."""
        logger.info(f"Participant disconnected: {participant_id}")
        outbound: list[Outbound] = []
        room = self.registry.room_of(participant_id)
        if room is not None:
            outbound.extend(self._abandon(room, participant_id))
        outbound.extend(self.lobby.forget(participant_id))
        self.registry.remove_participant(participant_id)
        return outbound

    # -- entry point for the transport ---
    def handle(self, participant_id: str, command: BaseModel) -> list[Outbound]:
        """
        Run a single command.
        ---

        Any GameError is reported to the sender only. Messages for rooms that no longer exist are dropped silently.
        """
        handler = self._handlers().get(type(command))
        if handler is None:
            return [error_to(participant_id, InvalidRequestError("Unsupported command."))]
        try:
            return handler(participant_id, command)
        except RoomNotFoundError as e:
            logger.debug(f"Ignoring message from {participant_id}: {e}")
            return []
        except GameError as e:
            logger.warning(
                f"Rejected {type(command).__name__} from {participant_id}: {e}"
            )
            return [error_to(participant_id, e)]

    def _handlers(self) -> dict[type[BaseModel], Callable[[str, Any], list[Outbound]]]:
        return {
            LoginCommand: lambda pid, c: self.lobby.login(pid, c.nickname),
            EnterLobbyCommand: lambda pid, c: self.lobby.enter_lobby(pid),
            LeaveLobbyCommand: lambda pid, c: self.lobby.leave_lobby(pid),
            ChatMessageCommand: lambda pid, c: self.lobby.chat(pid, c.text),
            SendMatchRequestCommand: lambda pid, c: self.lobby.send_match_request(
                pid, c.target_id
            ),
            AcceptMatchCommand: lambda pid, c: self.lobby.accept_match(
                pid, c.requester_id
            ),
            DeclineMatchCommand: lambda pid, c: self.lobby.decline_match(
                pid, c.requester_id
            ),
            FindMatchCommand: lambda pid, c: self.lobby.find_match(pid),
            PlaceCentralBlockCommand: lambda pid, c: self.place_central_block(
                pid, c.room_id, c.index, c.color
            ),
            PlaceBlockCommand: lambda pid, c: self.place_block(
                pid, c.room_id, c.index, c.color
            ),
            UndoMoveCommand: lambda pid, c: self.undo_move(pid, c.room_id),
            SendEmojiCommand: lambda pid, c: self.send_emoji(pid, c.room_id, c.symbol),
            ExitGameCommand: lambda pid, c: self.exit_game(pid, c.room_id),
        }

    # -- game commands ---
    def place_central_block(
        self,
        participant_id: str,
        room_id: str,
        index: int,
        color: Optional[Color] = None,
    ) -> list[Outbound]:
        room = self._room_for(participant_id, room_id, color)
        if room.game.board.central_placed:
            raise InvalidPlacementError("The central block has already been placed.")
        if index != CENTER_INDEX:
            raise InvalidPlacementError("The first block can only go in the center.")
        return self._place(room, participant_id, index)

    def place_block(
        self,
        participant_id: str,
        room_id: str,
        index: int,
        color: Optional[Color] = None,
    ) -> list[Outbound]:
        room = self._room_for(participant_id, room_id, color)
        return self._place(room, participant_id, index)

    def undo_move(self, participant_id: str, room_id: str) -> list[Outbound]:
        room = self._room_for(participant_id, room_id)
        result = room.game.undo(participant_id)
        everyone = room.participants
        return [
            send(
                everyone,
                Event.MOVE_UNDONE,
                index=result.placement.index,
                redCount=result.red_remaining,
                blueCount=result.blue_remaining,
                currentPlayer=str(result.current_player),
            ),
            send(everyone, Event.TURN_CHANGE, currentPlayer=str(result.current_player)),
        ]

    def send_emoji(self, participant_id: str, room_id: str, symbol: str) -> list[Outbound]:
        room = self._room_for(participant_id, room_id)
        if symbol not in self.settings.allowed_emojis:
            raise InvalidRequestError(f"Unknown emoji {symbol!r}.")
        opponent = room.opponent_of(participant_id)
        if opponent is None:
            return []
        return [send([opponent], Event.RECEIVE_EMOJI, symbol=symbol)]

    def exit_game(self, participant_id: str, room_id: str) -> list[Outbound]:
        room = self._room_for(participant_id, room_id)
        return self._abandon(room, participant_id)

    # -- Internal helpers --
    def _room_for(
        self, participant_id: str, room_id: str, color: Optional[Color] = None
    ) -> Room:
        """Find the room and make sure the sender plays in it (as the color they claim, if any)."""
        room = self.registry.room(room_id)
        own_color = room.game.color_of(participant_id)
        if own_color is None:
            raise NotYourTurnError("You are not playing in this room.")
        if color is not None and color != own_color:
            raise NotYourTurnError(f"You play {own_color}, not {color}.")
        return room

    def _place(self, room: Room, participant_id: str, index: int) -> list[Outbound]:
        result = room.game.place(index, participant_id)
        everyone = room.participants
        event = Event.CENTRAL_BLOCK_PLACED if result.is_central else Event.BLOCK_PLACED
        outbound = [
            send(
                everyone,
                event,
                index=result.placement.index,
                player=str(result.placement.player),
                redCount=result.red_remaining,
                blueCount=result.blue_remaining,
            )
        ]
        if result.outcome is not None:
            outbound.append(send(everyone, Event.GAME_OVER, winner=result.outcome))
            self._close(room, reason=self._reason(result))
            return outbound

        outbound.append(
            send(everyone, Event.TURN_CHANGE, currentPlayer=str(result.current_player))
        )
        return outbound

    def _abandon(self, room: Room, leaver_id: str) -> list[Outbound]:
        opponent = room.opponent_of(leaver_id)
        self._close(room, reason=ABANDONED)
        if opponent is None:
            return []
        return [send([opponent], Event.OPPONENT_DISCONNECTED)]

    def _close(self, room: Room, reason: str) -> None:
        """Tear the room down. Late messages for it will not find it anymore."""
        self.registry.close_room(room.id)
        logger.info(f"Game in {room.id} ended ({reason}), outcome: {room.game.outcome}")
        if self.repo is not None:
            self._archive(room, reason)

    def _archive(self, room: Room, reason: str) -> None:
        assert self.repo is not None
        game = room.game
        record = MatchRecord(
            room_id=room.id,
            red_player=self._display_name(game.players[Color.RED]),
            blue_player=self._display_name(game.players[Color.BLUE]),
            moves=game.history.to_list(),
            final_board=game.board.to_text(),
            outcome=game.outcome,
            reason=reason,
        )
        try:
            self.repo.save_match(record)
        except RepositoryError:
            logger.exception(f"Could not archive {room.id}")

    def _display_name(self, participant_id: str) -> str:
        participant = self.registry.participants.get(participant_id)
        return participant.display_name if participant else participant_id

    @staticmethod
    def _reason(result: PlacementResult) -> str:
        return DRAW if result.outcome == DRAW else "win"
