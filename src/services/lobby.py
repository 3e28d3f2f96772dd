"""
Everything that happens before a room exists: nicknames, the lobby roster and its chat, and matchmaking.

Two ways into a game:
* directed invite: request -> accept (requester plays red) / decline
* anonymous queue: the first waiter is paired with the next one to ask (newcomer plays red)
"""

import logging

from src.core.config import Settings
from src.core.exceptions import LobbyError
from src.core.shared_types import Color
from src.services.outbound import Event, Outbound, send
from src.services.registry import Participant, Room, SessionRegistry

logger = logging.getLogger(__name__)


class LobbyService:
    def __init__(self, registry: SessionRegistry, settings: Settings) -> None:
        self.registry = registry
        self.settings = settings
        # target id -> ids of participants that asked them for a match
        self.match_requests: dict[str, set[str]] = {}

    # -- login / roster ---
    def login(self, participant_id: str, nickname: str) -> list[Outbound]:
        nickname = nickname.strip()
        if not nickname:
            raise LobbyError("Please enter a nickname.")
        if len(nickname) > self.settings.nickname_max_length:
            raise LobbyError(
                f"Nickname can be at most {self.settings.nickname_max_length} characters."
            )
        participant = self.registry.participant(participant_id)
        participant.nickname = nickname
        logger.info(f"{participant_id} logged in as {nickname!r}")
        return self._roster_update() if participant.in_lobby else []

    def enter_lobby(self, participant_id: str) -> list[Outbound]:
        participant = self._logged_in(participant_id)
        if self.registry.room_of(participant_id) is not None:
            raise LobbyError("Leave your current game before entering the lobby.")
        participant.in_lobby = True
        return self._roster_update()

    def leave_lobby(self, participant_id: str) -> list[Outbound]:
        participant = self.registry.participant(participant_id)
        if not participant.in_lobby:
            return []
        participant.in_lobby = False
        self._forget_requests(participant_id)
        return self._roster_update()

    def chat(self, participant_id: str, text: str) -> list[Outbound]:
        participant = self._in_lobby(participant_id)
        text = text.strip()
        if not text:
            return []
        if self.settings.chat_reject_duplicates and text in participant.recent_messages:
            raise LobbyError("You cannot send the same message twice.")
        participant.recent_messages.append(text)
        return [
            send(
                self._lobby_ids(),
                Event.CHAT_MESSAGE,
                nickname=participant.display_name,
                text=text,
            )
        ]

    # -- directed invites ---
    def send_match_request(self, participant_id: str, target_id: str) -> list[Outbound]:
        requester = self._in_lobby(participant_id)
        if target_id == participant_id:
            raise LobbyError("You cannot challenge yourself.")
        target = self.registry.participants.get(target_id)
        if target is None or not target.in_lobby:
            raise LobbyError("That player is no longer in the lobby.")

        self.match_requests.setdefault(target_id, set()).add(participant_id)
        return [
            send(
                [target_id],
                Event.MATCH_REQUEST,
                requesterId=participant_id,
                requesterNickname=requester.display_name,
            )
        ]

    def accept_match(self, participant_id: str, requester_id: str) -> list[Outbound]:
        accepter = self._in_lobby(participant_id)
        self._take_request(participant_id, requester_id)
        requester = self.registry.participants.get(requester_id)
        if requester is None or not requester.in_lobby:
            raise LobbyError("That player is no longer in the lobby.")

        room = self._start_room(red=requester, blue=accepter)
        return [
            *self._announce(room, Event.MATCH_ACCEPTED, requester, accepter),
            *self._roster_update(),
        ]

    def decline_match(self, participant_id: str, requester_id: str) -> list[Outbound]:
        target = self.registry.participant(participant_id)
        self._take_request(participant_id, requester_id)
        if requester_id not in self.registry.participants:
            return []
        return [
            send([requester_id], Event.MATCH_DECLINED, targetNickname=target.display_name)
        ]

    # -- anonymous queue ---
    def find_match(self, participant_id: str) -> list[Outbound]:
        newcomer = self.registry.participant(participant_id)
        if self.registry.room_of(participant_id) is not None:
            raise LobbyError("You are already playing a game.")
        if participant_id in self.registry.waiting:
            return [send([participant_id], Event.WAITING)]

        waiter_id = self.registry.pop_waiting()
        if waiter_id is None:
            self.registry.enqueue_waiting(participant_id)
            logger.info(f"{participant_id} waiting for an opponent")
            return [send([participant_id], Event.WAITING)]

        waiter = self.registry.participant(waiter_id)
        was_in_lobby = newcomer.in_lobby or waiter.in_lobby
        room = self._start_room(red=newcomer, blue=waiter)
        outbound = self._announce(room, Event.GAME_START, newcomer, waiter)
        if was_in_lobby:
            outbound.extend(self._roster_update())
        return outbound

    def forget(self, participant_id: str) -> list[Outbound]:
        """Participant is gone: drop their requests and update the roster if they were in it."""
        participant = self.registry.participants.get(participant_id)
        self._forget_requests(participant_id)
        if participant is None or not participant.in_lobby:
            return []
        participant.in_lobby = False
        return self._roster_update()

    # -- Internal helpers --
    def _start_room(self, red: Participant, blue: Participant) -> Room:
        for participant in (red, blue):
            participant.in_lobby = False
            self.registry.discard_waiting(participant.id)
            self._forget_requests(participant.id)
        room = self.registry.open_room(red.id, blue.id)
        logger.info(
            f"Match started in {room.id}: {red.display_name} (red) vs {blue.display_name} (blue)"
        )
        return room

    def _announce(
        self, room: Room, event: Event, red: Participant, blue: Participant
    ) -> list[Outbound]:
        return [
            send(
                [red.id],
                event,
                roomId=room.id,
                color=str(Color.RED),
                opponentNickname=blue.display_name,
            ),
            send(
                [blue.id],
                event,
                roomId=room.id,
                color=str(Color.BLUE),
                opponentNickname=red.display_name,
            ),
        ]

    def _take_request(self, target_id: str, requester_id: str) -> None:
        requesters = self.match_requests.get(target_id, set())
        if requester_id not in requesters:
            raise LobbyError("There is no pending match request from that player.")
        requesters.discard(requester_id)

    def _forget_requests(self, participant_id: str) -> None:
        self.match_requests.pop(participant_id, None)
        for requesters in self.match_requests.values():
            requesters.discard(participant_id)

    def _logged_in(self, participant_id: str) -> Participant:
        participant = self.registry.participant(participant_id)
        if participant.nickname is None:
            raise LobbyError("Log in with a nickname first.")
        return participant

    def _in_lobby(self, participant_id: str) -> Participant:
        participant = self._logged_in(participant_id)
        if not participant.in_lobby:
            raise LobbyError("Enter the lobby first.")
        return participant

    def _lobby_ids(self) -> list[str]:
        return [participant.id for participant in self.registry.lobby_members()]

    def _roster_update(self) -> list[Outbound]:
        members = self.registry.lobby_members()
        if not members:
            return []
        users = [{"id": p.id, "nickname": p.display_name} for p in members]
        return [send(self._lobby_ids(), Event.UPDATE_ONLINE_USERS, users=users)]
