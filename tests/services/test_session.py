"""Unit tests for src/services/session.py"""

from typing import Generator
from uuid import UUID, uuid4

import pytest

from src.api.models import parse_command
from src.core.config import Settings
from src.core.exceptions import RepositoryError
from src.core.models import MatchRecord
from src.core.shared_types import DRAW
from src.services.outbound import Event, Outbound
from src.services.registry import SessionRegistry
from src.services.session import ABANDONED, SessionCoordinator


# --- MOCK DEPENDENCIES ----
class MockRepository:
    """Mock the MatchRepository using a dictionary of match records."""

    def __init__(self) -> None:
        self._matches: dict[UUID, MatchRecord] = {}

    def save_match(self, match: MatchRecord) -> UUID:
        match_id = uuid4()
        self._matches[match_id] = match
        return match_id

    def get_match(self, match_id: UUID) -> MatchRecord | None:
        return self._matches.get(match_id)

    def list_matches(self, limit: int = 50) -> list[tuple[UUID, MatchRecord]]:
        return list(self._matches.items())[:limit]

    def clear(self) -> None:
        """Clear the repository (useful in between tests)"""
        self._matches.clear()


class BrokenRepository(MockRepository):
    def save_match(self, match: MatchRecord) -> UUID:
        raise RepositoryError("disk full")


@pytest.fixture
def mock_repository() -> Generator[MockRepository, None, None]:
    repo = MockRepository()
    try:
        yield repo
    finally:
        repo.clear()


@pytest.fixture
def coordinator(settings: Settings, mock_repository: MockRepository) -> SessionCoordinator:
    coordinator = SessionCoordinator(SessionRegistry(), settings, mock_repository)
    for pid in ("ada", "bob", "cy"):
        coordinator.connect(pid)
    return coordinator


def handle(coordinator: SessionCoordinator, pid: str, event: str, **data) -> list[Outbound]:
    return coordinator.handle(pid, parse_command({"event": event, "data": data}))


def events(outbound: list[Outbound]) -> list[Event]:
    return [message.event for message in outbound]


def error_code(outbound: list[Outbound]) -> str:
    assert events(outbound) == [Event.ERROR]
    return outbound[0].payload["code"]


@pytest.fixture
def room_id(coordinator: SessionCoordinator) -> str:
    """ada waits, bob joins: bob is red, ada is blue"""
    handle(coordinator, "ada", "findMatch")
    start = handle(coordinator, "bob", "findMatch")
    return start[0].payload["roomId"]


def play(coordinator: SessionCoordinator, room_id: str, indices: list[int]) -> list[Outbound]:
    """Let the right participant place each block, return everything broadcast for the last one"""
    outbound: list[Outbound] = []
    for index in indices:
        room = coordinator.registry.room(room_id)
        event = "placeBlock" if room.game.board.central_placed else "placeCentralBlock"
        outbound = handle(
            coordinator, room.game.current_participant, event, roomId=room_id, index=index
        )
        assert Event.ERROR not in events(outbound)
    return outbound


# --- PLACEMENT ---
def test_central_block(coordinator: SessionCoordinator, room_id: str) -> None:
    outbound = handle(coordinator, "bob", "placeCentralBlock", roomId=room_id, index=24, color="red")
    assert events(outbound) == [Event.CENTRAL_BLOCK_PLACED, Event.TURN_CHANGE]
    placed, turn = outbound
    assert set(placed.recipients) == {"ada", "bob"}
    assert placed.payload == {"index": 24, "player": "red", "redCount": 23, "blueCount": 24}
    assert turn.payload == {"currentPlayer": "blue"}


def test_central_block_must_be_center(coordinator: SessionCoordinator, room_id: str) -> None:
    outbound = handle(coordinator, "bob", "placeCentralBlock", roomId=room_id, index=23)
    assert error_code(outbound) == "invalid_placement"
    assert outbound[0].recipients == ("bob",)


def test_central_block_only_once(coordinator: SessionCoordinator, room_id: str) -> None:
    play(coordinator, room_id, [24])
    outbound = handle(coordinator, "ada", "placeCentralBlock", roomId=room_id, index=24)
    assert error_code(outbound) == "invalid_placement"


def test_block_placed(coordinator: SessionCoordinator, room_id: str) -> None:
    play(coordinator, room_id, [24])
    outbound = handle(coordinator, "ada", "placeBlock", roomId=room_id, index=23, color="blue")
    assert events(outbound) == [Event.BLOCK_PLACED, Event.TURN_CHANGE]
    assert outbound[0].payload == {"index": 23, "player": "blue", "redCount": 23, "blueCount": 23}
    assert outbound[1].payload == {"currentPlayer": "red"}

    outbound = handle(coordinator, "bob", "placeBlock", roomId=room_id, index=26)
    assert error_code(outbound) == "invalid_placement"


def test_not_your_turn(coordinator: SessionCoordinator, room_id: str) -> None:
    outbound = handle(coordinator, "ada", "placeCentralBlock", roomId=room_id, index=24)
    assert error_code(outbound) == "not_your_turn"
    assert outbound[0].recipients == ("ada",)


def test_wrong_claimed_color(coordinator: SessionCoordinator, room_id: str) -> None:
    outbound = handle(coordinator, "bob", "placeCentralBlock", roomId=room_id, index=24, color="blue")
    assert error_code(outbound) == "not_your_turn"


def test_outsider_cannot_play(coordinator: SessionCoordinator, room_id: str) -> None:
    outbound = handle(coordinator, "cy", "placeCentralBlock", roomId=room_id, index=24)
    assert error_code(outbound) == "not_your_turn"


def test_unknown_room_is_ignored(coordinator: SessionCoordinator) -> None:
    assert handle(coordinator, "ada", "placeBlock", roomId="room_gone", index=23) == []
    assert handle(coordinator, "ada", "undoMove", roomId="room_gone") == []
    assert handle(coordinator, "ada", "exitGame", roomId="room_gone") == []


# --- UNDO ---
def test_undo(coordinator: SessionCoordinator, room_id: str) -> None:
    play(coordinator, room_id, [24, 23])
    # red to move, red takes back blue's block
    outbound = handle(coordinator, "bob", "undoMove", roomId=room_id)
    assert events(outbound) == [Event.MOVE_UNDONE, Event.TURN_CHANGE]
    assert outbound[0].payload == {
        "index": 23,
        "redCount": 23,
        "blueCount": 24,
        "currentPlayer": "blue",
    }
    assert outbound[1].payload == {"currentPlayer": "blue"}
    assert coordinator.registry.room(room_id).game.board.is_empty(23)


def test_undo_center(coordinator: SessionCoordinator, room_id: str) -> None:
    play(coordinator, room_id, [24])
    assert error_code(handle(coordinator, "ada", "undoMove", roomId=room_id)) == "center_immutable"


def test_undo_nothing(coordinator: SessionCoordinator, room_id: str) -> None:
    assert error_code(handle(coordinator, "bob", "undoMove", roomId=room_id)) == "nothing_to_undo"


def test_undo_not_your_turn(coordinator: SessionCoordinator, room_id: str) -> None:
    play(coordinator, room_id, [24, 23])
    assert error_code(handle(coordinator, "ada", "undoMove", roomId=room_id)) == "not_your_turn"


# --- GAME END ---
def test_win_closes_and_archives(
    coordinator: SessionCoordinator,
    room_id: str,
    mock_repository: MockRepository,
    red_wins_sequence: list[int],
) -> None:
    coordinator.registry.participant("bob").nickname = "Bob"
    outbound = play(coordinator, room_id, red_wins_sequence)
    assert events(outbound) == [Event.BLOCK_PLACED, Event.GAME_OVER]
    assert outbound[1].payload == {"winner": "red"}
    assert set(outbound[1].recipients) == {"ada", "bob"}

    # room is gone: late messages are dropped
    assert room_id not in coordinator.registry.rooms
    assert handle(coordinator, "ada", "placeBlock", roomId=room_id, index=20) == []

    [(_, record)] = mock_repository.list_matches()
    assert record.room_id == room_id
    assert record.red_player == "Bob"
    assert record.blue_player == "anonymous"
    assert record.outcome == "red"
    assert record.reason == "win"
    assert record.moves[-1] == (27, "red")


def test_draw(
    coordinator: SessionCoordinator,
    room_id: str,
    mock_repository: MockRepository,
    draw_sequence: list[int],
) -> None:
    outbound = play(coordinator, room_id, draw_sequence)
    assert events(outbound) == [Event.BLOCK_PLACED, Event.GAME_OVER]
    assert outbound[0].payload["redCount"] == 0
    assert outbound[0].payload["blueCount"] == 0
    assert outbound[1].payload == {"winner": DRAW}

    [(_, record)] = mock_repository.list_matches()
    assert record.outcome == DRAW
    assert record.reason == DRAW
    assert record.final_board.count(".") == 1


def test_archive_failure_does_not_break_the_game(
    settings: Settings, red_wins_sequence: list[int]
) -> None:
    coordinator = SessionCoordinator(SessionRegistry(), settings, BrokenRepository())
    coordinator.connect("ada")
    coordinator.connect("bob")
    handle(coordinator, "ada", "findMatch")
    room_id = handle(coordinator, "bob", "findMatch")[0].payload["roomId"]

    outbound = play(coordinator, room_id, red_wins_sequence)
    assert events(outbound)[-1] == Event.GAME_OVER
    assert coordinator.registry.rooms == {}


# --- LEAVING ---
def test_exit_game(
    coordinator: SessionCoordinator, room_id: str, mock_repository: MockRepository
) -> None:
    play(coordinator, room_id, [24])
    outbound = handle(coordinator, "ada", "exitGame", roomId=room_id)
    assert events(outbound) == [Event.OPPONENT_DISCONNECTED]
    assert outbound[0].recipients == ("bob",)
    assert room_id not in coordinator.registry.rooms

    [(_, record)] = mock_repository.list_matches()
    assert record.reason == ABANDONED
    assert record.outcome is None


def test_disconnect_mid_game(coordinator: SessionCoordinator, room_id: str) -> None:
    outbound = coordinator.disconnect("bob")
    assert events(outbound) == [Event.OPPONENT_DISCONNECTED]
    assert outbound[0].recipients == ("ada",)
    assert "bob" not in coordinator.registry.participants
    assert coordinator.registry.rooms == {}
    # the survivor can look for a new game
    assert events(handle(coordinator, "ada", "findMatch")) == [Event.WAITING]


def test_disconnect_from_lobby(coordinator: SessionCoordinator) -> None:
    for pid in ("ada", "bob"):
        handle(coordinator, pid, "login", nickname=pid)
        handle(coordinator, pid, "enterLobby")
    outbound = coordinator.disconnect("ada")
    assert events(outbound) == [Event.UPDATE_ONLINE_USERS]
    assert outbound[0].payload == {"users": [{"id": "bob", "nickname": "bob"}]}


def test_disconnect_while_waiting(coordinator: SessionCoordinator) -> None:
    handle(coordinator, "ada", "findMatch")
    assert coordinator.disconnect("ada") == []
    assert list(coordinator.registry.waiting) == []


# --- EMOJI ---
def test_emoji_goes_to_opponent(coordinator: SessionCoordinator, room_id: str) -> None:
    outbound = handle(coordinator, "ada", "sendEmoji", roomId=room_id, emoji="👍")
    assert events(outbound) == [Event.RECEIVE_EMOJI]
    assert outbound[0].recipients == ("bob",)
    assert outbound[0].payload == {"symbol": "👍"}


def test_unknown_emoji(coordinator: SessionCoordinator, room_id: str) -> None:
    outbound = handle(coordinator, "ada", "sendEmoji", roomId=room_id, symbol="🦄")
    assert error_code(outbound) == "invalid_request"


# --- LOBBY ROUTING ---
def test_lobby_errors_are_reported(coordinator: SessionCoordinator) -> None:
    assert error_code(handle(coordinator, "ada", "enterLobby")) == "lobby"
    assert error_code(handle(coordinator, "ada", "chatMessage", text="hi")) == "lobby"


def test_invite_flow(coordinator: SessionCoordinator) -> None:
    for pid in ("ada", "bob"):
        handle(coordinator, pid, "login", nickname=pid.capitalize())
        handle(coordinator, pid, "enterLobby")
    assert events(handle(coordinator, "ada", "sendMatchRequest", targetId="bob")) == [
        Event.MATCH_REQUEST
    ]
    outbound = handle(coordinator, "bob", "acceptMatch", requesterId="ada")
    assert events(outbound) == [Event.MATCH_ACCEPTED, Event.MATCH_ACCEPTED]
    room_id = outbound[0].payload["roomId"]

    # the requester (red) opens
    outbound = handle(coordinator, "ada", "placeCentralBlock", roomId=room_id, index=24)
    assert events(outbound) == [Event.CENTRAL_BLOCK_PLACED, Event.TURN_CHANGE]
