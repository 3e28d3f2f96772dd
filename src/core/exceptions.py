"""
Custom exceptions shared by all layers.

Domain code raises these, the session layer turns them into `error` frames addressed to the sender only.
"""


class GameError(Exception):
    """Top-level exception: anything that goes wrong while playing a game."""

    code: str = "game_error"


class InvalidPlacementError(GameError):
    """Wrong phase, occupied cell, or a violation of the frontier rule."""

    code = "invalid_placement"


class NotYourTurnError(GameError):
    code = "not_your_turn"


class CenterImmutableError(GameError):
    """The central block can never be taken back."""

    code = "center_immutable"


class NothingToUndoError(GameError):
    code = "nothing_to_undo"


class GameStateError(GameError):
    """Command does not fit the state the game is in (ex. the game is already over)."""

    code = "game_state"


class RoomNotFoundError(GameError):
    """Stale/late message for a room that was already torn down."""

    code = "room_not_found"


class LobbyError(GameError):
    """Login, chat, and match request problems."""

    code = "lobby"


class InvalidRequestError(GameError):
    """Incoming frame could not be parsed / validated."""

    code = "invalid_request"


class RepositoryError(GameError):
    code = "repository"
