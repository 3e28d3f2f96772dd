"""
Type definitions used across layers
"""

from enum import StrEnum


class Status(StrEnum):
    AWAITING_CENTER = "awaiting center"
    IN_PLAY = "in play"
    FINISHED = "finished"


class Color(StrEnum):
    RED = "red"
    BLUE = "blue"

    @property
    def opponent(self) -> "Color":
        return Color.BLUE if self == Color.RED else Color.RED


class GameMode(StrEnum):
    OFFLINE = "offline"
    ONLINE = "online"


# Written on the wire in place of a color when nobody won
DRAW = "draw"
