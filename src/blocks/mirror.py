"""
What a client keeps of an online game.

The server's Game is authoritative. The mirror only applies the deltas the server broadcasts and never
decides legality on its own (the hint is just for highlighting cells in a UI).
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from src.blocks.board import Board, Supply
from src.blocks.history import MoveHistory, Placement
from src.blocks.rules import legal_placements
from src.core.shared_types import Color

Payload = dict[str, Any]


@dataclass
class BoardMirror:
    my_color: Color
    board: Board = field(default_factory=Board.empty)
    supply: Supply = field(default_factory=Supply)
    history: MoveHistory = field(default_factory=MoveHistory)
    current_player: Color = Color.RED
    outcome: Optional[str] = None
    opponent_left: bool = False

    @property
    def is_my_turn(self) -> bool:
        return (
            self.outcome is None
            and not self.opponent_left
            and self.current_player == self.my_color
        )

    def apply(self, event: str, payload: Optional[Payload] = None) -> None:
        """Route a server event to the matching handler. Events that do not touch the board are ignored."""
        handler = self._HANDLERS.get(event)
        if handler is not None:
            handler(self, payload or {})

    def hint_legal_placements(self) -> list[int]:
        if not self.is_my_turn:
            return []
        return legal_placements(self.board, self.history, self.my_color)

    # --- event handlers ---
    def _on_block_placed(self, payload: Payload) -> None:
        player = Color(payload["player"])
        self.board.place(payload["index"], player)
        self.history.record(Placement(payload["index"], player))
        self._set_counts(payload)

    def _on_turn_change(self, payload: Payload) -> None:
        self.current_player = Color(payload["currentPlayer"])

    def _on_move_undone(self, payload: Payload) -> None:
        self.board.clear(payload["index"])
        # the server already refused anything that would pop the center
        if self.history.last is not None and self.history.last.index == payload["index"]:
            self.history.placements.pop()
        self._set_counts(payload)
        self.current_player = Color(payload["currentPlayer"])

    def _on_game_over(self, payload: Payload) -> None:
        self.outcome = payload["winner"]

    def _on_opponent_disconnected(self, payload: Payload) -> None:
        self.opponent_left = True

    def _set_counts(self, payload: Payload) -> None:
        self.supply.red = payload["redCount"]
        self.supply.blue = payload["blueCount"]

    _HANDLERS = {
        "centralBlockPlaced": _on_block_placed,
        "blockPlaced": _on_block_placed,
        "turnChange": _on_turn_change,
        "moveUndone": _on_move_undone,
        "gameOver": _on_game_over,
        "opponentDisconnected": _on_opponent_disconnected,
    }
