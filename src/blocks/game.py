"""
The Game class is the entrypoint into the domain layer for the service layer (and for offline play).
It is responsible for orchestrating all the business logic required to play a turn -->
validate, update board + supply + history, detect the end of the game, and pass the turn.

Offline and online play use the very same class. The mode only decides whether the turn owner is checked.
"""

from dataclasses import dataclass, field
from typing import Optional, Self

from src.blocks.board import Board, Supply
from src.blocks.geometry import CENTER_INDEX
from src.blocks.history import MoveHistory, Placement
from src.blocks.rules import (
    check_win,
    is_draw,
    legal_placements,
    validate_placement,
)
from src.core.exceptions import GameStateError, NotYourTurnError
from src.core.models import GameModel
from src.core.shared_types import DRAW, Color, GameMode, Status

FIRST_PLAYER = Color.RED


@dataclass
class PlacementResult:
    """Everything the session layer needs to broadcast after an accepted placement."""

    placement: Placement
    is_central: bool
    red_remaining: int
    blue_remaining: int
    current_player: Color
    outcome: Optional[str] = None


@dataclass
class UndoResult:
    placement: Placement
    red_remaining: int
    blue_remaining: int
    current_player: Color


@dataclass
class Game:
    # --- DOMAIN LAYER API CALLED BY SERVICE---

    board: Board
    supply: Supply
    history: MoveHistory
    current_player: Color
    status: Status
    mode: GameMode
    players: dict[Color, str] = field(default_factory=dict)
    outcome: Optional[str] = None

    @classmethod
    def new_game(
        cls, mode: GameMode = GameMode.OFFLINE, players: Optional[dict[Color, str]] = None
    ) -> Self:
        """Empty board, full supplies, red to move. Online games need both participants."""
        players = dict(players or {})
        if mode == GameMode.ONLINE and set(players) != {Color.RED, Color.BLUE}:
            raise GameStateError("An online game needs a red and a blue participant.")
        return cls(
            board=Board.empty(),
            supply=Supply(),
            history=MoveHistory(),
            current_player=FIRST_PLAYER,
            status=Status.AWAITING_CENTER,
            mode=mode,
            players=players,
        )

    @classmethod
    def from_model(cls, model: GameModel) -> Self:
        """Define how to construct a Game from the information the Service layer actually has"""

        # Validation
        if model.status not in [status.value for status in Status]:
            raise GameStateError(
                f"Invalid status: {model.status!r}. \nPick one from {','.join(status.value for status in Status)}"
            )

        return cls(
            board=Board.from_text(model.board),
            supply=Supply(red=model.red_remaining, blue=model.blue_remaining),
            history=MoveHistory.from_list(model.moves),
            current_player=Color(model.current_player),
            status=Status(model.status),
            mode=GameMode(model.mode),
            players={Color(color): pid for color, pid in model.players.items()},
            outcome=model.outcome,
        )

    def to_model(self) -> GameModel:
        """Encode back into a format the Service layer uses"""
        return GameModel(
            board=self.board.to_text(),
            red_remaining=self.supply.red,
            blue_remaining=self.supply.blue,
            moves=self.history.to_list(),
            current_player=str(self.current_player),
            status=str(self.status),
            mode=str(self.mode),
            players={str(color): pid for color, pid in self.players.items()},
            outcome=self.outcome,
        )

    @property
    def is_finished(self) -> bool:
        return self.status == Status.FINISHED

    @property
    def winner(self) -> Optional[Color]:
        if self.outcome is None or self.outcome == DRAW:
            return None
        return Color(self.outcome)

    @property
    def current_participant(self) -> Optional[str]:
        return self.players.get(self.current_player)

    def color_of(self, participant: str) -> Optional[Color]:
        return next(
            (color for color, pid in self.players.items() if pid == participant), None
        )

    def legal_placements(self) -> list[int]:
        if self.is_finished:
            return []
        return legal_placements(self.board, self.history, self.current_player)

    def place(self, index: int, participant: Optional[str] = None) -> PlacementResult:
        """
        Attempt to place a block
        -----

        1. the game must still be running, and (online) it must be your turn
        2. the rule engine decides if the cell is legal
        3. update supply, board, and history
        4. check for a win or a draw
        5. pass the turn (unless the game just ended)
        """
        self._assert_not_finished()
        self._assert_your_turn(participant)

        player = self.current_player
        validate_placement(self.board, self.history, index, player)

        # The central block is the opening move and does not come out of the supply
        is_central = len(self.history) == 0
        if not is_central:
            self.supply.take(player)

        placement = Placement(index, player)
        self.board.place(index, player)
        self.history.record(placement)

        self._update_game_status(placement, is_central)

        if not self.is_finished:
            self._pass_turn()

        return PlacementResult(
            placement=placement,
            is_central=is_central,
            red_remaining=self.supply.red,
            blue_remaining=self.supply.blue,
            current_player=self.current_player,
            outcome=self.outcome,
        )

    def undo(self, participant: Optional[str] = None) -> UndoResult:
        """Take back the last placement: clear the cell, hand the block back, and pass the turn back."""
        self._assert_not_finished()
        self._assert_your_turn(participant)

        placement = self.history.pop_for_undo()
        self.board.clear(placement.index)
        self.supply.restore(placement.player)
        self._pass_turn()

        return UndoResult(
            placement=placement,
            red_remaining=self.supply.red,
            blue_remaining=self.supply.blue,
            current_player=self.current_player,
        )

    # -- PRIVATE HELPERS ---
    def _assert_not_finished(self) -> None:
        if self.is_finished:
            raise GameStateError(f"Game is over. outcome: {self.outcome}")

    def _assert_your_turn(self, participant: Optional[str]) -> None:
        """Online only: you must wait for your turn before placing or undoing."""
        if self.mode == GameMode.OFFLINE:
            return
        if participant != self.current_participant:
            raise NotYourTurnError(
                f"It is not your turn. Waiting for {self.current_player} to move first."
            )

    def _update_game_status(self, placement: Placement, is_central: bool) -> None:
        if is_central:
            # the rules only let the center be the first block
            assert placement.index == CENTER_INDEX
            self.status = Status.IN_PLAY
            return

        if check_win(self.board, placement.index, placement.player):
            self._finish(str(placement.player))
        elif is_draw(self.supply, self.board, placement.index, placement.player):
            self._finish(DRAW)

    def _finish(self, outcome: str) -> None:
        self.outcome = outcome
        self.status = Status.FINISHED

    def _pass_turn(self) -> None:
        self.current_player = self.current_player.opponent
