from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from .notation import moves_to_string
from .position import CELLS, H1, HEIGHT, WIDTH, IllegalMoveError, Position
from .search import SearchLimits, Searcher
from .solver import Solver

logger = logging.getLogger(__name__)

CELL_CHARS = {0: ".", 1: "X", 2: "O"}


class PlayerKind(str, Enum):
    HUMAN = "human"
    BOT = "bot"


class GameStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    WON = "won"
    TIE = "tie"


@dataclass
class PlayerSlot:
    name: str
    kind: PlayerKind = PlayerKind.HUMAN


@dataclass
class MoveResult:
    column: int
    player: int  # 0 = first player, 1 = second
    status: GameStatus
    winning_cells: List[Tuple[int, int]] = field(default_factory=list)


def cells_from_mask(mask: int) -> List[Tuple[int, int]]:
    """(col, row) pairs of the set bits of a board mask."""
    cells = []
    for col in range(WIDTH):
        for row in range(HEIGHT):
            if mask >> (col * H1 + row) & 1:
                cells.append((col, row))
    return cells


class Game:
    """Turn-by-turn game flow on top of Position and Solver."""

    def __init__(
        self,
        players: Optional[List[PlayerSlot]] = None,
        solver: Optional[Solver] = None,
        weak: bool = True,
        limits: Optional[SearchLimits] = None,
    ) -> None:
        self.players = players or [PlayerSlot("Red"), PlayerSlot("Yellow")]
        if len(self.players) != 2:
            raise ValueError("a game needs exactly two players")
        self.solver = solver
        self.weak = weak
        self.limits = limits
        self.searcher: Optional[Searcher] = None
        self.reset()

    def reset(self) -> None:
        self.position = Position()
        self.moves: List[int] = []
        self.status = GameStatus.IN_PROGRESS
        self.winner: Optional[int] = None
        self.winning_cells: List[Tuple[int, int]] = []

    @property
    def current_player(self) -> int:
        return self.position.nb_moves() % 2

    @property
    def current_slot(self) -> PlayerSlot:
        return self.players[self.current_player]

    def is_over(self) -> bool:
        return self.status is not GameStatus.IN_PROGRESS

    def play(self, col: int) -> MoveResult:
        if self.is_over():
            raise IllegalMoveError("the game is over")
        if not self.position.can_play(col):
            raise IllegalMoveError(f"column {col} is not playable")
        player = self.current_player
        wins = self.position.is_winning_move(col)
        self.position.play_col(col)
        self.moves.append(col)
        if wins:
            self.status = GameStatus.WON
            self.winner = player
            self.winning_cells = cells_from_mask(self.position.winning_pieces())
            logger.info("%s won with column %d after %d moves", self.players[player].name, col, len(self.moves))
        elif self.position.nb_moves() >= CELLS:
            self.status = GameStatus.TIE
            logger.info("Game tied: %s", moves_to_string(self.moves))
        return MoveResult(col, player, self.status, list(self.winning_cells))

    def bot_move(self) -> int:
        """Column chosen for the side to move within the search budget."""
        if self.is_over():
            raise IllegalMoveError("the game is over")
        if self.searcher is None:
            self.searcher = Searcher(self.solver, self.limits)
            self.solver = self.searcher.solver
        result = self.searcher.analyze(self.position, weak=self.weak)
        logger.debug("bot scores=%s choice=%s exact=%s depth=%d", result.scores, result.best_column, result.exact, result.depth)
        return result.best_column

    def label(self) -> str:
        if self.status is GameStatus.WON:
            return f"{self.players[self.winner].name} won!"
        if self.status is GameStatus.TIE:
            return "It was a tie!"
        return f"It is {self.current_slot.name}'s turn"

    def render(self) -> str:
        """Text grid, top row first, X for the first player."""
        win = set(self.winning_cells)
        lines = []
        for row in reversed(range(HEIGHT)):
            chars = []
            for col in range(WIDTH):
                c = CELL_CHARS[self.position.stone_at(col, row)]
                chars.append(c.lower() if (col, row) in win else c)
            lines.append(" ".join(chars))
        lines.append(" ".join(str(c + 1) for c in range(WIDTH)))
        return "\n".join(lines)
