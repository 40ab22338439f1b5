from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional, Sequence

from ..logging_setup import log_event
from .move_sorter import MoveSorter
from .openings import OpeningBook, default_opening_book, load_opening_book
from .position import CELLS, MAX_SCORE, MIN_SCORE, WIDTH, Position, column_mask
from .tt import DEFAULT_SIZE, TranspositionTable, next_prime

logger = logging.getLogger(__name__)

INVALID_MOVE = -1000


class SearchAborted(RuntimeError):
    """A bounded search ran out of nodes or time."""


def center_out_order(width: int = WIDTH) -> List[int]:
    """Column exploration order, centre first: [3, 4, 2, 5, 1, 6, 0] for 7 columns."""
    return [width // 2 + (2 * (i % 2) - 1) * ((i + 1) // 2) for i in range(width)]


def best_column(scores: Sequence[int]) -> Optional[int]:
    """Highest scoring playable column, ties going to the most central one."""
    best = None
    for col in center_out_order(len(scores)):
        if scores[col] == INVALID_MOVE:
            continue
        if best is None or scores[col] > scores[best]:
            best = col
    return best


class Solver:
    """Exact Connect-4 solver: negamax with alpha-beta pruning.

    Scores follow the usual convention: a win with the player's k-th stone
    scores 22 - k (so a faster win is worth more), a draw scores 0 and a loss
    is the negated opponent win.
    """

    INVALID_MOVE = INVALID_MOVE

    def __init__(self, tt_size: int = DEFAULT_SIZE, book: Optional[OpeningBook] = None, use_book: bool = True) -> None:
        self.trans_table = TranspositionTable(tt_size)
        if use_book and book is None:
            book = default_opening_book()
        self.book = book if use_book else None
        self.node_count = 0
        self._node_limit: Optional[int] = None
        self._deadline: Optional[float] = None
        self.column_order = center_out_order()
        # one sorter per ply, a node never shares its ply with a child
        self._sorters = [MoveSorter() for _ in range(CELLS + 1)]

    @classmethod
    def from_config(cls, config: Dict[str, Any], book: Optional[OpeningBook] = None) -> "Solver":
        """Build a solver from the [engine] section of a loaded config."""
        eng = config.get("engine", {}) or {}
        use_book = bool(eng.get("use_book", True))
        if use_book and book is None and eng.get("book_path"):
            book = load_opening_book(eng["book_path"])
        tt_size = next_prime(int(eng.get("tt_size", DEFAULT_SIZE)))
        return cls(tt_size=tt_size, book=book, use_book=use_book)

    def negamax(self, P: Position, alpha: int, beta: int) -> int:
        """Score P within the [alpha, beta] window.

        P must not be won already and the side to move must not have a
        winning move. Returns the exact score when it lies inside the window,
        otherwise a bound on the same side of the window as the true score.
        """
        self.node_count += 1
        if self._node_limit is not None and self.node_count > self._node_limit:
            raise SearchAborted(f"node budget exhausted at {self.node_count} nodes")
        if self._deadline is not None and (self.node_count & 1023) == 0 and time.perf_counter() > self._deadline:
            raise SearchAborted("time budget exhausted")

        possible = P.possible_non_losing_moves()
        if possible == 0:
            # opponent wins with the next stone
            return -((CELLS - P.nb_moves()) // 2)

        if P.nb_moves() >= CELLS - 2:
            return 0

        # opponent cannot win on the next move
        lo = -((CELLS - 2 - P.nb_moves()) // 2)
        if alpha < lo:
            alpha = lo
            if alpha >= beta:
                return alpha

        # we cannot win on this move
        hi = (CELLS - 1 - P.nb_moves()) // 2
        if beta > hi:
            beta = hi
            if alpha >= beta:
                return beta

        key = P.key()
        val = self.trans_table.get(key)
        if val:
            if val > MAX_SCORE - MIN_SCORE + 1:
                lo = val + 2 * MIN_SCORE - MAX_SCORE - 2
                if alpha < lo:
                    alpha = lo
                    if alpha >= beta:
                        return alpha
            else:
                hi = val + MIN_SCORE - 1
                if beta > hi:
                    beta = hi
                    if alpha >= beta:
                        return beta

        if self.book is not None:
            val = self.book.get(P)
            if val:
                return val + MIN_SCORE - 1

        moves = self._sorters[P.nb_moves()]
        moves.reset()
        for col in reversed(self.column_order):
            move = possible & column_mask(col)
            if move:
                moves.add(move, P.move_score(move))

        nxt = moves.get_next()
        while nxt:
            P2 = P.clone()
            P2.play(nxt)
            score = -self.negamax(P2, -beta, -alpha)
            if score >= beta:
                # lower bound
                self.trans_table.put(key, score + MAX_SCORE - 2 * MIN_SCORE + 2)
                return score
            if score > alpha:
                alpha = score
            nxt = moves.get_next()

        # upper bound
        self.trans_table.put(key, alpha - MIN_SCORE + 1)
        return alpha

    def solve(self, P: Position, weak: bool = False) -> int:
        """Score of P for the side to move; with weak=True only its sign."""
        if P.can_win_next():
            return (CELLS + 1 - P.nb_moves()) // 2

        lo = -((CELLS - P.nb_moves()) // 2)
        hi = (CELLS + 1 - P.nb_moves()) // 2
        if weak:
            lo, hi = -1, 1

        while lo < hi:
            med = lo + (hi - lo) // 2
            # scores cluster around 0, try windows closer to it first
            if med <= 0 and int(lo / 2) < med:
                med = int(lo / 2)
            elif med >= 0 and int(hi / 2) > med:
                med = int(hi / 2)
            r = self.negamax(P, med, med + 1)
            if r <= med:
                hi = r
            else:
                lo = r
        return lo

    def analyze(self, P: Position, weak: bool = False, max_nodes: Optional[int] = None, deadline: Optional[float] = None) -> List[int]:
        """Score of every column for the side to move, INVALID_MOVE where full.

        With max_nodes, or a deadline on the time.perf_counter() clock, the
        search raises SearchAborted once the budget runs out. Table entries
        written before that stay valid.
        """
        start = time.perf_counter()
        nodes_before = self.node_count
        self._node_limit = None if max_nodes is None else self.node_count + max_nodes
        self._deadline = deadline
        scores = [INVALID_MOVE] * WIDTH
        try:
            for col in range(WIDTH):
                if not P.can_play(col):
                    continue
                if P.is_winning_move(col):
                    scores[col] = (CELLS + 1 - P.nb_moves()) // 2
                else:
                    P2 = P.clone()
                    P2.play_col(col)
                    scores[col] = -self.solve(P2, weak)
        finally:
            self._node_limit = None
            self._deadline = None
        elapsed_ms = int((time.perf_counter() - start) * 1000)
        nodes = self.node_count - nodes_before
        logger.debug("analyze ply=%d weak=%s scores=%s", P.nb_moves(), weak, scores)
        log_event("solver", "analyze", ply=P.nb_moves(), weak=weak, nodes=nodes, time_ms=elapsed_ms)
        return scores

    def get_node_count(self) -> int:
        return self.node_count

    def reset(self) -> None:
        self.node_count = 0
        self.trans_table.reset()
