from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..logging_setup import log_event
from .position import CELLS, WIDTH, Position, column_mask, popcount
from .solver import INVALID_MOVE, SearchAborted, Solver, best_column, center_out_order

logger = logging.getLogger(__name__)

# Heuristic scores stay well inside +/-WIN_SCORE; a forced result seen within
# the horizon lands beyond it, faster wins further out.
WIN_SCORE = 100
INF = 2 * WIN_SCORE


@dataclass
class SearchLimits:
    max_depth: int = 8
    time_ms: int = 1000
    node_cap: int = 200_000
    exact_nodes: int = 20_000

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "SearchLimits":
        eng = config.get("engine", {}) or {}
        return cls(
            max_depth=int(eng.get("max_depth", cls.max_depth)),
            time_ms=int(eng.get("time_ms", cls.time_ms)),
            node_cap=int(eng.get("node_cap", cls.node_cap)),
            exact_nodes=int(eng.get("exact_nodes", cls.exact_nodes)),
        )


@dataclass
class SearchResult:
    scores: List[int]
    best_column: Optional[int]
    exact: bool
    depth: int
    nodes: int
    time_ms: int


def evaluate(P: Position) -> int:
    """Open winning cells of the side to move minus the opponent's."""
    return popcount(P.winning_position()) - popcount(P.opponent_winning_position())


class Searcher:
    """Column scores within a time and node budget.

    The exact solver gets the first half of the time budget (and at most
    `exact_nodes` nodes). When it does not finish, an iterative deepening
    search ordered by move_score fills in heuristic scores; depth 1 always
    completes, so a column is always returned.
    """

    def __init__(self, solver: Optional[Solver] = None, limits: Optional[SearchLimits] = None) -> None:
        self.solver = solver or Solver()
        self.limits = limits or SearchLimits()
        self.nodes = 0
        self.column_order = center_out_order()

    def analyze(self, P: Position, weak: bool = False) -> SearchResult:
        start = time.perf_counter()
        budget = self.limits.time_ms / 1000
        solver_nodes = self.solver.get_node_count()
        try:
            scores = self.solver.analyze(P, weak, max_nodes=self.limits.exact_nodes, deadline=start + budget / 2)
        except SearchAborted as e:
            logger.debug("exact search gave up at ply %d: %s", P.nb_moves(), e)
        else:
            nodes = self.solver.get_node_count() - solver_nodes
            return SearchResult(scores, best_column(scores), True, CELLS - P.nb_moves(), nodes, _elapsed_ms(start))

        self.nodes = 0
        scores = self._root(P, 1, None)
        depth = 1
        for d in range(2, self.limits.max_depth + 1):
            try:
                scores = self._root(P, d, start + budget)
            except SearchAborted:
                break
            depth = d
        nodes = self.solver.get_node_count() - solver_nodes + self.nodes
        result = SearchResult(scores, best_column(scores), False, depth, nodes, _elapsed_ms(start))
        log_event("search", "heuristic", ply=P.nb_moves(), depth=depth, nodes=nodes, time_ms=result.time_ms)
        return result

    def _root(self, P: Position, depth: int, deadline: Optional[float]) -> List[int]:
        scores = [INVALID_MOVE] * WIDTH
        for col in range(WIDTH):
            if not P.can_play(col):
                continue
            if P.is_winning_move(col):
                scores[col] = WIN_SCORE + (CELLS + 1 - P.nb_moves()) // 2
                continue
            P2 = P.clone()
            P2.play_col(col)
            scores[col] = -self._negamax(P2, depth - 1, -INF, INF, deadline)
        return scores

    def _negamax(self, P: Position, depth: int, alpha: int, beta: int, deadline: Optional[float]) -> int:
        self.nodes += 1
        if deadline is not None and (self.nodes >= self.limits.node_cap or time.perf_counter() > deadline):
            raise SearchAborted("heuristic search budget exhausted")

        if P.can_win_next():
            return WIN_SCORE + (CELLS + 1 - P.nb_moves()) // 2
        possible = P.possible_non_losing_moves()
        if possible == 0:
            return -(WIN_SCORE + (CELLS - P.nb_moves()) // 2)
        if P.nb_moves() >= CELLS - 2:
            return 0
        if depth <= 0:
            return evaluate(P)

        moves = []
        for col in self.column_order:
            move = possible & column_mask(col)
            if move:
                moves.append((P.move_score(move), move))
        # stable sort keeps the centre first among equal scores
        moves.sort(key=lambda m: -m[0])

        best = -INF
        for _, move in moves:
            P2 = P.clone()
            P2.play(move)
            score = -self._negamax(P2, depth - 1, -beta, -alpha, deadline)
            if score > best:
                best = score
            if score > alpha:
                alpha = score
            if alpha >= beta:
                break
        return best


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)
