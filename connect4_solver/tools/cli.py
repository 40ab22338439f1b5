from __future__ import annotations

import argparse
import logging
from time import perf_counter
from typing import List, Optional

from connect4_solver.engine.game import Game
from connect4_solver.engine.notation import parse_moves
from connect4_solver.engine.position import CELLS
from connect4_solver.engine.search import SearchLimits, Searcher
from connect4_solver.engine.solver import INVALID_MOVE, Solver, best_column
from connect4_solver.logging_setup import setup_logging
from connect4_solver.tools.diag import load_config

logger = logging.getLogger(__name__)


def main(argv: Optional[List[str]] = None) -> int:
    p = argparse.ArgumentParser(prog="connect4-solve", description="Score every column of a Connect-4 position")
    p.add_argument("moves", nargs="?", default="", help="1-based columns played so far, e.g. 4453")
    p.add_argument("--weak", action="store_true", help="only tell win / draw / loss apart")
    p.add_argument("--no-book", action="store_true", help="do not use the opening book")
    p.add_argument("--exact", action="store_true", help="solve without a time budget, however long it takes")
    p.add_argument("--time-ms", type=int, default=None, help="search budget, overrides [engine] time_ms")
    p.add_argument("--config", default=None, help="Configuration file path")
    args = p.parse_args(argv)

    try:
        config = load_config(args.config)
    except (OSError, ValueError) as e:
        logger.error("Error loading config %s: %s", args.config, e)
        return 1
    log_cfg = config.get("logging", {})
    setup_logging(overwrite=log_cfg.get("overwrite", True), level=log_cfg.get("level", "INFO"))

    game = Game()
    try:
        for col in parse_moves(args.moves):
            game.play(col)
    except ValueError as e:
        logger.error("Invalid move sequence %r: %s", args.moves, e)
        print(f"error: {e}")
        return 1

    print(game.render())
    if game.is_over():
        print(game.label())
        return 0

    if args.no_book:
        config.setdefault("engine", {})["use_book"] = False
    weak = args.weak or bool(config.get("engine", {}).get("weak", False))
    solver = Solver.from_config(config)

    t0 = perf_counter()
    if args.exact:
        scores = solver.analyze(game.position, weak=weak)
        exact, depth, nodes = True, CELLS - game.position.nb_moves(), solver.get_node_count()
    else:
        limits = SearchLimits.from_config(config)
        if args.time_ms is not None:
            limits.time_ms = args.time_ms
        result = Searcher(solver, limits).analyze(game.position, weak=weak)
        scores, exact, depth, nodes = result.scores, result.exact, result.depth, result.nodes
    dt = perf_counter() - t0

    cells = " ".join("-" if s == INVALID_MOVE else str(s) for s in scores)
    best = best_column(scores)
    print(f"scores: {cells}")
    print(f"score={scores[best]} best={best + 1} nodes={nodes} in {dt:.3f}s")
    if not exact:
        print(f"heuristic scores from a depth {depth} search, the exact solve did not fit the budget")
    logger.info("Solved %r (%d/%d cells) in %.3fs", args.moves, game.position.nb_moves(), CELLS, dt)
    return 0
