from __future__ import annotations

import argparse
import logging
from time import perf_counter
from typing import List, Optional

from connect4_solver.engine.notation import play_sequence
from connect4_solver.engine.openings import build_opening_book, save_opening_book
from connect4_solver.engine.solver import Solver
from connect4_solver.engine.tt import DEFAULT_SIZE, next_prime
from connect4_solver.logging_setup import setup_logging

logger = logging.getLogger(__name__)


def main(argv: Optional[List[str]] = None) -> int:
    p = argparse.ArgumentParser(prog="connect4-book", description="Solve early positions into an opening book")
    p.add_argument("--depth", type=int, required=True, help="deepest move count stored in the book")
    p.add_argument("--output", required=True, help="JSON file to write")
    p.add_argument("--root", default="", help="only book the positions following these moves")
    p.add_argument("--tt-size", type=int, default=DEFAULT_SIZE)
    args = p.parse_args(argv)

    setup_logging(overwrite=False)
    try:
        root = play_sequence(args.root)
    except ValueError as e:
        logger.error("Invalid root sequence %r: %s", args.root, e)
        return 1
    if args.depth < root.nb_moves():
        logger.error("--depth %d is shallower than the root (%d moves)", args.depth, root.nb_moves())
        return 1

    solver = Solver(tt_size=next_prime(args.tt_size), use_book=False)
    t0 = perf_counter()
    data = build_opening_book(args.depth, solver, root=root)
    save_opening_book(data, args.output)
    dt = perf_counter() - t0
    print(f"book depth={args.depth} positions={len(data['entries'])} nodes={solver.get_node_count()} in {dt:.3f}s")
    return 0
