from __future__ import annotations

import argparse
import logging
from typing import List, Optional

from connect4_solver.engine.game import Game, PlayerKind, PlayerSlot
from connect4_solver.engine.notation import moves_to_string
from connect4_solver.engine.position import IllegalMoveError
from connect4_solver.engine.search import SearchLimits
from connect4_solver.engine.solver import Solver
from connect4_solver.logging_setup import setup_logging
from connect4_solver.tools.diag import load_config

logger = logging.getLogger(__name__)


def ask_column(game: Game) -> Optional[int]:
    """Prompt until a playable column is entered; None on 'q' or end of input."""
    while True:
        try:
            raw = input(f"{game.label()} (1-7, q to quit): ").strip().lower()
        except EOFError:
            return None
        if raw in ("q", "quit"):
            return None
        if raw.isdigit() and game.position.can_play(int(raw) - 1):
            return int(raw) - 1
        print("Not a playable column")


def main(argv: Optional[List[str]] = None) -> int:
    p = argparse.ArgumentParser(prog="connect4-play")
    p.add_argument("--red", choices=[k.value for k in PlayerKind], default="human")
    p.add_argument("--yellow", choices=[k.value for k in PlayerKind], default="bot")
    p.add_argument("--red-name", default="Red", help="name shown for the first player")
    p.add_argument("--yellow-name", default="Yellow", help="name shown for the second player")
    p.add_argument("--weak", action="store_true", help="bots only look at win / draw / loss")
    p.add_argument("--config", default=None, help="Configuration file path")
    args = p.parse_args(argv)

    try:
        config = load_config(args.config)
    except (OSError, ValueError) as e:
        logger.error("Error loading config %s: %s", args.config, e)
        return 1
    log_cfg = config.get("logging", {})
    setup_logging(overwrite=log_cfg.get("overwrite", True), level=log_cfg.get("level", "INFO"))

    players = [PlayerSlot(args.red_name, PlayerKind(args.red)), PlayerSlot(args.yellow_name, PlayerKind(args.yellow))]
    weak = args.weak or bool(config.get("engine", {}).get("weak", False))
    game = Game(players, solver=Solver.from_config(config), weak=weak, limits=SearchLimits.from_config(config))

    while not game.is_over():
        print(game.render())
        if game.current_slot.kind is PlayerKind.BOT:
            col = game.bot_move()
            print(f"{game.current_slot.name} plays {col + 1}")
        else:
            col = ask_column(game)
            if col is None:
                logger.info("Game abandoned after %s", moves_to_string(game.moves) or "no moves")
                return 0
        try:
            game.play(col)
        except IllegalMoveError as e:
            print(f"error: {e}")

    print(game.render())
    print(game.label())
    print(f"moves: {moves_to_string(game.moves)}")
    return 0
