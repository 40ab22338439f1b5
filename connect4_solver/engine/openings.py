from __future__ import annotations

import logging
import pathlib
from functools import lru_cache
from importlib import resources
from typing import Dict, List, Optional, Union

import orjson

from .position import HEIGHT, MIN_SCORE, WIDTH, Position
from .tt import TranspositionTable, next_prime

logger = logging.getLogger(__name__)

BOOK_RESOURCE = "opening_book.json"


class OpeningBookError(ValueError):
    """Malformed opening book dataset."""


class OpeningBook:
    """Exact scores of early positions, keyed by the symmetric base-3 key.

    Values use the solver's encoding, score - MIN_SCORE + 1, so 0 still
    means "not in the book".
    """

    def __init__(self, table: TranspositionTable, depth: int) -> None:
        self.table = table
        self.depth = depth

    def get(self, position: Position) -> int:
        if position.nb_moves() > self.depth:
            return 0
        return self.table.get(position.key3())

    def __len__(self) -> int:
        return len(self.table)

    @classmethod
    def from_dict(cls, data: Dict) -> "OpeningBook":
        try:
            width = int(data["width"])
            height = int(data["height"])
            depth = int(data["depth"])
            log_size = int(data["log_size"])
            entries = data["entries"]
        except (KeyError, TypeError, ValueError) as e:
            raise OpeningBookError(f"bad opening book header: {e}") from e
        if (width, height) != (WIDTH, HEIGHT):
            raise OpeningBookError(f"opening book is for a {width}x{height} board, expected {WIDTH}x{HEIGHT}")
        table = TranspositionTable(next_prime(1 << log_size))
        for entry in entries:
            value = int(entry["value"])
            if value == 0:
                raise OpeningBookError(f"zero value for key3 {entry['key3']}")
            table.put(int(entry["key3"]), value)
        return cls(table, depth)


def load_opening_book(path: Optional[Union[str, pathlib.Path]] = None) -> OpeningBook:
    """Load a book file, or the dataset packaged with the engine."""
    if path:
        raw = pathlib.Path(path).read_bytes()
        source = str(path)
    else:
        raw = resources.files("connect4_solver.engine").joinpath(BOOK_RESOURCE).read_bytes()
        source = BOOK_RESOURCE
    try:
        data = orjson.loads(raw)
    except orjson.JSONDecodeError as e:
        raise OpeningBookError(f"{source}: {e}") from e
    book = OpeningBook.from_dict(data)
    logger.info("Loaded opening book %s: %d positions, depth %d", source, len(book), book.depth)
    return book


@lru_cache(maxsize=1)
def default_opening_book() -> OpeningBook:
    """The packaged book, loaded once per process and shared read-only."""
    return load_opening_book()


def collision_free_log_size(keys: List[int], start: int = 10) -> int:
    """Smallest table size exponent at which no two keys share a bucket."""
    log_size = max(start, (2 * len(keys)).bit_length())
    while True:
        size = next_prime(1 << log_size)
        if len({k % size for k in keys}) == len(keys):
            return log_size
        log_size += 1


def build_opening_book(depth: int, solver=None, root: Optional[Position] = None, log_size: Optional[int] = None) -> Dict:
    """Solve every distinct position reachable from `root` with at most `depth` moves.

    Positions where the game is already won are skipped and mirror images
    share a key3, so each is solved once. Returns the dataset as a dict ready
    for save_opening_book().
    """
    from .solver import Solver

    root = Position() if root is None else root
    if depth < root.nb_moves():
        raise ValueError(f"depth {depth} is below the root's {root.nb_moves()} moves")
    if root.is_game_over():
        raise ValueError("cannot build a book from a finished game")
    solver = solver or Solver(use_book=False)
    entries: List[Dict[str, int]] = []
    seen = set()
    frontier = [root.clone()]
    while frontier:
        next_frontier = []
        for pos in frontier:
            k3 = pos.key3()
            if k3 in seen:
                continue
            seen.add(k3)
            score = solver.solve(pos)
            entries.append({"key3": k3, "value": score - MIN_SCORE + 1})
            if pos.nb_moves() == depth:
                continue
            for col in range(WIDTH):
                if pos.can_play(col) and not pos.is_winning_move(col):
                    child = pos.clone()
                    child.play_col(col)
                    next_frontier.append(child)
        logger.info("Opening book: %d positions solved", len(entries))
        frontier = next_frontier
    if log_size is None:
        log_size = collision_free_log_size([e["key3"] for e in entries])
    return {"width": WIDTH, "height": HEIGHT, "depth": depth, "log_size": log_size, "entries": entries}


def save_opening_book(data: Dict, path: Union[str, pathlib.Path]) -> None:
    pathlib.Path(path).write_bytes(orjson.dumps(data, option=orjson.OPT_INDENT_2))
