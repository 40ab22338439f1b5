"""
Move sequence notation for Connect-4.

A game is written as the string of the 1-based columns played, e.g. "4453"
means columns 3, 3, 4 and 2 (0-based) were played in that order. This is the
notation used by the usual Connect-4 solver test sets.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Union

from .position import WIDTH, IllegalMoveError, Position


def parse_moves(text: str) -> List[int]:
    """Convert a move string (e.g. '4453') to 0-based column indices."""
    cols = []
    for ch in text:
        if ch.isspace():
            continue
        if not ch.isdigit():
            raise ValueError(f"Invalid move character: {ch!r}")
        col = int(ch) - 1
        if not 0 <= col < WIDTH:
            raise ValueError(f"Column out of range: {ch}")
        cols.append(col)
    return cols


def moves_to_string(cols: Iterable[int]) -> str:
    """Convert 0-based column indices to a move string."""
    out = []
    for col in cols:
        if not 0 <= col < WIDTH:
            raise ValueError(f"Column out of range: {col}")
        out.append(str(col + 1))
    return "".join(out)


def play_sequence(moves: Union[str, Iterable[int]], position: Optional[Position] = None) -> Position:
    """Play a sequence of moves and return the resulting position.

    Raises IllegalMoveError on a full column, or when a move is played after
    one of the players has already aligned four stones.
    """
    cols = parse_moves(moves) if isinstance(moves, str) else list(moves)
    pos = Position() if position is None else position
    for i, col in enumerate(cols):
        if pos.winning_pieces():
            raise IllegalMoveError(f"move {i + 1} played after the game was won")
        if not pos.can_play(col):
            raise IllegalMoveError(f"move {i + 1}: column {col + 1} is not playable")
        pos.play_col(col)
    return pos
