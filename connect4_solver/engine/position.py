from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

# Board is WIDTH columns by HEIGHT rows. Each column takes HEIGHT+1 bits, the
# extra top bit stays empty so that keys are unambiguous. Bit order for 7x6:
#
#   .  .  .  .  .  .  .
#   5 12 19 26 33 40 47
#   4 11 18 25 32 39 46
#   3 10 17 24 31 38 45
#   2  9 16 23 30 37 44
#   1  8 15 22 29 36 43
#   0  7 14 21 28 35 42
#
# A position is two bitboards: `mask` (any stone) and `current` (stones of the
# side to move), plus the number of moves played.

WIDTH = 7
HEIGHT = 6
H1 = HEIGHT + 1
CELLS = WIDTH * HEIGHT

MIN_SCORE = -(CELLS // 2) + 3
MAX_SCORE = (CELLS + 1) // 2 - 3

BOTTOM_MASK = 0
for _c in range(WIDTH):
    BOTTOM_MASK |= 1 << (_c * H1)
BOARD_MASK = BOTTOM_MASK * ((1 << HEIGHT) - 1)

# Shift distances for the four alignment directions
VERTICAL = 1
HORIZONTAL = H1
DIAG_DOWN = HEIGHT  # "\" diagonal
DIAG_UP = HEIGHT + 2  # "/" diagonal


class IllegalMoveError(ValueError):
    """Raised when a stone is played where the rules do not allow it."""


class ContractError(RuntimeError):
    """Raised when engine code calls an operation outside its precondition."""


def popcount(x: int) -> int:
    return x.bit_count()


def top_mask_col(col: int) -> int:
    return 1 << (HEIGHT - 1 + col * H1)


def bottom_mask_col(col: int) -> int:
    return 1 << (col * H1)


def column_mask(col: int) -> int:
    return ((1 << HEIGHT) - 1) << (col * H1)


def compute_winning_position(position: int, mask: int) -> int:
    """Return the empty cells that would complete an alignment for `position`.

    For every direction the stones are shifted by one, two and three cells and
    ANDed together, covering the three-in-a-row runs as well as the split
    patterns (xx.x and x.xx) on both sides.
    """
    # vertical: only the cell on top of a run of three can be empty
    r = (position << 1) & (position << 2) & (position << 3)

    for d in (HORIZONTAL, DIAG_DOWN, DIAG_UP):
        p = (position << d) & (position << (2 * d))
        r |= p & (position << (3 * d))
        r |= p & (position >> d)
        p = (position >> d) & (position >> (2 * d))
        r |= p & (position << d)
        r |= p & (position >> (3 * d))

    return r & (BOARD_MASK ^ mask)


@dataclass
class Position:
    """A Connect-4 position, always seen from the side to move."""

    _current: int = 0
    _mask: int = 0
    _moves: int = 0

    @classmethod
    def from_moves(cls, moves: str | Iterable[int]) -> "Position":
        from .notation import play_sequence

        return play_sequence(moves)

    def clone(self) -> "Position":
        return Position(self._current, self._mask, self._moves)

    def nb_moves(self) -> int:
        return self._moves

    def play(self, move: int) -> None:
        """Play a single-bit move for the side to move (no legality check)."""
        self._current ^= self._mask
        self._mask |= move
        self._moves += 1

    def can_play(self, col: int) -> bool:
        if not 0 <= col < WIDTH:
            return False
        return (self._mask & top_mask_col(col)) == 0

    def play_col(self, col: int) -> None:
        if not self.can_play(col):
            raise IllegalMoveError(f"column {col} is not playable")
        self.play((self._mask + bottom_mask_col(col)) & column_mask(col))

    def possible(self) -> int:
        """Bitmap of the playable cells, losing moves included."""
        return (self._mask + BOTTOM_MASK) & BOARD_MASK

    def winning_position(self) -> int:
        return compute_winning_position(self._current, self._mask)

    def opponent_winning_position(self) -> int:
        return compute_winning_position(self._current ^ self._mask, self._mask)

    def can_win_next(self) -> bool:
        return (self.winning_position() & self.possible()) != 0

    def is_winning_move(self, col: int) -> bool:
        return (self.winning_position() & self.possible() & column_mask(col)) != 0

    def possible_non_losing_moves(self) -> int:
        """Playable moves that do not hand the opponent an immediate win.

        Must not be called when the side to move can win on this move.
        Returns 0 when every move loses.
        """
        if self.can_win_next():
            raise ContractError("possible_non_losing_moves called with a winning move available")

        possible_mask = self.possible()
        opponent_win = self.opponent_winning_position()
        forced_moves = possible_mask & opponent_win
        if forced_moves:
            if forced_moves & (forced_moves - 1):
                # two threats, only one can be blocked
                return 0
            possible_mask = forced_moves
        # never play right below an opponent winning cell
        return possible_mask & ~(opponent_win >> 1)

    def move_score(self, move: int) -> int:
        return popcount(compute_winning_position(self._current | move, self._mask))

    def key(self) -> int:
        return self._current + self._mask + BOTTOM_MASK

    def _partial_key3(self, key: int, col: int) -> int:
        pos = 1 << (col * H1)
        while pos & self._mask:
            key *= 3
            if pos & self._current:
                key += 1
            else:
                key += 2
            pos <<= 1
        return key * 3

    def key3(self) -> int:
        """Base-3 key shared by a position and its mirror image."""
        key_forward = 0
        for col in range(WIDTH):
            key_forward = self._partial_key3(key_forward, col)
        key_reverse = 0
        for col in reversed(range(WIDTH)):
            key_reverse = self._partial_key3(key_reverse, col)
        # last digit is always 0
        return min(key_forward, key_reverse) // 3

    def winning_pieces(self) -> int:
        """Cells of a completed four made by the player who moved last, or 0."""
        position = self._current ^ self._mask
        for d in (DIAG_DOWN, HORIZONTAL, DIAG_UP, VERTICAL):
            pair = position & (position >> d)
            pieces = pair & (pair >> (2 * d))
            if pieces:
                pieces |= pieces << d
                pieces |= pieces << (2 * d)
                return pieces
        return 0

    def is_game_over(self) -> bool:
        return self._moves >= CELLS or self.winning_pieces() != 0

    def stone_at(self, col: int, row: int) -> int:
        """0 for an empty cell, 1 for a first-player stone, 2 for a second-player stone."""
        bit = 1 << (col * H1 + row)
        if not self._mask & bit:
            return 0
        first_to_move = self._moves % 2 == 0
        mine = bool(self._current & bit)
        return 1 if mine == first_to_move else 2
