from __future__ import annotations

from typing import List

from .position import WIDTH, ContractError


class MoveSorter:
    """Orders candidate moves by score, highest first.

    Moves are inserted with an insertion sort, which is cheap for at most
    WIDTH entries and nearly free when they arrive in increasing order.
    Among equal scores the move added last comes out first.
    """

    def __init__(self) -> None:
        self.size = 0
        self.moves: List[int] = [0] * WIDTH
        self.scores: List[int] = [0] * WIDTH

    def add(self, move: int, score: int) -> None:
        if self.size >= WIDTH:
            raise ContractError(f"MoveSorter holds at most {WIDTH} moves")
        pos = self.size
        self.size += 1
        while pos and self.scores[pos - 1] > score:
            self.moves[pos] = self.moves[pos - 1]
            self.scores[pos] = self.scores[pos - 1]
            pos -= 1
        self.moves[pos] = move
        self.scores[pos] = score

    def get_next(self) -> int:
        """Pop the remaining move with the highest score, or 0 when empty."""
        if self.size:
            self.size -= 1
            return self.moves[self.size]
        return 0

    def reset(self) -> None:
        self.size = 0

    def __len__(self) -> int:
        return self.size
