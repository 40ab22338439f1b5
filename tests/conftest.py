from __future__ import annotations

import random

import pytest

from connect4_solver.engine.position import CELLS, WIDTH, Position

# A complete game in which nobody ever aligns four stones. The final board is
# X where (col // 2 + row) is even, O elsewhere.
TIE_GAME = "133113311331" "244224422442" "577557755775" "666666"


def brute_force_score(pos: Position) -> int:
    """Plain minimax over the whole remaining tree."""
    if pos.nb_moves() == CELLS:
        return 0
    for col in range(WIDTH):
        if pos.can_play(col) and pos.is_winning_move(col):
            return (CELLS + 1 - pos.nb_moves()) // 2
    best = -CELLS
    for col in range(WIDTH):
        if pos.can_play(col):
            child = pos.clone()
            child.play_col(col)
            best = max(best, -brute_force_score(child))
    return best


def random_game(rng: random.Random, n_moves: int):
    """Random non-winning play for n_moves plies; returns (position, columns)."""
    while True:
        pos = Position()
        cols = []
        for _ in range(n_moves):
            choices = [c for c in range(WIDTH) if pos.can_play(c) and not pos.is_winning_move(c)]
            if not choices:
                break
            col = rng.choice(choices)
            pos.play_col(col)
            cols.append(col)
        else:
            return pos, cols


@pytest.fixture
def tie_game() -> str:
    return TIE_GAME


@pytest.fixture
def rng() -> random.Random:
    return random.Random(0xC4C4)


@pytest.fixture
def brute_force():
    return brute_force_score


@pytest.fixture
def make_random_game():
    return random_game
