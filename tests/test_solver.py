from __future__ import annotations

import time

import pytest

from connect4_solver.engine.position import MAX_SCORE, MIN_SCORE, Position
from connect4_solver.engine.solver import INVALID_MOVE, SearchAborted, Solver, best_column, center_out_order


def sign(x: int) -> int:
    return (x > 0) - (x < 0)


def test_center_out_order():
    assert center_out_order() == [3, 4, 2, 5, 1, 6, 0]


def test_best_column_prefers_center_on_ties():
    assert best_column([0, 0, 0, 0, 0, 0, 0]) == 3
    assert best_column([1, -1, 0, 0, 0, -1, 1]) == 6
    assert best_column([INVALID_MOVE, 2, INVALID_MOVE, INVALID_MOVE, INVALID_MOVE, INVALID_MOVE, INVALID_MOVE]) == 1
    assert best_column([INVALID_MOVE] * 7) is None


def test_immediate_win():
    solver = Solver(use_book=False)
    pos = Position.from_moves("121212")
    assert solver.solve(pos) == (43 - 6) // 2 == MAX_SCORE
    assert MIN_SCORE == -MAX_SCORE


def test_double_threat_is_lost():
    solver = Solver(use_book=False)
    pos = Position.from_moves("22334")
    assert solver.solve(pos) == -18
    assert solver.analyze(pos) == [-18] * 7
    assert solver.solve(pos, weak=True) == -1


def test_empty_board_through_book():
    solver = Solver()
    assert solver.solve(Position()) == 1
    assert solver.analyze(Position()) == [-2, -1, 0, 1, 0, -1, -2]
    assert best_column(solver.analyze(Position())) == 3


def test_matches_brute_force(make_random_game, rng, brute_force):
    solver = Solver(tt_size=100_003, use_book=False)
    for _ in range(25):
        pos, _ = make_random_game(rng, 36)
        expected = brute_force(pos)
        assert solver.solve(pos) == expected
        assert sign(solver.solve(pos, weak=True)) == sign(expected)


def test_analyze_matches_brute_force(make_random_game, rng, brute_force):
    solver = Solver(tt_size=100_003, use_book=False)
    for _ in range(10):
        pos, _ = make_random_game(rng, 36)
        scores = solver.analyze(pos)
        for col in range(7):
            if not pos.can_play(col):
                assert scores[col] == INVALID_MOVE
            elif pos.is_winning_move(col):
                assert scores[col] == (43 - pos.nb_moves()) // 2
            else:
                child = pos.clone()
                child.play_col(col)
                assert scores[col] == -brute_force(child)


def test_solve_is_best_of_analyze(make_random_game, rng):
    solver = Solver(tt_size=1_000_003, use_book=False)
    for _ in range(8):
        pos, _ = make_random_game(rng, 30)
        scores = solver.analyze(pos)
        best = best_column(scores)
        assert solver.solve(pos) == scores[best] == max(scores)
        if not pos.is_winning_move(best):
            child = pos.clone()
            child.play_col(best)
            assert solver.solve(child) == -scores[best]


def test_tie_game_endings(tie_game, brute_force):
    solver = Solver(use_book=False)
    for n in (36, 38, 40, 41):
        pos = Position.from_moves(tie_game[:n])
        assert solver.solve(pos) == brute_force(pos)
    assert solver.solve(Position.from_moves(tie_game[:41])) == 0


def test_node_count_and_reset(tie_game):
    solver = Solver(use_book=False)
    assert solver.get_node_count() == 0
    solver.analyze(Position.from_moves(tie_game[:34]))
    nodes = solver.get_node_count()
    assert nodes > 0
    assert len(solver.trans_table) > 0
    solver.reset()
    assert solver.get_node_count() == 0
    assert len(solver.trans_table) == 0


def test_reset_does_not_change_results(tie_game):
    solver = Solver(use_book=False)
    pos = Position.from_moves(tie_game[:32])
    first = solver.analyze(pos)
    again = solver.analyze(pos)
    solver.reset()
    assert solver.analyze(pos) == first == again


def test_from_config():
    config = {"engine": {"tt_size": 1000, "use_book": False}}
    solver = Solver.from_config(config)
    assert solver.book is None
    assert solver.trans_table.size == 1009

    solver = Solver.from_config({})
    assert solver.book is not None
    assert solver.book.depth == 1


def test_node_budget_aborts_search():
    solver = Solver(tt_size=100_003, use_book=False)
    with pytest.raises(SearchAborted):
        solver.analyze(Position.from_moves("4"), max_nodes=10)
    assert solver.get_node_count() == 11


def test_solver_usable_after_abort(tie_game, brute_force):
    solver = Solver(tt_size=100_003, use_book=False)
    with pytest.raises(SearchAborted):
        solver.analyze(Position.from_moves("44"), max_nodes=100)
    pos = Position.from_moves(tie_game[:36])
    assert solver.solve(pos) == brute_force(pos)
    scores = solver.analyze(pos)
    assert max(scores) == brute_force(pos)


def test_past_deadline_aborts_search():
    solver = Solver(tt_size=100_003, use_book=False)
    with pytest.raises(SearchAborted):
        solver.analyze(Position.from_moves("4"), deadline=time.perf_counter() - 1)
    assert solver.get_node_count() == 1024


def test_budget_large_enough_gives_exact_scores(tie_game):
    solver = Solver(use_book=False)
    pos = Position.from_moves(tie_game[:34])
    bounded = solver.analyze(pos, max_nodes=10_000_000, deadline=time.perf_counter() + 600)
    solver.reset()
    assert bounded == solver.analyze(pos)
