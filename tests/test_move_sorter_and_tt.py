from __future__ import annotations

import pytest

from connect4_solver.engine.move_sorter import MoveSorter
from connect4_solver.engine.position import WIDTH, ContractError
from connect4_solver.engine.tt import DEFAULT_SIZE, TranspositionTable, next_prime


def drain(sorter: MoveSorter):
    out = []
    move = sorter.get_next()
    while move:
        out.append(move)
        move = sorter.get_next()
    return out


def test_sorter_returns_highest_score_first():
    s = MoveSorter()
    s.add(1, 5)
    s.add(2, 1)
    s.add(4, 9)
    s.add(8, 3)
    assert len(s) == 4
    assert drain(s) == [4, 1, 8, 2]
    assert len(s) == 0
    assert s.get_next() == 0


def test_sorter_equal_scores_last_added_first():
    s = MoveSorter()
    s.add(1, 2)
    s.add(2, 2)
    s.add(4, 2)
    assert drain(s) == [4, 2, 1]


def test_sorter_overflow_and_reset():
    s = MoveSorter()
    for i in range(WIDTH):
        s.add(1 << i, i)
    with pytest.raises(ContractError):
        s.add(1 << WIDTH, 0)
    s.reset()
    assert len(s) == 0
    assert s.get_next() == 0
    s.add(16, 0)
    assert drain(s) == [16]


def test_next_prime():
    assert next_prime(0) == 2
    assert next_prime(2) == 2
    assert next_prime(14) == 17
    assert next_prime(1024) == 1031
    assert next_prime(DEFAULT_SIZE) == DEFAULT_SIZE


def test_tt_put_get_and_miss():
    tt = TranspositionTable(1031)
    assert tt.get(12345) == 0
    tt.put(12345, 7)
    assert tt.get(12345) == 7
    assert len(tt) == 1
    assert tt.stats["hits"] == 1
    assert tt.stats["lookups"] == 2


def test_tt_collision_overwrites():
    tt = TranspositionTable(7)
    tt.put(3, 5)
    tt.put(10, 6)
    assert tt.get(3) == 0
    assert tt.get(10) == 6
    assert tt.stats["overwrites"] == 1
    tt.put(10, 8)
    assert tt.get(10) == 8
    assert tt.stats["overwrites"] == 1


def test_tt_reset():
    tt = TranspositionTable(101)
    for k in range(50):
        tt.put(k, k + 1)
    tt.reset()
    assert len(tt) == 0
    assert all(tt.get(k) == 0 for k in range(50))


def test_tt_rejects_empty_size():
    with pytest.raises(ValueError):
        TranspositionTable(0)
