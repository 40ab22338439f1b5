from __future__ import annotations

import orjson
import pytest

from connect4_solver.engine.openings import (
    OpeningBook,
    OpeningBookError,
    build_opening_book,
    collision_free_log_size,
    default_opening_book,
    load_opening_book,
    save_opening_book,
)
from connect4_solver.engine.position import MIN_SCORE, Position
from connect4_solver.engine.solver import Solver
from connect4_solver.engine.tt import next_prime


def test_packaged_book_covers_first_move():
    book = default_opening_book()
    assert book.depth == 1
    assert len(book) == 5
    assert book.get(Position()) == 1 - MIN_SCORE + 1
    # edge columns, mirrored pairs share an entry
    assert book.get(Position.from_moves("1")) == 21
    assert book.get(Position.from_moves("7")) == 21
    assert book.get(Position.from_moves("4")) == 18
    assert book.get(Position.from_moves("3")) == book.get(Position.from_moves("5")) == 19


def test_book_ignores_deeper_positions():
    book = default_opening_book()
    assert book.get(Position.from_moves("44")) == 0


def test_default_book_is_shared():
    assert default_opening_book() is default_opening_book()


def test_from_dict_rejects_other_board_size():
    with pytest.raises(OpeningBookError):
        OpeningBook.from_dict({"width": 8, "height": 7, "depth": 1, "log_size": 10, "entries": []})


def test_from_dict_rejects_missing_header():
    with pytest.raises(OpeningBookError):
        OpeningBook.from_dict({"width": 7, "height": 6, "entries": []})


def test_from_dict_rejects_zero_value():
    data = {"width": 7, "height": 6, "depth": 1, "log_size": 10, "entries": [{"key3": 0, "value": 0}]}
    with pytest.raises(OpeningBookError):
        OpeningBook.from_dict(data)


def test_load_bad_json(tmp_path):
    path = tmp_path / "book.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(OpeningBookError):
        load_opening_book(path)


def test_build_save_and_load_late_book(tmp_path, tie_game, brute_force):
    root = Position.from_moves(tie_game[:36])
    data = build_opening_book(38, root=root)
    assert data["depth"] == 38
    assert data["entries"][0] == {"key3": root.key3(), "value": brute_force(root) - MIN_SCORE + 1}
    keys = [e["key3"] for e in data["entries"]]
    assert len(keys) == len(set(keys))
    assert all(e["value"] > 0 for e in data["entries"])

    path = tmp_path / "late.json"
    save_opening_book(data, path)
    assert orjson.loads(path.read_bytes())["width"] == 7
    book = load_opening_book(path)
    assert book.depth == 38
    assert book.get(root) == brute_force(root) - MIN_SCORE + 1

    with_book = Solver(book=book).analyze(root)
    without = Solver(use_book=False).analyze(root)
    assert with_book == without


def test_collision_free_log_size():
    keys = [0, 1031, 2062]  # all in bucket 0 of a 1031 table
    log_size = collision_free_log_size(keys)
    assert log_size > 10
    size = next_prime(1 << log_size)
    assert len({k % size for k in keys}) == 3


def test_build_rejects_bad_root(tie_game):
    with pytest.raises(ValueError):
        build_opening_book(3, root=Position.from_moves("4444"))
    with pytest.raises(ValueError):
        build_opening_book(42, root=Position.from_moves(tie_game))
