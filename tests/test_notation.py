"""
Tests for the move sequence notation.
"""

import pytest

from connect4_solver.engine.notation import moves_to_string, parse_moves, play_sequence
from connect4_solver.engine.position import IllegalMoveError, Position


class TestMoveStrings:
    """Conversion between move strings and column indices."""

    def test_parse_moves(self):
        assert parse_moves("") == []
        assert parse_moves("4453") == [3, 3, 4, 2]
        assert parse_moves("1 7\n4") == [0, 6, 3]

    def test_moves_to_string(self):
        assert moves_to_string([]) == ""
        assert moves_to_string([3, 3, 4, 2]) == "4453"

    def test_round_trip(self):
        text = "4453217766"
        assert moves_to_string(parse_moves(text)) == text

    def test_invalid_characters(self):
        with pytest.raises(ValueError):
            parse_moves("4a")
        with pytest.raises(ValueError):
            parse_moves("0")
        with pytest.raises(ValueError):
            parse_moves("8")
        with pytest.raises(ValueError):
            moves_to_string([7])


class TestPlaySequence:
    """Replaying move sequences onto positions."""

    def test_plays_in_order(self):
        pos = play_sequence("4453")
        assert pos.nb_moves() == 4
        assert pos.stone_at(3, 0) == 1
        assert pos.stone_at(3, 1) == 2
        assert pos.stone_at(4, 0) == 1
        assert pos.stone_at(2, 0) == 2

    def test_accepts_column_lists(self):
        assert play_sequence([3, 3, 4, 2]) == play_sequence("4453")

    def test_continues_from_a_position(self):
        pos = Position.from_moves("44")
        same = play_sequence("53", position=pos)
        assert same is pos
        assert pos == play_sequence("4453")

    def test_full_column(self):
        with pytest.raises(IllegalMoveError):
            play_sequence("1111111")

    def test_move_after_win(self):
        play_sequence("1212121")
        with pytest.raises(IllegalMoveError):
            play_sequence("12121212")

    def test_illegal_move_is_a_value_error(self):
        with pytest.raises(ValueError):
            play_sequence("4444444")
