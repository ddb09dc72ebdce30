"""
Tests for the board: spawning, falling, landing, chain explosions and gravity.
"""

import numpy as np
import pytest

from puzzle_warrior.game import Board, SettledBlock, TickResult, bottom_first
from puzzle_warrior.game.block import position_key
from puzzle_warrior.game.pieces import EMPTY


def tick_until_landed(board, limit=50):
    for _ in range(limit):
        result = board.tick()
        if result.landed:
            return result
    raise AssertionError("block never landed")


def assert_compacted(board):
    for piece in board.settled_blocks():
        row, col = position_key(piece)
        if row + 1 < board.rows:
            assert board.settled_at(row + 1, col) != EMPTY, f"gap below {piece}"


@pytest.fixture
def falling_board():
    board = Board(3, 6)
    board.add_block("b", "g")
    return board


class TestEmptyBoard:
    """Test rendering of an empty board."""

    def test_single_cell(self):
        assert str(Board(1, 1)) == ".\n"

    def test_dimensions(self):
        board = Board(3, 6)
        assert board.rows == 3
        assert board.columns == 6
        assert str(board) == "......\n" * 3

    @pytest.mark.parametrize("rows,columns", [(0, 3), (3, 0), (-1, 2)])
    def test_invalid_dimensions(self, rows, columns):
        with pytest.raises(ValueError):
            Board(rows, columns)

    def test_tick_without_block_is_noop(self):
        board = Board(3, 6)
        assert board.tick() == TickResult()
        assert str(board) == "......\n" * 3


class TestFallingBlock:
    """Test spawn and fall behavior."""

    def test_starts_from_the_top_middle(self, falling_board):
        assert str(falling_board) == "...b..\n......\n......\n"

    def test_falls_on_tick(self, falling_board):
        result = falling_board.tick()
        assert result.moved
        assert str(falling_board) == "...g..\n...b..\n......\n"

    def test_lands_at_the_bottom(self, falling_board):
        falling_board.tick()
        falling_board.tick()
        result = falling_board.tick()
        assert result.landed
        assert falling_board.falling is None
        assert str(falling_board) == "......\n...g..\n...b..\n"
        assert falling_board.settled_at(2, 3) == "b"

    def test_only_one_falling_block(self, falling_board):
        with pytest.raises(RuntimeError):
            falling_board.add_block("r", "r")

    def test_full_board_reports_status(self):
        board = Board.from_rows(["...r..", "...r..", "...r.."])
        assert board.add_block("b", "g") is False
        assert board.falling is None

    def test_piece_at_outside_board_is_empty(self, falling_board):
        assert falling_board.piece_at(-1, 3) == EMPTY
        assert falling_board.piece_at(99, 99) == EMPTY
        assert falling_board.piece_at(0, 3) == "b"

    def test_landing_on_occupied_cell_is_an_error(self):
        board = Board(2, 2)
        board._settle(SettledBlock.single("a", 0, 0))
        with pytest.raises(RuntimeError):
            board._settle(SettledBlock.single("b", 0, 0))

    def test_overflow_when_landing_above_the_top(self):
        board = Board(1, 1)
        assert board.add_block("a", "b")
        assert tick_until_landed(board).landed
        assert board.overflowing
        assert str(board) == "a\n"
        assert board.add_block("c", "d") is False


class TestControls:
    """Test player moves on the falling block."""

    def test_move_left_and_right(self, falling_board):
        assert falling_board.move_left()
        assert str(falling_board) == "..b...\n......\n......\n"
        assert falling_board.move_right()
        assert falling_board.move_right()
        assert str(falling_board) == "....b.\n......\n......\n"

    def test_wall_stops_movement(self, falling_board):
        while falling_board.move_left():
            pass
        assert falling_board.falling.center_col == 0
        assert not falling_board.move_left()

    def test_rotate_and_flip(self, falling_board):
        assert falling_board.rotate_clockwise()
        assert str(falling_board) == "...bg.\n......\n......\n"
        assert falling_board.flip()
        assert str(falling_board) == "...gb.\n......\n......\n"
        assert falling_board.rotate_counter_clockwise()
        assert falling_board.rotate_counter_clockwise()
        assert str(falling_board) == "..bg..\n......\n......\n"

    def test_drop_then_land(self, falling_board):
        assert falling_board.drop() == 2
        assert falling_board.tick().landed
        assert str(falling_board) == "......\n...g..\n...b..\n"

    def test_controls_without_block(self):
        board = Board(3, 6)
        assert not board.move_left()
        assert not board.flip()
        assert board.drop() == 0


class TestChainExplosions:
    """Test detonation waves and cascades."""

    def test_two_explosives_detonate(self):
        board = Board.from_rows(["....", "....", "....", "..A."])
        board.add_block("A", "b")
        result = tick_until_landed(board)
        assert result.exploded == 2
        assert result.chains == 1
        assert str(board) == "....\n....\n....\n..b.\n"

    def test_adjacent_same_type_piece_joins_the_wave(self):
        board = Board.from_rows(["....", "....", "....", ".aA."])
        board.add_block("A", "b")
        result = tick_until_landed(board)
        assert result.exploded == 3
        assert str(board) == "....\n....\n....\n..b.\n"

    def test_normal_pieces_do_not_detonate(self):
        board = Board.from_rows(["....", "....", "....", "..a."])
        board.add_block("a", "b")
        result = tick_until_landed(board)
        assert result.exploded == 0
        assert str(board) == "....\n..b.\n..a.\n..a.\n"

    def test_other_type_does_not_detonate(self):
        board = Board.from_rows(["....", "....", "....", "..B."])
        board.add_block("A", "c")
        assert tick_until_landed(board).exploded == 0

    def test_diamonds_never_detonate(self):
        board = Board.from_rows(["....", "....", "....", "..*."])
        board.add_block("*", "A")
        result = tick_until_landed(board)
        assert result.exploded == 0
        assert str(board) == "....\n..A.\n..*.\n..*.\n"

    def test_explosive_pair_detonates_itself(self):
        board = Board(3, 3)
        board.add_block("R", "r")
        result = tick_until_landed(board)
        assert result.exploded == 2
        assert str(board) == "...\n...\n...\n"

    def test_chain_reaction_after_gravity(self):
        board = Board.from_rows(["....", "....", "....", "....", ".BA."])
        board.add_block("A", "B")
        result = tick_until_landed(board)
        assert result.exploded == 4
        assert result.chains == 2
        assert str(board) == "....\n" * 5


class TestCompaction:
    """Test gravity after landing and detonation."""

    def test_hanging_piece_falls(self):
        board = Board.from_rows(["...", "...", "...", "..r"])
        board.add_block("b", "g")
        assert board.rotate_clockwise()
        assert board.drop() == 2
        assert board.tick().landed
        assert str(board) == "...\n...\n..g\n.br\n"
        assert_compacted(board)

    def test_gap_left_by_detonation_closes(self):
        board = Board.from_rows(["....", "....", "...c", "...A"])
        board.add_block("A", "b")
        result = tick_until_landed(board)
        assert result.exploded == 2
        assert str(board) == "....\n....\n....\n..bc\n"
        assert_compacted(board)

    def test_tower_falls_together(self):
        board = Board.from_rows(["....", ".a..", ".b..", ".A..", ".cd."])
        board.add_block("A", "e")
        result = tick_until_landed(board)
        assert result.exploded == 2
        assert_compacted(board)
        assert str(board) == "....\n....\n.a..\n.be.\n.cd.\n"

    def test_bottom_first_order(self):
        pieces = [SettledBlock.single("a", r, c) for r, c in [(0, 0), (2, 1), (2, 0), (1, 3)]]
        assert [position_key(p) for p in bottom_first(pieces)] == [(2, 1), (2, 0), (1, 3), (0, 0)]


class TestObservation:
    """Test array export."""

    def test_to_array(self, falling_board):
        state = falling_board.to_array("bg")
        assert state.dtype == np.int8
        assert state.shape == (3, 6)
        assert state[0, 3] == -2
        assert np.count_nonzero(state) == 1

    def test_settled_codes(self):
        board = Board.from_rows(["..", "gB"])
        state = board.to_array("bg")
        assert state[1, 0] == 3
        assert state[1, 1] == 4
