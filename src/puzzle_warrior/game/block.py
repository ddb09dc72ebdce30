from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Iterator, List, Tuple

import numpy as np

from . import pieces
from .pieces import EMPTY

if TYPE_CHECKING:
    from .board import Board


DIM = 3
CENTER = 1

Shape = np.ndarray
Coordinate = Tuple[int, int]


def _freeze(shape) -> Shape:
    grid = np.array(shape, dtype=object)
    if grid.shape != (DIM, DIM):
        raise ValueError(f"Block shape must be {DIM}x{DIM}, got {grid.shape}")
    for marker in grid.flat:
        if not isinstance(marker, str):
            raise ValueError(f"Invalid piece marker: {marker!r}")
        pieces.kind_of(marker)
    frozen = grid.astype("<U1")
    if not np.any(frozen != EMPTY):
        raise ValueError("Block shape must contain at least one piece")
    frozen.setflags(write=False)
    return frozen


def position_key(block: "Block") -> Coordinate:
    return (block.center_row, block.center_col)


@dataclass(frozen=True, eq=False)
class Block:
    """A 3x3 grid of piece markers anchored at a board coordinate.

    The local grid is read-only. Every transform returns a new Block, so a
    trial move never touches the Block it was made from.
    """

    shape: Shape
    center_row: int
    center_col: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "shape", _freeze(self.shape))
        object.__setattr__(self, "center_row", int(self.center_row))
        object.__setattr__(self, "center_col", int(self.center_col))

    def _to_shape(self, board_row: int, board_col: int) -> Coordinate:
        return board_row - (self.center_row - CENTER), board_col - (self.center_col - CENTER)

    def _to_board(self, shape_row: int, shape_col: int) -> Coordinate:
        return shape_row + (self.center_row - CENTER), shape_col + (self.center_col - CENTER)

    def piece_at(self, board_row: int, board_col: int) -> str:
        r, c = self._to_shape(board_row, board_col)
        if 0 <= r < DIM and 0 <= c < DIM:
            return str(self.shape[r, c])
        return EMPTY

    def has_piece_at(self, board_row: int, board_col: int) -> bool:
        return (
            abs(self.center_row - board_row) <= CENTER
            and abs(self.center_col - board_col) <= CENTER
            and self.piece_at(board_row, board_col) != EMPTY
        )

    def pieces(self) -> Iterator[Tuple[int, int, str]]:
        """Yield (row, col, marker) of every non-empty cell, row-major."""
        for r, c in np.argwhere(self.shape != EMPTY):
            row, col = self._to_board(int(r), int(c))
            yield row, col, str(self.shape[r, c])

    def touches(self, other: Block) -> bool:
        for row, col, _ in self.pieces():
            if (
                other.has_piece_at(row + 1, col)
                or other.has_piece_at(row - 1, col)
                or other.has_piece_at(row, col + 1)
                or other.has_piece_at(row, col - 1)
            ):
                return True
        return False

    def collides_with(self, board: "Board") -> bool:
        for row, col, _ in self.pieces():
            if row >= board.rows or col < 0 or col >= board.columns:
                return True
            # Negative rows are above the board while the block falls in
            if row >= 0 and board.settled_at(row, col) != EMPTY:
                return True
        return False

    def can_move_down(self, board: "Board") -> bool:
        return not self.moved_down().collides_with(board)

    def can_move_left(self, board: "Board") -> bool:
        return not self.moved_left().collides_with(board)

    def can_move_right(self, board: "Board") -> bool:
        return not self.moved_right().collides_with(board)

    def can_rotate_clockwise(self, board: "Board") -> bool:
        return not self.rotated_clockwise().collides_with(board)

    def can_rotate_counter_clockwise(self, board: "Board") -> bool:
        return not self.rotated_counter_clockwise().collides_with(board)

    def moved_down(self):
        return replace(self, center_row=self.center_row + 1)

    def moved_left(self):
        return replace(self, center_col=self.center_col - 1)

    def moved_right(self):
        return replace(self, center_col=self.center_col + 1)

    def rotated_clockwise(self):
        # (r, c) -> (c, DIM - 1 - r)
        return replace(self, shape=np.rot90(self.shape, 1, axes=(1, 0)))

    def rotated_counter_clockwise(self):
        # (r, c) -> (DIM - 1 - c, r)
        return replace(self, shape=np.rot90(self.shape, 1))

    def flipped(self):
        """Swap the markers of consecutive non-empty cells (1st with 2nd, 3rd with 4th, ...)."""
        flipped = self.shape.copy()
        cells = [tuple(cell) for cell in np.argwhere(flipped != EMPTY)]
        for first, second in zip(cells[0::2], cells[1::2]):
            flipped[first], flipped[second] = flipped[second], flipped[first]
        return replace(self, shape=flipped)

    def break_to_pieces(self) -> List["SettledBlock"]:
        return [SettledBlock.single(marker, row, col) for row, col, marker in self.pieces()]

    def __lt__(self, other: Block) -> bool:
        return position_key(self) < position_key(other)

    def __eq__(self, other: object) -> bool:
        if type(self) is not type(other):
            return NotImplemented
        return position_key(self) == position_key(other) and np.array_equal(self.shape, other.shape)

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.center_row, self.center_col, self.shape.tobytes()))


@dataclass(frozen=True, eq=False)
class FallingBlock(Block):
    """Block under player control; its pieces may be of different types."""

    @classmethod
    def spawn(cls, piece1: str, piece2: str, row: int, col: int) -> "FallingBlock":
        """Vertical pair with piece1 at (row, col) and piece2 directly above it."""
        if pieces.is_empty(piece1) or pieces.is_empty(piece2):
            raise ValueError("A falling block needs two pieces")
        shape = [
            [EMPTY, piece2, EMPTY],
            [EMPTY, piece1, EMPTY],
            [EMPTY, EMPTY, EMPTY],
        ]
        return cls(shape, row, col)


@dataclass(frozen=True, eq=False)
class SettledBlock(Block):
    """Block whose pieces all carry the same marker."""

    def __post_init__(self) -> None:
        super().__post_init__()
        markers = {str(m) for m in self.shape.flat if m != EMPTY}
        if len(markers) != 1:
            raise ValueError(f"Settled block must have a single piece type, got {sorted(markers)}")

    @classmethod
    def single(cls, marker: str, row: int, col: int) -> "SettledBlock":
        shape = [[EMPTY] * DIM for _ in range(DIM)]
        shape[CENTER][CENTER] = marker
        return cls(shape, row, col)

    @property
    def type(self) -> str:
        return str(self.shape[self.shape != EMPTY][0])

    def same_type_as(self, other: SettledBlock) -> bool:
        return pieces.same_type(self.type, other.type)

    def is_diamond(self) -> bool:
        return pieces.is_diamond(self.type)

    def is_explosive(self) -> bool:
        return pieces.is_explosive(self.type)

    def can_explode(self, other: SettledBlock) -> bool:
        return self.is_explosive() and self.same_type_as(other) and self.touches(other)
