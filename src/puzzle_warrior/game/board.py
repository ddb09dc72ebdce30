from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Sequence

import numpy as np

from .block import Coordinate, FallingBlock, SettledBlock, position_key
from .pieces import EMPTY, NO_PIECE, encode


@dataclass
class TickResult:
    moved: bool = False
    landed: bool = False
    exploded: int = 0
    chains: int = 0


def bottom_first(blocks: Iterable[SettledBlock]) -> List[SettledBlock]:
    """Order settled pieces from the bottom of the board up.

    Compaction depends on this order: a piece has to fall before the piece
    resting on top of it is tested, otherwise the upper one collides with a
    piece that is about to move out of its way.
    """
    return sorted(blocks, key=position_key, reverse=True)


class Board:
    """Grid of settled pieces with at most one falling block on top.

    Row 0 is the top of the board. The falling block may reach above row 0
    while it enters the board.
    """

    def __init__(self, rows: int, columns: int) -> None:
        if rows <= 0 or columns <= 0:
            raise ValueError(f"Board dimensions must be positive, got {rows}x{columns}")
        self.rows = int(rows)
        self.columns = int(columns)
        self._settled: Dict[Coordinate, SettledBlock] = {}
        self.falling: Optional[FallingBlock] = None

    @classmethod
    def from_rows(cls, lines: Sequence[str]) -> "Board":
        """Build a board of settled pieces from its text rendering."""
        if not lines:
            raise ValueError("At least one row is required")
        board = cls(len(lines), len(lines[0]))
        for row, line in enumerate(lines):
            if len(line) != board.columns:
                raise ValueError(f"Row {row} has {len(line)} columns, expected {board.columns}")
            for col, marker in enumerate(line):
                if marker != NO_PIECE:
                    board._settle(SettledBlock.single(marker, row, col))
        return board

    def is_inside(self, row: int, col: int) -> bool:
        return 0 <= row < self.rows and 0 <= col < self.columns

    def settled_at(self, row: int, col: int) -> str:
        piece = self._settled.get((row, col))
        return piece.type if piece is not None else EMPTY

    def piece_at(self, row: int, col: int) -> str:
        if not self.is_inside(row, col):
            return EMPTY
        marker = self.settled_at(row, col)
        if marker == EMPTY and self.falling is not None:
            marker = self.falling.piece_at(row, col)
        return marker

    def settled_blocks(self) -> List[SettledBlock]:
        return sorted(self._settled.values(), key=position_key)

    @property
    def overflowing(self) -> bool:
        return any(row < 0 for row, _ in self._settled)

    def add_block(self, piece1: str, piece2: str) -> bool:
        """Spawn a falling pair at the top middle column.

        Returns False when the spawn position is taken, which means the board
        is full.
        """
        if self.falling is not None:
            raise RuntimeError("A block is already falling")
        block = FallingBlock.spawn(piece1, piece2, 0, self.columns // 2)
        if block.collides_with(self):
            return False
        self.falling = block
        return True

    def tick(self) -> TickResult:
        if self.falling is None:
            return TickResult()
        if self.falling.can_move_down(self):
            self.falling = self.falling.moved_down()
            return TickResult(moved=True)

        landed, self.falling = self.falling, None
        for piece in landed.break_to_pieces():
            self._settle(piece)

        exploded = chains = 0
        while True:
            removed = self._detonate()
            if removed:
                exploded += removed
                chains += 1
            moved = self._compact()
            if not removed and not moved:
                break
        return TickResult(landed=True, exploded=exploded, chains=chains)

    def _settle(self, piece: SettledBlock) -> None:
        key = position_key(piece)
        if key in self._settled:
            raise RuntimeError(f"Cell {key} is already occupied")
        self._settled[key] = piece

    def _neighbors(self, piece: SettledBlock) -> Iterator[SettledBlock]:
        row, col = position_key(piece)
        for key in ((row + 1, col), (row - 1, col), (row, col + 1), (row, col - 1)):
            other = self._settled.get(key)
            if other is not None:
                yield other

    def _detonate(self) -> int:
        """Remove one wave of detonating pieces and return how many went.

        Explosive pieces touching a piece of their type start the wave, which
        then spreads to every piece of the same type connected to them.
        """
        stack = [
            piece
            for piece in self._settled.values()
            if any(piece.can_explode(other) for other in self._neighbors(piece))
        ]
        marked: Dict[Coordinate, SettledBlock] = {}
        while stack:
            piece = stack.pop()
            key = position_key(piece)
            if key in marked:
                continue
            marked[key] = piece
            for other in self._neighbors(piece):
                if position_key(other) not in marked and piece.same_type_as(other):
                    stack.append(other)
        for key in marked:
            del self._settled[key]
        return len(marked)

    def _compact(self) -> int:
        moves = 0
        while True:
            moved = 0
            for piece in bottom_first(self._settled.values()):
                if piece.can_move_down(self):
                    del self._settled[position_key(piece)]
                    lower = piece.moved_down()
                    self._settled[position_key(lower)] = lower
                    moved += 1
            if not moved:
                return moves
            moves += moved

    def _commit(
        self,
        allowed: Callable[[FallingBlock], bool],
        transform: Callable[[FallingBlock], FallingBlock],
    ) -> bool:
        if self.falling is None or not allowed(self.falling):
            return False
        self.falling = transform(self.falling)
        return True

    def move_left(self) -> bool:
        return self._commit(lambda b: b.can_move_left(self), FallingBlock.moved_left)

    def move_right(self) -> bool:
        return self._commit(lambda b: b.can_move_right(self), FallingBlock.moved_right)

    def move_down(self) -> bool:
        return self._commit(lambda b: b.can_move_down(self), FallingBlock.moved_down)

    def rotate_clockwise(self) -> bool:
        return self._commit(lambda b: b.can_rotate_clockwise(self), FallingBlock.rotated_clockwise)

    def rotate_counter_clockwise(self) -> bool:
        return self._commit(
            lambda b: b.can_rotate_counter_clockwise(self), FallingBlock.rotated_counter_clockwise
        )

    def flip(self) -> bool:
        # Flipping keeps the footprint, so it cannot collide
        return self._commit(lambda b: True, FallingBlock.flipped)

    def drop(self) -> int:
        """Move the falling block down as far as it goes; it lands on the next tick."""
        rows = 0
        while self.move_down():
            rows += 1
        return rows

    def to_array(self, palette: str) -> np.ndarray:
        state = np.zeros((self.rows, self.columns), dtype=np.int8)
        for (row, col), piece in self._settled.items():
            if self.is_inside(row, col):
                state[row, col] = encode(piece.type, palette)
        if self.falling is not None:
            for row, col, marker in self.falling.pieces():
                if self.is_inside(row, col):
                    # Negative codes mark the falling block overlay
                    state[row, col] = -encode(marker, palette)
        return state

    def __str__(self) -> str:
        lines = []
        for row in range(self.rows):
            lines.append("".join(self.piece_at(row, col) or NO_PIECE for col in range(self.columns)))
        return "".join(line + "\n" for line in lines)
