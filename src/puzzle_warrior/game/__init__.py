"""Game module for Puzzle Warrior.

Exports the rules engine and supporting classes:
- FallingBlock / SettledBlock: 3x3 piece grids anchored on the board
- Board: settled pieces, falling block, landing, chain explosions and gravity
- TickResult: outcome of a single board tick
- PuzzleGame: spawns random pairs and applies player actions
"""

from .block import Block, FallingBlock, SettledBlock, position_key
from .board import Board, TickResult, bottom_first
from .core import Action, GameConfig, PuzzleGame
from .pieces import DIAMOND, EMPTY, NO_PIECE, PieceKind

__all__ = [
    "Block",
    "FallingBlock",
    "SettledBlock",
    "position_key",
    "Board",
    "TickResult",
    "bottom_first",
    "Action",
    "GameConfig",
    "PuzzleGame",
    "DIAMOND",
    "EMPTY",
    "NO_PIECE",
    "PieceKind",
]
