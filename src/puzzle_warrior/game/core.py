from __future__ import annotations

import random
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, Tuple

import numpy as np

from .board import Board, TickResult
from .pieces import DIAMOND, explosive, normal


class Action(IntEnum):
    LEFT = 0
    RIGHT = 1
    ROTATE_CW = 2
    ROTATE_CCW = 3
    FLIP = 4
    SOFT_DROP = 5
    HARD_DROP = 6
    NONE = 7


@dataclass
class GameConfig:
    rows: int = 13
    columns: int = 6
    colors: str = "rgby"
    explosive_chance: float = 0.25
    diamond_chance: float = 0.0
    random_seed: Optional[int] = None
    max_episode_steps: int = 2000


class PuzzleGame:
    def __init__(self, config: Optional[GameConfig] = None) -> None:
        self.config = config or GameConfig()
        self.rng = random.Random(self.config.random_seed)
        self.board = Board(self.config.rows, self.config.columns)
        self.ticks = 0
        self.pieces_landed = 0
        self.pieces_exploded = 0
        self.max_chain = 0
        self.game_over = False
        self.reset()

    def reset(self, seed: Optional[int] = None) -> None:
        if seed is not None:
            self.rng.seed(seed)
        self.board = Board(self.config.rows, self.config.columns)
        self.ticks = 0
        self.pieces_landed = 0
        self.pieces_exploded = 0
        self.max_chain = 0
        self.game_over = False
        self._spawn_pair()

    def _random_piece(self) -> str:
        if self.rng.random() < self.config.diamond_chance:
            return DIAMOND
        color = self.rng.choice(self.config.colors)
        if self.rng.random() < self.config.explosive_chance:
            return explosive(color)
        return normal(color)

    def _spawn_pair(self) -> None:
        # A taken spawn cell means the board is full
        if not self.board.add_block(self._random_piece(), self._random_piece()):
            self.game_over = True

    def _apply(self, action: Action) -> None:
        if action == Action.LEFT:
            self.board.move_left()
        elif action == Action.RIGHT:
            self.board.move_right()
        elif action == Action.ROTATE_CW:
            self.board.rotate_clockwise()
        elif action == Action.ROTATE_CCW:
            self.board.rotate_counter_clockwise()
        elif action == Action.FLIP:
            self.board.flip()
        elif action == Action.SOFT_DROP:
            self.board.move_down()
        elif action == Action.HARD_DROP:
            self.board.drop()
        elif action == Action.NONE:
            pass

    def step(self, action: Action) -> Tuple[np.ndarray, TickResult, bool, dict]:
        if self.game_over:
            return self.get_state(), TickResult(), True, self.get_info()

        self._apply(Action(action))
        result = self.board.tick()
        self.ticks += 1
        if result.landed:
            self.pieces_landed += 1
            self.pieces_exploded += result.exploded
            self.max_chain = max(self.max_chain, result.chains)
            if self.board.overflowing:
                self.game_over = True
            else:
                self._spawn_pair()
        return self.get_state(), result, self.game_over, self.get_info()

    def get_state(self) -> np.ndarray:
        return self.board.to_array(self.config.colors)

    def get_info(self) -> dict:
        return {
            "ticks": self.ticks,
            "pieces_landed": self.pieces_landed,
            "pieces_exploded": self.pieces_exploded,
            "max_chain": self.max_chain,
        }
