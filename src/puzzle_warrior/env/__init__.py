"""Gymnasium environments for Puzzle Warrior."""

from __future__ import annotations

from gymnasium.envs.registration import register

# Default 6 columns x 13 rows board
register(
    id="PuzzleWarrior-6x13-v0",
    entry_point="puzzle_warrior.env.puzzle_env:PuzzleWarriorEnv",
)

__all__ = ["PuzzleWarrior-6x13-v0"]
