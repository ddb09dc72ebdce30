from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

import numpy as np
import gymnasium as gym
from gymnasium import spaces

from puzzle_warrior.game import Action, GameConfig, PuzzleGame
from puzzle_warrior.game.pieces import max_code


class PuzzleWarriorEnv(gym.Env):
    """Falling pair puzzle with one discrete action per board tick.

    The observation is the board as an int8 grid: 0 for empty cells, positive
    codes for settled pieces and negative codes for the falling pair.
    """

    metadata = {"render_modes": ["ansi"], "render_fps": 4}

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        render_mode: Optional[str] = None,
        reward_weights: Optional[Dict[str, float]] = None,
        step_penalty: float = 0.0,
        terminal_penalty: float = -1.0,
    ) -> None:
        super().__init__()
        self.game = PuzzleGame(config)
        self.render_mode = render_mode

        # Reward shaping parameters
        self.step_penalty = float(step_penalty)
        self.terminal_penalty = float(terminal_penalty)
        self.reward_weights: Dict[str, float] = {
            "exploded": 1.0,  # per piece removed by detonation
            "chain": 2.0,     # per detonation wave after the first
            "landed": 0.0,    # per pair landed
        }
        if reward_weights:
            self.reward_weights.update({k: float(v) for k, v in reward_weights.items()})

        cfg = self.game.config
        code = max_code(cfg.colors)
        self.observation_space = spaces.Box(
            low=-code, high=code, shape=(cfg.rows, cfg.columns), dtype=np.int8
        )
        self.action_space = spaces.Discrete(len(Action))

        self._steps = 0

    def _get_info(self) -> Dict[str, Any]:
        info = self.game.get_info()
        info["steps"] = self._steps
        return info

    def reset(
        self, *, seed: Optional[int] = None, options: Optional[dict] = None
    ) -> Tuple[np.ndarray, Dict[str, Any]]:
        super().reset(seed=seed)
        self.game.reset(seed)
        self._steps = 0
        return self.game.get_state(), self._get_info()

    def step(self, action):
        obs, result, terminated, _ = self.game.step(Action(int(action)))
        self._steps += 1

        reward_components: Dict[str, float] = {
            "exploded": self.reward_weights["exploded"] * float(result.exploded),
            "chain": self.reward_weights["chain"] * float(max(0, result.chains - 1)),
            "landed": self.reward_weights["landed"] * float(result.landed),
            "step": self.step_penalty,
        }
        if terminated:
            reward_components["terminal"] = self.terminal_penalty
        reward = float(sum(reward_components.values()))

        truncated = not terminated and self._steps >= self.game.config.max_episode_steps
        info = self._get_info()
        info["reward_components"] = reward_components
        return obs, reward, bool(terminated), bool(truncated), info

    def render(self) -> Optional[str]:
        if self.render_mode == "ansi":
            return str(self.game.board)
        return None

    def close(self) -> None:
        pass
