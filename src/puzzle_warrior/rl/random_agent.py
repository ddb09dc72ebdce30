from __future__ import annotations

import argparse
from typing import Optional

import gymnasium as gym

import puzzle_warrior.env  # noqa: F401


def run_random(steps: int = 200, seed: Optional[int] = None, render: bool = False) -> float:
    env = gym.make("PuzzleWarrior-6x13-v0", render_mode="ansi" if render else None)
    env.action_space.seed(seed)
    obs, info = env.reset(seed=seed)
    total_reward = 0.0
    episodes = 0
    for _ in range(steps):
        action = env.action_space.sample()
        obs, reward, terminated, truncated, info = env.step(action)
        total_reward += float(reward)
        if render:
            print(env.render())
        if terminated or truncated:
            episodes += 1
            obs, info = env.reset()
    env.close()
    print(
        f"Random agent total reward: {total_reward:.2f} over {episodes} finished episodes "
        f"(exploded {info['pieces_exploded']}, max chain {info['max_chain']} in current episode)"
    )
    return total_reward


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser()
    p.add_argument("--steps", type=int, default=200)
    p.add_argument("--seed", type=int, default=None)
    p.add_argument("--render", action="store_true", help="Print the board after every step")
    return p


def main() -> None:
    args = build_parser().parse_args()
    run_random(steps=args.steps, seed=args.seed, render=args.render)


if __name__ == "__main__":  # pragma: no cover
    main()
