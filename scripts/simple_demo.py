# Quick demo of the system
"""
Example Usage of the Hide-and-Seek Environment

This script runs random policies through the PettingZoo environment and
prints how the episode unfolds.
"""

import argparse
import logging
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from hideseek import HideAndSeekEnv
from hideseek.config import EPISODE_LEN


def example_random_policy(seed: int = 42):
    """Example: Run one full episode with a random policy."""
    print("=" * 60)
    print("Example 1: Random Policy")
    print("=" * 60)

    env = HideAndSeekEnv(min_hiders=2, max_hiders=2, min_seekers=2, max_seekers=2, seed=seed)
    obs, infos = env.reset()
    print(f"Environment initialized with {len(env.agents)} agents")
    print(f"Boxes: {env.world.boxes.count}, ramps: {env.world.ramps.count}\n")

    hider_return = 0.0
    episode_length = 0

    for step in range(EPISODE_LEN):
        actions = {
            agent: env.action_space(agent).sample() for agent in env.agents
        }
        agents = list(env.agents)
        obs, rewards, terminations, truncations, infos = env.step(actions)

        hider_return += sum(
            r for a, r in rewards.items() if infos[a]['agent_type'] == 1
        )
        episode_length += 1

        if (step + 1) % 60 == 0:
            seen = sum(float(o['visible_agents'].sum()) for o in obs.values())
            print(f"Step {step + 1}: phase={infos[agents[0]]['phase']}, "
                  f"team_reward={infos[agents[0]]['team_reward']:+.0f}, "
                  f"agent sightings={seen:.0f}")

        if any(terminations.values()):
            print(f"\nEpisode terminated at step {step + 1}")
            break

    print(f"\nEpisode Summary:")
    print(f"  Length: {episode_length} steps")
    print(f"  Hider return: {hider_return:.2f}\n")
    env.close()


def example_debug_level():
    """Example: Load the hider/seeker face-off debug layout."""
    print("=" * 60)
    print("Example 2: Debug Level 6")
    print("=" * 60)

    env = HideAndSeekEnv(min_hiders=1, max_hiders=1, min_seekers=1, max_seekers=1)
    obs, infos = env.reset(options={'level': 6})

    for agent in env.agents:
        role = "hider" if infos[agent]['agent_type'] == 1 else "seeker"
        print(f"{agent} ({role}): sees {int(obs[agent]['visible_agents'].sum())} agents, "
              f"{int(obs[agent]['visible_boxes'].sum())} boxes, "
              f"{int((obs[agent]['lidar'] > 0).sum())} lidar hits")

    batch = env.collate_observations(list(obs.values()))
    print(f"\nCollated agent_data: {tuple(batch['agent_data'].shape)}")
    env.close()


def main():
    parser = argparse.ArgumentParser(description='Hide-and-seek random policy demo')
    parser.add_argument('--seed', type=int, default=42, help='World seed')
    parser.add_argument('--log-level', type=str, default='WARNING',
                        help='Logging level (DEBUG, INFO, WARNING)')
    args = parser.parse_args()

    logging.basicConfig(level=getattr(logging, args.log_level.upper()))

    example_random_policy(args.seed)
    example_debug_level()

    print("✓ Demo complete!")


if __name__ == "__main__":
    main()
