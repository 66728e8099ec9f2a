"""
Throughput Benchmark for the Hide-and-Seek Simulator

Steps a batch of worlds with random actions and reports steps per second
together with reward and visibility statistics.

Usage:
    python scripts/benchmark.py --num-worlds 32 --steps 480 --num-threads 4
"""

import argparse
import logging
import os
import sys
import time
from typing import Dict, List

import numpy as np
import torch

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from hideseek import Manager, SimConfig
from hideseek.config import NUM_ACTION_BUCKETS, SimFlags


def random_actions(num_rows: int, generator: torch.Generator) -> torch.Tensor:
    """Uniform random action rows: three movement buckets plus grab/lock flags."""
    moves = torch.randint(0, NUM_ACTION_BUCKETS, (num_rows, 3), generator=generator)
    flags = torch.randint(0, 2, (num_rows, 2), generator=generator)
    return torch.cat([moves, flags], dim=1).to(torch.int32)


def run_benchmark(config: SimConfig, num_steps: int, action_seed: int = 0) -> Dict[str, List[float]]:
    """
    Step every world for num_steps ticks with random actions.

    Returns:
        metrics: Per-tick series of mean hider reward, mean seeker reward,
            fraction of agents done and agent sightings per agent
    """
    metrics = {
        'hider_reward': [],
        'seeker_reward': [],
        'done_fraction': [],
        'sightings': [],
    }
    generator = torch.Generator().manual_seed(action_seed)

    with Manager(config) as mgr:
        mgr.init()
        actions = mgr.action_tensor()
        mask = mgr.agent_mask_tensor()
        agent_type = mgr.agent_type_tensor()

        start = time.perf_counter()
        for step in range(num_steps):
            actions[:] = random_actions(mgr.num_agent_rows, generator)
            mgr.step()

            active = mask[:, 0] > 0
            hiders = active & (agent_type[:, 0] == 1)
            seekers = active & (agent_type[:, 0] == 0)
            reward = mgr.reward_tensor()[:, 0]

            metrics['hider_reward'].append(float(reward[hiders].mean()) if hiders.any() else 0.0)
            metrics['seeker_reward'].append(float(reward[seekers].mean()) if seekers.any() else 0.0)
            metrics['done_fraction'].append(float(mgr.done_tensor()[active, 0].float().mean()))
            metrics['sightings'].append(
                float(mgr.visible_agents_mask_tensor()[active].sum(dim=1).mean())
            )

            if (step + 1) % 100 == 0:
                print(f"  Completed {step + 1}/{num_steps} steps")

        elapsed = time.perf_counter() - start

    metrics['elapsed'] = [elapsed]
    return metrics


def main():
    parser = argparse.ArgumentParser(description='Benchmark the hide-and-seek simulator')
    parser.add_argument('--num-worlds', type=int, default=16,
                        help='Number of world replicas')
    parser.add_argument('--steps', type=int, default=480,
                        help='Ticks to simulate')
    parser.add_argument('--num-threads', type=int, default=1,
                        help='Worker threads stepping worlds')
    parser.add_argument('--seed', type=int, default=0,
                        help='Global world seed')
    parser.add_argument('--max-hiders', type=int, default=3)
    parser.add_argument('--max-seekers', type=int, default=3)
    parser.add_argument('--fixed-world', action='store_true',
                        help='Regenerate the same scene on every reset')
    parser.add_argument('--log-level', type=str, default='WARNING',
                        help='Logging level (DEBUG, INFO, WARNING)')
    args = parser.parse_args()

    logging.basicConfig(level=getattr(logging, args.log_level.upper()))

    print("=" * 70)
    print("Hideseek - Simulator Benchmark")
    print("=" * 70)

    config = SimConfig(
        num_worlds=args.num_worlds,
        seed=args.seed,
        max_hiders=args.max_hiders,
        max_seekers=args.max_seekers,
        sim_flags=SimFlags.USE_FIXED_WORLD if args.fixed_world else SimFlags.DEFAULT,
        num_threads=args.num_threads,
    ).validate()

    print(f"Running {args.steps} steps over {config.num_worlds} worlds "
          f"({config.max_agents_per_world} agent slots each)...")
    metrics = run_benchmark(config, args.steps, action_seed=args.seed)

    elapsed = metrics.pop('elapsed')[0]
    world_steps = args.steps * config.num_worlds

    print("\n" + "=" * 70)
    print("BENCHMARK SUMMARY")
    print("=" * 70)
    print(f"{'elapsed (s)':25s}: {elapsed:.3f}")
    print(f"{'world steps / s':25s}: {world_steps / max(elapsed, 1e-9):.1f}")
    for metric, values in metrics.items():
        values = np.asarray(values)
        print(f"{metric:25s}: {values.mean():.4f} ± {values.std():.4f}")
    print("=" * 70)

    print("\n✓ Benchmark complete!")


if __name__ == "__main__":
    main()
