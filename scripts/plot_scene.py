"""
Top-down plot of a generated hide-and-seek scene.

Draws every box, cube, ramp and agent footprint (its transformed bounding
box outline), marks forced overlapping placements, and shows each agent's
facing direction.

Usage:
    python scripts/plot_scene.py --seed 5 --level 1 --output scene.png
"""

import argparse
import logging
import os
import sys

import matplotlib
matplotlib.use('Agg')  # Non-interactive backend
import matplotlib.pyplot as plt
import numpy as np

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from hideseek import SimConfig, World
from hideseek.config import ARENA_HALF_EXTENT
from hideseek.geometry import FWD, quat_rotate
from hideseek.physics import KinematicPhysics
from hideseek.world.entities import AgentType, SimObject


COLORS = {
    SimObject.BOX: 'tab:brown',
    SimObject.CUBE: 'tab:orange',
    SimObject.RAMP: 'tab:olive',
    SimObject.WALL: 'tab:gray',
}


def footprint(body) -> np.ndarray:
    """Corners of the body's oriented xy rectangle, closed for plotting."""
    half = np.asarray(body.shape.half_extents) * body.scale
    local = np.array([
        [-half[0], -half[1], 0.0],
        [half[0], -half[1], 0.0],
        [half[0], half[1], 0.0],
        [-half[0], half[1], 0.0],
        [-half[0], -half[1], 0.0],
    ])
    return np.array([quat_rotate(body.rotation, c) + body.position for c in local])


def plot_scene(world: World, output_path: str):
    fig, ax = plt.subplots(figsize=(8, 8))

    for body in world.obstacles:
        if body.object_id == SimObject.PLANE:
            continue
        corners = footprint(body)
        ax.fill(corners[:, 0], corners[:, 1], color=COLORS.get(body.object_id, 'k'),
                alpha=0.6, label=body.object_id.name.lower())

    for iface in world.interfaces:
        if iface.body is None:
            continue
        body = iface.body
        color = 'tab:green' if iface.agent_type == AgentType.HIDER else 'tab:red'
        corners = footprint(body)
        ax.plot(corners[:, 0], corners[:, 1], color=color,
                label=iface.agent_type.name.lower())
        fwd = quat_rotate(body.rotation, FWD)
        ax.arrow(body.position[0], body.position[1], 2 * fwd[0], 2 * fwd[1],
                 head_width=0.5, color=color)

    for placement in world.scenes.last_placements:
        if placement.overlapping:
            ax.plot(placement.position[0], placement.position[1], 'kx', markersize=10,
                    label='forced placement')

    bound = ARENA_HALF_EXTENT
    ax.plot([-bound, bound, bound, -bound, -bound],
            [-bound, -bound, bound, bound, -bound], 'k--', linewidth=1)

    # One legend entry per label
    handles, labels = ax.get_legend_handles_labels()
    unique = dict(zip(labels, handles))
    ax.legend(unique.values(), unique.keys(), loc='upper right')

    ax.set_xlim(-bound - 4, bound + 4)
    ax.set_ylim(-bound - 4, bound + 4)
    ax.set_aspect('equal')
    ax.set_title(f'World {world.world_idx}, episode key '
                 f'({world.episode.key.a}, {world.episode.key.b})')

    plt.tight_layout()
    plt.savefig(output_path, dpi=150, bbox_inches='tight')
    plt.close(fig)
    print(f"✓ Saved scene plot to {output_path}")


def main():
    parser = argparse.ArgumentParser(description='Plot a generated hide-and-seek scene')
    parser.add_argument('--seed', type=int, default=0, help='Global world seed')
    parser.add_argument('--world', type=int, default=0, help='World index (RNG split key)')
    parser.add_argument('--level', type=int, default=1, help='Scene level to build')
    parser.add_argument('--max-hiders', type=int, default=3)
    parser.add_argument('--max-seekers', type=int, default=3)
    parser.add_argument('--output', type=str, default='scene.png', help='Output image path')
    parser.add_argument('--log-level', type=str, default='WARNING',
                        help='Logging level (DEBUG, INFO, WARNING)')
    args = parser.parse_args()

    logging.basicConfig(level=getattr(logging, args.log_level.upper()))

    config = SimConfig(
        num_worlds=args.world + 1,
        seed=args.seed,
        max_hiders=args.max_hiders,
        max_seekers=args.max_seekers,
    ).validate()

    world = World(config, args.world, KinematicPhysics())
    world.trigger_reset(args.level)
    world.init()

    print(f"Boxes: {world.boxes.count}, ramps: {world.ramps.count}, "
          f"hiders: {world.hiders.count}, seekers: {world.seekers.count}")
    plot_scene(world, args.output)


if __name__ == "__main__":
    main()
