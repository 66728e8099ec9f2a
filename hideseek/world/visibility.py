"""
Visibility & Lidar Engine

Visibility of target T from observer A:

    1. d = pos_T - pos_A (unnormalized)
    2. Field of view: reject unless dot(normalize(d), fwd_A) >= cos(67.5 deg)
    3. Line of sight: trace origin pos_A, direction d, t_max = 1 so that
       t = 1 lands exactly on T. Visible iff the nearest hit is T.

A seeker that sees a hider flips the world's team reward to -1 for the
rest of the episode.

Lidar casts NUM_LIDAR_RAYS horizontal rays evenly around the agent,
ray 0 pointing along the agent's forward axis, and records the hit
distance or 0 when nothing lies within range.
"""

import math
from typing import TYPE_CHECKING

import numpy as np

from ..config import (
    LIDAR_MAX_DISTANCE,
    MAX_AGENTS,
    MAX_BOXES,
    MAX_RAMPS,
    NUM_LIDAR_RAYS,
    VISIBILITY_HALF_ANGLE_DEG,
)
from ..geometry import FWD, RIGHT, quat_rotate
from .entities import AgentType, RigidBody

if TYPE_CHECKING:
    from ..physics.interface import PhysicsBackend
    from .world import World


COS_VISIBILITY_THRESHOLD = math.cos(math.radians(VISIBILITY_HALF_ANGLE_DEG))


def in_view_cone(observer_pos: np.ndarray, observer_fwd: np.ndarray,
                 target_pos: np.ndarray) -> bool:
    to_target = target_pos - observer_pos
    norm = np.linalg.norm(to_target)
    if norm == 0.0:
        return False
    return float(np.dot(to_target / norm, observer_fwd)) >= COS_VISIBILITY_THRESHOLD


def is_visible(
    physics: "PhysicsBackend",
    observer: RigidBody,
    target: RigidBody
) -> bool:
    """
    Field-of-view plus line-of-sight test.

    Args:
        physics: Backend that answers ray queries
        observer: Body doing the looking
        target: Body being looked at

    Returns:
        True if the target is inside the view cone and unoccluded
    """
    observer_fwd = quat_rotate(observer.rotation, FWD)
    if not in_view_cone(observer.position, observer_fwd, target.position):
        return False

    to_target = target.position - observer.position
    hit = physics.trace_ray(observer.position, to_target, 1.0)
    return hit is not None and hit.body is target


def compute_visibility(world: "World", slot: int) -> None:
    """Fill one agent's agent/box/ramp visibility masks."""
    iface = world.interfaces[slot]
    observer = iface.body
    if observer is None:
        return

    buffers = world.buffers
    physics = world.physics
    is_seeker = iface.agent_type == AgentType.SEEKER

    agent_vis = buffers.agent_vis[slot]
    out_idx = 0
    for agent_idx in range(MAX_AGENTS):
        if agent_idx >= world.num_active_agents:
            if out_idx < MAX_AGENTS - 1:
                agent_vis[out_idx] = 0.0
                out_idx += 1
            continue

        if agent_idx == slot:
            continue

        other = world.interfaces[agent_idx]
        seen = is_visible(physics, observer, other.body)
        agent_vis[out_idx] = 1.0 if seen else 0.0
        out_idx += 1

        if seen and is_seeker and other.agent_type == AgentType.HIDER:
            world.episode.mark_hider_spotted()

    box_vis = buffers.box_vis[slot]
    for box_idx in range(MAX_BOXES):
        if box_idx >= world.boxes.count:
            box_vis[box_idx] = 0.0
        else:
            box_vis[box_idx] = float(is_visible(physics, observer, world.boxes[box_idx]))

    ramp_vis = buffers.ramp_vis[slot]
    for ramp_idx in range(MAX_RAMPS):
        if ramp_idx >= world.ramps.count:
            ramp_vis[ramp_idx] = 0.0
        else:
            ramp_vis[ramp_idx] = float(is_visible(physics, observer, world.ramps[ramp_idx]))


def lidar_directions(rotation: np.ndarray, num_rays: int = NUM_LIDAR_RAYS) -> np.ndarray:
    """Unit ray directions in world space, shape [num_rays, 3]."""
    fwd = quat_rotate(rotation, FWD)
    right = quat_rotate(rotation, RIGHT)

    dirs = np.empty((num_rays, 3))
    for idx in range(num_rays):
        theta = 2.0 * math.pi * (idx / num_rays) + math.pi / 2.0
        d = math.cos(theta) * right + math.sin(theta) * fwd
        dirs[idx] = d / np.linalg.norm(d)
    return dirs


def lidar_depth(
    physics: "PhysicsBackend",
    body: RigidBody,
    max_distance: float = LIDAR_MAX_DISTANCE
) -> np.ndarray:
    """Per-ray hit distance from the body's center, 0 where nothing was hit."""
    dirs = lidar_directions(body.rotation)
    depth = np.zeros(len(dirs), dtype=np.float32)
    for idx, direction in enumerate(dirs):
        hit = physics.trace_ray(body.position, direction, max_distance)
        if hit is not None:
            depth[idx] = hit.t
    return depth


def compute_lidar(world: "World", slot: int) -> None:
    body = world.interfaces[slot].body
    if body is None:
        return
    world.buffers.lidar[slot] = lidar_depth(world.physics, body)
