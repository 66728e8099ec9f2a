"""
Observation Builder

Converts absolute poses and velocities into each observing agent's frame:

    relative position = rot_A^-1 * (pos_T - pos_A), horizontal components
    relative velocity = rot_A^-1 * v_T,              horizontal components
    relative yaw      = yaw(rot_A * rot_T^-1)

Every record has the declared capacity (MAX_AGENTS - 1 other agents,
MAX_BOXES boxes, MAX_RAMPS ramps). Slots past the active count are written
as zeros on every tick, and an agent never appears in its own list.
"""

from typing import TYPE_CHECKING

import numpy as np

from ..config import MAX_AGENTS, MAX_BOXES, MAX_RAMPS
from ..geometry import quat_inv, quat_rotate, relative_yaw
from .episode import prep_steps_left

if TYPE_CHECKING:
    from .world import World


def _relative_xy(inv_rot: np.ndarray, vec: np.ndarray) -> np.ndarray:
    return quat_rotate(inv_rot, vec)[:2]


def collect_observations(world: "World", slot: int) -> None:
    """Fill one agent's prep counter and relative agent/box/ramp records."""
    iface = world.interfaces[slot]
    if iface.body is None:
        return

    buffers = world.buffers
    step = world.episode.step
    buffers.prep_counter[slot, 0] = prep_steps_left(step, int(buffers.prep_counter[slot, 0]))

    body = iface.body
    agent_pos = body.position
    agent_rot = body.rotation
    inv_rot = quat_inv(agent_rot)

    box_obs = buffers.box_obs[slot]
    for box_idx in range(MAX_BOXES):
        if box_idx >= world.boxes.count:
            box_obs[box_idx] = 0.0
            continue

        box = world.boxes[box_idx]
        box_obs[box_idx, 0:2] = _relative_xy(inv_rot, box.position - agent_pos)
        box_obs[box_idx, 2:4] = _relative_xy(inv_rot, box.linear_velocity)
        box_obs[box_idx, 4:6] = world.box_sizes[box_idx]
        box_obs[box_idx, 6] = relative_yaw(agent_rot, box.rotation)

    ramp_obs = buffers.ramp_obs[slot]
    for ramp_idx in range(MAX_RAMPS):
        if ramp_idx >= world.ramps.count:
            ramp_obs[ramp_idx] = 0.0
            continue

        ramp = world.ramps[ramp_idx]
        ramp_obs[ramp_idx, 0:2] = _relative_xy(inv_rot, ramp.position - agent_pos)
        ramp_obs[ramp_idx, 2:4] = _relative_xy(inv_rot, ramp.linear_velocity)
        ramp_obs[ramp_idx, 4] = relative_yaw(agent_rot, ramp.rotation)

    agent_obs = buffers.agent_obs[slot]
    out_idx = 0
    for agent_idx in range(MAX_AGENTS):
        if agent_idx >= world.num_active_agents:
            if out_idx < MAX_AGENTS - 1:
                agent_obs[out_idx] = 0.0
                out_idx += 1
            continue

        if agent_idx == slot:
            continue

        other = world.interfaces[agent_idx].body
        agent_obs[out_idx, 0:2] = _relative_xy(inv_rot, other.position - agent_pos)
        agent_obs[out_idx, 2:4] = _relative_xy(inv_rot, other.linear_velocity)
        out_idx += 1


def collect_global_positions(world: "World") -> None:
    """Absolute xy of boxes, ramps and agents for debugging, zero-padded."""
    out = world.buffers.global_positions
    out[:] = 0.0

    for i, box in enumerate(world.boxes):
        out[i] = box.position[:2]

    offset = MAX_BOXES
    for i, ramp in enumerate(world.ramps):
        out[offset + i] = ramp.position[:2]

    offset = MAX_BOXES + MAX_RAMPS
    agent_idx = 0
    for table in (world.hiders, world.seekers):
        for body in table:
            out[offset + agent_idx] = body.position[:2]
            agent_idx += 1
