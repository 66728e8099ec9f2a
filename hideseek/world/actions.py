"""
Action resolution: discrete movement buckets, grab and lock.

Action rows hold five int32 fields: x-move bucket, y-move bucket, yaw
bucket, grab flag, lock flag. Buckets run 0..10 with 5 as neutral; each
step away from neutral adds a fixed force (or torque) increment, applied
in the agent's own frame.
"""

from typing import TYPE_CHECKING

import numpy as np

from ..config import (
    INTERACT_RANGE,
    MOVE_ACTION_MAX,
    NEUTRAL_BUCKET,
    NUM_ACTION_BUCKETS,
    TURN_ACTION_MAX,
)
from ..geometry import FWD, UP, quat_inv, quat_mul, quat_normalize, quat_rotate
from .entities import AgentBody, AgentType, OwnerTeam, ResponseType

if TYPE_CHECKING:
    from ..physics.interface import PhysicsBackend


# Action row layout
ACTION_X = 0
ACTION_Y = 1
ACTION_ROTATE = 2
ACTION_GRAB = 3
ACTION_LOCK = 4

HALF_BUCKETS = NUM_ACTION_BUCKETS // 2
MOVE_DELTA_PER_BUCKET = MOVE_ACTION_MAX / HALF_BUCKETS
TURN_DELTA_PER_BUCKET = TURN_ACTION_MAX / HALF_BUCKETS

GRAB_ANCHOR = 1.25 * FWD + 0.5 * UP


def apply_movement(body: AgentBody, action: np.ndarray) -> None:
    """Convert the movement buckets into external force and torque."""
    f_x = MOVE_DELTA_PER_BUCKET * (int(action[ACTION_X]) - NEUTRAL_BUCKET)
    f_y = MOVE_DELTA_PER_BUCKET * (int(action[ACTION_Y]) - NEUTRAL_BUCKET)
    t_z = TURN_DELTA_PER_BUCKET * (int(action[ACTION_ROTATE]) - NEUTRAL_BUCKET)

    body.external_force = quat_rotate(body.rotation, np.array([f_x, f_y, 0.0]))
    body.external_torque = np.array([0.0, 0.0, t_z])


def _interaction_ray(body: AgentBody):
    origin = body.position + 0.5 * UP
    direction = quat_rotate(body.rotation, FWD)
    return origin, direction


def apply_lock(body: AgentBody, physics: "PhysicsBackend") -> None:
    """
    Toggle the lock state of whatever the agent is facing.

    A dynamic unowned body becomes static and owned by the agent's team.
    A static body can only be unlocked by the team that locked it.
    """
    origin, direction = _interaction_ray(body)
    hit = physics.trace_ray(origin, direction, INTERACT_RANGE)
    if hit is None:
        return

    target = hit.body
    team = OwnerTeam.HIDER if body.agent_type == AgentType.HIDER else OwnerTeam.SEEKER

    if target.response_type == ResponseType.STATIC:
        if target.owner_team == team:
            target.response_type = ResponseType.DYNAMIC
            target.owner_team = OwnerTeam.NONE
    elif target.owner_team == OwnerTeam.NONE:
        target.response_type = ResponseType.STATIC
        target.owner_team = team


def apply_grab(body: AgentBody, physics: "PhysicsBackend") -> None:
    """Release the held body, or attach the faced body with a fixed joint."""
    if body.grab_joint is not None:
        physics.destroy_joint(body.grab_joint)
        body.grab_joint = None
        return

    origin, direction = _interaction_ray(body)
    hit = physics.trace_ray(origin, direction, INTERACT_RANGE)
    if hit is None:
        return

    target = hit.body
    if target.owner_team != OwnerTeam.NONE or target.response_type != ResponseType.DYNAMIC:
        return

    hit_pos = origin + direction * hit.t
    r_child = quat_rotate(quat_inv(target.rotation), hit_pos - target.position)
    attach_parent = np.array([1.0, 0.0, 0.0, 0.0])
    attach_child = quat_normalize(quat_mul(quat_inv(target.rotation), body.rotation))

    body.grab_joint = physics.make_fixed_joint(
        body, target, attach_parent, attach_child,
        GRAB_ANCHOR.copy(), r_child, hit.t - 1.25,
    )


def consume_action(action: np.ndarray) -> None:
    """Reset an action row to neutral so stale input is never replayed."""
    action[ACTION_X] = NEUTRAL_BUCKET
    action[ACTION_Y] = NEUTRAL_BUCKET
    action[ACTION_ROTATE] = NEUTRAL_BUCKET
    action[ACTION_GRAB] = 0
    action[ACTION_LOCK] = 0
