"""
Kinematic Reference Physics

A small in-process implementation of PhysicsBackend, used by the tests,
the demos and any caller without an external engine. It is deliberately
not a contact solver:

- Dynamic bodies integrate external force and gravity with semi-implicit
  Euler and friction-proportional damping; rotation is yaw-only.
- Bodies rest on the ground plane (z = 0) whenever a plane is registered.
- Bodies do not collide with each other.
- Fixed joints carry the child rigidly along with the parent.
- Rays are intersected against oriented boxes (slab test in the body
  frame) and against planes from either side.
"""

from typing import List, Optional

import numpy as np

from ..config import GRAVITY
from ..geometry import (
    from_local_frame,
    quat_from_angle_axis,
    quat_inv,
    quat_mul,
    quat_normalize,
    quat_rotate,
    quat_to_matrix,
    UP,
)
from ..world.entities import ResponseType, RigidBody, SimObject
from .interface import FixedJoint, PhysicsBackend, RayHit


_EPS = 1e-6


class KinematicPhysics(PhysicsBackend):
    """
    Reference backend for the world core.

    Args:
        gravity: Acceleration along +z applied to dynamic bodies
        linear_damping: Velocity decay per second, scaled by friction
        angular_damping: Yaw-rate decay per second
    """

    def __init__(
        self,
        gravity: float = GRAVITY,
        linear_damping: float = 0.5,
        angular_damping: float = 2.0
    ):
        self.gravity = gravity
        self.linear_damping = linear_damping
        self.angular_damping = angular_damping
        self.bodies: List[RigidBody] = []
        self.joints: List[FixedJoint] = []

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------
    def reset(self) -> None:
        self.joints = []

    def register_body(self, body: RigidBody) -> None:
        if not any(b is body for b in self.bodies):
            self.bodies.append(body)

    def unregister_body(self, body: RigidBody) -> None:
        self.bodies = [b for b in self.bodies if b is not body]
        self.joints = [
            j for j in self.joints if j.parent is not body and j.child is not body
        ]

    def make_fixed_joint(
        self,
        parent: RigidBody,
        child: RigidBody,
        attach_parent: np.ndarray,
        attach_child: np.ndarray,
        r_parent: np.ndarray,
        r_child: np.ndarray,
        separation: float
    ) -> FixedJoint:
        joint = FixedJoint(
            parent=parent,
            child=child,
            attach_parent=np.asarray(attach_parent, dtype=np.float64),
            attach_child=np.asarray(attach_child, dtype=np.float64),
            r_parent=np.asarray(r_parent, dtype=np.float64),
            r_child=np.asarray(r_child, dtype=np.float64),
            separation=float(separation),
        )
        self.joints.append(joint)
        return joint

    def destroy_joint(self, joint: FixedJoint) -> None:
        self.joints = [j for j in self.joints if j is not joint]

    # ------------------------------------------------------------------
    # Integration
    # ------------------------------------------------------------------
    def _has_ground(self) -> bool:
        return any(b.object_id == SimObject.PLANE for b in self.bodies)

    def step(self, dt: float, num_substeps: int) -> None:
        h = dt / num_substeps
        ground = self._has_ground()
        children = {id(j.child) for j in self.joints}

        for _ in range(num_substeps):
            for body in self.bodies:
                if body.response_type != ResponseType.DYNAMIC:
                    continue
                if id(body) in children:
                    continue
                self._integrate(body, h, ground)

            for joint in self.joints:
                self._solve_joint(joint)

    def _integrate(self, body: RigidBody, h: float, ground: bool) -> None:
        shape = body.shape
        inv_mass = shape.inv_mass

        accel = body.external_force * inv_mass
        accel = accel + np.array([0.0, 0.0, self.gravity])
        body.linear_velocity = body.linear_velocity + accel * h

        decay = max(0.0, 1.0 - self.linear_damping * shape.dynamic_friction * h)
        body.linear_velocity[:2] *= decay
        body.position = body.position + body.linear_velocity * h

        # Yaw only: agents and props stay upright
        yaw_accel = body.external_torque[2] * inv_mass
        body.angular_velocity = body.angular_velocity + np.array([0.0, 0.0, yaw_accel * h])
        body.angular_velocity[2] *= max(0.0, 1.0 - self.angular_damping * h)
        body.angular_velocity[:2] = 0.0
        turn = quat_from_angle_axis(body.angular_velocity[2] * h, UP)
        body.rotation = quat_normalize(quat_mul(turn, body.rotation))

        if ground:
            bottom = body.world_aabb().pmin[2]
            if bottom < 0.0:
                body.position[2] -= bottom
                body.linear_velocity[2] = 0.0

    def _solve_joint(self, joint: FixedJoint) -> None:
        parent, child = joint.parent, joint.child

        # Child orientation relative to parent is fixed at attach time
        child.rotation = quat_normalize(
            quat_mul(parent.rotation, quat_inv(joint.attach_child))
        )
        anchor = from_local_frame(parent.position, parent.rotation, joint.r_parent)
        anchor = anchor + quat_rotate(parent.rotation, np.array([0.0, joint.separation, 0.0]))
        child.position = anchor - quat_rotate(child.rotation, joint.r_child)
        child.linear_velocity = parent.linear_velocity.copy()
        child.angular_velocity = parent.angular_velocity.copy()

    # ------------------------------------------------------------------
    # Ray queries
    # ------------------------------------------------------------------
    def trace_ray(
        self,
        origin: np.ndarray,
        direction: np.ndarray,
        t_max: float
    ) -> Optional[RayHit]:
        origin = np.asarray(origin, dtype=np.float64)
        direction = np.asarray(direction, dtype=np.float64)

        best: Optional[RayHit] = None
        for body in self.bodies:
            if body.object_id == SimObject.PLANE:
                hit = self._ray_plane(body, origin, direction, t_max)
            else:
                hit = self._ray_box(body, origin, direction, t_max)

            if hit is not None and (best is None or hit.t < best.t):
                best = hit

        return best

    @staticmethod
    def _ray_plane(body, origin, direction, t_max) -> Optional[RayHit]:
        normal = quat_rotate(body.rotation, UP)
        denom = float(np.dot(direction, normal))
        if abs(denom) < _EPS:
            return None

        t = float(np.dot(body.position - origin, normal)) / denom
        if t <= _EPS or t > t_max:
            return None

        return RayHit(body, t, normal if denom < 0 else -normal)

    @staticmethod
    def _ray_box(body, origin, direction, t_max) -> Optional[RayHit]:
        half = np.asarray(body.shape.half_extents) * body.scale
        rot_t = quat_to_matrix(body.rotation).T
        o = rot_t @ (origin - body.position)
        d = rot_t @ direction

        t_near = -np.inf
        t_far = np.inf
        near_axis = -1
        for axis in range(3):
            if abs(d[axis]) < _EPS:
                if abs(o[axis]) > half[axis]:
                    return None
                continue

            t1 = (-half[axis] - o[axis]) / d[axis]
            t2 = (half[axis] - o[axis]) / d[axis]
            if t1 > t2:
                t1, t2 = t2, t1
            if t1 > t_near:
                t_near = t1
                near_axis = axis
            t_far = min(t_far, t2)

        if t_far < t_near or near_axis < 0:
            return None
        # Origin inside the box: not a hit for this body
        if t_near <= _EPS or t_near > t_max:
            return None

        local_normal = np.zeros(3)
        local_normal[near_axis] = -np.sign(d[near_axis])
        return RayHit(body, float(t_near), rot_t.T @ local_normal)
