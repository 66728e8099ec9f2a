"""
Physics / Broadphase Capability Interface

The world core never integrates motion or intersects geometry itself. It
talks to a backend through this interface: register and unregister bodies,
cast rays, create and destroy fixed joints, and advance the simulation.
Any engine that implements these methods can drive a World.
"""

import abc
from dataclasses import dataclass
from typing import Optional

import numpy as np

from ..world.entities import RigidBody


@dataclass
class RayHit:
    """
    Nearest intersection along a ray.

    Attributes:
        body: Entity that was hit
        t: Ray parameter of the hit, in units of the direction's length
        normal: World-space surface normal at the hit point
    """

    body: RigidBody
    t: float
    normal: np.ndarray


@dataclass(eq=False)
class FixedJoint:
    """Rigid two-body constraint created by a grab."""

    parent: RigidBody
    child: RigidBody
    attach_parent: np.ndarray
    attach_child: np.ndarray
    r_parent: np.ndarray
    r_child: np.ndarray
    separation: float


class PhysicsBackend(abc.ABC):
    """Operations the world core requires from a physics engine."""

    @abc.abstractmethod
    def reset(self) -> None:
        """Drop all per-episode solver state (contacts, joints)."""

    @abc.abstractmethod
    def register_body(self, body: RigidBody) -> None:
        """Add a body to the broadphase and the solver."""

    @abc.abstractmethod
    def unregister_body(self, body: RigidBody) -> None:
        """Remove a body; unknown bodies are ignored."""

    @abc.abstractmethod
    def trace_ray(
        self,
        origin: np.ndarray,
        direction: np.ndarray,
        t_max: float
    ) -> Optional[RayHit]:
        """
        Find the nearest body hit by origin + t * direction, 0 < t <= t_max.

        The direction is not normalized: with an unnormalized direction,
        t = 1 is the point origin + direction. A ray starting inside a body
        does not report that body.

        Returns:
            RayHit for the nearest hit, or None
        """

    @abc.abstractmethod
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
        """Rigidly attach child to parent at the given anchors."""

    @abc.abstractmethod
    def destroy_joint(self, joint: FixedJoint) -> None:
        """Remove a joint; unknown joints are ignored."""

    @abc.abstractmethod
    def step(self, dt: float, num_substeps: int) -> None:
        """Advance all registered bodies by dt."""
