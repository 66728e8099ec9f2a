"""
Physics collaborators for the world core.

- PhysicsBackend: capability interface the core is written against
- KinematicPhysics: in-process reference implementation
"""

from .interface import FixedJoint, PhysicsBackend, RayHit
from .kinematic import KinematicPhysics

__all__ = [
    "FixedJoint",
    "PhysicsBackend",
    "RayHit",
    "KinematicPhysics",
]
