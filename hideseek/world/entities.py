"""
Entity Types for the Hide-and-Seek World

Shapes are a closed set of tagged variants (SimObject). Everything the
simulation needs to know about a variant, its collision bounds, mass and
friction, lives in one static SHAPE_CATALOG entry instead of per-class
behaviour.

Entity tables are fixed-capacity slot arrays with an explicit active count.
The capacities are part of the exported tensor shapes, so overflowing a
table is a configuration error, never a silent truncation.
"""

import enum
from dataclasses import dataclass, field
from typing import Dict, Generic, Iterator, List, Optional, TypeVar

import numpy as np

from ..config import ConfigurationError, NEUTRAL_BUCKET
from ..geometry import AABB, IDENTITY_QUAT


class SimObject(enum.IntEnum):
    SPHERE = 0
    PLANE = 1
    CUBE = 2
    WALL = 3
    AGENT = 4
    RAMP = 5
    BOX = 6


class ResponseType(enum.IntEnum):
    DYNAMIC = 0
    STATIC = 2


class OwnerTeam(enum.IntEnum):
    NONE = 0
    SEEKER = 1
    HIDER = 2
    UNOWNABLE = 3


class AgentType(enum.IntEnum):
    SEEKER = 0
    HIDER = 1


@dataclass(frozen=True)
class ShapeInfo:
    """Static per-variant metadata."""

    half_extents: tuple
    inv_mass: float
    dynamic_friction: float

    @property
    def aabb(self) -> AABB:
        return AABB.from_half_extents(self.half_extents)


# Planes are infinite for ray tests; their AABB is only a flat footprint.
SHAPE_CATALOG: Dict[SimObject, ShapeInfo] = {
    SimObject.SPHERE: ShapeInfo((1.0, 1.0, 1.0), 1.0, 0.5),
    SimObject.PLANE: ShapeInfo((1000.0, 1000.0, 0.0), 0.0, 2.0),
    SimObject.CUBE: ShapeInfo((1.0, 1.0, 1.0), 0.5, 2.0),
    SimObject.WALL: ShapeInfo((1.0, 1.0, 1.0), 0.0, 2.0),
    SimObject.AGENT: ShapeInfo((1.0, 1.0, 1.0), 1.0, 16.0),
    SimObject.RAMP: ShapeInfo((2.0, 1.0, 1.0), 0.5, 1.0),
    SimObject.BOX: ShapeInfo((4.0, 0.75, 1.0), 0.5, 4.0),
}


def _zeros3() -> np.ndarray:
    return np.zeros(3)


def _ones3() -> np.ndarray:
    return np.ones(3)


def _identity() -> np.ndarray:
    return IDENTITY_QUAT.copy()


@dataclass(eq=False)
class RigidBody:
    """
    A placed rigid entity: box, cube, ramp, wall, plane or agent body.

    Compared by identity; ray queries report the body object itself.
    """

    object_id: SimObject
    position: np.ndarray = field(default_factory=_zeros3)
    rotation: np.ndarray = field(default_factory=_identity)
    scale: np.ndarray = field(default_factory=_ones3)
    linear_velocity: np.ndarray = field(default_factory=_zeros3)
    angular_velocity: np.ndarray = field(default_factory=_zeros3)
    response_type: ResponseType = ResponseType.DYNAMIC
    owner_team: OwnerTeam = OwnerTeam.NONE
    external_force: np.ndarray = field(default_factory=_zeros3)
    external_torque: np.ndarray = field(default_factory=_zeros3)

    @property
    def shape(self) -> ShapeInfo:
        return SHAPE_CATALOG[self.object_id]

    def world_aabb(self) -> AABB:
        return self.shape.aabb.apply_trs(self.position, self.rotation, self.scale)


@dataclass(eq=False)
class AgentBody(RigidBody):
    """Simulated agent body; holds at most one grab joint."""

    object_id: SimObject = SimObject.AGENT
    response_type: ResponseType = ResponseType.DYNAMIC
    owner_team: OwnerTeam = OwnerTeam.UNOWNABLE
    agent_type: AgentType = AgentType.HIDER
    grab_joint: Optional[object] = None


def neutral_action() -> np.ndarray:
    return np.array(
        [NEUTRAL_BUCKET, NEUTRAL_BUCKET, NEUTRAL_BUCKET, 0, 0], dtype=np.int32
    )


@dataclass(eq=False)
class AgentInterface:
    """
    Fixed slot through which the host sees one agent.

    Slots exist for the whole lifetime of a world. A slot with no body is
    inactive: every system checks `body is None` and skips it.
    """

    slot: int
    agent_type: AgentType = AgentType.SEEKER
    body: Optional[AgentBody] = None


T = TypeVar("T")


class EntityTable(Generic[T]):
    """
    Fixed-capacity slot array with an active count.

    Slots at index >= count always hold None.
    """

    def __init__(self, name: str, capacity: int):
        self.name = name
        self.capacity = capacity
        self._slots: List[Optional[T]] = [None] * capacity
        self.count = 0

    def append(self, item: T) -> int:
        if self.count >= self.capacity:
            raise ConfigurationError(
                f"{self.name} table is full (capacity {self.capacity})"
            )
        idx = self.count
        self._slots[idx] = item
        self.count += 1
        return idx

    def clear(self) -> None:
        for i in range(self.count):
            self._slots[i] = None
        self.count = 0

    def __getitem__(self, idx: int) -> Optional[T]:
        return self._slots[idx]

    def __len__(self) -> int:
        return self.count

    def __iter__(self) -> Iterator[T]:
        for i in range(self.count):
            yield self._slots[i]
