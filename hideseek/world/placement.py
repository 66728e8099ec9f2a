"""
Spatial Placement Engine

Places shapes in a square arena by bounded rejection sampling:

    repeat:
        draw (x, y) uniformly in bounds, yaw uniformly in [0, pi)
        transform the shape's static AABB by (position, yaw, scale)
        accept if it overlaps no previously accepted AABB
    after MAX_REJECTIONS rejections, accept the next candidate regardless

The forced acceptance guarantees every requested shape is placed and the
loop terminates, at the price of an occasional overlapping spawn. Counts
are never clamped against arena capacity.

Each accepted AABB joins the engine's cumulative set, so a shape is only
ever constrained by shapes placed before it.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from ..config import ARENA_BOUNDS, MAX_REJECTIONS, SPAWN_HEIGHT
from ..geometry import AABB, UP, quat_from_angle_axis
from .entities import SHAPE_CATALOG, SimObject
from .rng import RandomStream

logger = logging.getLogger(__name__)


@dataclass
class Placement:
    """
    One accepted pose.

    Attributes:
        object_id: Shape variant that was placed
        position: World position (z fixed to the spawn height)
        rotation: Yaw-only quaternion
        yaw: Yaw angle in [0, pi)
        aabb: Transformed bounds used for overlap checks
        rejections: Candidates rejected before this one was accepted
        overlapping: True if accepted through exhaustion while overlapping
    """

    object_id: SimObject
    position: np.ndarray
    rotation: np.ndarray
    yaw: float
    aabb: AABB
    rejections: int
    overlapping: bool


class PlacementEngine:
    """
    Rejection sampler over a square arena.

    Args:
        rng: Episode random stream
        bounds: (low, high) sampling range on both x and y
        max_rejections: Rejections tolerated before forced acceptance
        height: z coordinate of every placement
    """

    def __init__(
        self,
        rng: RandomStream,
        bounds: Tuple[float, float] = ARENA_BOUNDS,
        max_rejections: int = MAX_REJECTIONS,
        height: float = SPAWN_HEIGHT
    ):
        self.rng = rng
        self.bounds = bounds
        self.max_rejections = max_rejections
        self.height = height
        self.accepted: List[AABB] = []
        self.placements: List[Placement] = []

    def add_static(self, aabb: AABB) -> None:
        """Register pre-existing geometry that later placements must avoid."""
        self.accepted.append(aabb)

    def fits(self, aabb: AABB) -> bool:
        return not any(aabb.overlaps(other) for other in self.accepted)

    def _sample_pose(self) -> Tuple[np.ndarray, float]:
        low, high = self.bounds
        span = high - low
        x = low + self.rng.sample_uniform() * span
        y = low + self.rng.sample_uniform() * span
        yaw = self.rng.sample_uniform() * np.pi
        return np.array([x, y, self.height]), yaw

    def place(
        self,
        object_id: SimObject,
        scale: Optional[np.ndarray] = None
    ) -> Placement:
        """
        Sample a pose for one shape and add it to the accepted set.

        Args:
            object_id: Shape variant to place
            scale: Per-axis scale applied to the static bounds

        Returns:
            The accepted Placement
        """
        if scale is None:
            scale = np.ones(3)
        static_aabb = SHAPE_CATALOG[object_id].aabb

        rejections = 0
        while True:
            position, yaw = self._sample_pose()
            rotation = quat_from_angle_axis(yaw, UP)
            aabb = static_aabb.apply_trs(position, rotation, scale)

            fits = self.fits(aabb)
            if fits or rejections == self.max_rejections:
                break
            rejections += 1

        if not fits:
            logger.debug(
                "Placement of %s exhausted %d rejections; accepting overlap at (%.2f, %.2f)",
                object_id.name, rejections, position[0], position[1],
            )

        placement = Placement(
            object_id=object_id,
            position=position,
            rotation=rotation,
            yaw=float(yaw),
            aabb=aabb,
            rejections=rejections,
            overlapping=not fits,
        )
        self.accepted.append(aabb)
        self.placements.append(placement)
        return placement

    def place_many(self, object_id: SimObject, count: int) -> List[Placement]:
        return [self.place(object_id) for _ in range(count)]
