"""
Scene Generator

Builds one episode's scene into a World's entity tables.

Level 1 is the training scene:
- 3..9 movable boxes, at least 3 of them elongated, the rest cubes
- 2 movable ramps
- the sampled number of hiders, then seekers
- a ground plane

Each category is placed by the PlacementEngine against everything placed
before it, in that order. Levels 2..8 are fixed debug layouts.
"""

import logging
import math
from typing import TYPE_CHECKING, Callable, Dict, List

import numpy as np

from ..config import (
    ConfigurationError,
    MAX_RAMPS,
    MAX_TOTAL_BOXES,
    MIN_ELONGATED_BOXES,
    MIN_TOTAL_BOXES,
)
from ..geometry import IDENTITY_QUAT, quat_from_angle_axis, quat_mul, quat_normalize
from .entities import (
    SHAPE_CATALOG,
    AgentBody,
    AgentType,
    OwnerTeam,
    ResponseType,
    RigidBody,
    SimObject,
    neutral_action,
)
from .placement import Placement, PlacementEngine

if TYPE_CHECKING:
    from .world import World

logger = logging.getLogger(__name__)

TRAINING_LEVEL = 1

# Agent slots each debug level fills; levels not listed place no agents
DEBUG_LEVEL_AGENT_SLOTS = {5: 1, 6: 2}

X_AXIS = np.array([1.0, 0.0, 0.0])
Y_AXIS = np.array([0.0, 1.0, 0.0])
Z_AXIS = np.array([0.0, 0.0, 1.0])


def observed_size(object_id: SimObject, scale=None) -> np.ndarray:
    """Horizontal half-extents reported in box observations."""
    half = np.asarray(SHAPE_CATALOG[object_id].half_extents, dtype=np.float64)
    if scale is not None:
        half = half * np.asarray(scale, dtype=np.float64)
    return half[:2].astype(np.float32)


class SceneGenerator:
    """
    Populates a World for one episode.

    Args:
        world: World whose tables, physics backend and random stream are used
    """

    def __init__(self, world: "World"):
        self.world = world
        self.last_placements: List[Placement] = []
        self._debug_levels: Dict[int, Callable[[], None]] = {
            2: self._level2,
            3: self._level3,
            4: self._level4,
            5: self._level5,
            6: self._level6,
            7: self._level7,
            8: self._level8,
        }

    def generate(self, level: int, num_hiders: int, num_seekers: int) -> None:
        """
        Build the scene for the requested level, then deactivate unused slots.

        Args:
            level: 1 for the training scene, 2..8 for debug layouts
            num_hiders: Hiders to place (training scene only)
            num_seekers: Seekers to place (training scene only)
        """
        self.last_placements = []

        if level == TRAINING_LEVEL:
            self._training_scene(num_hiders, num_seekers)
        else:
            builder = self._debug_levels.get(level)
            if builder is None:
                logger.warning(
                    "World %d: unknown scene level %d, building an empty scene",
                    self.world.world_idx, level,
                )
            else:
                builder()

        self._deactivate_unused_slots()

    def agent_slots_needed(self, level: int) -> int:
        """Agent slots a scene of this level fills at minimum."""
        if level == TRAINING_LEVEL:
            config = self.world.config
            return config.min_hiders + config.min_seekers
        return DEBUG_LEVEL_AGENT_SLOTS.get(level, 0)

    # ------------------------------------------------------------------
    # Entity construction
    # ------------------------------------------------------------------
    def make_object(
        self,
        position,
        rotation: np.ndarray,
        object_id: SimObject,
        response_type: ResponseType = ResponseType.DYNAMIC,
        owner_team: OwnerTeam = OwnerTeam.NONE,
        scale=None
    ) -> RigidBody:
        """Create a non-agent body, register it and record it as an obstacle."""
        body = RigidBody(
            object_id=object_id,
            position=np.asarray(position, dtype=np.float64).copy(),
            rotation=np.asarray(rotation, dtype=np.float64).copy(),
            scale=np.ones(3) if scale is None else np.asarray(scale, dtype=np.float64),
            response_type=response_type,
            owner_team=owner_team,
        )
        self.world.obstacles.append(body)
        self.world.physics.register_body(body)
        return body

    def make_plane(self, position, rotation: np.ndarray) -> RigidBody:
        return self.make_object(
            position, rotation, SimObject.PLANE,
            ResponseType.STATIC, OwnerTeam.UNOWNABLE,
        )

    def add_box(self, body: RigidBody, size: np.ndarray) -> None:
        idx = self.world.boxes.append(body)
        self.world.box_sizes[idx] = size

    def add_ramp(self, body: RigidBody) -> None:
        self.world.ramps.append(body)

    def make_agent(self, position, rotation: np.ndarray, agent_type: AgentType) -> AgentBody:
        """Bind the next free agent slot to a new body of the given team."""
        world = self.world
        if world.num_active_agents >= len(world.interfaces):
            raise ConfigurationError(
                f"World {world.world_idx}: scene needs more than "
                f"{len(world.interfaces)} agent slots"
            )

        slot = world.num_active_agents
        world.num_active_agents += 1
        iface = world.interfaces[slot]

        body = AgentBody(
            object_id=SimObject.AGENT,
            position=np.asarray(position, dtype=np.float64).copy(),
            rotation=np.asarray(rotation, dtype=np.float64).copy(),
            agent_type=agent_type,
        )
        world.physics.register_body(body)

        if agent_type == AgentType.SEEKER:
            world.seekers.append(body)
        else:
            world.hiders.append(body)

        iface.agent_type = agent_type
        iface.body = body

        buffers = world.buffers
        buffers.agent_type[slot, 0] = int(agent_type)
        buffers.agent_mask[slot, 0] = 1.0
        buffers.seed[slot] = world.episode.key.as_array()
        buffers.action[slot] = neutral_action()
        return body

    # ------------------------------------------------------------------
    # Training scene
    # ------------------------------------------------------------------
    def _training_scene(self, num_hiders: int, num_seekers: int) -> None:
        rng = self.world.rng

        total_boxes = rng.sample_i32(MIN_TOTAL_BOXES, MAX_TOTAL_BOXES)
        num_elongated = rng.sample_inclusive(MIN_ELONGATED_BOXES, total_boxes)
        num_cubes = total_boxes - num_elongated

        engine = PlacementEngine(rng)

        for p in engine.place_many(SimObject.BOX, num_elongated):
            body = self.make_object(p.position, p.rotation, SimObject.BOX)
            self.add_box(body, observed_size(SimObject.BOX))

        for p in engine.place_many(SimObject.CUBE, num_cubes):
            body = self.make_object(p.position, p.rotation, SimObject.CUBE)
            self.add_box(body, observed_size(SimObject.CUBE))

        for p in engine.place_many(SimObject.RAMP, MAX_RAMPS):
            body = self.make_object(p.position, p.rotation, SimObject.RAMP)
            self.add_ramp(body)

        for p in engine.place_many(SimObject.AGENT, num_hiders):
            self.make_agent(p.position, p.rotation, AgentType.HIDER)

        for p in engine.place_many(SimObject.AGENT, num_seekers):
            self.make_agent(p.position, p.rotation, AgentType.SEEKER)

        self.make_plane([0.0, 0.0, 0.0], IDENTITY_QUAT)
        self.last_placements = list(engine.placements)

        logger.debug(
            "World %d: training scene with %d elongated boxes, %d cubes, "
            "%d ramps, %d hiders, %d seekers (%d forced placements)",
            self.world.world_idx, num_elongated, num_cubes, MAX_RAMPS,
            num_hiders, num_seekers,
            sum(1 for p in engine.placements if p.overlapping),
        )

    # ------------------------------------------------------------------
    # Debug scenes
    # ------------------------------------------------------------------
    def _dynamic_cube(self, position, rotation: np.ndarray) -> RigidBody:
        body = self.make_object(position, rotation, SimObject.CUBE)
        self.add_box(body, observed_size(SimObject.CUBE))
        return body

    def _side_planes(self) -> None:
        self.make_plane([-20.0, 0.0, 0.0], quat_from_angle_axis(math.pi / 2, Y_AXIS))
        self.make_plane([20.0, 0.0, 0.0], quat_from_angle_axis(-math.pi / 2, Y_AXIS))

    def _level2(self) -> None:
        """Single cube dropped onto a corner."""
        rot = quat_normalize(quat_mul(
            quat_from_angle_axis(math.atan(1.0 / math.sqrt(2.0)), Y_AXIS),
            quat_from_angle_axis(math.radians(45), X_AXIS),
        ))
        self._dynamic_cube([0.0, 0.0, 5.0], rot)
        self.make_plane([0.0, 0.0, 0.0], IDENTITY_QUAT)

    def _level3(self) -> None:
        """Single flat cube drop."""
        self._dynamic_cube([0.0, 0.0, 5.0], quat_from_angle_axis(0.0, Z_AXIS))
        self.make_plane([0.0, 0.0, 0.0], IDENTITY_QUAT)

    def _level4(self) -> None:
        """Elongated box dropped at an angle."""
        rot = quat_normalize(quat_from_angle_axis(math.radians(45), Y_AXIS))
        body = self.make_object([0.0, 0.0, 10.0], rot, SimObject.BOX)
        self.add_box(body, observed_size(SimObject.BOX))
        self.make_plane([0.0, 0.0, 0.0], IDENTITY_QUAT)

    def _level5(self) -> None:
        """One hider at the origin."""
        self.make_plane([0.0, 0.0, 0.0], IDENTITY_QUAT)
        self.make_agent([0.0, 0.0, 1.0], IDENTITY_QUAT, AgentType.HIDER)

    def _level6(self) -> None:
        """Hider and seeker facing each other past a wall, cube nearby."""
        self.make_plane([0.0, 0.0, 0.0], IDENTITY_QUAT)
        self.make_object(
            [0.0, 0.0, 0.0], IDENTITY_QUAT, SimObject.WALL,
            ResponseType.STATIC, OwnerTeam.UNOWNABLE, scale=[10.0, 0.2, 1.0],
        )
        self._dynamic_cube([0.0, -5.0, 1.0], IDENTITY_QUAT)

        self.make_agent(
            [-15.0, -15.0, 1.5], quat_from_angle_axis(math.radians(-45), Z_AXIS),
            AgentType.HIDER,
        )
        self.make_agent(
            [-15.0, -10.0, 1.5], quat_from_angle_axis(math.radians(45), Z_AXIS),
            AgentType.SEEKER,
        )

    def _level7(self) -> None:
        """Two tilted cubes stacked in the air between two side planes."""
        rot = quat_normalize(quat_mul(
            quat_from_angle_axis(math.radians(45), Y_AXIS),
            quat_from_angle_axis(math.radians(40), X_AXIS),
        ))
        self._dynamic_cube([0.0, 0.0, 5.0], rot)
        self._dynamic_cube([0.0, 0.0, 10.0], rot)
        self.make_plane([0.0, 0.0, 0.0], IDENTITY_QUAT)
        self._side_planes()

    def _level8(self) -> None:
        """Ramp thrown down onto a static ramp."""
        ramp_rot = quat_normalize(quat_mul(
            quat_mul(
                quat_from_angle_axis(math.radians(25), Y_AXIS),
                quat_from_angle_axis(math.radians(90), Z_AXIS),
            ),
            quat_from_angle_axis(math.radians(45), X_AXIS),
        ))
        ramp = self.make_object([0.0, 0.0, 10.0], ramp_rot, SimObject.RAMP)
        ramp.linear_velocity = np.array([0.0, 0.0, -30.0])
        self.add_ramp(ramp)

        static_rot = quat_normalize(quat_mul(
            quat_from_angle_axis(math.radians(-90), X_AXIS),
            quat_from_angle_axis(math.pi, Y_AXIS),
        ))
        self.make_object(
            [-0.5, -0.5, 1.0], static_rot, SimObject.RAMP,
            ResponseType.STATIC, OwnerTeam.NONE,
        )

        self.make_plane([0.0, 0.0, 0.0], IDENTITY_QUAT)
        self._side_planes()

    # ------------------------------------------------------------------
    def _deactivate_unused_slots(self) -> None:
        world = self.world
        for slot in range(world.num_active_agents, len(world.interfaces)):
            iface = world.interfaces[slot]
            iface.body = None
            world.buffers.clear_agent_row(slot)

    @property
    def debug_levels(self) -> List[int]:
        return sorted(self._debug_levels)

