"""
World: one independent simulation replica.

A world owns its entity tables, its per-episode state, its random stream
and its physics backend, and writes every output through views into the
shared export buffers. Worlds never touch each other's state, so a
manager can step any number of them concurrently.

Tick ordering:

    movement -> grab/lock -> physics -> rewards/dones
      -> reset-or-advance -> observations, visibility, lidar, debug positions
"""

import logging
from typing import TYPE_CHECKING, List, Optional

import numpy as np

from ..config import (
    DELTA_T,
    MAX_AGENTS,
    MAX_BOXES,
    MAX_OBSTACLES,
    MAX_RAMPS,
    NUM_PHYSICS_SUBSTEPS,
    SimConfig,
    SimFlags,
)
from ..governance.prep_gate import PrepPhaseGate
from .actions import ACTION_GRAB, ACTION_LOCK, apply_grab, apply_lock, apply_movement, consume_action
from .buffers import WorldBuffers
from .entities import AgentBody, AgentInterface, EntityTable, RigidBody
from .episode import EpisodeState, resolve_reset_level
from .observations import collect_global_positions, collect_observations
from .rewards import output_rewards_dones
from .rng import RandKey, RandomStream
from .scenes import TRAINING_LEVEL, SceneGenerator
from .visibility import compute_lidar, compute_visibility

if TYPE_CHECKING:
    from ..physics.interface import PhysicsBackend

logger = logging.getLogger(__name__)


class World:
    """
    One hide-and-seek replica.

    Args:
        config: Validated simulation config shared by all worlds
        world_idx: Index of this world in the batch (second RNG split key)
        physics: Backend owning this world's bodies
        buffers: Views into the batch export buffers; allocated standalone
            when omitted
    """

    def __init__(
        self,
        config: SimConfig,
        world_idx: int,
        physics: "PhysicsBackend",
        buffers: Optional[WorldBuffers] = None
    ):
        self.config = config
        self.world_idx = world_idx
        self.physics = physics
        self.max_agents_per_world = config.max_agents_per_world
        self.buffers = buffers or WorldBuffers.allocate(self.max_agents_per_world)

        self.obstacles: EntityTable[RigidBody] = EntityTable("obstacle", MAX_OBSTACLES)
        self.boxes: EntityTable[RigidBody] = EntityTable("box", MAX_BOXES)
        self.ramps: EntityTable[RigidBody] = EntityTable("ramp", MAX_RAMPS)
        self.hiders: EntityTable[AgentBody] = EntityTable("hider", MAX_AGENTS)
        self.seekers: EntityTable[AgentBody] = EntityTable("seeker", MAX_AGENTS)
        self.box_sizes = np.zeros((MAX_BOXES, 2), dtype=np.float32)

        self.interfaces: List[AgentInterface] = [
            AgentInterface(slot=i) for i in range(self.max_agents_per_world)
        ]
        self.num_active_agents = 0

        self.episode = EpisodeState()
        self.rng = RandomStream(config.seed, RandKey(0, 0))
        self.gate = PrepPhaseGate()
        self.scenes = SceneGenerator(self)
        self._replay_key: Optional[RandKey] = None

        self.buffers.reset[0] = TRAINING_LEVEL

    @property
    def sim_flags(self) -> SimFlags:
        return self.config.sim_flags

    # ------------------------------------------------------------------
    # Host-facing operations
    # ------------------------------------------------------------------
    def trigger_reset(self, level: int) -> None:
        """
        Request regeneration at the given level on the next tick.

        Raises:
            ValueError: the level places more agents than this world has
                slots; nothing is changed
        """
        needed = self.scenes.agent_slots_needed(level)
        if needed > self.max_agents_per_world:
            raise ValueError(
                f"World {self.world_idx}: level {level} needs {needed} agent slots, "
                f"only {self.max_agents_per_world} configured"
            )
        self.buffers.reset[0] = level

    def set_action(self, slot: int, action) -> None:
        self.buffers.action[slot] = np.asarray(action, dtype=np.int32)

    def request_checkpoint_replay(self, key: RandKey) -> None:
        """Make the next reset regenerate the episode identified by key."""
        self._replay_key = key

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------
    def init(self) -> None:
        """Build the first episode and publish its step-0 observations."""
        self._reset_or_advance()
        self._post_reset_observations()

    def step(self) -> None:
        step = self.episode.step
        allowed_slots = [
            self.gate.verify_action(iface, step)[0] for iface in self.interfaces
        ]

        for slot, iface in enumerate(self.interfaces):
            if allowed_slots[slot]:
                apply_movement(iface.body, self.buffers.action[slot])

        for slot, iface in enumerate(self.interfaces):
            action = self.buffers.action[slot]
            if allowed_slots[slot]:
                if action[ACTION_GRAB] == 1:
                    apply_grab(iface.body, self.physics)
                if action[ACTION_LOCK] == 1:
                    apply_lock(iface.body, self.physics)
            consume_action(action)

        self.physics.step(DELTA_T, NUM_PHYSICS_SUBSTEPS)

        # Inactive slots never get a reward row written
        for slot in range(self.num_active_agents):
            output_rewards_dones(self, slot)

        self._reset_or_advance()
        self._post_reset_observations()

    def _post_reset_observations(self) -> None:
        for slot in range(self.num_active_agents):
            collect_observations(self, slot)
            compute_visibility(self, slot)
            compute_lidar(self, slot)
        collect_global_positions(self)

    # ------------------------------------------------------------------
    # Reset lifecycle
    # ------------------------------------------------------------------
    def _reset_or_advance(self) -> None:
        level = resolve_reset_level(
            int(self.buffers.reset[0]), self.episode.step, self.sim_flags
        )
        if level == 0:
            self.episode.advance()
            return

        self.buffers.reset[0] = 0
        self._clear_scene()
        key = self._next_episode_key()
        self.rng = RandomStream(self.config.seed, key)
        self.episode.begin(key)

        num_hiders = self.rng.sample_inclusive(self.config.min_hiders, self.config.max_hiders)
        num_seekers = self.rng.sample_inclusive(self.config.min_seekers, self.config.max_seekers)
        self.scenes.generate(level, num_hiders, num_seekers)

        logger.debug(
            "World %d: reset to level %d with key (%d, %d); %d agents, %d boxes, %d ramps",
            self.world_idx, level, key.a, key.b,
            self.num_active_agents, self.boxes.count, self.ramps.count,
        )

    def _next_episode_key(self) -> RandKey:
        if self._replay_key is not None:
            key, self._replay_key = self._replay_key, None
            return key

        if self.sim_flags & SimFlags.USE_FIXED_WORLD:
            return RandKey(0, 0)

        key = RandKey(self.episode.episode_counter, self.world_idx)
        self.episode.episode_counter += 1
        return key

    def _destroy_agent(self, body: AgentBody) -> None:
        if body.grab_joint is not None:
            self.physics.destroy_joint(body.grab_joint)
            body.grab_joint = None
        self.physics.unregister_body(body)

    def _clear_scene(self) -> None:
        self.physics.reset()

        for body in self.obstacles:
            self.physics.unregister_body(body)
        self.obstacles.clear()
        self.boxes.clear()
        self.ramps.clear()
        self.box_sizes[:] = 0.0

        for table in (self.hiders, self.seekers):
            for body in table:
                self._destroy_agent(body)
            table.clear()

        for iface in self.interfaces:
            iface.body = None
        self.num_active_agents = 0
