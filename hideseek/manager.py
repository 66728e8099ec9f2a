"""
Batch Manager and Host Bindings

Owns every world replica plus the batch export buffers, and exposes those
buffers as zero-copy torch tensors:

    mgr = Manager(SimConfig(num_worlds=64, seed=5))
    mgr.init()
    actions = mgr.action_tensor()     # [N, 5] int32, writable
    rewards = mgr.reward_tensor()     # [N, 1] float32
    for _ in range(1000):
        actions[:] = policy(mgr.agent_data_tensor())
        mgr.step()

N = num_worlds * max_agents_per_world. Agent row i belongs to world
i // max_agents_per_world. Writes through the tensors are seen by the
simulation on the next step.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Sequence

import numpy as np
import torch

from .config import NUM_ACTION_BUCKETS, SimConfig
from .physics import KinematicPhysics, PhysicsBackend
from .world.buffers import ExportBuffers
from .world.rng import RandKey
from .world.world import World

logger = logging.getLogger(__name__)


class Manager:
    """
    Steps a batch of independent worlds.

    Args:
        config: Simulation config; validated on construction
        physics_factory: Builds one physics backend per world
    """

    def __init__(
        self,
        config: Optional[SimConfig] = None,
        physics_factory: Callable[[], PhysicsBackend] = KinematicPhysics
    ):
        self.config = (config or SimConfig()).validate()
        self.buffers = ExportBuffers(
            self.config.num_worlds, self.config.max_agents_per_world
        )
        self.worlds: List[World] = [
            World(self.config, idx, physics_factory(), self.buffers.world_view(idx))
            for idx in range(self.config.num_worlds)
        ]

        self._executor: Optional[ThreadPoolExecutor] = None
        if self.config.num_threads > 1:
            self._executor = ThreadPoolExecutor(
                max_workers=self.config.num_threads,
                thread_name_prefix="hideseek-world",
            )

        self._initialized = False

        logger.info(
            "Manager created: %d worlds, %d agent slots per world, seed %d, %d threads",
            self.config.num_worlds, self.config.max_agents_per_world,
            self.config.seed, max(1, self.config.num_threads),
        )

    @property
    def num_worlds(self) -> int:
        return self.config.num_worlds

    @property
    def num_agent_rows(self) -> int:
        return self.config.num_worlds * self.config.max_agents_per_world

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def _run(self, fn: Callable[[World], None]) -> None:
        if self._executor is None:
            for world in self.worlds:
                fn(world)
        else:
            # list() re-raises the first worker exception here
            list(self._executor.map(fn, self.worlds))

    def init(self) -> None:
        """Generate each world's first episode; implicit on the first step()."""
        self._run(World.init)
        self._initialized = True

    def step(self) -> None:
        if not self._initialized:
            self.init()
        self._run(World.step)

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def __enter__(self) -> "Manager":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Host calls
    # ------------------------------------------------------------------
    def trigger_reset(self, world_idx: int, level: int = 1) -> None:
        """
        Request a scene regeneration for one world on its next tick.

        Args:
            world_idx: World to reset
            level: Scene level; 1 is the training scene, 2..8 debug layouts

        Raises:
            IndexError: world_idx out of range
            ValueError: level is not positive, or places more agents than
                a world has slots
        """
        if not 0 <= world_idx < self.num_worlds:
            raise IndexError(
                f"world_idx {world_idx} out of range for {self.num_worlds} worlds"
            )
        if level <= 0:
            raise ValueError(f"reset level must be positive, got {level}")

        self.worlds[world_idx].trigger_reset(level)

    def set_action(
        self,
        agent_idx: int,
        move_x: int,
        move_y: int,
        rotate: int,
        grab: int,
        lock: int
    ) -> None:
        """
        Write one agent's action row.

        Raises:
            IndexError: agent_idx out of range
            ValueError: a bucket or flag is outside its valid range
        """
        if not 0 <= agent_idx < self.num_agent_rows:
            raise IndexError(
                f"agent_idx {agent_idx} out of range for {self.num_agent_rows} agent rows"
            )

        for name, value in (("move_x", move_x), ("move_y", move_y), ("rotate", rotate)):
            if not 0 <= value < NUM_ACTION_BUCKETS:
                raise ValueError(
                    f"{name} bucket must be in [0, {NUM_ACTION_BUCKETS}), got {value}"
                )
        for name, value in (("grab", grab), ("lock", lock)):
            if value not in (0, 1):
                raise ValueError(f"{name} flag must be 0 or 1, got {value}")

        self.buffers.action[agent_idx] = (move_x, move_y, rotate, grab, lock)

    def replay_episode(self, world_idx: int, key: Sequence[int], level: int = 1) -> None:
        """Regenerate a past episode in one world from its exported seed row."""
        self.trigger_reset(world_idx, level)
        self.worlds[world_idx].request_checkpoint_replay(RandKey(int(key[0]), int(key[1])))

    # ------------------------------------------------------------------
    # Tensor exports
    # ------------------------------------------------------------------
    @staticmethod
    def _export(array: np.ndarray) -> torch.Tensor:
        return torch.from_numpy(array)

    def reset_tensor(self) -> torch.Tensor:
        return self._export(self.buffers.reset)

    def prep_counter_tensor(self) -> torch.Tensor:
        return self._export(self.buffers.prep_counter)

    def action_tensor(self) -> torch.Tensor:
        return self._export(self.buffers.action)

    def agent_type_tensor(self) -> torch.Tensor:
        return self._export(self.buffers.agent_type)

    def agent_mask_tensor(self) -> torch.Tensor:
        return self._export(self.buffers.agent_mask)

    def agent_data_tensor(self) -> torch.Tensor:
        return self._export(self.buffers.agent_obs)

    def box_data_tensor(self) -> torch.Tensor:
        return self._export(self.buffers.box_obs)

    def ramp_data_tensor(self) -> torch.Tensor:
        return self._export(self.buffers.ramp_obs)

    def visible_agents_mask_tensor(self) -> torch.Tensor:
        return self._export(self.buffers.agent_vis)

    def visible_boxes_mask_tensor(self) -> torch.Tensor:
        return self._export(self.buffers.box_vis)

    def visible_ramps_mask_tensor(self) -> torch.Tensor:
        return self._export(self.buffers.ramp_vis)

    def lidar_tensor(self) -> torch.Tensor:
        return self._export(self.buffers.lidar)

    def seed_tensor(self) -> torch.Tensor:
        return self._export(self.buffers.seed)

    def reward_tensor(self) -> torch.Tensor:
        return self._export(self.buffers.reward)

    def done_tensor(self) -> torch.Tensor:
        return self._export(self.buffers.done)

    def global_positions_tensor(self) -> torch.Tensor:
        return self._export(self.buffers.global_positions)
