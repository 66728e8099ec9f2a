"""
Fixed-shape export buffers.

All per-agent outputs are stored in batch arrays shaped
[num_worlds * max_agents_per_world, ...]. Each world writes through views of
its own row block, so the host reads every world's state from one array
without copying.
"""

from dataclasses import dataclass, field, fields

import numpy as np

from ..config import MAX_AGENTS, MAX_BOXES, MAX_RAMPS, NEUTRAL_BUCKET, NUM_LIDAR_RAYS

AGENT_OBS_DIM = 4  # pos(2), vel(2)
BOX_OBS_DIM = 7    # pos(2), vel(2), half-extents(2), yaw
RAMP_OBS_DIM = 5   # pos(2), vel(2), yaw
NUM_DEBUG_POSITIONS = MAX_BOXES + MAX_RAMPS + MAX_AGENTS


@dataclass
class ExportBuffers:
    """Batch arrays shared by the host binding layer and every world."""

    num_worlds: int
    max_agents_per_world: int

    reset: np.ndarray = field(init=False, repr=False)
    prep_counter: np.ndarray = field(init=False, repr=False)
    action: np.ndarray = field(init=False, repr=False)
    agent_type: np.ndarray = field(init=False, repr=False)
    agent_mask: np.ndarray = field(init=False, repr=False)
    agent_obs: np.ndarray = field(init=False, repr=False)
    box_obs: np.ndarray = field(init=False, repr=False)
    ramp_obs: np.ndarray = field(init=False, repr=False)
    agent_vis: np.ndarray = field(init=False, repr=False)
    box_vis: np.ndarray = field(init=False, repr=False)
    ramp_vis: np.ndarray = field(init=False, repr=False)
    lidar: np.ndarray = field(init=False, repr=False)
    seed: np.ndarray = field(init=False, repr=False)
    reward: np.ndarray = field(init=False, repr=False)
    done: np.ndarray = field(init=False, repr=False)
    global_positions: np.ndarray = field(init=False, repr=False)

    def __post_init__(self):
        n = self.num_worlds * self.max_agents_per_world
        w = self.num_worlds

        self.reset = np.zeros((w, 1), dtype=np.int32)
        self.prep_counter = np.zeros((n, 1), dtype=np.int32)
        self.action = np.zeros((n, 5), dtype=np.int32)
        self.action[:, :3] = NEUTRAL_BUCKET
        self.agent_type = np.zeros((n, 1), dtype=np.int32)
        self.agent_mask = np.zeros((n, 1), dtype=np.float32)
        self.agent_obs = np.zeros((n, MAX_AGENTS - 1, AGENT_OBS_DIM), dtype=np.float32)
        self.box_obs = np.zeros((n, MAX_BOXES, BOX_OBS_DIM), dtype=np.float32)
        self.ramp_obs = np.zeros((n, MAX_RAMPS, RAMP_OBS_DIM), dtype=np.float32)
        self.agent_vis = np.zeros((n, MAX_AGENTS - 1), dtype=np.float32)
        self.box_vis = np.zeros((n, MAX_BOXES), dtype=np.float32)
        self.ramp_vis = np.zeros((n, MAX_RAMPS), dtype=np.float32)
        self.lidar = np.zeros((n, NUM_LIDAR_RAYS), dtype=np.float32)
        self.seed = np.zeros((n, 2), dtype=np.int32)
        self.reward = np.zeros((n, 1), dtype=np.float32)
        self.done = np.zeros((n, 1), dtype=np.int32)
        self.global_positions = np.zeros((w, NUM_DEBUG_POSITIONS, 2), dtype=np.float32)

    def world_view(self, world_idx: int) -> "WorldBuffers":
        m = self.max_agents_per_world
        rows = slice(world_idx * m, (world_idx + 1) * m)
        return WorldBuffers(
            reset=self.reset[world_idx],
            prep_counter=self.prep_counter[rows],
            action=self.action[rows],
            agent_type=self.agent_type[rows],
            agent_mask=self.agent_mask[rows],
            agent_obs=self.agent_obs[rows],
            box_obs=self.box_obs[rows],
            ramp_obs=self.ramp_obs[rows],
            agent_vis=self.agent_vis[rows],
            box_vis=self.box_vis[rows],
            ramp_vis=self.ramp_vis[rows],
            lidar=self.lidar[rows],
            seed=self.seed[rows],
            reward=self.reward[rows],
            done=self.done[rows],
            global_positions=self.global_positions[world_idx],
        )


@dataclass
class WorldBuffers:
    """Views into ExportBuffers covering one world's rows."""

    reset: np.ndarray
    prep_counter: np.ndarray
    action: np.ndarray
    agent_type: np.ndarray
    agent_mask: np.ndarray
    agent_obs: np.ndarray
    box_obs: np.ndarray
    ramp_obs: np.ndarray
    agent_vis: np.ndarray
    box_vis: np.ndarray
    ramp_vis: np.ndarray
    lidar: np.ndarray
    seed: np.ndarray
    reward: np.ndarray
    done: np.ndarray
    global_positions: np.ndarray

    @classmethod
    def allocate(cls, max_agents_per_world: int) -> "WorldBuffers":
        """Standalone buffers for a world that is not part of a batch."""
        return ExportBuffers(1, max_agents_per_world).world_view(0)

    def clear_agent_row(self, slot: int) -> None:
        """Zero every per-agent output of one slot."""
        for f in fields(self):
            if f.name in ("reset", "global_positions", "action"):
                continue
            getattr(self, f.name)[slot] = 0
        self.action[slot] = (NEUTRAL_BUCKET, NEUTRAL_BUCKET, NEUTRAL_BUCKET, 0, 0)
