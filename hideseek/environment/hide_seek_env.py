"""
Hide-and-Seek Environment for Multi-Agent RL

PettingZoo ParallelEnv over a single simulated world. Hiders and seekers
share one team reward with opposite signs; seekers are frozen during the
prep window at the start of every episode.

Agent names map one-to-one onto the world's agent slots ("agent_0" is
slot 0). The number of active agents is re-sampled on every episode, so
`agents` changes between resets while `possible_agents` stays fixed.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import torch
from gymnasium.spaces import Box, Dict as DictSpace, MultiDiscrete
from pettingzoo import ParallelEnv

from ..config import (
    EPISODE_LEN,
    MAX_AGENTS,
    MAX_BOXES,
    MAX_RAMPS,
    NUM_ACTION_BUCKETS,
    NUM_LIDAR_RAYS,
    NUM_PREP_STEPS,
    SimConfig,
)
from ..manager import Manager
from ..world.buffers import AGENT_OBS_DIM, BOX_OBS_DIM, RAMP_OBS_DIM
from ..world.scenes import TRAINING_LEVEL

logger = logging.getLogger(__name__)


class HideAndSeekEnv(ParallelEnv):
    """
    Single-world hide-and-seek environment.

    Attributes:
        config: Simulation config (num_worlds is forced to 1)
        manager: Underlying batch manager holding the one world
    """

    metadata = {'render_modes': [], 'name': 'hide_and_seek_v0'}

    # Action row indices
    MOVE_X = 0
    MOVE_Y = 1
    ROTATE = 2
    GRAB = 3
    LOCK = 4

    def __init__(
        self,
        min_hiders: int = 1,
        max_hiders: int = 3,
        min_seekers: int = 1,
        max_seekers: int = 3,
        seed: int = 0,
        config: Optional[SimConfig] = None
    ):
        """
        Initialize the environment.

        Args:
            min_hiders: Minimum hiders per episode
            max_hiders: Maximum hiders per episode
            min_seekers: Minimum seekers per episode
            max_seekers: Maximum seekers per episode
            seed: Global seed of the world's random streams
            config: Full config; overrides the individual arguments
        """
        super().__init__()

        if config is None:
            config = SimConfig(
                num_worlds=1,
                seed=seed,
                min_hiders=min_hiders,
                max_hiders=max_hiders,
                min_seekers=min_seekers,
                max_seekers=max_seekers,
            )
        self.config = config.replace(num_worlds=1)

        self.possible_agents = [
            f"agent_{i}" for i in range(self.config.max_agents_per_world)
        ]
        self.agents: List[str] = []
        self.manager: Optional[Manager] = None
        self._episode_over = False

        self._action_spaces = {
            agent: MultiDiscrete([NUM_ACTION_BUCKETS] * 3 + [2, 2])
            for agent in self.possible_agents
        }
        self._observation_spaces = {
            agent: self._make_observation_space() for agent in self.possible_agents
        }

    @staticmethod
    def _make_observation_space() -> DictSpace:
        return DictSpace({
            'agent_data': Box(-np.inf, np.inf, shape=(MAX_AGENTS - 1, AGENT_OBS_DIM), dtype=np.float32),
            'box_data': Box(-np.inf, np.inf, shape=(MAX_BOXES, BOX_OBS_DIM), dtype=np.float32),
            'ramp_data': Box(-np.inf, np.inf, shape=(MAX_RAMPS, RAMP_OBS_DIM), dtype=np.float32),
            'visible_agents': Box(0, 1, shape=(MAX_AGENTS - 1,), dtype=np.float32),
            'visible_boxes': Box(0, 1, shape=(MAX_BOXES,), dtype=np.float32),
            'visible_ramps': Box(0, 1, shape=(MAX_RAMPS,), dtype=np.float32),
            'lidar': Box(0, np.inf, shape=(NUM_LIDAR_RAYS,), dtype=np.float32),
            'prep_counter': Box(0, NUM_PREP_STEPS, shape=(1,), dtype=np.int32),
            'agent_type': Box(0, 1, shape=(1,), dtype=np.int32),
        })

    def action_space(self, agent: str) -> MultiDiscrete:
        return self._action_spaces[agent]

    def observation_space(self, agent: str) -> DictSpace:
        return self._observation_spaces[agent]

    @property
    def world(self):
        return self.manager.worlds[0]

    def reset(
        self,
        seed: Optional[int] = None,
        options: Optional[dict] = None
    ) -> Tuple[Dict[str, Dict], Dict[str, Dict]]:
        """
        Start a new episode.

        Args:
            seed: Re-seed the world's random streams and restart its
                episode counter
            options: May carry 'level' (scene level, default 1)

        Returns:
            observations: Step-0 observations for every active agent
            infos: Per-agent info dicts
        """
        level = int((options or {}).get('level', TRAINING_LEVEL))

        if seed is not None:
            self.config = self.config.replace(seed=seed)
            self._close_manager()

        if self.manager is None:
            self.manager = Manager(self.config)
            self.manager.init()
            if level != TRAINING_LEVEL:
                self._tick_reset(level)
        elif not (self._episode_over and level == TRAINING_LEVEL):
            # A finished episode has already been regenerated at level 1
            self._tick_reset(level)

        self._episode_over = False
        self._sync_agents()
        logger.debug("Environment reset to level %d with %d agents", level, len(self.agents))

        return self._get_observations(), {agent: self._info(agent) for agent in self.agents}

    def _tick_reset(self, level: int) -> None:
        self.manager.trigger_reset(0, level)
        self.manager.step()

    def step(
        self,
        actions: Dict[str, Any]
    ) -> Tuple[Dict, Dict, Dict, Dict, Dict]:
        """
        Execute one environment step.

        Args:
            actions: Mapping agent name -> 5 integers
                (move_x bucket, move_y bucket, rotate bucket, grab, lock)

        Returns:
            observations, rewards, terminations, truncations, infos
        """
        if self.manager is None:
            raise RuntimeError("reset() must be called before step()")

        acting = list(self.agents)
        for agent, action in actions.items():
            if agent not in acting:
                continue
            self.manager.set_action(self._slot(agent), *(int(a) for a in action))

        self.manager.step()

        buffers = self.manager.buffers
        rewards = {agent: float(buffers.reward[self._slot(agent), 0]) for agent in acting}
        terminations = {agent: bool(buffers.done[self._slot(agent), 0]) for agent in acting}
        truncations = {agent: False for agent in acting}

        self._episode_over = any(terminations.values())
        if self._episode_over:
            # The world already holds the next episode; report the final
            # step against the agents that played it.
            observations = {agent: self._observe(self._slot(agent)) for agent in acting}
            infos = {agent: self._info(agent) for agent in acting}
            self.agents = []
        else:
            observations = self._get_observations()
            infos = {agent: self._info(agent) for agent in acting}

        return observations, rewards, terminations, truncations, infos

    def _slot(self, agent: str) -> int:
        return self.possible_agents.index(agent)

    def _sync_agents(self) -> None:
        mask = self.manager.buffers.agent_mask[:, 0]
        self.agents = [
            agent for slot, agent in enumerate(self.possible_agents) if mask[slot] > 0
        ]

    def _observe(self, slot: int) -> Dict[str, np.ndarray]:
        b = self.manager.buffers
        return {
            'agent_data': b.agent_obs[slot].copy(),
            'box_data': b.box_obs[slot].copy(),
            'ramp_data': b.ramp_obs[slot].copy(),
            'visible_agents': b.agent_vis[slot].copy(),
            'visible_boxes': b.box_vis[slot].copy(),
            'visible_ramps': b.ramp_vis[slot].copy(),
            'lidar': b.lidar[slot].copy(),
            'prep_counter': b.prep_counter[slot].copy(),
            'agent_type': b.agent_type[slot].copy(),
        }

    def _get_observations(self) -> Dict[str, Dict]:
        return {agent: self._observe(self._slot(agent)) for agent in self.agents}

    def _info(self, agent: str) -> Dict[str, Any]:
        world = self.world
        return {
            'step': world.episode.step,
            'phase': world.episode.phase.value,
            'team_reward': world.episode.team_reward,
            'agent_type': int(self.manager.buffers.agent_type[self._slot(agent), 0]),
            'episode_len': EPISODE_LEN,
        }

    def collate_observations(
        self,
        obs_list: List[Dict[str, np.ndarray]]
    ) -> Dict[str, torch.Tensor]:
        """
        Stack per-agent observations into batched tensors for neural networks.

        Args:
            obs_list: Observation dictionaries from reset() or step()

        Returns:
            batched_obs: Dictionary of float32 tensors, batch dimension first:
                - agent_data: (batch, 15, 4)
                - box_data: (batch, 9, 7)
                - ramp_data: (batch, 2, 5)
                - visible_agents / visible_boxes / visible_ramps: (batch, 15/9/2)
                - lidar: (batch, 30)
                - prep_counter: (batch, 1)
                - agent_type: (batch, 1)
        """
        if not obs_list:
            raise ValueError("collate_observations needs at least one observation")

        return {
            key: torch.tensor(np.stack([obs[key] for obs in obs_list]), dtype=torch.float32)
            for key in obs_list[0]
        }

    def _close_manager(self) -> None:
        if self.manager is not None:
            self.manager.close()
            self.manager = None

    def close(self) -> None:
        self._close_manager()
