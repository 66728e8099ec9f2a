"""
Hideseek: Multi-Agent Hide-and-Seek Simulation for RL Research

This package builds randomized hide-and-seek scenes, steps many independent
worlds in parallel, and exports agent-relative observations, visibility
masks, lidar and rewards as fixed-shape tensors.

Example usage:
    from hideseek import Manager, SimConfig

    mgr = Manager(SimConfig(num_worlds=16, seed=7))
    mgr.init()
    mgr.step()
    rewards = mgr.reward_tensor()
"""

from .config import ConfigurationError, SimConfig, SimFlags
from . import geometry
from . import world
from . import governance
from . import physics
from .manager import Manager
from . import environment

# Top-level exports for convenience
from .environment.hide_seek_env import HideAndSeekEnv
from .world.world import World

__all__ = [
    "geometry",
    "world",
    "governance",
    "physics",
    "environment",
    "Manager",
    "HideAndSeekEnv",
    "World",
    "SimConfig",
    "SimFlags",
    "ConfigurationError",
]
