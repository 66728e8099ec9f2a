"""
World module for hideseek.
Contains the per-replica simulation core: scene generation, the episode
state machine, and the observation, visibility and reward pipeline.
"""

from .entities import AgentInterface, AgentType, EntityTable, OwnerTeam, ResponseType, SimObject
from .episode import EpisodePhase, EpisodeState
from .placement import Placement, PlacementEngine
from .rng import RandKey, RandomStream
from .scenes import SceneGenerator
from .world import World

__all__ = [
    "World",
    "SceneGenerator",
    "PlacementEngine",
    "Placement",
    "EpisodeState",
    "EpisodePhase",
    "RandKey",
    "RandomStream",
    "AgentInterface",
    "AgentType",
    "EntityTable",
    "OwnerTeam",
    "ResponseType",
    "SimObject",
]
