"""Shared builders for world-level tests."""

import numpy as np
import pytest

from hideseek.config import SimConfig
from hideseek.geometry import IDENTITY_QUAT, UP, quat_from_angle_axis
from hideseek.physics import KinematicPhysics
from hideseek.world.entities import AgentType, SimObject
from hideseek.world.scenes import observed_size
from hideseek.world.world import World

EMPTY_LEVEL = 99


def yaw_quat(angle: float) -> np.ndarray:
    return quat_from_angle_axis(angle, UP)


def make_world(min_hiders=1, max_hiders=1, min_seekers=1, max_seekers=1, seed=0, **kwargs) -> World:
    """An initialized world with the training scene."""
    config = SimConfig(
        seed=seed,
        min_hiders=min_hiders,
        max_hiders=max_hiders,
        min_seekers=min_seekers,
        max_seekers=max_seekers,
        **kwargs,
    ).validate()
    world = World(config, 0, KinematicPhysics())
    world.init()
    return world


def make_empty_world(max_hiders=2, max_seekers=2) -> World:
    """An initialized world with no bodies; tests add what they need."""
    config = SimConfig(
        min_hiders=0, max_hiders=max_hiders, min_seekers=0, max_seekers=max_seekers,
    ).validate()
    world = World(config, 0, KinematicPhysics())
    world.trigger_reset(EMPTY_LEVEL)
    world.init()
    return world


def add_agent(world: World, x: float, y: float, agent_type: AgentType, yaw: float = 0.0):
    return world.scenes.make_agent([x, y, 1.0], yaw_quat(yaw), agent_type)


def add_cube(world: World, x: float, y: float, yaw: float = 0.0):
    body = world.scenes.make_object([x, y, 1.0], yaw_quat(yaw), SimObject.CUBE)
    world.scenes.add_box(body, observed_size(SimObject.CUBE))
    return body


def add_ground(world: World):
    return world.scenes.make_plane([0.0, 0.0, 0.0], IDENTITY_QUAT)


@pytest.fixture
def empty_world() -> World:
    return make_empty_world()
