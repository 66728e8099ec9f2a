"""
Simulation Configuration

Fixed constants shared by every world, the behaviour flags, and the
user-facing SimConfig container. Capacity constants size the exported
buffers, so they are module-level constants rather than config fields:
every consumer of the observation tensors depends on them being stable.
"""

import enum
from dataclasses import dataclass, fields
from typing import Any, Dict, Tuple


# Fixed table capacities
MAX_BOXES = 9
MAX_RAMPS = 2
MAX_AGENTS = 16
MAX_OBSTACLES = MAX_BOXES + MAX_RAMPS + MAX_AGENTS + 30

# Episode timing
EPISODE_LEN = 240
NUM_PREP_STEPS = 96
DELTA_T = 1.0 / 30.0
NUM_PHYSICS_SUBSTEPS = 4
GRAVITY = -9.8

# Arena and placement
ARENA_BOUNDS: Tuple[float, float] = (-18.0, 18.0)
ARENA_HALF_EXTENT = 18.0
SPAWN_HEIGHT = 1.0
MAX_REJECTIONS = 20
MIN_TOTAL_BOXES = 3
MAX_TOTAL_BOXES = 10  # exclusive
MIN_ELONGATED_BOXES = 3

# Sensing
VISIBILITY_HALF_ANGLE_DEG = 135.0 / 2.0
NUM_LIDAR_RAYS = 30
LIDAR_MAX_DISTANCE = 200.0

# Rewards
OUT_OF_BOUNDS_PENALTY = -10.0

# Discrete actions
NUM_ACTION_BUCKETS = 11
NEUTRAL_BUCKET = NUM_ACTION_BUCKETS // 2
MOVE_ACTION_MAX = 60.0
TURN_ACTION_MAX = 15.0
INTERACT_RANGE = 2.5


class ConfigurationError(ValueError):
    """Raised when a configuration cannot produce a usable world."""


class SimFlags(enum.IntFlag):
    """Behaviour switches applied to every world."""

    DEFAULT = 0
    USE_FIXED_WORLD = 1 << 0
    IGNORE_EPISODE_LENGTH = 1 << 1


@dataclass
class SimConfig:
    """
    Configuration for a batch of hide-and-seek worlds.

    Attributes:
        num_worlds: Number of independent world replicas
        seed: Global seed every per-episode random stream is split from
        min_hiders: Minimum hiders per episode (inclusive)
        max_hiders: Maximum hiders per episode (inclusive)
        min_seekers: Minimum seekers per episode (inclusive)
        max_seekers: Maximum seekers per episode (inclusive)
        sim_flags: SimFlags applied to every world
        num_threads: Worker threads used to step worlds (<= 1 steps serially)
    """

    num_worlds: int = 1
    seed: int = 0
    min_hiders: int = 1
    max_hiders: int = 3
    min_seekers: int = 1
    max_seekers: int = 3
    sim_flags: SimFlags = SimFlags.DEFAULT
    num_threads: int = 1

    @property
    def max_agents_per_world(self) -> int:
        return self.max_hiders + self.max_seekers

    def validate(self) -> "SimConfig":
        """
        Check the configuration against the fixed table capacities.

        Raises:
            ConfigurationError: if any bound is inconsistent or would
                overflow a fixed-capacity table

        Returns:
            self, so construction can be chained
        """
        if self.num_worlds <= 0:
            raise ConfigurationError(
                f"num_worlds must be positive, got {self.num_worlds}"
            )

        if self.seed < 0:
            raise ConfigurationError(f"seed must be non-negative, got {self.seed}")

        for name in ("min_hiders", "min_seekers"):
            if getattr(self, name) < 0:
                raise ConfigurationError(
                    f"{name} must be non-negative, got {getattr(self, name)}"
                )

        if self.min_hiders > self.max_hiders:
            raise ConfigurationError(
                f"min_hiders ({self.min_hiders}) exceeds max_hiders ({self.max_hiders})"
            )
        if self.min_seekers > self.max_seekers:
            raise ConfigurationError(
                f"min_seekers ({self.min_seekers}) exceeds max_seekers ({self.max_seekers})"
            )

        total = self.max_agents_per_world
        if total <= 0 or total > MAX_AGENTS:
            raise ConfigurationError(
                f"max_hiders + max_seekers must be in (0, {MAX_AGENTS}], got {total}"
            )

        return self

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "SimConfig":
        """Build a validated config from a plain mapping (e.g. parsed CLI args)."""
        known = {f.name for f in fields(cls)}
        unknown = set(values) - known
        if unknown:
            raise ConfigurationError(f"Unknown config keys: {sorted(unknown)}")

        kwargs = dict(values)
        if "sim_flags" in kwargs:
            kwargs["sim_flags"] = SimFlags(int(kwargs["sim_flags"]))

        return cls(**kwargs).validate()

    def replace(self, **changes: Any) -> "SimConfig":
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        values.update(changes)
        return SimConfig(**values).validate()

