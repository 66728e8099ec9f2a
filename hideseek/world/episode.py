"""
Episode State Machine

An episode runs from a reset to the tick that evaluates step
EPISODE_LEN - 1. Two phases:

    PREP    step < NUM_PREP_STEPS - 1   seekers frozen, rewards withheld
    ACTIVE  otherwise                   full game

A non-zero reset level requested by the host forces regeneration at any
time. Without one, the tick that evaluates the last step schedules a
level-1 reset, unless IGNORE_EPISODE_LENGTH lets the counter free-run.
"""

import enum
from dataclasses import dataclass, field

from ..config import EPISODE_LEN, NUM_PREP_STEPS, SimFlags
from .rng import RandKey


class EpisodePhase(enum.Enum):
    PREP = "prep"
    ACTIVE = "active"


def episode_phase(step: int) -> EpisodePhase:
    if step < NUM_PREP_STEPS - 1:
        return EpisodePhase.PREP
    return EpisodePhase.ACTIVE


def in_prep_phase(step: int) -> bool:
    return episode_phase(step) is EpisodePhase.PREP


def is_last_step(step: int) -> bool:
    return step == EPISODE_LEN - 1


def prep_steps_left(step: int, previous: int) -> int:
    """Value of the exported prep counter; frozen once the prep window ends."""
    if step <= NUM_PREP_STEPS:
        return NUM_PREP_STEPS - step
    return previous


def resolve_reset_level(requested: int, step: int, flags: SimFlags) -> int:
    """
    Decide which scene level (0 = none) this tick resets to.

    Args:
        requested: Level written by the host, 0 for no request
        step: Current episode step index
        flags: World behaviour flags

    Returns:
        Level to regenerate, or 0 to keep the episode running
    """
    if not (flags & SimFlags.IGNORE_EPISODE_LENGTH) and is_last_step(step):
        return 1
    return requested


@dataclass
class EpisodeState:
    """
    Per-world, per-episode scalars.

    Reset together with the scene; passed explicitly to the reward and
    visibility stages instead of living in any shared global.

    Attributes:
        step: Index of the current step within the episode
        team_reward: Hider team reward; +1 until a seeker spots a hider
        episode_counter: Episodes started by this world so far
        key: Random stream key of the current episode
    """

    step: int = 0
    team_reward: float = 1.0
    episode_counter: int = 0
    key: RandKey = field(default_factory=lambda: RandKey(0, 0))

    @property
    def phase(self) -> EpisodePhase:
        return episode_phase(self.step)

    def mark_hider_spotted(self) -> None:
        # Overwrite, not accumulate: one sighting decides the episode
        self.team_reward = -1.0

    def begin(self, key: RandKey) -> None:
        self.step = 0
        self.team_reward = 1.0
        self.key = key

    def advance(self) -> None:
        self.step += 1
