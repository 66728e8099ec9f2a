"""
Reward/Done Emitter

Per agent per tick:
- step 0 clears the done flag; the last step sets it
- prep phase pays 0
- otherwise hiders get the team reward and seekers its negation
- leaving the arena half-extent on either horizontal axis adds -10
"""

from typing import TYPE_CHECKING

from ..config import ARENA_HALF_EXTENT, OUT_OF_BOUNDS_PENALTY
from .entities import AgentType
from .episode import in_prep_phase, is_last_step

if TYPE_CHECKING:
    from .world import World


def agent_reward(agent_type: AgentType, position, step: int, team_reward: float) -> float:
    if in_prep_phase(step):
        return 0.0

    reward = team_reward if agent_type == AgentType.HIDER else -team_reward

    if abs(position[0]) >= ARENA_HALF_EXTENT or abs(position[1]) >= ARENA_HALF_EXTENT:
        reward += OUT_OF_BOUNDS_PENALTY

    return reward


def output_rewards_dones(world: "World", slot: int) -> None:
    iface = world.interfaces[slot]
    if iface.body is None:
        return

    buffers = world.buffers
    step = world.episode.step

    if step == 0:
        buffers.done[slot, 0] = 0
    if is_last_step(step):
        buffers.done[slot, 0] = 1

    buffers.reward[slot, 0] = agent_reward(
        iface.agent_type, iface.body.position, step, world.episode.team_reward
    )
