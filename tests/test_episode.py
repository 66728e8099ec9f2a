"""
Test Suite for the Episode State Machine and Reward/Done Emitter

Tests verify:
1. Phase boundaries and the exported prep counter
2. Reset resolution (host request, episode length, IGNORE_EPISODE_LENGTH)
3. Zero-sum team reward, prep-phase zero reward, out-of-bounds penalty
4. Done flag timing over a full episode
5. Permanent team-reward flip after a sighting
"""

import math

import numpy as np
import pytest

from hideseek.config import (
    EPISODE_LEN,
    NUM_PREP_STEPS,
    OUT_OF_BOUNDS_PENALTY,
    SimFlags,
)
from hideseek.world.entities import AgentType
from hideseek.world.episode import (
    EpisodePhase,
    EpisodeState,
    episode_phase,
    in_prep_phase,
    prep_steps_left,
    resolve_reset_level,
)
from hideseek.world.rewards import agent_reward

from conftest import add_agent, add_ground, make_empty_world, make_world


class TestEpisodePhase:
    """Prep / active boundaries"""

    def test_phase_boundary(self):
        assert episode_phase(0) is EpisodePhase.PREP
        assert episode_phase(NUM_PREP_STEPS - 2) is EpisodePhase.PREP
        assert episode_phase(NUM_PREP_STEPS - 1) is EpisodePhase.ACTIVE
        assert not in_prep_phase(EPISODE_LEN - 1)
        print("✓ Phase boundary test passed")

    def test_prep_counter(self):
        assert prep_steps_left(0, 0) == NUM_PREP_STEPS
        assert prep_steps_left(50, 0) == NUM_PREP_STEPS - 50
        assert prep_steps_left(NUM_PREP_STEPS, 7) == 0
        # Frozen after the prep window
        assert prep_steps_left(NUM_PREP_STEPS + 1, 0) == 0
        assert prep_steps_left(200, 3) == 3
        print("✓ Prep counter test passed")

    def test_episode_state_lifecycle(self):
        state = EpisodeState()
        state.advance()
        state.mark_hider_spotted()
        assert state.step == 1 and state.team_reward == -1.0

        state.mark_hider_spotted()
        assert state.team_reward == -1.0, "Sightings overwrite, never accumulate"

        state.begin(state.key)
        assert state.step == 0 and state.team_reward == 1.0
        print("✓ Episode state lifecycle test passed")


class TestResetResolution:
    """When a tick regenerates the scene"""

    def test_no_request_mid_episode(self):
        assert resolve_reset_level(0, 10, SimFlags.DEFAULT) == 0
        print("✓ No-request test passed")

    def test_host_request_any_time(self):
        assert resolve_reset_level(3, 10, SimFlags.DEFAULT) == 3
        print("✓ Host request test passed")

    def test_last_step_forces_training_level(self):
        assert resolve_reset_level(0, EPISODE_LEN - 1, SimFlags.DEFAULT) == 1
        assert resolve_reset_level(4, EPISODE_LEN - 1, SimFlags.DEFAULT) == 1
        print("✓ Episode length test passed")

    def test_ignore_episode_length(self):
        flags = SimFlags.IGNORE_EPISODE_LENGTH
        assert resolve_reset_level(0, EPISODE_LEN - 1, flags) == 0
        assert resolve_reset_level(2, EPISODE_LEN - 1, flags) == 2
        print("✓ Ignore episode length test passed")

    def test_counter_free_runs_with_flag(self):
        world = make_world(sim_flags=SimFlags.IGNORE_EPISODE_LENGTH)
        world.episode.step = EPISODE_LEN - 1
        world.step()
        assert world.episode.step == EPISODE_LEN
        print("✓ Free-running counter test passed")


class TestRewards:
    """Per-agent reward contract"""

    def test_prep_reward_is_zero(self):
        far = np.array([30.0, 0.0, 1.0])
        assert agent_reward(AgentType.HIDER, far, 0, 1.0) == 0.0
        assert agent_reward(AgentType.SEEKER, far, NUM_PREP_STEPS - 2, -1.0) == 0.0
        print("✓ Prep reward test passed")

    def test_zero_sum(self):
        pos = np.array([0.0, 0.0, 1.0])
        step = NUM_PREP_STEPS
        for team_reward in (1.0, -1.0):
            hider = agent_reward(AgentType.HIDER, pos, step, team_reward)
            seeker = agent_reward(AgentType.SEEKER, pos, step, team_reward)
            assert hider == team_reward
            assert hider + seeker == 0.0
        print("✓ Zero-sum test passed")

    def test_out_of_bounds_penalty(self):
        step = NUM_PREP_STEPS
        inside = agent_reward(AgentType.HIDER, np.array([17.9, -17.9, 1.0]), step, 1.0)
        edge = agent_reward(AgentType.HIDER, np.array([18.0, 0.0, 1.0]), step, 1.0)
        outside_y = agent_reward(AgentType.SEEKER, np.array([0.0, -25.0, 1.0]), step, 1.0)
        outside_x = agent_reward(AgentType.HIDER, np.array([19.0, 0.0, 1.0]), step, 1.0)

        assert inside == 1.0
        assert edge == 1.0 + OUT_OF_BOUNDS_PENALTY
        assert outside_y == -1.0 + OUT_OF_BOUNDS_PENALTY
        assert outside_x == 1.0 + OUT_OF_BOUNDS_PENALTY
        print("✓ Out-of-bounds penalty test passed")


class TestEpisodeScenarios:
    """Whole-world tick sequences"""

    def test_step_zero_after_reset(self):
        world = make_world(seed=3)
        b = world.buffers
        assert world.episode.step == 0
        assert world.hiders.count == 1 and world.seekers.count == 1
        assert b.agent_mask[:, 0].tolist() == [1.0, 1.0]
        assert np.all(b.done == 0)
        assert np.all(b.reward == 0)
        assert b.prep_counter[:, 0].tolist() == [NUM_PREP_STEPS, NUM_PREP_STEPS]
        print("✓ Step zero scenario test passed")

    def test_done_on_last_step(self):
        """The 240th step() evaluates step 239 and raises done for every agent"""
        world = make_world(seed=3)
        b = world.buffers

        for _ in range(EPISODE_LEN - 1):
            world.step()
            assert np.all(b.done == 0)

        world.step()
        assert np.all(b.done[:, 0] == 1)
        # The next episode is already built and at step 0
        assert world.episode.step == 0
        assert world.episode.key.a == 1

        world.step()
        assert np.all(b.done == 0)
        print("✓ Done timing test passed")

    def test_rewards_zero_through_prep(self):
        world = make_world(seed=4)
        for _ in range(NUM_PREP_STEPS - 1):
            world.step()
            assert np.all(world.buffers.reward == 0)
        print("✓ Prep reward scenario test passed")

    def test_prep_counter_freezes(self):
        world = make_world(seed=4)
        for _ in range(NUM_PREP_STEPS + 10):
            world.step()
        assert np.all(world.buffers.prep_counter == 0)
        print("✓ Prep counter freeze test passed")

    def test_sighting_flips_team_reward_until_reset(self):
        world = make_empty_world()
        add_ground(world)
        hider = add_agent(world, 0.0, 6.0, AgentType.HIDER, yaw=math.pi)
        add_agent(world, 0.0, 0.0, AgentType.SEEKER)
        world.episode.step = NUM_PREP_STEPS

        world.step()
        assert world.episode.team_reward == -1.0
        assert world.buffers.agent_vis[1, 0] == 1.0

        # Hider moves out of view; the flip is permanent
        hider.position = np.array([0.0, -10.0, 1.0])
        world.step()
        assert world.buffers.agent_vis[1, 0] == 0.0
        assert world.buffers.reward[0, 0] == -1.0
        assert world.buffers.reward[1, 0] == 1.0

        world.step()
        assert world.buffers.reward[0, 0] == -1.0

        world.trigger_reset(5)
        world.step()
        assert world.episode.team_reward == 1.0
        print("✓ Team reward flip test passed")

    def test_hider_seeing_seeker_does_not_flip(self):
        world = make_empty_world()
        add_ground(world)
        add_agent(world, 0.0, 0.0, AgentType.HIDER)
        add_agent(world, 0.0, 6.0, AgentType.SEEKER, yaw=0.0)
        world.episode.step = NUM_PREP_STEPS

        world.step()
        world.step()
        assert world.buffers.agent_vis[0, 0] == 1.0
        assert world.buffers.agent_vis[1, 0] == 0.0
        assert world.episode.team_reward == 1.0
        assert world.buffers.reward[0, 0] == 1.0
        print("✓ Hider sighting test passed")

    @pytest.mark.parametrize("x", [18.0, 18.5, 19.0])
    def test_out_of_bounds_agent_penalized(self, x):
        """The arena edge itself already counts as outside"""
        world = make_empty_world()
        add_ground(world)
        hider = add_agent(world, 0.0, 0.0, AgentType.HIDER)
        add_agent(world, 5.0, 0.0, AgentType.SEEKER, yaw=math.pi)
        hider.position = np.array([x, 0.0, 1.0])
        world.episode.step = NUM_PREP_STEPS

        world.step()
        assert world.buffers.reward[0, 0] == 1.0 + OUT_OF_BOUNDS_PENALTY
        assert world.buffers.reward[1, 0] == -1.0
        print(f"✓ Out-of-bounds scenario test passed at x={x}")
