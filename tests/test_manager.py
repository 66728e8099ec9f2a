"""
Test Suite for the Batch Manager

Tests verify:
1. Exported tensor shapes and dtypes
2. Tensors share memory with the simulation buffers
3. Host call validation
4. Threaded stepping matches serial stepping
5. Episode replay from an exported seed row
"""

import numpy as np
import pytest
import torch

from hideseek import Manager, SimConfig
from hideseek.config import MAX_AGENTS, MAX_BOXES, MAX_RAMPS, NUM_LIDAR_RAYS, NUM_PREP_STEPS


def small_config(**kwargs) -> SimConfig:
    values = dict(num_worlds=2, seed=11, min_hiders=1, max_hiders=1, min_seekers=1, max_seekers=1)
    values.update(kwargs)
    return SimConfig(**values)


class TestTensorExports:
    """Shapes, dtypes and zero-copy access"""

    def test_shapes_and_dtypes(self):
        mgr = Manager(small_config())
        mgr.init()
        n = mgr.num_agent_rows
        assert n == 4

        expected = {
            'reset_tensor': ((2, 1), torch.int32),
            'prep_counter_tensor': ((n, 1), torch.int32),
            'action_tensor': ((n, 5), torch.int32),
            'agent_type_tensor': ((n, 1), torch.int32),
            'agent_mask_tensor': ((n, 1), torch.float32),
            'agent_data_tensor': ((n, MAX_AGENTS - 1, 4), torch.float32),
            'box_data_tensor': ((n, MAX_BOXES, 7), torch.float32),
            'ramp_data_tensor': ((n, MAX_RAMPS, 5), torch.float32),
            'visible_agents_mask_tensor': ((n, MAX_AGENTS - 1), torch.float32),
            'visible_boxes_mask_tensor': ((n, MAX_BOXES), torch.float32),
            'visible_ramps_mask_tensor': ((n, MAX_RAMPS), torch.float32),
            'lidar_tensor': ((n, NUM_LIDAR_RAYS), torch.float32),
            'seed_tensor': ((n, 2), torch.int32),
            'reward_tensor': ((n, 1), torch.float32),
            'done_tensor': ((n, 1), torch.int32),
            'global_positions_tensor': ((2, MAX_BOXES + MAX_RAMPS + MAX_AGENTS, 2), torch.float32),
        }
        for name, (shape, dtype) in expected.items():
            tensor = getattr(mgr, name)()
            assert tuple(tensor.shape) == shape, f"{name}: {tuple(tensor.shape)}"
            assert tensor.dtype == dtype, f"{name}: {tensor.dtype}"
        mgr.close()
        print("✓ Tensor shape test passed")

    def test_action_writes_reach_simulation(self):
        mgr = Manager(small_config())
        actions = mgr.action_tensor()
        actions[1] = torch.tensor([10, 5, 5, 0, 0], dtype=torch.int32)

        assert mgr.buffers.action[1].tolist() == [10, 5, 5, 0, 0]
        mgr.step()
        # Consumed back to neutral, visible through the same tensor
        assert actions[1].tolist() == [5, 5, 5, 0, 0]
        print("✓ Zero-copy action test passed")

    def test_outputs_are_views(self):
        mgr = Manager(small_config())
        rewards = mgr.reward_tensor()
        prep = mgr.prep_counter_tensor()
        mgr.init()

        assert prep[:, 0].tolist() == [NUM_PREP_STEPS] * 4
        mgr.step()
        assert prep[:, 0].tolist() == [NUM_PREP_STEPS - 1] * 4
        assert rewards[:, 0].tolist() == [0.0] * 4, "Prep phase pays nothing"
        print("✓ Output view test passed")

    def test_seed_rows(self):
        mgr = Manager(small_config())
        mgr.init()
        seeds = mgr.seed_tensor()
        assert seeds.tolist() == [[0, 0], [0, 0], [0, 1], [0, 1]]
        print("✓ Seed row test passed")


class TestHostCalls:
    """Validation of host calls"""

    def test_trigger_reset_validation(self):
        mgr = Manager(small_config())
        with pytest.raises(IndexError):
            mgr.trigger_reset(2)
        with pytest.raises(IndexError):
            mgr.trigger_reset(-1)
        with pytest.raises(ValueError):
            mgr.trigger_reset(0, level=0)

        mgr.trigger_reset(1, level=5)
        assert mgr.reset_tensor()[:, 0].tolist() == [1, 5]
        print("✓ trigger_reset validation test passed")

    def test_set_action_validation(self):
        mgr = Manager(small_config())
        with pytest.raises(IndexError):
            mgr.set_action(4, 5, 5, 5, 0, 0)
        with pytest.raises(ValueError):
            mgr.set_action(0, 11, 5, 5, 0, 0)
        with pytest.raises(ValueError):
            mgr.set_action(0, 5, 5, 5, 2, 0)

        mgr.set_action(3, 0, 10, 7, 1, 1)
        assert mgr.action_tensor()[3].tolist() == [0, 10, 7, 1, 1]
        print("✓ set_action validation test passed")

    def test_trigger_reset_regenerates(self):
        mgr = Manager(small_config())
        mgr.init()
        for _ in range(5):
            mgr.step()
        assert mgr.worlds[0].episode.step == 5

        mgr.trigger_reset(0, level=5)
        mgr.step()
        assert mgr.worlds[0].episode.step == 0
        assert mgr.worlds[1].episode.step == 6
        # Level 5 holds a single hider
        assert mgr.agent_mask_tensor()[:2, 0].tolist() == [1.0, 0.0]
        print("✓ Reset regeneration test passed")

    def test_oversized_level_rejected_at_call(self):
        mgr = Manager(small_config(num_worlds=1, min_seekers=0, max_seekers=0))
        mgr.init()
        world = mgr.worlds[0]
        boxes = world.boxes.count

        with pytest.raises(ValueError):
            mgr.trigger_reset(0, level=6)
        assert mgr.reset_tensor()[0, 0] == 0

        mgr.step()
        assert world.episode.step == 1
        assert world.boxes.count == boxes
        assert mgr.agent_mask_tensor()[:, 0].tolist() == [1.0]
        print("✓ Oversized level rejection test passed")


class TestStepping:
    """Serial, threaded and replayed stepping"""

    def test_threaded_matches_serial(self):
        outputs = []
        for threads in (1, 3):
            with Manager(small_config(num_worlds=3, num_threads=threads)) as mgr:
                mgr.init()
                for t in range(4):
                    mgr.action_tensor()[:, 0] = t % 11
                    mgr.step()
                outputs.append((
                    mgr.agent_data_tensor().clone(),
                    mgr.lidar_tensor().clone(),
                    mgr.global_positions_tensor().clone(),
                ))

        for serial, threaded in zip(*outputs):
            assert torch.equal(serial, threaded)
        print("✓ Threaded determinism test passed")

    def test_replay_episode(self):
        mgr = Manager(small_config())
        mgr.init()
        seed = mgr.seed_tensor()[0].clone()
        initial = mgr.global_positions_tensor()[0].clone()

        for _ in range(3):
            mgr.step()
        mgr.trigger_reset(0)
        mgr.step()
        assert mgr.seed_tensor()[0].tolist() == [1, 0]

        mgr.replay_episode(0, seed.tolist())
        mgr.step()
        assert mgr.seed_tensor()[0].tolist() == seed.tolist()
        assert np.allclose(mgr.global_positions_tensor()[0].numpy(), initial.numpy())
        print("✓ Episode replay test passed")
