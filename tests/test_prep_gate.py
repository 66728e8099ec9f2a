"""
Test Suite for the Prep-Phase Action Gate

Tests verify:
1. Seeker actions are vetoed during the prep phase
2. Hider actions are never vetoed by the prep rule
3. Inactive slots are vetoed
4. Statistics tracking
"""

from hideseek.config import NUM_PREP_STEPS
from hideseek.governance import PrepPhaseGate
from hideseek.governance.prep_gate import INACTIVE_SLOT_VETO, PREP_PHASE_VETO
from hideseek.world.entities import AgentBody, AgentInterface, AgentType


def make_iface(agent_type: AgentType, active: bool = True) -> AgentInterface:
    iface = AgentInterface(slot=0, agent_type=agent_type)
    if active:
        iface.body = AgentBody(agent_type=agent_type)
    return iface


class TestPrepPhaseVeto:
    """Seekers are frozen until the prep window ends"""

    def test_seeker_vetoed_in_prep(self):
        gate = PrepPhaseGate()
        allowed, reason = gate.verify_action(make_iface(AgentType.SEEKER), 0)

        assert allowed == False, "Seeker should be frozen at step 0"
        assert reason == PREP_PHASE_VETO
        print("✓ Seeker prep veto test passed")

    def test_prep_boundary(self):
        """Last prep step is NUM_PREP_STEPS - 2"""
        gate = PrepPhaseGate()
        seeker = make_iface(AgentType.SEEKER)

        assert gate.verify_action(seeker, NUM_PREP_STEPS - 2)[0] == False
        assert gate.verify_action(seeker, NUM_PREP_STEPS - 1) == (True, None)
        assert gate.verify_action(seeker, 200) == (True, None)
        print("✓ Prep boundary test passed")

    def test_hider_never_vetoed(self):
        gate = PrepPhaseGate()
        hider = make_iface(AgentType.HIDER)

        for step in (0, 50, NUM_PREP_STEPS - 2, NUM_PREP_STEPS, 239):
            assert gate.verify_action(hider, step) == (True, None)
        print("✓ Hider allowed test passed")


class TestInactiveSlotVeto:
    """Slots without a body never act"""

    def test_inactive_slot(self):
        gate = PrepPhaseGate()
        allowed, reason = gate.verify_action(make_iface(AgentType.HIDER, active=False), 150)

        assert allowed == False
        assert reason == INACTIVE_SLOT_VETO
        print("✓ Inactive slot veto test passed")

    def test_inactive_takes_precedence(self):
        gate = PrepPhaseGate()
        _, reason = gate.verify_action(make_iface(AgentType.SEEKER, active=False), 0)
        assert reason == INACTIVE_SLOT_VETO
        print("✓ Inactive precedence test passed")


class TestStatistics:
    """Veto statistics"""

    def test_empty_statistics(self):
        stats = PrepPhaseGate().get_veto_statistics()
        assert stats == {PREP_PHASE_VETO: 0.0, INACTIVE_SLOT_VETO: 0.0}
        print("✓ Empty statistics test passed")

    def test_statistics_tracking(self):
        gate = PrepPhaseGate()
        seeker = make_iface(AgentType.SEEKER)
        hider = make_iface(AgentType.HIDER)
        empty = make_iface(AgentType.HIDER, active=False)

        gate.verify_action(seeker, 0)
        gate.verify_action(seeker, 1)
        gate.verify_action(hider, 0)
        gate.verify_action(empty, 0)

        assert gate.veto_stats['total_actions_checked'] == 4
        assert gate.veto_stats['total_vetoes'] == 3

        stats = gate.get_veto_statistics()
        assert stats[PREP_PHASE_VETO] == 0.5
        assert stats[INACTIVE_SLOT_VETO] == 0.25
        print("✓ Statistics tracking test passed")

    def test_reset_statistics(self):
        gate = PrepPhaseGate()
        gate.verify_action(make_iface(AgentType.SEEKER), 0)
        gate.reset_statistics()

        assert gate.veto_stats['total_actions_checked'] == 0
        assert gate.veto_stats['total_vetoes'] == 0
        assert all(v == 0 for v in gate.veto_stats['vetoes_by_rule'].values())
        print("✓ Statistics reset test passed")

    def test_world_counts_each_slot_once_per_tick(self, empty_world):
        empty_world.step()
        # Two hider and two seeker slots, all inactive in the empty scene
        assert empty_world.gate.veto_stats['total_actions_checked'] == 4
        assert empty_world.gate.get_veto_statistics()[INACTIVE_SLOT_VETO] == 1.0
        print("✓ Per-tick counting test passed")
