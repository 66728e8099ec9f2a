"""
Prep-Phase Action Gate with Veto Authority

During the prep window hiders get a head start: every seeker action
(movement, grab, lock) is VETOED before it reaches the physics engine.
Inputs are still read and consumed, they simply have no effect.

Veto Mechanisms:
1. Prep Phase Veto: seeker actions while the episode is in its prep phase
2. Inactive Slot Veto: actions addressed to an agent slot with no body

The gate keeps veto statistics so training code can confirm how much of
the seekers' input was discarded.
"""

from typing import Dict, Optional, Tuple

from ..world.entities import AgentInterface, AgentType
from ..world.episode import in_prep_phase


PREP_PHASE_VETO = "Prep Phase Constraint"
INACTIVE_SLOT_VETO = "Inactive Slot Constraint"


class PrepPhaseGate:
    """
    Decides whether an agent's action may take effect this tick.

    One gate belongs to one world; it is not shared between threads.
    """

    def __init__(self):
        self.veto_stats = {
            'total_actions_checked': 0,
            'total_vetoes': 0,
            'vetoes_by_rule': {
                PREP_PHASE_VETO: 0,
                INACTIVE_SLOT_VETO: 0,
            }
        }

    def verify_action(
        self,
        iface: AgentInterface,
        step: int
    ) -> Tuple[bool, Optional[str]]:
        """
        Check one agent's action against the gate rules.

        Args:
            iface: Agent slot whose action is about to be applied
            step: Current episode step index

        Returns:
            allowed: True if the action may be applied
            veto_reason: Name of the rule that vetoed it, or None
        """
        self.veto_stats['total_actions_checked'] += 1

        if iface.body is None:
            return self._veto(INACTIVE_SLOT_VETO)

        if iface.agent_type == AgentType.SEEKER and in_prep_phase(step):
            return self._veto(PREP_PHASE_VETO)

        return True, None

    def _veto(self, rule: str) -> Tuple[bool, str]:
        self.veto_stats['total_vetoes'] += 1
        self.veto_stats['vetoes_by_rule'][rule] += 1
        return False, rule

    def get_veto_statistics(self) -> Dict[str, float]:
        """
        Veto rates per rule for analysis.

        Returns:
            Dictionary mapping rule name to fraction of checked actions vetoed
        """
        total = self.veto_stats['total_actions_checked']
        if total == 0:
            return {k: 0.0 for k in self.veto_stats['vetoes_by_rule']}

        return {
            rule: count / total
            for rule, count in self.veto_stats['vetoes_by_rule'].items()
        }

    def reset_statistics(self):
        self.veto_stats['total_actions_checked'] = 0
        self.veto_stats['total_vetoes'] = 0
        self.veto_stats['vetoes_by_rule'] = {
            k: 0 for k in self.veto_stats['vetoes_by_rule']
        }
