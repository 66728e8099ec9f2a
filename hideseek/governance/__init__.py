"""
Governance module - action gating applied before physics.
"""

from .prep_gate import INACTIVE_SLOT_VETO, PREP_PHASE_VETO, PrepPhaseGate

__all__ = ["PrepPhaseGate", "PREP_PHASE_VETO", "INACTIVE_SLOT_VETO"]
