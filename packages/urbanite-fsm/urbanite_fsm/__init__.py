"""urbanite-fsm - Guarded-transition state machine engine."""
from __future__ import annotations

from urbanite_fsm.components import FSM, Transition
from urbanite_fsm.systems import make_fsm_system

__all__ = ["FSM", "Transition", "make_fsm_system"]
