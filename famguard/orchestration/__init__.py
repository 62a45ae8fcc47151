"""Orchestration layer - connection state machine and the enforcement boundary."""

from famguard.orchestration.state_machine import StateMachine, can_transition, valid_transitions
from famguard.kernel.models.connection import ConnectionStatus

__all__ = [
    "StateMachine",
    "can_transition",
    "valid_transitions",
    "ConnectionStatus",
]
