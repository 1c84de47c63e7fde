"""
Resumable state machine module.

Runs named handlers over a shared environment and checkpoints
(environment, current state) so a restarted program continues from the
last save().
"""
from .machine import StateMachine, active_machine, save, switch_to
from .models import TERMINAL, CheckpointRecord, MachineStatus

__all__ = [
    "StateMachine",
    "TERMINAL",
    "CheckpointRecord",
    "MachineStatus",
    "active_machine",
    "save",
    "switch_to",
]
