"""
Resumable State - checkpointed state machines for interruptible scripts

Programs register named handlers over a shared variable environment and
checkpoint (environment, current state) explicitly, so a process that is
killed or restarted continues from its last checkpoint.
"""

from .state import TERMINAL, StateMachine, save, switch_to

__version__ = "0.1.0"
__author__ = "Resumable State Team"

__all__ = ["StateMachine", "TERMINAL", "save", "switch_to"]
