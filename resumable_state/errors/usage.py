"""
Usage error classifications.

These exceptions are raised when the calling program uses the state machine
incorrectly. They are reported to the caller immediately and the machine
never attempts to guess a correction.
"""

from typing import Any, Dict, Iterable, Optional


class UsageError(Exception):
    """Base class for misuse of the state machine API."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = True


class DuplicateStateError(UsageError):
    """A state name was registered twice."""

    def __init__(self, message: str, state_name: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.state_name = state_name


class UnknownStateError(UsageError):
    """A transition or resume point names a state that was never registered."""

    def __init__(self, message: str, state_name: Optional[str] = None,
                 known_states: Optional[Iterable[str]] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.state_name = state_name
        self.known_states = sorted(known_states or [])


class InactiveMachineError(UsageError):
    """A handler-only operation was called while no handler is running."""

    def __init__(self, message: str, operation: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.operation = operation


class ReentrantRunError(UsageError):
    """run() was called again from inside one of the machine's own handlers."""
