"""
Error classification for the resumable state machine.

Usage errors are mistakes made by the program driving the machine and are
surfaced at the call that made them. System failures come from the
environment (storage, configuration) and are never retried automatically.
Malformed records are a data-quality problem that construction absorbs.
"""

from .data_quality import MalformedRecordError
from .system_failures import (
    ConfigLoadError,
    ConfigurationError,
    PersistenceError,
    SystemFailureError,
)
from .usage import (
    DuplicateStateError,
    InactiveMachineError,
    ReentrantRunError,
    UnknownStateError,
    UsageError,
)

__all__ = [
    # Usage Errors
    "UsageError",
    "DuplicateStateError",
    "UnknownStateError",
    "InactiveMachineError",
    "ReentrantRunError",
    # System Failures
    "SystemFailureError",
    "ConfigurationError",
    "ConfigLoadError",
    "PersistenceError",
    # Data Quality
    "MalformedRecordError",
]
