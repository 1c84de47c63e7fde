"""
System failure error classifications.

These exceptions represent failures of the environment around the machine:
a missing entry point, unreadable configuration, or storage that refuses a
write. None of them is retried by the machine.
"""

from typing import Any, Dict, Optional


class SystemFailureError(Exception):
    """Base class for unrecoverable system failures."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = False


class ConfigurationError(SystemFailureError):
    """The machine cannot run as configured (e.g. no handlers registered)."""

    def __init__(self, message: str, setting: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.setting = setting


class ConfigLoadError(SystemFailureError):
    """A configuration file could not be read or failed validation."""

    def __init__(self, message: str, path: Optional[str] = None,
                 errors: Optional[list] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.path = path
        self.errors = errors or []


class PersistenceError(SystemFailureError):
    """Storage read, write or delete failures."""

    def __init__(self, message: str, operation: Optional[str] = None,
                 target: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.operation = operation
        self.target = target
