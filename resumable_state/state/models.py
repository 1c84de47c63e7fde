"""
Data models for the resumable state machine.

Defines the terminal sentinel, the run-loop status, and the checkpoint
record that is written to storage by save() and read back on construction.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Union

from ..errors import MalformedRecordError

Handler = Callable[[dict[str, Any]], None]


class _Terminal(Enum):
    """Sentinel type; a non-string member can never collide with a state name."""
    TERMINAL = "terminal"

    def __repr__(self) -> str:
        return "TERMINAL"


TERMINAL = _Terminal.TERMINAL

StateName = Union[str, _Terminal]


class MachineStatus(str, Enum):
    """Lifecycle of a machine's run loop."""
    NOT_STARTED = "not_started"
    RUNNING = "running"
    TERMINATED = "terminated"


def describe_state(state: Any) -> str:
    """Render a state name (or the sentinel) for logs and messages."""
    if state is TERMINAL:
        return TERMINAL.value
    if state is None:
        return "none"
    return str(state)


@dataclass(frozen=True)
class CheckpointRecord:
    """Persisted position of a machine: its variables and the state to resume."""

    environment: dict[str, Any]
    current_state: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "environment": self.environment,
            "current_state": self.current_state,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "CheckpointRecord":
        """
        Validate a decoded payload and build a record from it.

        Raises:
            MalformedRecordError: if the payload is not a mapping with a
                mapping ``environment`` and a non-empty string ``current_state``
        """
        if not isinstance(data, dict):
            raise MalformedRecordError(
                f"Checkpoint must be a mapping, got {type(data).__name__}",
                expected_format="mapping"
            )

        missing = [name for name in ("environment", "current_state") if name not in data]
        if missing:
            raise MalformedRecordError(
                f"Checkpoint is missing fields: {', '.join(missing)}",
                expected_format="mapping",
                context={"missing_fields": missing}
            )

        environment = data["environment"]
        if not isinstance(environment, dict):
            raise MalformedRecordError(
                "Checkpoint environment must be a mapping",
                expected_format="mapping"
            )

        current_state = data["current_state"]
        if not isinstance(current_state, str) or not current_state:
            raise MalformedRecordError(
                "Checkpoint current_state must be a non-empty string",
                expected_format="string"
            )

        return cls(environment=environment, current_state=current_state)
