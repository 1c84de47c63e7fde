"""Default configuration parameters for resumable state machines."""

from dataclasses import dataclass, fields
from typing import Any, Optional


@dataclass(frozen=True)
class StorageParams:
    """Where and how checkpoint records are stored."""
    directory: str = ".state"              # Base directory for file-backed records
    codec: str = "json"                    # Record codec: "json" or "yaml"
    atomic_writes: bool = True             # Write via temp file + rename
    file_suffix: str = ".state"            # Suffix appended to sanitised keys


@dataclass(frozen=True)
class MachineParams:
    """Run loop behaviour."""
    clear_on_terminate: bool = False       # Delete the record when run() reaches TERMINAL
    max_steps: Optional[int] = None        # Cap on handler executions per run(); None = unbounded


@dataclass(frozen=True)
class LoggingParams:
    """Logging output parameters."""
    level: str = "INFO"
    format_json: bool = False


@dataclass(frozen=True)
class MachineSettings:
    """Complete settings for one state machine."""
    storage: StorageParams
    machine: MachineParams
    logging: LoggingParams

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MachineSettings":
        """Build settings from a merged config dictionary, ignoring unknown keys."""
        return cls(
            storage=_build(StorageParams, data.get("storage")),
            machine=_build(MachineParams, data.get("machine")),
            logging=_build(LoggingParams, data.get("logging")),
        )


def _build(params_cls: type, section: Optional[dict[str, Any]]) -> Any:
    if not section:
        return params_cls()
    known = {f.name for f in fields(params_cls)}
    return params_cls(**{k: v for k, v in section.items() if k in known})


def get_default_config() -> MachineSettings:
    """Get the default configuration instance."""
    return MachineSettings(
        storage=StorageParams(),
        machine=MachineParams(),
        logging=LoggingParams(),
    )
