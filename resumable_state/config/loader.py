"""Configuration loader with 3-tier parameter precedence."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import yaml

from ..errors import ConfigLoadError
from ..logging.config import get_logger
from .defaults import MachineSettings, get_default_config
from .validation import ConfigValidator

CONFIG_FILENAME = "machines.yaml"

logger = get_logger(__name__)


@dataclass(frozen=True)
class ConfigLoader:
    """Manages configuration loading with 3-tier precedence."""

    config_dir: Path
    defaults: MachineSettings

    @classmethod
    def create(cls, config_dir: Optional[Path] = None) -> "ConfigLoader":
        """Create a ConfigLoader instance."""
        if config_dir is None:
            config_dir = Path.cwd() / "config"

        return cls(
            config_dir=Path(config_dir),
            defaults=get_default_config(),
        )

    @property
    def config_file(self) -> Path:
        return self.config_dir / CONFIG_FILENAME

    def load_file_config(self) -> dict[str, Any]:
        """Load the raw YAML document, or an empty mapping if there is none."""
        if not self.config_file.exists():
            return {}

        try:
            with open(self.config_file) as f:
                document = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigLoadError(
                f"Cannot read configuration: {e}",
                path=str(self.config_file)
            ) from e

        if document is None:
            return {}
        if not isinstance(document, dict):
            raise ConfigLoadError(
                "Configuration root must be a mapping",
                path=str(self.config_file)
            )
        return document

    def merge_config(
        self,
        storage_key: str,
        overrides: Optional[dict[str, Any]] = None
    ) -> dict[str, Any]:
        """
        Merge configuration with 3-tier precedence.

        Priority order:
        1. Per-call overrides (highest priority)
        2. Machine-specific overrides from machines.yaml
        3. Global defaults (``defaults:`` in machines.yaml over dataclass defaults)
        """
        config = self._dataclass_to_dict(self.defaults)

        document = self.load_file_config()
        config = self._deep_merge(config, document.get("defaults") or {})

        machines = document.get("machines") or {}
        config = self._deep_merge(config, machines.get(storage_key) or {})

        if overrides:
            config = self._deep_merge(config, overrides)

        return config

    def load_settings(
        self,
        storage_key: str,
        overrides: Optional[dict[str, Any]] = None
    ) -> MachineSettings:
        """Merge, validate and build the settings for one machine."""
        config = self.merge_config(storage_key, overrides)

        errors = ConfigValidator.validate_config(config)
        if errors:
            logger.error(
                "Invalid machine configuration",
                storage_key=storage_key,
                errors=[f"{e.field}: {e.message}" for e in errors]
            )
            raise ConfigLoadError(
                f"Invalid configuration for {storage_key!r}: "
                + "; ".join(f"{e.field} {e.message}" for e in errors),
                path=str(self.config_file),
                errors=errors
            )

        return MachineSettings.from_dict(config)

    def _dataclass_to_dict(self, obj: Any) -> dict[str, Any]:
        """Convert nested dataclasses to dictionary."""
        if hasattr(obj, '__dataclass_fields__'):
            result = {}
            for field_name in obj.__dataclass_fields__:
                value = getattr(obj, field_name)
                if hasattr(value, '__dataclass_fields__'):
                    result[field_name] = self._dataclass_to_dict(value)
                else:
                    result[field_name] = value
            return result
        return obj  # type: ignore[no-any-return]

    def _deep_merge(self, base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Deep merge two dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result
