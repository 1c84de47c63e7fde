"""Configuration validation utilities."""

from dataclasses import dataclass
from typing import Any

SUPPORTED_CODECS = ("json", "yaml")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class ValidationError:
    """Represents a configuration validation error."""
    field: str
    message: str
    value: Any


class ConfigValidator:
    """Validates configuration parameters."""

    @staticmethod
    def validate_storage_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate storage parameters."""
        errors = []

        if "directory" in params:
            value = params["directory"]
            if not isinstance(value, str) or not value.strip():
                errors.append(ValidationError(
                    field="storage.directory",
                    message="Must be a non-empty string",
                    value=value
                ))

        if "codec" in params:
            value = params["codec"]
            if value not in SUPPORTED_CODECS:
                errors.append(ValidationError(
                    field="storage.codec",
                    message=f"Must be one of {', '.join(SUPPORTED_CODECS)}",
                    value=value
                ))

        if "atomic_writes" in params:
            value = params["atomic_writes"]
            if not isinstance(value, bool):
                errors.append(ValidationError(
                    field="storage.atomic_writes",
                    message="Must be a boolean",
                    value=value
                ))

        if "file_suffix" in params:
            value = params["file_suffix"]
            if not isinstance(value, str) or "/" in value:
                errors.append(ValidationError(
                    field="storage.file_suffix",
                    message="Must be a string without path separators",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_machine_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate run loop parameters."""
        errors = []

        if "clear_on_terminate" in params:
            value = params["clear_on_terminate"]
            if not isinstance(value, bool):
                errors.append(ValidationError(
                    field="machine.clear_on_terminate",
                    message="Must be a boolean",
                    value=value
                ))

        if "max_steps" in params:
            value = params["max_steps"]
            # bool is an int subclass
            if value is not None and (
                not isinstance(value, int) or isinstance(value, bool) or value <= 0
            ):
                errors.append(ValidationError(
                    field="machine.max_steps",
                    message="Must be a positive integer or null",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_logging_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate logging parameters."""
        errors = []

        if "level" in params:
            value = params["level"]
            if not isinstance(value, str) or value.upper() not in LOG_LEVELS:
                errors.append(ValidationError(
                    field="logging.level",
                    message=f"Must be one of {', '.join(LOG_LEVELS)}",
                    value=value
                ))

        if "format_json" in params:
            value = params["format_json"]
            if not isinstance(value, bool):
                errors.append(ValidationError(
                    field="logging.format_json",
                    message="Must be a boolean",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_config(config: dict[str, Any]) -> list[ValidationError]:
        """Validate complete configuration."""
        errors = []

        if isinstance(config.get("storage"), dict):
            errors.extend(ConfigValidator.validate_storage_params(config["storage"]))

        if isinstance(config.get("machine"), dict):
            errors.extend(ConfigValidator.validate_machine_params(config["machine"]))

        if isinstance(config.get("logging"), dict):
            errors.extend(ConfigValidator.validate_logging_params(config["logging"]))

        return errors
