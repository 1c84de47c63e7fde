"""
Centralized logging configuration for resumable state machines.

This module provides standardized logging configuration using structlog.
The machine, the stores and the config loader all log through the helpers
here so state transitions and checkpoints share one structured format.
"""
import logging
import sys
from typing import Any, Optional

import structlog
from structlog.types import FilteringBoundLogger


def configure_logging(
    level: str = "INFO",
    format_json: bool = False,
    include_timestamp: bool = True,
    include_caller: bool = False,
    extra_processors: Optional[list] = None
) -> None:
    """
    Configure structlog for the entire application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_json: If True, output JSON format; otherwise human-readable
        include_timestamp: Include timestamp in log output
        include_caller: Include caller information (filename, line number)
        extra_processors: Additional structlog processors to include
    """
    log_level = getattr(logging, level.upper())

    logging.basicConfig(
        level=log_level,
        stream=sys.stdout,
        format="%(message)s"  # structlog will handle formatting
    )

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if include_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))

    if include_caller:
        processors.append(structlog.processors.CallsiteParameterAdder(
            parameters=[structlog.processors.CallsiteParameter.FILENAME,
                        structlog.processors.CallsiteParameter.LINENO]
        ))

    if extra_processors:
        processors.extend(extra_processors)

    if format_json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> FilteringBoundLogger:
    """
    Get a configured structlog logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger instance
    """
    return structlog.get_logger(name)


def get_state_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger bound for state machine events.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger for state transitions
    """
    return get_logger(name).bind(subsystem="state_machine")


def get_persistence_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger bound for storage and codec events.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger for persistence
    """
    return get_logger(name).bind(subsystem="persistence")


def log_state_transition(
    logger: FilteringBoundLogger,
    storage_key: str,
    from_state: Optional[str],
    to_state: str,
    trigger: str,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log a state transition with standardized format.

    Args:
        logger: Structlog logger instance
        storage_key: Key of the machine transitioning
        from_state: State the machine is leaving (None before the first run)
        to_state: State the machine will run next
        trigger: What triggered the transition
        context: Additional context data
    """
    bound_logger = logger.bind(
        storage_key=storage_key,
        from_state=from_state or "none",
        to_state=to_state,
        trigger=trigger,
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    bound_logger.info("State transition")


def log_checkpoint(
    logger: FilteringBoundLogger,
    storage_key: str,
    state: str,
    variables: int,
    outcome: str,
    error: Optional[str] = None
) -> None:
    """
    Log a checkpoint write with standardized format.

    Args:
        logger: Structlog logger instance
        storage_key: Key the record was written to
        state: State captured in the checkpoint
        variables: Number of environment variables captured
        outcome: "written" or "failed"
        error: Error message when the write failed
    """
    bound_logger = logger.bind(
        storage_key=storage_key,
        state=state,
        variables=variables,
        outcome=outcome,
    )

    if error is not None:
        bound_logger.error("Checkpoint failed", error=error)
    else:
        bound_logger.info("Checkpoint written")


def configure_from_params(params: Any) -> None:
    """
    Configure logging from a LoggingParams section of machine settings.

    Args:
        params: Object with ``level`` and ``format_json`` attributes
    """
    configure_logging(level=params.level, format_json=params.format_json)
