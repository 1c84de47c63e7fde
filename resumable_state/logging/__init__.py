"""
Logging configuration and utilities for resumable state machines.
"""
from .config import configure_logging, get_logger

__all__ = ["configure_logging", "get_logger"]
