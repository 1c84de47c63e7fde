"""
Configuration for resumable state machines.

Defaults live in frozen dataclasses; ``machines.yaml`` may override them
globally or per storage key.
"""
from .defaults import MachineSettings, get_default_config
from .loader import ConfigLoader

__all__ = ["ConfigLoader", "MachineSettings", "get_default_config"]
