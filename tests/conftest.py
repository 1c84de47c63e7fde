"""Pytest configuration and shared fixtures."""

import pytest

from resumable_state.config.defaults import (
    LoggingParams,
    MachineParams,
    MachineSettings,
    StorageParams,
)
from resumable_state.persistence.codec import JsonCodec
from resumable_state.persistence.store import FileStateStore, MemoryStateStore
from resumable_state.state.machine import StateMachine


@pytest.fixture
def memory_store() -> MemoryStateStore:
    """Fresh in-memory record store."""
    return MemoryStateStore()


@pytest.fixture
def file_store(tmp_path) -> FileStateStore:
    """File-backed store rooted in a temporary directory."""
    return FileStateStore(directory=str(tmp_path / "state"))


@pytest.fixture
def storage_key() -> str:
    return "test-machine-001"


@pytest.fixture
def make_machine(memory_store, storage_key):
    """Factory building machines that share one store and key, like successive boots."""
    def factory(settings: MachineSettings = None, key: str = None) -> StateMachine:
        return StateMachine(
            key or storage_key,
            store=memory_store,
            codec=JsonCodec(),
            settings=settings
        )
    return factory


@pytest.fixture
def settings_factory():
    """Build MachineSettings with selected run-loop overrides."""
    def factory(**machine_overrides) -> MachineSettings:
        return MachineSettings(
            storage=StorageParams(),
            machine=MachineParams(**machine_overrides),
            logging=LoggingParams(),
        )
    return factory
