"""Durable key/value storage for checkpoint records."""

import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional
from urllib.parse import quote

from ..errors import PersistenceError
from ..logging.config import get_persistence_logger

logger = get_persistence_logger(__name__)


class StateStore(ABC):
    """Named blob storage used by state machines."""

    @abstractmethod
    def read(self, key: str) -> Optional[bytes]:
        """
        Read the record stored under key.

        Returns:
            The stored bytes, or None if no record exists

        Raises:
            PersistenceError: if the record exists but cannot be read
        """
        pass

    @abstractmethod
    def write(self, key: str, data: bytes) -> None:
        """
        Store data under key, replacing any prior record.

        Raises:
            PersistenceError: if the write fails
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove the record under key. Returns True if one existed."""
        pass

    def exists(self, key: str) -> bool:
        return self.read(key) is not None


class MemoryStateStore(StateStore):
    """Process-local store; records vanish with the process."""

    def __init__(self):
        self._records: dict[str, bytes] = {}

    def read(self, key: str) -> Optional[bytes]:
        return self._records.get(key)

    def write(self, key: str, data: bytes) -> None:
        self._records[key] = bytes(data)

    def delete(self, key: str) -> bool:
        return self._records.pop(key, None) is not None

    def exists(self, key: str) -> bool:
        return key in self._records

    def keys(self) -> list[str]:
        return sorted(self._records)


class FileStateStore(StateStore):
    """One file per key under a base directory."""

    def __init__(self, directory: str = ".state", suffix: str = ".state",
                 atomic_writes: bool = True):
        self.directory = Path(directory)
        self.suffix = suffix
        self.atomic_writes = atomic_writes

    def path_for(self, key: str) -> Path:
        """Map a storage key to the file holding its record."""
        if not key or not key.strip():
            raise ValueError("Storage key must be a non-empty string")
        # Percent-encoding keeps distinct keys on distinct files
        safe_key = quote(key, safe="")
        if safe_key in (".", ".."):
            safe_key = safe_key.replace(".", "%2E")
        return self.directory / f"{safe_key}{self.suffix}"

    def read(self, key: str) -> Optional[bytes]:
        path = self.path_for(key)

        try:
            if not path.exists():
                return None
            return path.read_bytes()
        except OSError as e:
            logger.warning("Record read failed", path=str(path), error=str(e))
            raise PersistenceError(
                f"Cannot read record {key!r}: {e}",
                operation="read",
                target=str(path)
            ) from e

    def write(self, key: str, data: bytes) -> None:
        path = self.path_for(key)
        temp_path = path.with_name(path.name + ".tmp")

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            if self.atomic_writes:
                # Write to temp file first, then rename over the record
                with open(temp_path, "wb") as f:
                    f.write(data)
                    f.flush()
                    os.fsync(f.fileno())
                temp_path.replace(path)
            else:
                path.write_bytes(data)
        except OSError as e:
            temp_path.unlink(missing_ok=True)
            logger.error("Record write failed", path=str(path), error=str(e))
            raise PersistenceError(
                f"Cannot write record {key!r}: {e}",
                operation="write",
                target=str(path)
            ) from e

        logger.debug("Record written", path=str(path), size=len(data))

    def delete(self, key: str) -> bool:
        path = self.path_for(key)
        if not path.exists():
            return False

        try:
            path.unlink()
        except OSError as e:
            raise PersistenceError(
                f"Cannot delete record {key!r}: {e}",
                operation="delete",
                target=str(path)
            ) from e

        logger.info("Record deleted", path=str(path))
        return True

    def exists(self, key: str) -> bool:
        return self.path_for(key).exists()
