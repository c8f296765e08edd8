"""
Storage Backends for Localbase
Opaque key/value blob persistence; the only layer that touches the host medium
"""

import logging
import os
import re
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from .errors import StorageError

logger = logging.getLogger('localbase.storage')

KEY_PATTERN = re.compile(r'^[A-Za-z0-9_.\-]+$')


class StorageBackend(ABC):
    @abstractmethod
    def read(self, key: str) -> Optional[bytes]:
        """Blob stored under ``key``, or None when absent."""

    @abstractmethod
    def write(self, key: str, data: bytes) -> None:
        """Replace the blob under ``key``; raises StorageError on failure."""

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete ``key``; a missing key is not an error."""

    @abstractmethod
    def keys(self) -> List[str]:
        ...


class MemoryStorageBackend(StorageBackend):
    """
    Dict-backed storage.

    ``quota_bytes`` caps the total size of all stored blobs; a write that would
    exceed it fails with StorageError and leaves the previous value in place,
    the same way a browser rejects a localStorage write over quota.
    """

    def __init__(self, quota_bytes: Optional[int] = None):
        self.quota_bytes = quota_bytes
        self._data: Dict[str, bytes] = {}

    def read(self, key: str) -> Optional[bytes]:
        return self._data.get(key)

    def write(self, key: str, data: bytes) -> None:
        if self.quota_bytes is not None:
            current = sum(len(v) for k, v in self._data.items() if k != key)
            if current + len(data) > self.quota_bytes:
                raise StorageError(
                    f"Quota exceeded writing {key}",
                    {'key': key, 'quota_bytes': self.quota_bytes}
                )
        self._data[key] = bytes(data)

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> List[str]:
        return sorted(self._data)

    def usage(self) -> int:
        return sum(len(v) for v in self._data.values())


class FileStorageBackend(StorageBackend):
    SUFFIX = '.blob'

    def __init__(self, base_path: str):
        self.base_path = base_path
        os.makedirs(base_path, exist_ok=True)

    def _get_path(self, key: str) -> str:
        if not KEY_PATTERN.match(key):
            raise StorageError(f"Invalid storage key: {key!r}", {'key': key})
        return os.path.join(self.base_path, f"{key}{self.SUFFIX}")

    def read(self, key: str) -> Optional[bytes]:
        path = self._get_path(key)
        try:
            with open(path, 'rb') as f:
                return f.read()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Error reading {key}: {e}", {'key': key}) from e

    def write(self, key: str, data: bytes) -> None:
        path = self._get_path(key)
        temp_path = path + '.tmp'
        try:
            with open(temp_path, 'wb') as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_path, path)
        except OSError as e:
            if os.path.exists(temp_path):
                os.remove(temp_path)
            raise StorageError(f"Error writing {key}: {e}", {'key': key}) from e
        logger.debug(f"Wrote {len(data)} bytes to {key}")

    def remove(self, key: str) -> None:
        path = self._get_path(key)
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            raise StorageError(f"Error removing {key}: {e}", {'key': key}) from e

    def keys(self) -> List[str]:
        return sorted(
            f[:-len(self.SUFFIX)]
            for f in os.listdir(self.base_path)
            if f.endswith(self.SUFFIX)
        )
