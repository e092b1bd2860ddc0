"""Persistence adapters: durable key-value media for store snapshots."""

import copy
import json
import logging
import os
import sys
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional

from timeflow.core.errors import SnapshotError

logger = logging.getLogger(__name__)


def _lock_file(file_obj: Any, exclusive: bool = True) -> None:
    """Lock a file in a cross-platform way.

    Args:
        file_obj: File object to lock
        exclusive: If True, acquire exclusive lock; if False, acquire shared lock
    """
    if sys.platform == "win32":
        import msvcrt  # type: ignore[import-not-found]

        mode = msvcrt.LK_NBLCK if exclusive else msvcrt.LK_NBRLCK
        msvcrt.locking(file_obj.fileno(), mode, 1)
    else:
        import fcntl  # type: ignore[import-not-found]

        mode = fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH
        fcntl.flock(file_obj.fileno(), mode)


def _unlock_file(file_obj: Any) -> None:
    """Unlock a file in a cross-platform way.

    Args:
        file_obj: File object to unlock
    """
    if sys.platform == "win32":
        import msvcrt  # type: ignore[import-not-found]

        msvcrt.locking(file_obj.fileno(), msvcrt.LK_UNLCK, 1)
    else:
        import fcntl  # type: ignore[import-not-found]

        fcntl.flock(file_obj.fileno(), fcntl.LOCK_UN)


class PersistenceAdapter(ABC):
    """Durable key-value medium holding one JSON document per key."""

    @abstractmethod
    def load(self, key: str) -> Optional[dict[str, Any]]:
        """Read the document stored under ``key``.

        Args:
            key: Document key

        Returns:
            The document, or None if nothing is stored under the key
        """
        pass

    @abstractmethod
    def save(self, key: str, document: dict[str, Any]) -> None:
        """Replace the document stored under ``key``.

        Args:
            key: Document key
            document: JSON-serializable document
        """
        pass


class MemoryAdapter(PersistenceAdapter):
    """In-process adapter. Documents are deep-copied on the way in and out."""

    def __init__(self) -> None:
        self._documents: dict[str, dict[str, Any]] = {}
        self.save_count = 0

    def load(self, key: str) -> Optional[dict[str, Any]]:
        document = self._documents.get(key)
        return copy.deepcopy(document) if document is not None else None

    def save(self, key: str, document: dict[str, Any]) -> None:
        self._documents[key] = copy.deepcopy(document)
        self.save_count += 1


class JSONFileAdapter(PersistenceAdapter):
    """Stores each document as ``<data_dir>/<key>.json`` with atomic writes."""

    def __init__(self, data_dir: Optional[Path] = None):
        """Initialize the adapter.

        Args:
            data_dir: Custom data directory. Defaults to ~/.timeflow/data
        """
        if data_dir is None:
            data_dir = Path.home() / ".timeflow" / "data"

        self.data_dir = data_dir
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, key: str) -> Path:
        """File that holds the document for ``key``."""
        return self.data_dir / f"{key}.json"

    def load(self, key: str) -> Optional[dict[str, Any]]:
        """Read the document for ``key``.

        Raises:
            SnapshotError: If the file is not valid JSON
        """
        file_path = self.path_for(key)
        if not file_path.exists():
            return None

        with open(file_path, encoding="utf-8") as f:
            _lock_file(f, exclusive=False)
            try:
                document: dict[str, Any] = json.load(f)
            except json.JSONDecodeError as e:
                logger.error(f"Corrupt snapshot file {file_path}: {e}")
                raise SnapshotError(f"Snapshot file {file_path} is not valid JSON: {e}") from e
            finally:
                _unlock_file(f)

        logger.debug(f"Loaded snapshot from {file_path}")
        return document

    def save(self, key: str, document: dict[str, Any]) -> None:
        """Write the document atomically using a temporary file and rename."""
        file_path = self.path_for(key)
        temp_file = file_path.with_suffix(".tmp")

        try:
            with open(temp_file, "w", encoding="utf-8") as f:
                _lock_file(f, exclusive=True)

                json.dump(document, f, indent=2, ensure_ascii=False)

                f.flush()
                os.fsync(f.fileno())

                _unlock_file(f)

            temp_file.replace(file_path)
            logger.debug(f"Saved snapshot to {file_path}")

        except Exception as e:
            logger.error(f"Failed to save snapshot to {file_path}: {e}")
            if temp_file.exists():
                temp_file.unlink()
            raise
