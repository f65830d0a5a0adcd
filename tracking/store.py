"""
Key-value persistence for small user settings and counters.

The engines only need get/set by key with JSON-compatible values. Storage
problems are logged and treated as "nothing stored" so a read-only disk
never stops the clock or the pomodoro timer.
"""

import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

import config

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        pass

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        pass


class MemoryStore(KeyValueStore):
    """In-process store; values are gone when the process exits."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self.data: Dict[str, Any] = dict(initial or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self.data[key] = value


class JsonFileStore(KeyValueStore):
    """
    Key-value store backed by one JSON object on disk.

    Every set() rewrites the file atomically (temp file + rename) so a
    crash mid-write can't corrupt earlier values.
    """

    def __init__(self, data_file: Optional[Path] = None):
        self.data_file: Path = Path(data_file or config.STORE_FILE)
        self._lock = threading.Lock()
        self.data: Dict[str, Any] = self._load_data()

    def _load_data(self) -> Dict[str, Any]:
        if self.data_file.exists():
            try:
                with open(self.data_file, 'r') as f:
                    data = json.load(f)
                if isinstance(data, dict):
                    logger.debug(f"Loaded {len(data)} keys from {self.data_file}")
                    return data
                logger.warning(f"Ignoring non-object store file {self.data_file}")
            except (json.JSONDecodeError, IOError, OSError) as e:
                logger.warning(f"Failed to load store {self.data_file}: {e}. Starting fresh.")
        return {}

    def _save_data(self) -> None:
        try:
            self.data_file.parent.mkdir(parents=True, exist_ok=True)
            temp_fd, temp_path = tempfile.mkstemp(
                suffix='.tmp',
                prefix='store_',
                dir=self.data_file.parent
            )
            try:
                with os.fdopen(temp_fd, 'w') as f:
                    json.dump(self.data, f, indent=2)
                os.replace(temp_path, self.data_file)
            except Exception:
                try:
                    os.unlink(temp_path)
                except OSError:
                    pass
                raise
        except (IOError, OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to save store {self.data_file}: {e}")

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self.data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self.data[key] = value
            self._save_data()
