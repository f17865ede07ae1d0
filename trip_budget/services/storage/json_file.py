"""
JSON File Storage Implementation

DESIGN DECISION: A single local JSON file is used as the key-value store
because:
1. No server and no database setup
2. The user can open, back up or delete the file by hand
3. One small blob per key is all the tracker needs

The file maps keys to blob strings. Writes go to a temporary file that
is then moved over the original, so a crash mid-write leaves the
previous state intact.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

from trip_budget.config import get_settings
from trip_budget.logging_config import get_logger
from trip_budget.services.storage.interface import (
    StateStorageInterface,
    StorageCorruptError,
    StorageError,
)


class JsonFileStateStorage(StateStorageInterface):
    """Key-value storage backed by one JSON object on disk."""

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self._path = Path(path or get_settings().storage.path).expanduser()
        self._logger = get_logger(__name__)

    @property
    def path(self) -> Path:
        return self._path

    def _load_all(self) -> dict[str, str]:
        """Read the whole key-value map; a missing file is an empty store."""
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as e:
            raise StorageError(f"Failed to read {self._path}: {e}") from e

        if not text.strip():
            return {}
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise StorageCorruptError(f"Storage file is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise StorageCorruptError("Storage file does not hold a JSON object")
        return data

    def _save_all(self, data: dict[str, str]) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._path.parent,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    json.dump(data, handle, ensure_ascii=False)
                os.replace(tmp_name, self._path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageError(f"Failed to write {self._path}: {e}") from e

    def read(self, key: str) -> Optional[str]:
        value = self._load_all().get(key)
        if value is None:
            return None
        if not isinstance(value, str):
            # Older writers stored the object itself instead of its text
            return json.dumps(value)
        return value

    def write(self, key: str, blob: str) -> None:
        try:
            data = self._load_all()
        except StorageCorruptError:
            # The corrupt file was already reported on load; replace it
            self._logger.warning("storage_file_overwritten", path=str(self._path))
            data = {}
        data[key] = blob
        self._save_all(data)

    def remove(self, key: str) -> bool:
        data = self._load_all()
        if key not in data:
            return False
        del data[key]
        self._save_all(data)
        return True
