"""Key-value stores for durable records."""
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Dict, Protocol

from ruang_hampa.data.errors import StorageError

logger = logging.getLogger(__name__)

_VALID_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


class KeyValueStore(Protocol):
    """Minimal string store, shaped like browser local storage."""

    def read(self, key: str) -> str | None: ...

    def write(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...

    def exists(self, key: str) -> bool: ...


class FileKeyValueStore:
    """Stores each key as a JSON text file inside one directory."""

    def __init__(self, base_dir: Path | str) -> None:
        self._base_dir = Path(base_dir)

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    def read(self, key: str) -> str | None:
        """Return the stored text, or None when the key has no record."""
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Unable to read record '%s' from %s: %s", key, path, exc)
            return None

    def write(self, key: str, value: str) -> None:
        path = self._path(key)
        try:
            self._base_dir.mkdir(parents=True, exist_ok=True)
            tmp_path = path.with_suffix(".tmp")
            tmp_path.write_text(value, encoding="utf-8")
            tmp_path.replace(path)
        except OSError as exc:
            raise StorageError(f"Unable to write record '{key}' to {path}: {exc}") from exc

    def delete(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return
        except OSError as exc:
            raise StorageError(f"Unable to delete record '{key}' at {path}: {exc}") from exc

    def exists(self, key: str) -> bool:
        return self._path(key).exists()

    def _path(self, key: str) -> Path:
        if not _VALID_KEY.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self._base_dir / f"{key}.json"


class InMemoryKeyValueStore:
    """Dictionary-backed store used for tests and throwaway sessions.

    Setting ``fail_writes`` makes every write raise StorageError, which is how
    quota or permission failures are simulated.
    """

    def __init__(self, initial: Dict[str, str] | None = None) -> None:
        self._records: Dict[str, str] = dict(initial or {})
        self.fail_writes = False

    def read(self, key: str) -> str | None:
        return self._records.get(key)

    def write(self, key: str, value: str) -> None:
        if self.fail_writes:
            raise StorageError(f"Storage unavailable for '{key}'.")
        self._records[key] = value

    def delete(self, key: str) -> None:
        self._records.pop(key, None)

    def exists(self, key: str) -> bool:
        return key in self._records
