"""Durable storage for the "tracking enabled" flag."""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Protocol

from pyloctrack.config import KEY_TRACKING_ENABLED
from pyloctrack.exceptions import StorageUnavailableError

_logger = logging.getLogger(__name__)


class PreferenceStore(Protocol):
    """Boolean flag that survives process restarts.

    ``set`` must be durable when it returns.  Implementations raise
    :class:`StorageUnavailableError` when the write cannot be completed.
    """

    def get(self) -> bool:
        ...

    def set(self, enabled: bool) -> None:
        ...


class MemoryPreferenceStore:
    """Process-local store, for tests and embedding."""

    def __init__(self, initial: bool = False) -> None:
        self._lock = threading.Lock()
        self._value = initial

    def get(self) -> bool:
        with self._lock:
            return self._value

    def set(self, enabled: bool) -> None:
        with self._lock:
            self._value = enabled


class JsonPreferenceStore:
    """Key/value JSON file holding the tracking flag.

    Other keys already present in the file are preserved.  Every write
    replaces the file atomically after an ``fsync``.
    """

    def __init__(self, path: Path, *, key: str = KEY_TRACKING_ENABLED) -> None:
        self._path = Path(path)
        self._key = key
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> dict[str, Any]:
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError:
            _logger.warning("Preference file %s unreadable, using defaults", self._path, exc_info=True)
            return {}
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            _logger.warning("Preference file %s is corrupt, using defaults", self._path)
            return {}
        if not isinstance(data, dict):
            _logger.warning("Preference file %s does not hold an object, using defaults", self._path)
            return {}
        return data

    def get(self) -> bool:
        with self._lock:
            value = self._read().get(self._key, False)
        return value if isinstance(value, bool) else False

    def set(self, enabled: bool) -> None:
        with self._lock:
            data = self._read()
            data[self._key] = bool(enabled)
            self._write(data)
        _logger.debug("Preference %s=%s written to %s", self._key, enabled, self._path)

    def _write(self, data: dict[str, Any]) -> None:
        tmp_name: str | None = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{self._path.name}.", dir=self._path.parent)
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(data, handle, sort_keys=True)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self._path)
            tmp_name = None
        except OSError as exc:
            raise StorageUnavailableError(
                f"Could not write preferences: {exc}",
                path=str(self._path),
            ) from exc
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    _logger.debug("Could not remove temp file %s", tmp_name, exc_info=True)
