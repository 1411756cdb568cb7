"""Key-value persistence for auto-saved quiz sessions."""

from __future__ import annotations

import logging
import re
import time
from pathlib import Path
from typing import Callable, Dict, Optional, Protocol, Union

from pydantic import ValidationError

from ..config import get_settings
from ..models.state import SessionSnapshot, SessionState

SAVE_KEY = "logiq_quiz_session"
SAVE_EXPIRY_MS = 24 * 60 * 60 * 1000

_logger = logging.getLogger("logiq.store")


def wall_clock_ms() -> int:
    return int(time.time() * 1000)


def sanitize_key(key: str) -> str:
    cleaned = re.sub(r"[^A-Za-z0-9._-]+", "_", key.strip())
    cleaned = cleaned.strip("._")
    return cleaned or "default"


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryStore:
    """Dict-backed store, handy for tests and single-process hosting."""

    def __init__(self) -> None:
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._data


class FileStore:
    """One UTF-8 text file per key under a local directory."""

    def __init__(self, directory: Optional[Union[str, Path]] = None) -> None:
        self._dir = Path(directory) if directory else get_settings().state_dir

    def _path(self, key: str) -> Path:
        return self._dir / f"{sanitize_key(key)}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError:
            return None

    def set(self, key: str, value: str) -> None:
        self._dir.mkdir(parents=True, exist_ok=True)
        self._path(key).write_text(value, encoding="utf-8")

    def remove(self, key: str) -> None:
        try:
            self._path(key).unlink()
        except FileNotFoundError:
            pass


class SessionStore:
    """Save, load and clear the auto-saved snapshot under one fixed key.

    Storage failures never reach the caller: the in-memory session stays
    authoritative and a broken or stale save simply reads as absent.
    """

    def __init__(
        self,
        backend: KeyValueStore,
        key: str = SAVE_KEY,
        clock: Callable[[], int] = wall_clock_ms,
        expiry_ms: int = SAVE_EXPIRY_MS,
    ) -> None:
        self._backend = backend
        self._key = key
        self._clock = clock
        self._expiry_ms = expiry_ms

    @property
    def key(self) -> str:
        return self._key

    def save(self, state: SessionState) -> bool:
        try:
            snapshot = SessionSnapshot.from_state(state, saved_at=self._clock())
            self._backend.set(self._key, snapshot.model_dump_json())
            return True
        except Exception as exc:
            _logger.warning(
                "autosave_failed",
                extra={"event": "autosave_failed", "key": self._key, "error": str(exc)},
            )
            return False

    def load(self) -> Optional[SessionSnapshot]:
        try:
            raw = self._backend.get(self._key)
        except Exception as exc:
            _logger.warning(
                "snapshot_read_failed",
                extra={"event": "snapshot_read_failed", "key": self._key, "error": str(exc)},
            )
            return None
        if not raw:
            return None

        try:
            snapshot = SessionSnapshot.model_validate_json(raw)
        except ValidationError:
            _logger.info(
                "snapshot_discarded",
                extra={"event": "snapshot_discarded", "key": self._key, "reason": "invalid"},
            )
            self.clear()
            return None

        if self._clock() - snapshot.saved_at > self._expiry_ms:
            _logger.info(
                "snapshot_discarded",
                extra={"event": "snapshot_discarded", "key": self._key, "reason": "expired"},
            )
            self.clear()
            return None
        return snapshot

    def clear(self) -> None:
        try:
            self._backend.remove(self._key)
        except Exception as exc:
            _logger.warning(
                "snapshot_clear_failed",
                extra={"event": "snapshot_clear_failed", "key": self._key, "error": str(exc)},
            )
