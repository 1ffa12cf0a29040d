"""
Session Storage
===============
Key-value backends that keep the session across process restarts.
"""

import json
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional

import structlog

logger = structlog.get_logger(__name__)

TOKEN_KEY = "token"
PROFILE_KEY = "user"
RECOVERY_KEY = "privateKey"
SESSION_KEYS = (TOKEN_KEY, PROFILE_KEY, RECOVERY_KEY)


class SessionStorage(ABC):
    """Abstract key-value store for persisted session state."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        pass

    def clear(self) -> None:
        """Remove every session key."""
        for key in SESSION_KEYS:
            self.delete(key)


class InMemorySessionStorage(SessionStorage):
    """
    Process-local storage.

    For tests and short-lived scripts only.
    Use FileSessionStorage to survive restarts.
    """

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def snapshot(self) -> Dict[str, str]:
        return dict(self._data)


class FileSessionStorage(SessionStorage):
    """
    JSON file storage.

    The file is rewritten atomically on every change and kept readable
    by the owner only, since it holds the token and the recovery key.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._data: Optional[Dict[str, str]] = None

    def _load(self) -> Dict[str, str]:
        if self._data is None:
            try:
                with self.path.open("r", encoding="utf-8") as f:
                    raw = json.load(f)
                self._data = {k: v for k, v in raw.items() if isinstance(v, str)}
            except FileNotFoundError:
                self._data = {}
            except (OSError, ValueError, AttributeError) as e:
                logger.warning("Discarding unreadable session file", path=str(self.path), error=str(e))
                self._data = {}
        return self._data

    def _flush(self) -> None:
        data = self._load()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=str(self.path.parent), prefix=".session-")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f)
            os.chmod(tmp_path, 0o600)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def get(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        self._load()[key] = value
        self._flush()

    def delete(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._flush()

    def clear(self) -> None:
        data = self._load()
        if any(key in data for key in SESSION_KEYS):
            for key in SESSION_KEYS:
                data.pop(key, None)
            self._flush()
