"""
Credential stores
Client-side homes for the TorBox API key; the server never stores it
"""
from abc import ABC, abstractmethod
import json
import os
from pathlib import Path
from typing import Optional
import threading

from loguru import logger

STORAGE_KEY = "torbox_key"


def default_data_dir() -> Path:
    data_dir = str(os.environ.get("TORFINDER_DATA_DIR", "") or "").strip()
    return Path(data_dir).expanduser() if data_dir else (Path.home() / ".torfinder")


class CredentialStore(ABC):
    """get/set/clear capability injected into the search session"""

    @abstractmethod
    def get(self) -> Optional[str]:
        raise NotImplementedError

    @abstractmethod
    def set(self, credential: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def clear(self) -> None:
        raise NotImplementedError


class MemoryCredentialStore(CredentialStore):
    def __init__(self, credential: Optional[str] = None):
        self._credential = credential or None

    def get(self) -> Optional[str]:
        return self._credential

    def set(self, credential: str) -> None:
        self._credential = credential or None

    def clear(self) -> None:
        self._credential = None


class FileCredentialStore(CredentialStore):
    """JSON file keyed by a fixed storage name, readable by the owner only"""

    def __init__(self, path: Optional[Path] = None, key: str = STORAGE_KEY):
        self.path = Path(path) if path is not None else default_data_dir() / "credentials.json"
        self.key = key
        self._lock = threading.RLock()

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Error loading credentials from {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(data, f)
        os.chmod(self.path, 0o600)

    def get(self) -> Optional[str]:
        with self._lock:
            value = self._read().get(self.key)
            return str(value) if value else None

    def set(self, credential: str) -> None:
        with self._lock:
            data = self._read()
            data[self.key] = credential
            self._write(data)

    def clear(self) -> None:
        with self._lock:
            data = self._read()
            if self.key not in data:
                return
            del data[self.key]
            if data:
                self._write(data)
            else:
                self.path.unlink()
