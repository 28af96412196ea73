from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Optional, Protocol

import keyring
from keyring.errors import KeyringError

logger = logging.getLogger(__name__)

APP_TITLE = "Resume Studio"
LOCAL_SELECTION_PATH = Path.home() / ".resume_studio_selection.json"


class SelectionStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryStore:
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._values: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value


class JsonFileStore:
    def __init__(self, path: Path = LOCAL_SELECTION_PATH):
        self.path = Path(path)

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable selection file %s: %s", self.path, exc)
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)} if isinstance(data, dict) else {}

    def get(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")


class KeyringStore:
    def __init__(self, service: str = APP_TITLE):
        self.service = service

    def get(self, key: str) -> Optional[str]:
        return keyring.get_password(self.service, key)

    def set(self, key: str, value: str) -> None:
        keyring.set_password(self.service, key, value)


def default_store() -> SelectionStore:
    """
    Prefer the OS keyring; fall back to a JSON file in the home directory when
    no usable keyring backend is installed (headless servers, containers).
    """
    try:
        backend = keyring.get_keyring()
        if backend.priority > 0:
            return KeyringStore()
    except KeyringError as exc:
        logger.info("keyring unavailable: %s", exc)
    return JsonFileStore()
