"""Key-value persistence for per-user dashboard state.

Values are strings, as in a browser's local storage; JSON documents go
through read_json/write_json. Every write is flushed immediately.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

logger = logging.getLogger(__name__)

STATS = "stats"
ACHIEVEMENTS = "achievements"
TRANSACTIONS = "transacoes"
REPORTS_GENERATED = "reports-generated"
FIRST_ACCESS = "first-access"
LAST_ACCESS = "last-access"
PROFILE = "profile"


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryStore:
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class JsonFileStore:
    """All keys in a single JSON object on disk, rewritten on every change."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._data: Dict[str, str] = {}
        if self.path.exists():
            try:
                with open(self.path, "r", encoding="utf-8") as f:
                    loaded = json.load(f)
                if isinstance(loaded, dict):
                    self._data = {str(k): str(v) for k, v in loaded.items()}
                else:
                    logger.warning("Ignoring store file %s: not a JSON object", self.path)
            except json.JSONDecodeError as exc:
                logger.warning("Ignoring malformed store file %s: %s", self.path, exc)

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value
        self._flush()

    def remove(self, key: str) -> None:
        if self._data.pop(key, None) is not None:
            self._flush()

    def _flush(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(self._data, f, ensure_ascii=False, indent=2)
        tmp.replace(self.path)


def user_key(namespace: str, user_id: str, prefix: str = "") -> str:
    return f"{prefix}{namespace}-{user_id}"


def read_json(store: KeyValueStore, key: str) -> Optional[Any]:
    """Parse the JSON stored under key; absent and malformed values give None."""
    raw = store.get(key)
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        logger.warning("Malformed JSON under %s, treating as absent: %s", key, exc)
        return None


def write_json(store: KeyValueStore, key: str, value: Any) -> None:
    store.set(key, json.dumps(value, ensure_ascii=False))


def read_int(store: KeyValueStore, key: str, default: int = 0) -> int:
    raw = store.get(key)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Malformed counter under %s: %r", key, raw)
        return default
