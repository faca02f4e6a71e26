"""
Persistence adapter for the dashboard state.
Loads and saves a single JSON snapshot under a fixed key against an injected
byte store. Loading always goes through the coercion pass; saving is
best-effort.
"""
import json
import logging
from pathlib import Path
from typing import Dict, Optional, Protocol

from state_migration import coerce_state
from state_schema import AppState, state_to_dict

logger = logging.getLogger(__name__)

STORAGE_KEY = 'retirement_dashboard_state_v1'


class ByteStore(Protocol):
    """Minimal key-value byte store"""

    def get(self, key: str) -> Optional[bytes]:
        ...

    def set(self, key: str, data: bytes) -> None:
        ...


class InMemoryStore:
    """Dict-backed store for tests and throwaway sessions"""

    def __init__(self, initial: Optional[Dict[str, bytes]] = None):
        self._data: Dict[str, bytes] = dict(initial or {})

    def get(self, key: str) -> Optional[bytes]:
        return self._data.get(key)

    def set(self, key: str, data: bytes) -> None:
        self._data[key] = bytes(data)


class FileStore:
    """Store each key as <directory>/<key>.json"""

    def __init__(self, directory):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> Optional[bytes]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_bytes()

    def set(self, key: str, data: bytes) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        self._path(key).write_bytes(data)


def serialize_state(state: AppState) -> bytes:
    """Encode a snapshot as UTF-8 JSON bytes"""
    return json.dumps(state_to_dict(state)).encode('utf-8')


class StatePersistence:
    """Load/save the dashboard snapshot through a ByteStore"""

    def __init__(self, store: ByteStore, key: str = STORAGE_KEY):
        self.store = store
        self.key = key

    def load(self) -> Optional[AppState]:
        """
        Read the saved snapshot.

        Returns:
            Coerced AppState, or None when nothing usable is stored
        """
        try:
            raw = self.store.get(self.key)
        except Exception as e:
            logger.warning("Could not read saved state '%s': %s", self.key, e)
            return None

        if not raw:
            return None

        try:
            decoded = json.loads(raw.decode('utf-8'))
        except (AttributeError, UnicodeDecodeError, ValueError, RecursionError) as e:
            logger.warning("Saved state '%s' is not valid JSON, ignoring it: %s", self.key, e)
            return None

        return coerce_state(decoded)

    def save(self, state: AppState) -> bool:
        """
        Write the snapshot. Failures are logged and otherwise ignored.

        Returns:
            True if the store accepted the write
        """
        try:
            self.store.set(self.key, serialize_state(state))
        except Exception as e:
            logger.warning("Could not save state '%s': %s", self.key, e)
            return False
        return True
