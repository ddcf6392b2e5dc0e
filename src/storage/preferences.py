"""
User preferences persisted through an injectable key-value store.

The only preference the pipeline needs is the selected model id. The legacy
textual alias for the built-in model is accepted on read and never written
back.
"""

from __future__ import annotations

import logging
import os
import tempfile
import threading
import uuid
from typing import Any, Dict, Optional, Protocol

import yaml

from models.model_record import BUILTIN_MODEL_ID, parse_model_id

SELECTED_MODEL_KEY = "selected_model_id"


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[Any]:
        ...

    def set(self, key: str, value: Any) -> None:
        ...


class MemoryStore:
    """In-process store, used for tests and headless runs."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._values: Dict[str, Any] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            return self._values.get(key)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._values[key] = value


class YamlFileStore:
    """
    Key-value store backed by a small YAML document.

    Writes go to a temporary file in the same directory and are moved into
    place with os.replace, so a crash mid-write never truncates the file.
    """

    def __init__(self, path: str):
        self.path = path
        self._lock = threading.Lock()

    def _load(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logging.warning(f"Could not read preferences {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logging.warning(f"Ignoring malformed preferences file {self.path}")
            return {}
        return data

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            return self._load().get(key)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            data = self._load()
            data[key] = value
            directory = os.path.dirname(self.path) or "."
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".prefs-", suffix=".yaml")
            try:
                with os.fdopen(fd, "w") as f:
                    yaml.safe_dump(data, f, sort_keys=False)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise


class SelectionStore:
    """Reads and writes the persisted model selection."""

    def __init__(self, store: KeyValueStore):
        self._store = store

    def load(self) -> uuid.UUID:
        """Return the selected model id, defaulting to the built-in model."""
        raw = self._store.get(SELECTED_MODEL_KEY)
        model_id = parse_model_id(raw if raw is None else str(raw))
        if model_id is None:
            if raw:
                logging.warning(f"Ignoring unrecognised model selection {raw!r}")
            return BUILTIN_MODEL_ID
        return model_id

    def save(self, model_id: uuid.UUID) -> None:
        self._store.set(SELECTED_MODEL_KEY, str(model_id))
