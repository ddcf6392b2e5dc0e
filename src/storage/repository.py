"""
Model repository: metadata and payload storage for detector models.

Layout under the storage directory:

    models.json            ordered list of imported model records
    <uuid>/                one directory per imported model holding exactly
                           its weights, config and names files

The built-in model is never written to models.json; it is synthesized on
every load from the bundle directory.
"""

from __future__ import annotations

import json
import logging
import os
import shutil
import tempfile
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional, Union

from domain.errors import (
    ForbiddenDelete,
    MissingFiles,
    PersistenceWriteFailed,
    UnknownModel,
)
from domain.events import ModelEvent, ModelEventKind
from models.config import BuiltinModelConfig
from models.model_record import BUILTIN_MODEL_ID, ModelRecord, parse_model_id
from .model_files import ValidationResult, parse_class_names, validate_model_files

METADATA_FILE = "models.json"
STAGING_PREFIX = ".staging-"
TRASH_PREFIX = ".trash-"

DEFAULT_WEIGHTS_FILE = "model.weights"
DEFAULT_CONFIG_FILE = "model.cfg"
DEFAULT_NAMES_FILE = "model.names"

ModelId = Union[uuid.UUID, str]
ModelListener = Callable[[ModelEvent], None]


@dataclass(frozen=True)
class ModelPaths:
    """Absolute paths of a model's three files."""
    weights: str
    config: str
    names: str

    def as_tuple(self):
        return (self.weights, self.config, self.names)


def _safe_file_name(file_name: Optional[str], default: str) -> str:
    base = os.path.basename((file_name or "").strip())
    if base in ("", ".", ".."):
        return default
    return base


class ModelRepository:
    """
    CRUD over model identities with validate-then-commit imports.

    Every committed mutation keeps metadata and payload directories in step:
    an import that cannot record its metadata removes its directory, and a
    delete that cannot rewrite metadata restores its directory.

    Example:
        repo = ModelRepository("data/models", BuiltinModelConfig())
        record = repo.import_from_paths("birds", "birds.weights", "birds.cfg", "birds.names")
        paths = repo.resolve_paths(record)
    """

    def __init__(self, storage_dir: str, builtin: Optional[BuiltinModelConfig] = None):
        self.storage_dir = storage_dir
        self.builtin_config = builtin or BuiltinModelConfig()
        self.metadata_path = os.path.join(storage_dir, METADATA_FILE)
        self._lock = threading.RLock()
        self._listener: Optional[ModelListener] = None

        os.makedirs(storage_dir, exist_ok=True)
        logging.info(f"Model repository at {storage_dir}")

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def set_listener(self, listener: Optional[ModelListener]) -> None:
        """Register the single consumer of repository events."""
        self._listener = listener

    def _emit(self, kind: ModelEventKind, model_id: uuid.UUID) -> None:
        if self._listener is None:
            return
        try:
            self._listener(ModelEvent(kind=kind, model_id=model_id))
        except Exception as e:
            logging.warning(f"Model listener error on {kind.value} {model_id}: {e}")

    # -------------------------------------------------------------------------
    # Read Operations
    # -------------------------------------------------------------------------

    def builtin(self) -> ModelRecord:
        """Synthesize the built-in model record."""
        cfg = self.builtin_config
        class_names = self._load_builtin_class_names()
        if class_names and len(class_names) != cfg.class_count:
            logging.debug(
                f"Built-in names file lists {len(class_names)} classes, "
                f"config says {cfg.class_count}; using the names file"
            )
        return ModelRecord(
            id=BUILTIN_MODEL_ID,
            name=cfg.name,
            weights_file=cfg.weights_file,
            config_file=cfg.config_file,
            names_file=cfg.names_file,
            input_width=cfg.input_width,
            input_height=cfg.input_height,
            class_count=len(class_names) if class_names else cfg.class_count,
            class_names=tuple(class_names),
            imported_at=datetime.fromtimestamp(0, tz=timezone.utc),
        )

    def _load_builtin_class_names(self) -> List[str]:
        names_path = os.path.join(self.builtin_config.bundle_dir, self.builtin_config.names_file)
        try:
            with open(names_path, "rb") as f:
                return parse_class_names(f.read())
        except OSError as e:
            logging.warning(f"Built-in class names unavailable ({names_path}): {e}")
            return []

    def _read_entries(self) -> List[Any]:
        """
        Return the raw entries of the metadata document.

        Raises:
            PersistenceWriteFailed: The document exists but cannot be parsed.
                Writers must not replace a document they could not read.
        """
        if not os.path.exists(self.metadata_path):
            return []
        try:
            with open(self.metadata_path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, ValueError) as e:
            raise PersistenceWriteFailed(f"Model metadata unreadable ({self.metadata_path})", e) from e
        if not isinstance(raw, list):
            raise PersistenceWriteFailed(f"Model metadata is not a list ({self.metadata_path})")
        return raw

    def _load_imported(self) -> List[ModelRecord]:
        """Parsed imported records. An unreadable document reads as empty."""
        try:
            entries = self._read_entries()
        except PersistenceWriteFailed as e:
            logging.error(str(e))
            return []

        records: List[ModelRecord] = []
        for entry in entries:
            try:
                record = ModelRecord.from_dict(entry)
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logging.warning(f"Skipping malformed model entry: {e}")
                continue
            if record.is_builtin:
                continue
            records.append(record)
        return records

    @staticmethod
    def _entry_id(entry: Any) -> Optional[uuid.UUID]:
        if not isinstance(entry, dict):
            return None
        return parse_model_id(str(entry.get("id") or ""))

    def list_models(self) -> List[ModelRecord]:
        """Return the built-in model followed by imports in stored order."""
        with self._lock:
            return [self.builtin()] + self._load_imported()

    def get(self, model_id: ModelId) -> ModelRecord:
        """
        Look up a model by id.

        Raises:
            UnknownModel: No model with that id exists.
        """
        parsed = self._coerce_id(model_id)
        if parsed == BUILTIN_MODEL_ID:
            return self.builtin()
        with self._lock:
            for record in self._load_imported():
                if record.id == parsed:
                    return record
        raise UnknownModel(model_id)

    def resolve_paths(self, record: ModelRecord) -> ModelPaths:
        """
        Return absolute paths of the record's files.

        Raises:
            MissingFiles: One or more expected files are absent.
        """
        base = self.builtin_config.bundle_dir if record.is_builtin else self._model_dir(record.id)
        paths = ModelPaths(
            weights=os.path.abspath(os.path.join(base, record.weights_file)),
            config=os.path.abspath(os.path.join(base, record.config_file)),
            names=os.path.abspath(os.path.join(base, record.names_file)),
        )
        missing = [p for p in paths.as_tuple() if not os.path.isfile(p)]
        if missing:
            raise MissingFiles(record.display_name, missing)
        return paths

    def find_inconsistencies(self) -> List[str]:
        """
        Report drift between metadata and payload directories.

        Returns an empty list when every record has its directory with all
        three files and no directory is unaccounted for.
        """
        problems: List[str] = []
        with self._lock:
            try:
                entries = self._read_entries()
            except PersistenceWriteFailed as e:
                problems.append(str(e))
                entries = []
            records = self._load_imported() if entries else []
            known = {str(self._entry_id(e)) for e in entries if self._entry_id(e) is not None}

            for record in records:
                directory = self._model_dir(record.id)
                if not os.path.isdir(directory):
                    problems.append(f"missing directory for model {record.id}")
                    continue
                for file_name in (record.weights_file, record.config_file, record.names_file):
                    if not os.path.isfile(os.path.join(directory, file_name)):
                        problems.append(f"model {record.id} is missing {file_name}")

            for entry in sorted(os.listdir(self.storage_dir)):
                path = os.path.join(self.storage_dir, entry)
                if not os.path.isdir(path):
                    continue
                if entry.startswith(STAGING_PREFIX) or entry.startswith(TRASH_PREFIX):
                    problems.append(f"leftover directory {entry}")
                elif entry not in known:
                    problems.append(f"orphaned directory {entry}")
        return problems

    # -------------------------------------------------------------------------
    # Write Operations
    # -------------------------------------------------------------------------

    @staticmethod
    def validate(weights: bytes, config: bytes, names: bytes) -> ValidationResult:
        """Validate a model triple without touching storage."""
        return validate_model_files(weights, config, names)

    def import_model(
        self,
        name: str,
        weights: bytes,
        config: bytes,
        names: bytes,
        weights_file: Optional[str] = None,
        config_file: Optional[str] = None,
        names_file: Optional[str] = None,
    ) -> ModelRecord:
        """
        Validate and persist a new model.

        Nothing is written unless validation succeeds.

        Raises:
            ValidationError: The triple is invalid (see validate_model_files).
            PersistenceWriteFailed: Payloads or metadata could not be written,
                or the existing metadata document is unreadable.
        """
        result = validate_model_files(weights, config, names)

        record = ModelRecord(
            id=uuid.uuid4(),
            name=(name or "").strip(),
            weights_file=_safe_file_name(weights_file, DEFAULT_WEIGHTS_FILE),
            config_file=_safe_file_name(config_file, DEFAULT_CONFIG_FILE),
            names_file=_safe_file_name(names_file, DEFAULT_NAMES_FILE),
            input_width=result.width,
            input_height=result.height,
            class_count=len(result.class_names),
            class_names=result.class_names,
            imported_at=datetime.now(timezone.utc),
        )
        if len({record.weights_file, record.config_file, record.names_file}) != 3:
            raise ValueError("weights, config and names file names must be distinct")

        with self._lock:
            entries = self._read_entries()
            directory = self._model_dir(record.id)
            staging = os.path.join(self.storage_dir, f"{STAGING_PREFIX}{record.id}")
            try:
                os.makedirs(staging)
                for file_name, payload in (
                    (record.weights_file, weights),
                    (record.config_file, config),
                    (record.names_file, names),
                ):
                    with open(os.path.join(staging, file_name), "wb") as f:
                        f.write(payload)
                os.rename(staging, directory)
            except OSError as e:
                shutil.rmtree(staging, ignore_errors=True)
                raise PersistenceWriteFailed("Could not write model files", e) from e

            try:
                self._write_metadata(entries + [record.to_dict()])
            except PersistenceWriteFailed:
                shutil.rmtree(directory, ignore_errors=True)
                raise

        logging.info(
            f"Imported model '{record.display_name}' ({record.id}, "
            f"{record.input_size_description}, {record.class_count} classes)"
        )
        self._emit(ModelEventKind.IMPORTED, record.id)
        return record

    def import_from_paths(
        self,
        name: str,
        weights_path: str,
        config_path: str,
        names_path: str,
    ) -> ModelRecord:
        """Read a model triple from disk and import it under its own file names."""
        with open(weights_path, "rb") as f:
            weights = f.read()
        with open(config_path, "rb") as f:
            config = f.read()
        with open(names_path, "rb") as f:
            names = f.read()
        return self.import_model(
            name,
            weights,
            config,
            names,
            weights_file=os.path.basename(weights_path),
            config_file=os.path.basename(config_path),
            names_file=os.path.basename(names_path),
        )

    def delete(self, model_id: ModelId) -> None:
        """
        Remove a model's metadata entry and payload directory.

        Raises:
            ForbiddenDelete: model_id denotes the built-in model.
            UnknownModel: No imported model has that id.
            PersistenceWriteFailed: Storage could not be updated, or the
                metadata document is unreadable; state is unchanged.
        """
        parsed = self._coerce_id(model_id)
        if parsed == BUILTIN_MODEL_ID:
            raise ForbiddenDelete()

        with self._lock:
            entries = self._read_entries()
            remaining = [e for e in entries if self._entry_id(e) != parsed]
            if len(remaining) == len(entries):
                raise UnknownModel(model_id)

            directory = self._model_dir(parsed)
            trash = os.path.join(self.storage_dir, f"{TRASH_PREFIX}{parsed}")
            moved = False
            if os.path.isdir(directory):
                try:
                    os.rename(directory, trash)
                    moved = True
                except OSError as e:
                    raise PersistenceWriteFailed("Could not remove model directory", e) from e

            try:
                self._write_metadata(remaining)
            except PersistenceWriteFailed:
                if moved:
                    os.rename(trash, directory)
                raise

            if moved:
                try:
                    shutil.rmtree(trash)
                except OSError as e:
                    logging.warning(f"Could not clean up {trash}: {e}")

        logging.info(f"Deleted model {parsed}")
        self._emit(ModelEventKind.DELETED, parsed)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _model_dir(self, model_id: uuid.UUID) -> str:
        return os.path.join(self.storage_dir, str(model_id))

    def _write_metadata(self, entries: List[Any]) -> None:
        """
        Atomically replace the metadata document.

        Entries are written back as given, so ones this version cannot parse
        survive the rewrite. Built-in entries are filtered out.
        """
        payload = [e for e in entries if self._entry_id(e) != BUILTIN_MODEL_ID]
        tmp_path = None
        try:
            fd, tmp_path = tempfile.mkstemp(dir=self.storage_dir, prefix=".models-", suffix=".json")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.metadata_path)
        except OSError as e:
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise PersistenceWriteFailed("Could not write model metadata", e) from e

    @staticmethod
    def _coerce_id(model_id: ModelId) -> uuid.UUID:
        if isinstance(model_id, uuid.UUID):
            return model_id
        parsed = parse_model_id(model_id)
        if parsed is None:
            raise UnknownModel(model_id)
        return parsed
