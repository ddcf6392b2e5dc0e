"""
Live Detector - Storage Module

Model metadata, payload storage and user preferences.
"""

from .model_files import ValidationResult, validate_model_files
from .preferences import KeyValueStore, MemoryStore, SelectionStore, YamlFileStore
from .repository import ModelPaths, ModelRepository

__all__ = [
    "ModelPaths",
    "ModelRepository",
    "ValidationResult",
    "validate_model_files",
    "KeyValueStore",
    "MemoryStore",
    "SelectionStore",
    "YamlFileStore",
]
