"""
Error taxonomy for the live detector.

Validation errors abort an import before anything is written. Repository
errors leave metadata and payload directories consistent with each other.
Engine and load errors never leave the session without a detector.
"""

from __future__ import annotations

from typing import Optional, Sequence


class LiveDetectorError(Exception):
    """Base class for all errors raised by the live detector."""

    kind = "error"


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class ValidationError(LiveDetectorError):
    """An imported model triple failed validation."""

    kind = "validation"


class TooSmall(ValidationError):
    kind = "too_small"

    def __init__(self, file_role: str, size: int, minimum: int):
        self.file_role = file_role
        self.size = size
        self.minimum = minimum
        super().__init__(
            f"{file_role.capitalize()} file appears to be too small "
            f"({size} bytes, expected at least {minimum})"
        )


class UnparsableConfig(ValidationError):
    kind = "unparsable_config"

    def __init__(self, message: str = "Failed to parse network dimensions from config file"):
        super().__init__(message)


class DimensionOutOfRange(ValidationError):
    kind = "dimension_out_of_range"

    def __init__(self, width: int, height: int, minimum: int, maximum: int):
        self.width = width
        self.height = height
        super().__init__(
            f"Invalid network dimensions: {width}x{height} "
            f"(allowed {minimum}-{maximum})"
        )


class NoClassNames(ValidationError):
    kind = "no_class_names"

    def __init__(self) -> None:
        super().__init__("No class names found in names file")


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class RepositoryError(LiveDetectorError):
    kind = "repository"


class MissingFiles(RepositoryError):
    kind = "missing_files"

    def __init__(self, model_name: str, missing: Sequence[str]):
        self.missing = list(missing)
        super().__init__(f"Model '{model_name}' is missing files: {', '.join(self.missing)}")


class ForbiddenDelete(RepositoryError):
    kind = "forbidden_delete"

    def __init__(self) -> None:
        super().__init__("The built-in model cannot be deleted")


class UnknownModel(RepositoryError):
    kind = "unknown_model"

    def __init__(self, model_id: object):
        self.model_id = model_id
        super().__init__(f"No model with id {model_id}")


class PersistenceWriteFailed(RepositoryError):
    kind = "persistence_write_failed"

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message if cause is None else f"{message}: {cause}")


# ---------------------------------------------------------------------------
# Engine / session / capture
# ---------------------------------------------------------------------------


class EngineLoadError(LiveDetectorError):
    kind = "engine_load"


class ModelLoadFailed(LiveDetectorError):
    """Switching models failed; the previous model keeps running."""

    kind = "model_load_failed"


class CaptureAuthorizationDenied(LiveDetectorError):
    kind = "capture_denied"
