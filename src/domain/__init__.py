"""
Domain-level contracts shared across layers: the error taxonomy and the
model repository event channel.
"""

from .errors import (  # noqa: F401
    CaptureAuthorizationDenied,
    DimensionOutOfRange,
    EngineLoadError,
    ForbiddenDelete,
    LiveDetectorError,
    MissingFiles,
    ModelLoadFailed,
    NoClassNames,
    PersistenceWriteFailed,
    RepositoryError,
    TooSmall,
    UnknownModel,
    UnparsableConfig,
    ValidationError,
)
from .events import ModelEvent, ModelEventKind  # noqa: F401
