"""
Typed models for the live detector.
"""

from .frame import FrameData
from .detection import Detection, BoundingBox
from .model_record import ModelRecord, BUILTIN_MODEL_ID, LEGACY_BUILTIN_ALIAS
from .stats import PipelineStats
from .config import (
    Config,
    CameraConfig,
    DetectionConfig,
    ModelsConfig,
    BuiltinModelConfig,
    DisplayConfig,
    WebConfig,
    SessionConfig,
)

__all__ = [
    # Frame
    "FrameData",
    # Detection
    "Detection",
    "BoundingBox",
    # Models
    "ModelRecord",
    "BUILTIN_MODEL_ID",
    "LEGACY_BUILTIN_ALIAS",
    # Stats
    "PipelineStats",
    # Config
    "Config",
    "CameraConfig",
    "DetectionConfig",
    "ModelsConfig",
    "BuiltinModelConfig",
    "DisplayConfig",
    "WebConfig",
    "SessionConfig",
]
