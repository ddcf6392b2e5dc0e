"""
Observation layer for pluggable video/image sources.

This layer abstracts the source of frames (camera, video file, remote stream)
from the processing pipeline. Each source implements the ObservationSource
interface and returns FrameData objects; CaptureFeed pumps them into a
consumer on its own thread.
"""

from typing import Any, Dict

from .base import AuthorizationState, ObservationSource, ObservationConfig
from .feed import CaptureFeed
from .opencv_source import OpenCVSource, OpenCVSourceConfig


def create_source_from_config(camera_cfg: Dict[str, Any], source_id: str = "camera") -> ObservationSource:
    """
    Factory: build an ObservationSource from the camera config dict.

    Only the "opencv" backend ships with this package.
    """
    backend = (camera_cfg.get("backend") or "opencv").lower()
    if backend != "opencv":
        raise ValueError(f"Unsupported camera backend: {backend}")
    return OpenCVSource(OpenCVSourceConfig.from_camera_config(camera_cfg, source_id=source_id))


__all__ = [
    "AuthorizationState",
    "CaptureFeed",
    "ObservationSource",
    "ObservationConfig",
    "OpenCVSource",
    "OpenCVSourceConfig",
    "create_source_from_config",
]
