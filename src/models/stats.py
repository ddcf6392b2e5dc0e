"""
Pipeline statistics published once per sampling window.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class PipelineStats:
    """
    Throughput and latency snapshot for the live pipeline.

    Attributes:
        detection_fps: Frames run through inference in the last window.
        capture_fps: Raw frames delivered by the capture source in the last window.
        inference_ms: Latency of the most recent inference call.
        detection_count: Size of the currently published detection list.
        model_name: Display name of the active model.
    """
    detection_fps: float = 0.0
    capture_fps: float = 0.0
    inference_ms: float = 0.0
    detection_count: int = 0
    model_name: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "detection_fps": self.detection_fps,
            "capture_fps": self.capture_fps,
            "inference_ms": self.inference_ms,
            "detection_count": self.detection_count,
            "model_name": self.model_name,
        }
