"""
Inference engine interface.

Engines load a weights/config/names triple and return pixel-space detections
in the coordinate system of the image they were given.
"""

from __future__ import annotations

from typing import Callable, List, Optional, Protocol

import numpy as np

from models.detection import Detection


class InferenceEngine(Protocol):
    @property
    def last_latency_ms(self) -> float:
        ...

    def detect(
        self,
        image: np.ndarray,
        confidence_threshold: float,
        nms_threshold: float,
    ) -> Optional[List[Detection]]:
        ...


# (weights_path, config_path, names_path) -> engine; raises on failure.
EngineLoader = Callable[[str, str, str], InferenceEngine]
