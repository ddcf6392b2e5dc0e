"""
InferenceAdapter: the current model bound to a loaded engine.

An adapter is built once per model and never reconfigured. Switching models
means building a new adapter, which keeps class names and input geometry
from ever going stale relative to the engine.
"""

from __future__ import annotations

import logging
import threading
from typing import List, Optional, Tuple

import numpy as np

from domain.errors import EngineLoadError
from models.detection import Detection
from models.model_record import ModelRecord
from storage.repository import ModelPaths
from .backend import EngineLoader, InferenceEngine
from .darknet_backend import DarknetEngine


class InferenceAdapter:
    def __init__(self, model: ModelRecord, engine: InferenceEngine):
        self.model = model
        self._engine = engine
        self._lock = threading.Lock()

    @classmethod
    def load(
        cls,
        model: ModelRecord,
        paths: ModelPaths,
        engine_loader: Optional[EngineLoader] = None,
    ) -> "InferenceAdapter":
        """
        Load the engine for a model.

        Raises:
            EngineLoadError: The engine could not be constructed.
        """
        loader = engine_loader or DarknetEngine.load
        logging.info(
            f"Loading model '{model.display_name}': weights={paths.weights}, "
            f"config={paths.config}, names={paths.names}"
        )
        try:
            engine = loader(paths.weights, paths.config, paths.names)
        except EngineLoadError:
            raise
        except Exception as e:
            raise EngineLoadError(f"Failed to load model '{model.display_name}': {e}") from e
        if engine is None:
            raise EngineLoadError(f"Engine loader returned nothing for '{model.display_name}'")
        return cls(model, engine)

    @property
    def model_name(self) -> str:
        return self.model.display_name

    @property
    def declared_input_size(self) -> Tuple[int, int]:
        return self.model.input_size

    @property
    def class_names(self) -> Tuple[str, ...]:
        return self.model.class_names

    @property
    def last_inference_latency(self) -> float:
        """Latency of the last detect() call in milliseconds."""
        return float(self._engine.last_latency_ms or 0.0)

    def detect(
        self,
        image: np.ndarray,
        confidence_threshold: float = 0.25,
        nms_threshold: float = 0.45,
    ) -> List[Detection]:
        """Run one blocking inference; an engine returning nothing means no detections."""
        with self._lock:
            results = self._engine.detect(image, confidence_threshold, nms_threshold)
        return list(results) if results else []
