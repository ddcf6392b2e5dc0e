"""
Inference layer: engine protocol, the OpenCV Darknet engine, and the
per-model adapter used by the pipeline.
"""

from .adapter import InferenceAdapter
from .backend import EngineLoader, InferenceEngine
from .darknet_backend import DarknetEngine

__all__ = [
    "InferenceAdapter",
    "EngineLoader",
    "InferenceEngine",
    "DarknetEngine",
]
