"""
Pipeline module for the live detector.

The pipeline orchestrates the live processing flow:
- Single-in-flight frame scheduling with frame dropping (FrameScheduler)
- Aspect-fit mapping of detections into display space (geometry)
- Model lifecycle and publishing (SessionController)
- Overlay rendering for the display window
"""

from .geometry import AspectFit, aspect_fit, map_box, map_detections, oriented_size
from .scheduler import FrameResult, FrameScheduler, SchedulerState
from .session import SessionController, SessionUpdate

__all__ = [
    "AspectFit",
    "aspect_fit",
    "map_box",
    "map_detections",
    "oriented_size",
    "FrameResult",
    "FrameScheduler",
    "SchedulerState",
    "SessionController",
    "SessionUpdate",
]
