"""
FrameData model for captured video frames.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import cv2
import numpy as np


@dataclass
class FrameData:
    """
    Metadata and payload for a captured video frame.

    Attributes:
        frame: The raw frame data as a numpy array (BGR format).
        width: Frame width in pixels, as captured by the sensor.
        height: Frame height in pixels, as captured by the sensor.
        timestamp: Unix timestamp when frame was captured.
        frame_index: Sequential frame number since start.
        source: Identifier for the camera/video source.
        still: True for a single still image rather than a stream frame.
    """
    frame: np.ndarray
    width: int
    height: int
    timestamp: float
    frame_index: int = 0
    source: Optional[str] = None
    still: bool = False

    @classmethod
    def from_numpy(
        cls,
        frame: np.ndarray,
        timestamp: float,
        frame_index: int = 0,
        source: Optional[str] = None,
        still: bool = False,
    ) -> "FrameData":
        """Create FrameData from a numpy array."""
        h, w = frame.shape[:2]
        return cls(
            frame=frame,
            width=w,
            height=h,
            timestamp=timestamp,
            frame_index=frame_index,
            source=source,
            still=still,
        )

    @property
    def size(self) -> Tuple[int, int]:
        """Return (width, height)."""
        return (self.width, self.height)

    @property
    def is_landscape(self) -> bool:
        return self.width > self.height

    def oriented(self, portrait: bool = True) -> np.ndarray:
        """
        Return the image as the inference/display pipeline sees it.

        A landscape sensor frame shown on a portrait display is rotated
        90 degrees clockwise; anything else is returned unchanged.
        """
        if portrait and self.is_landscape:
            return cv2.rotate(self.frame, cv2.ROTATE_90_CLOCKWISE)
        return self.frame
