"""
Detection models for object detection results.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class BoundingBox:
    """
    An axis-aligned box in pixel coordinates.

    Attributes:
        x: Left edge x coordinate.
        y: Top edge y coordinate.
        width: Box width.
        height: Box height.
    """
    x: float
    y: float
    width: float
    height: float

    @property
    def x2(self) -> float:
        return self.x + self.width

    @property
    def y2(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)

    @property
    def area(self) -> float:
        return self.width * self.height

    def as_tuple(self) -> Tuple[float, float, float, float]:
        """Return as (x, y, width, height) tuple."""
        return (self.x, self.y, self.width, self.height)

    def as_int_xyxy(self) -> Tuple[int, int, int, int]:
        """Return integer corners (x1, y1, x2, y2) for drawing."""
        return (int(round(self.x)), int(round(self.y)), int(round(self.x2)), int(round(self.y2)))


@dataclass(frozen=True)
class Detection:
    """
    A single labeled, scored box produced by the inference engine.

    Attributes:
        class_id: Index into the model's class-name list.
        class_name: Human-readable class label.
        confidence: Detection confidence score (0-1).
        bbox: Bounding box in pixel coordinates.
    """
    class_id: int
    class_name: str
    confidence: float
    bbox: BoundingBox

    @property
    def confidence_percentage(self) -> str:
        return f"{self.confidence * 100:.1f}%"

    @property
    def label(self) -> str:
        return f"{self.class_name} {self.confidence_percentage}"

    def with_bbox(self, bbox: BoundingBox) -> "Detection":
        """Return a copy placed at a different box (detections are never mutated)."""
        return Detection(
            class_id=self.class_id,
            class_name=self.class_name,
            confidence=self.confidence,
            bbox=bbox,
        )

    def to_dict(self) -> dict:
        return {
            "class_id": self.class_id,
            "class_name": self.class_name,
            "confidence": self.confidence,
            "bbox": {
                "x": self.bbox.x,
                "y": self.bbox.y,
                "width": self.bbox.width,
                "height": self.bbox.height,
            },
        }
