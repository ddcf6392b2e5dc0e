"""
Aspect-fit (letterbox) mapping from frame pixels to display pixels.

All functions are pure: identical inputs always give identical outputs, so
overlays stay put across frames with the same geometry.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Tuple

from models.detection import BoundingBox, Detection

Size = Tuple[float, float]


@dataclass(frozen=True)
class AspectFit:
    """Uniform scale plus centering offsets for one source/destination pair."""
    scale: float
    x_offset: float
    y_offset: float


def _check_size(name: str, size: Size) -> Tuple[float, float]:
    w, h = size
    if w <= 0 or h <= 0:
        raise ValueError(f"{name} size must be positive, got {w}x{h}")
    return float(w), float(h)


def aspect_fit(source_size: Size, destination_size: Size) -> AspectFit:
    """
    Compute the letterbox placement of source inside destination.

    A source wider (relative to its height) than the destination fills the
    destination width and is centered vertically; otherwise it fills the
    height and is centered horizontally.
    """
    src_w, src_h = _check_size("source", source_size)
    dst_w, dst_h = _check_size("destination", destination_size)

    if src_w / src_h > dst_w / dst_h:
        scale = dst_w / src_w
        return AspectFit(scale=scale, x_offset=0.0, y_offset=(dst_h - src_h * scale) / 2)

    scale = dst_h / src_h
    return AspectFit(scale=scale, x_offset=(dst_w - src_w * scale) / 2, y_offset=0.0)


def map_box(box: BoundingBox, fit: AspectFit) -> BoundingBox:
    return BoundingBox(
        x=box.x * fit.scale + fit.x_offset,
        y=box.y * fit.scale + fit.y_offset,
        width=box.width * fit.scale,
        height=box.height * fit.scale,
    )


def map_detection(detection: Detection, fit: AspectFit) -> Detection:
    return detection.with_bbox(map_box(detection.bbox, fit))


def map_detections(
    detections: Iterable[Detection],
    source_size: Size,
    destination_size: Size,
) -> List[Detection]:
    """Map every detection from source pixels into destination pixels."""
    fit = aspect_fit(source_size, destination_size)
    return [map_detection(d, fit) for d in detections]


def oriented_size(width: int, height: int, portrait: bool = True) -> Tuple[int, int]:
    """
    Frame size as seen by the inference/display pipeline.

    A landscape frame on a portrait display is treated as rotated, so its
    reported size is (height, width).
    """
    if portrait and width > height:
        return (height, width)
    return (width, height)
