"""
Overlay rendering: detection boxes with labels and a stats HUD.
"""

from __future__ import annotations

from typing import Iterable, Optional

import cv2
import numpy as np

from models.detection import Detection
from models.stats import PipelineStats
from .geometry import aspect_fit

# BGR palette, indexed by class id
CLASS_COLORS = [
    (59, 59, 255),    # red
    (0, 199, 52),     # green
    (255, 122, 0),    # blue
    (0, 149, 255),    # orange
    (222, 82, 175),   # purple
    (0, 204, 255),    # yellow
    (85, 45, 255),    # pink
    (250, 200, 90),   # cyan
]

TEXT_COLOR = (255, 255, 255)
HUD_BG = (0, 0, 0)
FONT = cv2.FONT_HERSHEY_SIMPLEX


def class_color(class_id: int):
    return CLASS_COLORS[class_id % len(CLASS_COLORS)]


def draw_detections(frame: np.ndarray, detections: Iterable[Detection]) -> np.ndarray:
    """Draw a box and "<class> <confidence>" label per detection, in place."""
    for det in detections:
        color = class_color(det.class_id)
        x1, y1, x2, y2 = det.bbox.as_int_xyxy()
        cv2.rectangle(frame, (x1, y1), (x2, y2), color, 2)

        label = det.label
        (tw, th), _ = cv2.getTextSize(label, FONT, 0.5, 1)
        top = max(0, y1 - th - 6)
        cv2.rectangle(frame, (x1, top), (x1 + tw + 8, top + th + 6), color, -1)
        cv2.putText(frame, label, (x1 + 4, top + th + 2), FONT, 0.5, TEXT_COLOR, 1)
    return frame


def draw_stats(frame: np.ndarray, stats: PipelineStats, model_name: Optional[str] = None) -> np.ndarray:
    """Draw the FPS / latency / count HUD in the top-left corner, in place."""
    lines = [
        f"{stats.detection_fps:.0f} FPS  {stats.inference_ms:.0f} ms  {stats.detection_count} obj",
    ]
    if model_name or stats.model_name:
        lines.append(model_name or stats.model_name)

    y = 8
    for text in lines:
        (tw, th), _ = cv2.getTextSize(text, FONT, 0.5, 1)
        overlay = frame.copy()
        cv2.rectangle(overlay, (8, y), (8 + tw + 12, y + th + 10), HUD_BG, -1)
        cv2.addWeighted(overlay, 0.7, frame, 0.3, 0, dst=frame)
        cv2.putText(frame, text, (14, y + th + 4), FONT, 0.5, TEXT_COLOR, 1)
        y += th + 14
    return frame


def letterbox(frame: np.ndarray, width: int, height: int) -> np.ndarray:
    """
    Aspect-fit a frame into a black width x height canvas.

    Placement comes from geometry.aspect_fit, the same fit map_detections
    applies to boxes, so drawn boxes line up with the image.
    """
    h, w = frame.shape[:2]
    fit = aspect_fit((w, h), (width, height))
    # Pixel centers sit at +0.5 in the continuous coordinates aspect_fit uses
    shift = 0.5 * (fit.scale - 1.0)
    matrix = np.float32([
        [fit.scale, 0.0, fit.x_offset + shift],
        [0.0, fit.scale, fit.y_offset + shift],
    ])
    return cv2.warpAffine(
        frame, matrix, (width, height),
        flags=cv2.INTER_LINEAR,
        borderMode=cv2.BORDER_CONSTANT,
        borderValue=(0, 0, 0),
    )
