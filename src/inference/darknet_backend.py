"""
Darknet inference backend using OpenCV's DNN module.

Loads YOLO .weights/.cfg/.names triples and runs them on CPU (or CUDA when
OpenCV is built with it).
"""

from __future__ import annotations

import logging
import time
from typing import List, Optional, Sequence, Tuple

import cv2
import numpy as np

from domain.errors import EngineLoadError
from models.detection import BoundingBox, Detection
from storage.model_files import parse_class_names, parse_config_dimensions

DEFAULT_INPUT_SIZE = (416, 416)


class DarknetEngine:
    """
    YOLO engine backed by cv2.dnn.

    Example:
        engine = DarknetEngine.load("yolov4-tiny.weights", "yolov4-tiny.cfg", "coco.names")
        detections = engine.detect(frame, confidence_threshold=0.25, nms_threshold=0.45)
    """

    def __init__(self, net: "cv2.dnn.Net", input_size: Tuple[int, int], class_names: Sequence[str]):
        self._net = net
        self.input_size = input_size
        self.class_names = list(class_names)
        self._output_layers = net.getUnconnectedOutLayersNames()
        self._last_latency_ms = 0.0

    @classmethod
    def load(cls, weights_path: str, config_path: str, names_path: str) -> "DarknetEngine":
        try:
            with open(config_path, "rb") as f:
                input_size = parse_config_dimensions(f.read()) or DEFAULT_INPUT_SIZE
            with open(names_path, "rb") as f:
                class_names = parse_class_names(f.read())
            net = cv2.dnn.readNetFromDarknet(config_path, weights_path)
        except (OSError, cv2.error) as e:
            raise EngineLoadError(f"Failed to load Darknet model from {weights_path}: {e}") from e

        if net.empty():
            raise EngineLoadError(f"Darknet model at {weights_path} produced an empty network")

        if cv2.cuda.getCudaEnabledDeviceCount() > 0:
            net.setPreferableBackend(cv2.dnn.DNN_BACKEND_CUDA)
            net.setPreferableTarget(cv2.dnn.DNN_TARGET_CUDA)
            logging.info("Darknet engine using CUDA")

        logging.info(
            f"Darknet engine loaded: input={input_size[0]}x{input_size[1]}, "
            f"classes={len(class_names)}"
        )
        return cls(net, input_size, class_names)

    @property
    def last_latency_ms(self) -> float:
        return self._last_latency_ms

    def _class_name(self, class_id: int) -> str:
        if 0 <= class_id < len(self.class_names):
            return self.class_names[class_id]
        return str(class_id)

    def detect(
        self,
        image: np.ndarray,
        confidence_threshold: float = 0.25,
        nms_threshold: float = 0.45,
    ) -> List[Detection]:
        frame_h, frame_w = image.shape[:2]
        start = time.perf_counter()

        blob = cv2.dnn.blobFromImage(image, 1 / 255.0, self.input_size, swapRB=True, crop=False)
        self._net.setInput(blob)
        outputs = self._net.forward(self._output_layers)

        detections = self._postprocess(outputs, frame_w, frame_h, confidence_threshold, nms_threshold)
        self._last_latency_ms = (time.perf_counter() - start) * 1000.0
        return detections

    def _postprocess(
        self,
        outputs: Sequence[np.ndarray],
        frame_w: int,
        frame_h: int,
        confidence_threshold: float,
        nms_threshold: float,
    ) -> List[Detection]:
        rows = np.vstack([o.reshape(-1, o.shape[-1]) for o in outputs]) if len(outputs) else None
        if rows is None or rows.size == 0:
            return []

        class_scores = rows[:, 5:]
        class_ids = np.argmax(class_scores, axis=1)
        scores = class_scores[np.arange(len(rows)), class_ids]
        keep = scores >= confidence_threshold
        if not np.any(keep):
            return []

        rows, class_ids, scores = rows[keep], class_ids[keep], scores[keep]
        widths = rows[:, 2] * frame_w
        heights = rows[:, 3] * frame_h
        xs = rows[:, 0] * frame_w - widths / 2
        ys = rows[:, 1] * frame_h - heights / 2
        boxes = np.stack([xs, ys, widths, heights], axis=1)

        indices: Optional[np.ndarray] = cv2.dnn.NMSBoxes(
            boxes.tolist(), scores.tolist(), confidence_threshold, nms_threshold
        )
        if indices is None or len(indices) == 0:
            return []

        out: List[Detection] = []
        for i in np.array(indices).flatten():
            class_id = int(class_ids[i])
            x, y, w, h = boxes[i]
            out.append(
                Detection(
                    class_id=class_id,
                    class_name=self._class_name(class_id),
                    confidence=float(scores[i]),
                    bbox=BoundingBox(x=float(x), y=float(y), width=float(w), height=float(h)),
                )
            )
        return out
