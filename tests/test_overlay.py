"""
Tests for overlay rendering.
"""

import numpy as np

from conftest import make_detection
from models.detection import BoundingBox
from models.stats import PipelineStats
from pipeline.geometry import aspect_fit, map_box
from pipeline.overlay import class_color, draw_detections, draw_stats, letterbox


def _white(width, height):
    return np.full((height, width, 3), 255, dtype=np.uint8)


class TestLetterbox:
    def test_wide_frame_centered_vertically(self):
        canvas = letterbox(_white(200, 100), 200, 400)

        assert canvas.shape == (400, 200, 3)
        assert canvas[149, 100].tolist() == [0, 0, 0]
        assert canvas[150, 100].tolist() == [255, 255, 255]
        assert canvas[249, 100].tolist() == [255, 255, 255]
        assert canvas[250, 100].tolist() == [0, 0, 0]

    def test_tall_frame_centered_horizontally(self):
        canvas = letterbox(_white(100, 200), 400, 200)

        assert canvas[100, 149].tolist() == [0, 0, 0]
        assert canvas[100, 150].tolist() == [255, 255, 255]
        assert canvas[100, 249].tolist() == [255, 255, 255]
        assert canvas[100, 250].tolist() == [0, 0, 0]

    def test_placement_matches_mapped_boxes(self):
        canvas = letterbox(_white(1920, 1080), 1080, 2280)
        fit = aspect_fit((1920, 1080), (1080, 2280))

        full = map_box(BoundingBox(0, 0, 1920, 1080), fit)

        # 836.25 .. 1443.75 for this pair
        top, bottom = int(full.y), int(full.y2)
        assert canvas[top - 2, 540].tolist() == [0, 0, 0]
        assert min(canvas[top + 2, 540]) >= 250
        assert min(canvas[bottom - 2, 540]) >= 250
        assert canvas[bottom + 2, 540].tolist() == [0, 0, 0]


class TestDraw:
    def test_box_drawn_in_class_color(self):
        frame = np.zeros((200, 200, 3), dtype=np.uint8)

        draw_detections(frame, [make_detection(50, 80, 100, 100, class_id=1)])

        assert tuple(frame[150, 50].tolist()) == class_color(1)

    def test_stats_hud_drawn(self):
        frame = np.full((120, 320, 3), 128, dtype=np.uint8)
        stats = PipelineStats(detection_fps=12.0, inference_ms=40.0, detection_count=2, model_name="coco")

        draw_stats(frame, stats)

        # HUD background darkens the top-left corner
        assert frame[10, 10].max() < 128
        assert frame[110, 310].tolist() == [128, 128, 128]
