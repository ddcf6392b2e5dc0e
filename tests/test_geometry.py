"""
Tests for aspect-fit mapping into display space.
"""

import pytest

from conftest import make_detection
from models.detection import BoundingBox
from pipeline.geometry import aspect_fit, map_box, map_detections, oriented_size


class TestAspectFit:
    """Tests for aspect_fit."""

    def test_portrait_into_taller_display(self):
        """1080x1920 video on a 1080x2280 screen is letterboxed top and bottom."""
        fit = aspect_fit((1080, 1920), (1080, 2280))

        assert fit.scale == pytest.approx(1.0)
        assert fit.x_offset == pytest.approx(0.0)
        assert fit.y_offset == pytest.approx(180.0)

    def test_portrait_into_landscape_display(self):
        fit = aspect_fit((1080, 1920), (1920, 1080))

        assert fit.scale == pytest.approx(0.5625)
        assert fit.x_offset == pytest.approx(656.25)
        assert fit.y_offset == pytest.approx(0.0)

    def test_same_aspect_fills(self):
        fit = aspect_fit((640, 480), (1280, 960))

        assert (fit.scale, fit.x_offset, fit.y_offset) == (2.0, 0.0, 0.0)

    @pytest.mark.parametrize("source,destination", [
        ((0, 100), (100, 100)),
        ((100, 100), (100, -1)),
    ])
    def test_rejects_empty_sizes(self, source, destination):
        with pytest.raises(ValueError):
            aspect_fit(source, destination)


class TestMapDetections:
    """Tests for map_box and map_detections."""

    def test_box_offset_into_letterbox(self):
        [mapped] = map_detections([make_detection(0, 0, 100, 100)], (1080, 1920), (1080, 2280))

        assert mapped.bbox.as_tuple() == pytest.approx((0.0, 180.0, 100.0, 100.0))

    def test_labels_preserved(self):
        original = make_detection(10, 20, 30, 40, class_id=2, name="car", confidence=0.5)

        [mapped] = map_detections([original], (100, 100), (200, 200))

        assert (mapped.class_id, mapped.class_name, mapped.confidence) == (2, "car", 0.5)
        assert mapped.bbox.as_tuple() == (20.0, 40.0, 60.0, 80.0)
        assert original.bbox.as_tuple() == (10, 20, 30, 40)

    def test_deterministic(self):
        fit = aspect_fit((1080, 1920), (1170, 2532))
        box = BoundingBox(12.5, 300.25, 77.0, 41.5)

        assert map_box(box, fit) == map_box(box, fit)

    def test_empty_list(self):
        assert map_detections([], (1080, 1920), (1080, 2280)) == []


class TestOrientedSize:
    """Tests for oriented_size."""

    def test_landscape_on_portrait_display_swaps(self):
        assert oriented_size(1920, 1080) == (1080, 1920)

    def test_portrait_frame_unchanged(self):
        assert oriented_size(1080, 1920) == (1080, 1920)

    def test_landscape_display_unchanged(self):
        assert oriented_size(1920, 1080, portrait=False) == (1920, 1080)
