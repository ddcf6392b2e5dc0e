"""
Tests for typed models: detections, frames, model records, config.
"""

import uuid
from datetime import datetime, timezone

import numpy as np

from models import (
    BUILTIN_MODEL_ID,
    LEGACY_BUILTIN_ALIAS,
    BoundingBox,
    Config,
    Detection,
    FrameData,
    ModelRecord,
    PipelineStats,
    SessionConfig,
)
from models.model_record import parse_model_id


def _record(**overrides):
    values = dict(
        id=uuid.UUID("12345678-1234-5678-1234-567812345678"),
        name="Birds",
        weights_file="birds.weights",
        config_file="birds.cfg",
        names_file="birds.names",
        input_width=608,
        input_height=320,
        class_count=2,
        class_names=("sparrow", "crow"),
        imported_at=datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc),
    )
    values.update(overrides)
    return ModelRecord(**values)


class TestBoundingBox:
    def test_properties(self):
        box = BoundingBox(x=10, y=20, width=30, height=40)

        assert box.x2 == 40
        assert box.y2 == 60
        assert box.center == (25, 40)
        assert box.area == 1200

    def test_as_int_xyxy_rounds(self):
        assert BoundingBox(1.4, 2.6, 10.0, 10.0).as_int_xyxy() == (1, 3, 11, 13)


class TestDetection:
    def test_label(self):
        det = Detection(class_id=0, class_name="person", confidence=0.875, bbox=BoundingBox(0, 0, 1, 1))

        assert det.confidence_percentage == "87.5%"
        assert det.label == "person 87.5%"

    def test_with_bbox_returns_copy(self):
        det = Detection(class_id=1, class_name="car", confidence=0.5, bbox=BoundingBox(0, 0, 1, 1))

        moved = det.with_bbox(BoundingBox(5, 5, 2, 2))

        assert moved.bbox.as_tuple() == (5, 5, 2, 2)
        assert det.bbox.as_tuple() == (0, 0, 1, 1)
        assert moved.class_name == "car"

    def test_to_dict(self):
        det = Detection(class_id=1, class_name="car", confidence=0.5, bbox=BoundingBox(1, 2, 3, 4))

        assert det.to_dict()["bbox"] == {"x": 1, "y": 2, "width": 3, "height": 4}


class TestFrameData:
    def test_from_numpy(self):
        frame = np.zeros((480, 640, 3), dtype=np.uint8)

        fd = FrameData.from_numpy(frame, timestamp=123.0, frame_index=5, source="cam")

        assert fd.size == (640, 480)
        assert fd.is_landscape
        assert fd.frame_index == 5

    def test_oriented_rotates_clockwise(self):
        frame = np.zeros((2, 3, 3), dtype=np.uint8)
        frame[0, 0] = 255  # top-left pixel

        rotated = FrameData.from_numpy(frame, timestamp=0).oriented()

        assert rotated.shape == (3, 2, 3)
        # Clockwise rotation moves top-left to top-right
        assert rotated[0, 1].tolist() == [255, 255, 255]

    def test_oriented_portrait_untouched(self):
        frame = np.zeros((3, 2, 3), dtype=np.uint8)
        fd = FrameData.from_numpy(frame, timestamp=0)

        assert fd.oriented() is frame
        assert FrameData.from_numpy(np.zeros((2, 3, 3)), timestamp=0).oriented(portrait=False).shape == (2, 3, 3)


class TestModelRecord:
    def test_builtin_flag(self):
        assert _record(id=BUILTIN_MODEL_ID).is_builtin
        assert not _record().is_builtin

    def test_display_name_fallback(self):
        assert _record(name="").display_name == "Unnamed Model"
        assert _record().display_name == "Birds"

    def test_input_size_description(self):
        assert _record().input_size_description == "608x320"

    def test_roundtrip(self):
        record = _record()

        assert ModelRecord.from_dict(record.to_dict()) == record

    def test_parse_model_id(self):
        assert parse_model_id(LEGACY_BUILTIN_ALIAS) == BUILTIN_MODEL_ID
        assert parse_model_id(str(BUILTIN_MODEL_ID)) == BUILTIN_MODEL_ID
        assert parse_model_id("") is None
        assert parse_model_id("garbage") is None


class TestPipelineStats:
    def test_defaults(self):
        stats = PipelineStats()

        assert stats.to_dict() == {
            "detection_fps": 0.0,
            "capture_fps": 0.0,
            "inference_ms": 0.0,
            "detection_count": 0,
            "model_name": "",
        }


class TestConfig:
    def test_from_dict_minimal(self):
        config = Config.from_dict({})

        assert config.camera.resolution == [1920, 1080]
        assert config.detection.confidence_threshold == 0.25
        assert config.models.builtin.input_width == 416
        assert config.display.size is None
        assert config.web.port == 5000

    def test_roundtrip(self):
        config = Config.from_dict({
            "camera": {"device_id": "clip.mp4", "rotate": 90},
            "display": {"width": 1080, "height": 2280},
            "log_level": "DEBUG",
        })

        assert Config.from_dict(config.to_dict()) == config

    def test_session_config_from_config(self):
        config = Config.from_dict({
            "detection": {"confidence_threshold": 0.4, "nms_threshold": 0.5},
            "display": {"width": 1080, "height": 2280, "portrait": False},
        })
        model_id = uuid.uuid4()

        session = SessionConfig.from_config(config, model_id)

        assert session.selected_model_id == model_id
        assert (session.confidence_threshold, session.nms_threshold) == (0.4, 0.5)
        assert session.display_size == (1080, 2280)
        assert session.portrait_display is False
