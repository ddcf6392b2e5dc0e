"""
Pytest configuration and shared fixtures.
"""

import os
import sys
import threading
import time

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from models.config import BuiltinModelConfig  # noqa: E402
from models.detection import BoundingBox, Detection  # noqa: E402
from models.frame import FrameData  # noqa: E402


VALID_CFG = b"""[net]
batch=1
subdivisions=1
width=416
height=416
channels=3
momentum=0.9
decay=0.0005

[convolutional]
batch_normalize=1
filters=16
size=3
stride=1
activation=leaky
"""

VALID_NAMES = b"person\nbicycle\ncar\n"

VALID_WEIGHTS = b"\x00" * 2048


class FakeEngine:
    """Engine double returning canned detections."""

    def __init__(self, detections=None, latency_ms=12.0, delay=0.0, gate=None):
        self.detections = list(detections or [])
        self.latency_ms = latency_ms
        self.delay = delay
        self.gate = gate
        self.calls = []

    @property
    def last_latency_ms(self):
        return self.latency_ms

    def detect(self, image, confidence_threshold, nms_threshold):
        self.calls.append((image.shape, confidence_threshold, nms_threshold))
        if self.gate is not None:
            self.gate.wait(timeout=5.0)
        if self.delay:
            time.sleep(self.delay)
        return list(self.detections)


class FakeLoader:
    """Engine loader double; paths listed in `failing` raise on load."""

    def __init__(self, engine_factory=None):
        self.engine_factory = engine_factory or (lambda: FakeEngine())
        self.failing = set()
        self.loaded = []

    def __call__(self, weights_path, config_path, names_path):
        if weights_path in self.failing:
            raise RuntimeError(f"cannot load {weights_path}")
        self.loaded.append(weights_path)
        return self.engine_factory()


def make_detection(x=0.0, y=0.0, w=100.0, h=100.0, class_id=0, name="person", confidence=0.9):
    return Detection(
        class_id=class_id,
        class_name=name,
        confidence=confidence,
        bbox=BoundingBox(x=x, y=y, width=w, height=h),
    )


def make_frame(width=1920, height=1080, index=1):
    image = np.zeros((height, width, 3), dtype=np.uint8)
    return FrameData.from_numpy(image, timestamp=time.time(), frame_index=index, source="test")


@pytest.fixture
def model_files():
    """A valid (weights, config, names) byte triple."""
    return VALID_WEIGHTS, VALID_CFG, VALID_NAMES


@pytest.fixture
def builtin_bundle(tmp_path):
    """A built-in model bundle directory with its three files."""
    bundle = tmp_path / "bundle"
    bundle.mkdir()
    (bundle / "yolov4-tiny.weights").write_bytes(VALID_WEIGHTS)
    (bundle / "yolov4-tiny.cfg").write_bytes(VALID_CFG)
    (bundle / "coco.names").write_bytes(VALID_NAMES)
    return BuiltinModelConfig(bundle_dir=str(bundle))


@pytest.fixture
def repository(tmp_path, builtin_bundle):
    from storage.repository import ModelRepository

    return ModelRepository(str(tmp_path / "models"), builtin_bundle)


@pytest.fixture
def fake_loader():
    return FakeLoader()


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text("""
camera:
  backend: "opencv"
  device_id: 0
  resolution: [640, 480]
  fps: 30

detection:
  confidence_threshold: 0.25
  nms_threshold: 0.45

models:
  storage_dir: "data/models"
  preferences_path: "data/preferences.yaml"
  builtin:
    name: "yolov4-tiny-coco"
    input_width: 416
    input_height: 416

display:
  portrait: true

log_path: "logs/test.log"
log_level: "INFO"
""")

    return config_dir


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "camera": {
            "backend": "opencv",
            "device_id": 0,
            "resolution": [1920, 1080],
            "fps": 30,
        },
        "detection": {
            "confidence_threshold": 0.25,
            "nms_threshold": 0.45,
        },
        "models": {
            "storage_dir": "data/models",
            "preferences_path": "data/preferences.yaml",
        },
        "display": {
            "width": 1080,
            "height": 2280,
            "portrait": True,
        },
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }


@pytest.fixture
def gate():
    """Event used to hold a fake inference until the test releases it."""
    event = threading.Event()
    yield event
    event.set()
