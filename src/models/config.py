"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from .model_record import BUILTIN_MODEL_ID


@dataclass
class CameraConfig:
    """Camera configuration."""
    backend: str = "opencv"
    device_id: Union[int, str] = 0
    resolution: List[int] = field(default_factory=lambda: [1920, 1080])
    fps: int = 30
    swap_rb: bool = False
    rotate: int = 0
    flip_horizontal: bool = False
    flip_vertical: bool = False
    realtime: bool = True
    max_read_failures: int = 3

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CameraConfig":
        """Adapter: Create from config dictionary."""
        return cls(
            backend=d.get("backend", "opencv"),
            device_id=d.get("device_id", 0),
            resolution=d.get("resolution", [1920, 1080]),
            fps=d.get("fps", 30),
            swap_rb=d.get("swap_rb", False),
            rotate=d.get("rotate", 0),
            flip_horizontal=d.get("flip_horizontal", False),
            flip_vertical=d.get("flip_vertical", False),
            realtime=d.get("realtime", True),
            max_read_failures=d.get("max_read_failures", 3),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "backend": self.backend,
            "device_id": self.device_id,
            "resolution": self.resolution,
            "fps": self.fps,
            "swap_rb": self.swap_rb,
            "rotate": self.rotate,
            "flip_horizontal": self.flip_horizontal,
            "flip_vertical": self.flip_vertical,
            "realtime": self.realtime,
            "max_read_failures": self.max_read_failures,
        }


@dataclass
class DetectionConfig:
    """Detection thresholds applied to every inference call."""
    confidence_threshold: float = 0.25
    nms_threshold: float = 0.45

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DetectionConfig":
        return cls(
            confidence_threshold=d.get("confidence_threshold", 0.25),
            nms_threshold=d.get("nms_threshold", 0.45),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "confidence_threshold": self.confidence_threshold,
            "nms_threshold": self.nms_threshold,
        }


@dataclass
class BuiltinModelConfig:
    """Where the bundled default model lives and what it declares."""
    name: str = "yolov4-tiny-coco"
    bundle_dir: str = "assets/yolov4-tiny-coco"
    weights_file: str = "yolov4-tiny.weights"
    config_file: str = "yolov4-tiny.cfg"
    names_file: str = "coco.names"
    input_width: int = 416
    input_height: int = 416
    class_count: int = 80

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "BuiltinModelConfig":
        return cls(
            name=d.get("name", "yolov4-tiny-coco"),
            bundle_dir=d.get("bundle_dir", "assets/yolov4-tiny-coco"),
            weights_file=d.get("weights_file", "yolov4-tiny.weights"),
            config_file=d.get("config_file", "yolov4-tiny.cfg"),
            names_file=d.get("names_file", "coco.names"),
            input_width=d.get("input_width", 416),
            input_height=d.get("input_height", 416),
            class_count=d.get("class_count", 80),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "bundle_dir": self.bundle_dir,
            "weights_file": self.weights_file,
            "config_file": self.config_file,
            "names_file": self.names_file,
            "input_width": self.input_width,
            "input_height": self.input_height,
            "class_count": self.class_count,
        }


@dataclass
class ModelsConfig:
    """Model storage configuration."""
    storage_dir: str = "data/models"
    preferences_path: str = "data/preferences.yaml"
    builtin: BuiltinModelConfig = field(default_factory=BuiltinModelConfig)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ModelsConfig":
        return cls(
            storage_dir=d.get("storage_dir", "data/models"),
            preferences_path=d.get("preferences_path", "data/preferences.yaml"),
            builtin=BuiltinModelConfig.from_dict(d.get("builtin", {}) or {}),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "storage_dir": self.storage_dir,
            "preferences_path": self.preferences_path,
            "builtin": self.builtin.to_dict(),
        }


@dataclass
class DisplayConfig:
    """Display surface the overlay is rendered into."""
    width: Optional[int] = None
    height: Optional[int] = None
    portrait: bool = True

    @property
    def size(self) -> Optional[Tuple[int, int]]:
        if self.width and self.height:
            return (self.width, self.height)
        return None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DisplayConfig":
        return cls(
            width=d.get("width"),
            height=d.get("height"),
            portrait=d.get("portrait", True),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"width": self.width, "height": self.height, "portrait": self.portrait}


@dataclass
class WebConfig:
    """HTTP API configuration."""
    host: str = "0.0.0.0"
    port: int = 5000

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "WebConfig":
        return cls(host=d.get("host", "0.0.0.0"), port=d.get("port", 5000))

    def to_dict(self) -> Dict[str, Any]:
        return {"host": self.host, "port": self.port}


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    camera: CameraConfig = field(default_factory=CameraConfig)
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    models: ModelsConfig = field(default_factory=ModelsConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)
    web: WebConfig = field(default_factory=WebConfig)
    log_path: str = "logs/live_detector.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        return cls(
            camera=CameraConfig.from_dict(d.get("camera", {}) or {}),
            detection=DetectionConfig.from_dict(d.get("detection", {}) or {}),
            models=ModelsConfig.from_dict(d.get("models", {}) or {}),
            display=DisplayConfig.from_dict(d.get("display", {}) or {}),
            web=WebConfig.from_dict(d.get("web", {}) or {}),
            log_path=d.get("log_path", "logs/live_detector.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to dictionary."""
        return {
            "camera": self.camera.to_dict(),
            "detection": self.detection.to_dict(),
            "models": self.models.to_dict(),
            "display": self.display.to_dict(),
            "web": self.web.to_dict(),
            "log_path": self.log_path,
            "log_level": self.log_level,
        }


@dataclass
class SessionConfig:
    """
    Explicit session state handed to the SessionController.

    Attributes:
        selected_model_id: Model to load at start; updated on every switch.
        confidence_threshold: Minimum score kept by the engine (0-1).
        nms_threshold: Non-maximum suppression IoU threshold (0-1).
        portrait_display: Treat landscape frames as rotated into portrait.
        display_size: (width, height) of the overlay surface; None publishes
            detections in oriented frame coordinates.
        stats_interval: Seconds per sampling window.
    """
    selected_model_id: uuid.UUID = BUILTIN_MODEL_ID
    confidence_threshold: float = 0.25
    nms_threshold: float = 0.45
    portrait_display: bool = True
    display_size: Optional[Tuple[int, int]] = None
    stats_interval: float = 1.0

    @classmethod
    def from_config(cls, config: Config, selected_model_id: uuid.UUID = BUILTIN_MODEL_ID) -> "SessionConfig":
        return cls(
            selected_model_id=selected_model_id,
            confidence_threshold=config.detection.confidence_threshold,
            nms_threshold=config.detection.nms_threshold,
            portrait_display=config.display.portrait,
            display_size=config.display.size,
        )
