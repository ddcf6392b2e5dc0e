"""
Main application: live object detection with swappable Darknet models.

This script opens the camera, runs the selected detector on the newest
frame whenever the previous inference has finished, and renders the
detections in a display window and/or serves them over the web API.

Usage:
    python src/main.py --config config/config.yaml --display
    python src/main.py --config config/config.yaml --image photo.jpg --output out.jpg

Arguments:
    --config: Path to configuration file
    --display: Enable the overlay window
    --web: Serve the REST API
    --image/--output: Detect on a single still image and write the annotated copy
"""

import os
import sys
import argparse
import logging
import threading
import time
import yaml
import cv2
from typing import Dict, Any, Optional, Tuple

from models.config import Config, SessionConfig
from models.frame import FrameData
from observation import AuthorizationState, CaptureFeed, create_source_from_config
from ops.logging import setup_logging
from pipeline.overlay import draw_detections, draw_stats, letterbox
from pipeline.session import SessionController
from storage.preferences import SelectionStore, YamlFileStore
from storage.repository import ModelRepository
from web.app import create_app
import uvicorn


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base and return base."""
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration with layering:
    - `config/default.yaml` (checked in)
    - `config/config.yaml` (local overrides)
    - plus any explicitly provided `--config` path (treated as overrides)
    """
    try:
        base_path = os.path.join(os.path.dirname(config_path), "default.yaml")
        base_cfg: Dict[str, Any] = {}
        if os.path.exists(base_path):
            with open(base_path, "r") as f:
                base_cfg = yaml.safe_load(f) or {}

        local_overrides_path = os.path.join(os.path.dirname(config_path), "config.yaml")
        local_cfg: Dict[str, Any] = {}
        if os.path.exists(local_overrides_path):
            with open(local_overrides_path, "r") as f:
                local_cfg = yaml.safe_load(f) or {}

        merged = _deep_merge(base_cfg, local_cfg)

        # Finally apply explicit config_path if it's not the local override file itself
        if os.path.exists(config_path) and os.path.abspath(config_path) != os.path.abspath(local_overrides_path):
            with open(config_path, "r") as f:
                explicit_cfg = yaml.safe_load(f) or {}
            merged = _deep_merge(merged, explicit_cfg)

        return merged
    except (OSError, yaml.YAMLError) as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)


def _is_unit_interval(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and 0 <= value <= 1


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration file structure and values.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    # Required top-level sections
    required_sections = ['camera', 'detection', 'models', 'log_path', 'log_level']
    for section in required_sections:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    # Validate camera settings
    camera = config.get('camera', {})
    if 'device_id' not in camera:
        return False, "Missing camera.device_id"
    if not isinstance(camera['device_id'], (int, str)):
        return False, "camera.device_id must be an integer (index) or string (path/URL)"
    if isinstance(camera['device_id'], int) and camera['device_id'] < 0:
        return False, "camera.device_id integer must be non-negative"

    if 'resolution' not in camera:
        return False, "Missing camera.resolution"
    if not isinstance(camera['resolution'], list) or len(camera['resolution']) != 2:
        return False, "camera.resolution must be a list of [width, height]"
    if not all(isinstance(x, int) and x > 0 for x in camera['resolution']):
        return False, "camera.resolution values must be positive integers"

    if 'fps' in camera and (not isinstance(camera['fps'], int) or camera['fps'] <= 0):
        return False, "camera.fps must be a positive integer"

    backend = camera.get('backend', 'opencv')
    if backend != 'opencv':
        return False, "camera.backend must be: opencv"

    if camera.get('rotate', 0) not in (0, 90, 180, 270, None):
        return False, "camera.rotate must be one of: 0, 90, 180, 270"

    failures = camera.get('max_read_failures', 3)
    if not isinstance(failures, int) or isinstance(failures, bool) or failures < 0:
        return False, "camera.max_read_failures must be a non-negative integer"

    # Validate detection thresholds
    detection = config.get('detection', {}) or {}
    for key in ('confidence_threshold', 'nms_threshold'):
        if key in detection and not _is_unit_interval(detection[key]):
            return False, f"detection.{key} must be between 0 and 1"

    # Validate model storage
    models = config.get('models', {}) or {}
    if 'storage_dir' not in models:
        return False, "Missing models.storage_dir"
    if not isinstance(models['storage_dir'], str):
        return False, "models.storage_dir must be a string"
    if 'preferences_path' in models and not isinstance(models['preferences_path'], str):
        return False, "models.preferences_path must be a string"

    # Optional display surface
    display = config.get('display', {}) or {}
    for key in ('width', 'height'):
        value = display.get(key)
        if value is not None and (not isinstance(value, int) or value <= 0):
            return False, f"display.{key} must be a positive integer"

    # Optional web server
    web = config.get('web', {}) or {}
    if 'port' in web and (not isinstance(web['port'], int) or not 0 < web['port'] < 65536):
        return False, "web.port must be a valid TCP port"

    # Validate log settings
    valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
    if config['log_level'] not in valid_log_levels:
        return False, f"log_level must be one of: {', '.join(valid_log_levels)}"

    return True, None


def build_session(cfg: Config) -> Tuple[ModelRepository, SessionController]:
    """Wire repository, persisted selection and session from a typed config."""
    repository = ModelRepository(cfg.models.storage_dir, cfg.models.builtin)
    for issue in repository.find_inconsistencies():
        logging.warning(f"Model storage: {issue}")

    selection_store = SelectionStore(YamlFileStore(cfg.models.preferences_path))
    session = SessionController(
        repository,
        SessionConfig.from_config(cfg, selection_store.load()),
        selection_store=selection_store,
    )
    return repository, session


def run_still(session: SessionController, image_path: str, output_path: str) -> int:
    """Detect on one image and write the annotated copy; returns the detection count."""
    image = cv2.imread(image_path)
    if image is None:
        raise FileNotFoundError(f"Could not read image: {image_path}")

    detections = session.detect_still(image)
    for det in detections:
        logging.info(f"{det.label} at {det.bbox.as_int_xyxy()}")

    draw_detections(image, detections)
    if not cv2.imwrite(output_path, image):
        raise OSError(f"Could not write image: {output_path}")
    logging.info(f"Wrote {len(detections)} detections to {output_path}")
    return len(detections)


class LatestFrame:
    """Keeps the newest captured frame for the display loop."""

    def __init__(self):
        self._lock = threading.Lock()
        self._frame: Optional[FrameData] = None

    def put(self, frame: FrameData) -> None:
        with self._lock:
            self._frame = frame

    def get(self) -> Optional[FrameData]:
        with self._lock:
            return self._frame


def main():
    """Main application function."""
    # Parse command-line arguments
    parser = argparse.ArgumentParser(description='Live Detector')
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to configuration file')
    parser.add_argument('--display', action='store_true',
                        help='Enable overlay window')
    parser.add_argument('--web', action='store_true',
                        help='Serve the REST API')
    parser.add_argument('--image', type=str, default=None,
                        help='Run a single detection on this image instead of the camera')
    parser.add_argument('--output', type=str, default='output/detections.jpg',
                        help='Where --image writes the annotated result')
    args = parser.parse_args()

    # Load configuration
    config = load_config(args.config)

    # Validate configuration
    is_valid, error_msg = validate_config(config)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        sys.exit(1)

    # Setup logging
    setup_logging(config['log_path'], config['log_level'])
    cfg = Config.from_dict(config)

    logging.info("Starting Live Detector")

    repository, session = build_session(cfg)
    session.start()

    if args.image:
        try:
            output_dir = os.path.dirname(args.output)
            if output_dir and not os.path.exists(output_dir):
                os.makedirs(output_dir)
            run_still(session, args.image, args.output)
        finally:
            session.stop()
        return

    if args.web:
        def run_web_app():
            uvicorn.run(
                create_app(session, repository),
                host=cfg.web.host,
                port=cfg.web.port,
                log_level="info",
            )

        web_thread = threading.Thread(target=run_web_app, daemon=True)
        web_thread.start()
        logging.info(f"Web interface started on port {cfg.web.port}")

    latest = LatestFrame()

    def on_frame(frame: FrameData) -> None:
        latest.put(frame)
        session.on_frame(frame)

    def on_authorization(state: AuthorizationState) -> None:
        if state is AuthorizationState.DENIED:
            logging.error("Camera access denied; no frames will be processed")
        else:
            logging.info("Camera access granted")

    feed = CaptureFeed(create_source_from_config(config['camera']), on_frame, on_authorization)
    feed.start()

    try:
        while feed.is_running or args.web:
            if not args.display:
                time.sleep(0.5)
                continue

            frame = latest.get()
            if frame is None:
                time.sleep(0.01)
                continue

            image = frame.oriented(cfg.display.portrait)
            if cfg.display.size is not None:
                image = letterbox(image, *cfg.display.size)
            else:
                image = image.copy()

            update = session.snapshot()
            draw_detections(image, update.detections)
            draw_stats(image, update.stats, update.model_name)

            cv2.imshow('Live Detector', image)
            key = cv2.waitKey(1) & 0xFF
            if key == ord('q'):
                break

    except KeyboardInterrupt:
        logging.info("Interrupted by user")
    finally:
        feed.stop()
        session.stop()
        if args.display:
            cv2.destroyAllWindows()

        logging.info("Live Detector stopped")


if __name__ == "__main__":
    main()
