"""
SessionController: owns the active model and the frame scheduler.

The controller reacts to two inputs (threshold changes and model selection
changes) and publishes three outputs: the display-space detection list,
pipeline statistics, and the active model's name.

Example:
    session = SessionController(repository, SessionConfig(), selection_store=store)
    session.add_listener(lambda update: print(update.stats))
    session.start()
    feed = CaptureFeed(source, session.on_frame)
    feed.start()
"""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple, Union

import numpy as np

from domain.errors import EngineLoadError, MissingFiles, ModelLoadFailed, UnknownModel
from domain.events import ModelEvent, ModelEventKind
from inference.adapter import InferenceAdapter
from inference.backend import EngineLoader
from models.config import SessionConfig
from models.detection import Detection
from models.frame import FrameData
from models.model_record import BUILTIN_MODEL_ID, ModelRecord
from models.stats import PipelineStats
from storage.preferences import SelectionStore
from storage.repository import ModelRepository
from .geometry import map_detections, oriented_size
from .scheduler import FrameResult, FrameScheduler

NO_MODEL_NAME = "No Model"


@dataclass(frozen=True)
class SessionUpdate:
    """Snapshot handed to listeners whenever detections or stats change."""
    detections: Tuple[Detection, ...]
    stats: PipelineStats
    model_name: str
    video_size: Optional[Tuple[int, int]]


SessionListener = Callable[[SessionUpdate], None]


class SessionController:
    def __init__(
        self,
        repository: ModelRepository,
        config: Optional[SessionConfig] = None,
        engine_loader: Optional[EngineLoader] = None,
        selection_store: Optional[SelectionStore] = None,
    ):
        self.repository = repository
        self.config = config or SessionConfig()
        self._engine_loader = engine_loader
        self._selection_store = selection_store

        self._lock = threading.RLock()
        self._switch_lock = threading.Lock()
        self._adapter: Optional[InferenceAdapter] = None
        self._detections: List[Detection] = []
        self._video_size: Optional[Tuple[int, int]] = None
        self._stats = PipelineStats()
        self._detecting = True
        self._listeners: List[SessionListener] = []

        self._scheduler = FrameScheduler(self._run_inference, self._on_result)
        self._stop_event = threading.Event()
        self._ticker: Optional[threading.Thread] = None

        repository.set_listener(self._on_model_event)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start(self) -> None:
        """
        Load the selected model (falling back to the built-in) and start sampling.

        A stopped session can be started again; it gets a fresh scheduler.
        """
        if self._adapter is None:
            self._load_initial()

        if self._scheduler.is_stopped:
            self._scheduler = FrameScheduler(self._run_inference, self._on_result)

        if self._ticker is None:
            self._stop_event.clear()
            self._ticker = threading.Thread(target=self._tick_loop, name="stats-ticker", daemon=True)
            self._ticker.start()
        logging.info(f"Session started with model '{self.model_name}'")

    def stop(self) -> None:
        self._stop_event.set()
        self._scheduler.stop()
        if self._ticker is not None:
            self._ticker.join(timeout=2.0)
            self._ticker = None
        with self._lock:
            self._detections = []
        logging.info("Session stopped")

    def _load_initial(self) -> None:
        record = self._lookup_or_builtin(self.config.selected_model_id)
        try:
            adapter = self._build_adapter(record)
        except ModelLoadFailed as e:
            if record.is_builtin:
                raise
            logging.error(f"{e}; falling back to built-in model")
            adapter = self._build_adapter(self.repository.builtin())
        self._install(adapter)

    # -------------------------------------------------------------------------
    # Inputs
    # -------------------------------------------------------------------------

    def on_frame(self, frame: FrameData) -> bool:
        """Capture callback; returns True if the frame went to inference."""
        return self._scheduler.submit(frame)

    def thresholds_changed(self, confidence: float, nms: float) -> None:
        """Apply new thresholds from the next inference call onward."""
        for label, value in (("confidence", confidence), ("nms", nms)):
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{label} threshold must be between 0 and 1, got {value}")
        with self._lock:
            self.config.confidence_threshold = float(confidence)
            self.config.nms_threshold = float(nms)
        logging.debug(f"Thresholds updated: confidence={confidence}, nms={nms}")

    def model_selection_changed(self, model_id: Union[uuid.UUID, str]) -> ModelRecord:
        """
        Switch to another model.

        Unknown ids fall back to the built-in model. If the new model cannot
        be loaded the previous one keeps running.

        Raises:
            ModelLoadFailed: The model's files are missing or the engine failed.
        """
        with self._switch_lock:
            record = self._lookup_or_builtin(model_id)
            adapter = self._build_adapter(record)
            self._install(adapter)
        self._publish()
        return record

    def set_detecting(self, detecting: bool) -> None:
        """Pause or resume inference; pausing clears the published detections."""
        with self._lock:
            self._detecting = detecting
            if detecting:
                self._scheduler.resume()
            else:
                self._scheduler.pause()
                self._detections = []
        self._publish()

    def set_display_size(self, width: int, height: int) -> None:
        with self._lock:
            self.config.display_size = (int(width), int(height)) if width and height else None

    def detect_still(self, image: np.ndarray) -> List[Detection]:
        """Run the active model on a still image, in the image's own pixel space."""
        with self._lock:
            adapter = self._adapter
            conf, nms = self.config.confidence_threshold, self.config.nms_threshold
        if adapter is None:
            return []
        return adapter.detect(image, conf, nms)

    # -------------------------------------------------------------------------
    # Outputs
    # -------------------------------------------------------------------------

    def add_listener(self, listener: SessionListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: SessionListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def detections(self) -> List[Detection]:
        with self._lock:
            return list(self._detections)

    @property
    def stats(self) -> PipelineStats:
        with self._lock:
            return self._stats

    @property
    def model_name(self) -> str:
        with self._lock:
            return self._adapter.model_name if self._adapter else NO_MODEL_NAME

    @property
    def current_model(self) -> Optional[ModelRecord]:
        with self._lock:
            return self._adapter.model if self._adapter else None

    @property
    def video_size(self) -> Optional[Tuple[int, int]]:
        with self._lock:
            return self._video_size

    @property
    def is_detecting(self) -> bool:
        with self._lock:
            return self._detecting

    @property
    def scheduler(self) -> FrameScheduler:
        return self._scheduler

    def snapshot(self) -> SessionUpdate:
        with self._lock:
            return SessionUpdate(
                detections=tuple(self._detections),
                stats=self._stats,
                model_name=self._adapter.model_name if self._adapter else NO_MODEL_NAME,
                video_size=self._video_size,
            )

    def tick(self) -> PipelineStats:
        """Close one sampling window and recompute the published stats."""
        raw, processed = self._scheduler.sample()
        interval = self.config.stats_interval or 1.0
        with self._lock:
            if not self._detecting:
                return self._stats
            self._stats = PipelineStats(
                detection_fps=processed / interval,
                capture_fps=raw / interval,
                inference_ms=self._adapter.last_inference_latency if self._adapter else 0.0,
                detection_count=len(self._detections),
                model_name=self._adapter.model_name if self._adapter else NO_MODEL_NAME,
            )
            stats = self._stats
        self._publish()
        return stats

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _tick_loop(self) -> None:
        while not self._stop_event.wait(self.config.stats_interval):
            self.tick()

    def _lookup_or_builtin(self, model_id: Union[uuid.UUID, str]) -> ModelRecord:
        try:
            return self.repository.get(model_id)
        except UnknownModel:
            logging.warning(f"Model {model_id} not found, falling back to built-in model")
            return self.repository.builtin()

    def _build_adapter(self, record: ModelRecord) -> InferenceAdapter:
        try:
            paths = self.repository.resolve_paths(record)
            return InferenceAdapter.load(record, paths, self._engine_loader)
        except (MissingFiles, EngineLoadError) as e:
            raise ModelLoadFailed(f"Could not load model '{record.display_name}': {e}") from e

    def _install(self, adapter: InferenceAdapter) -> None:
        with self._lock:
            self._adapter = adapter
            self._scheduler.invalidate()
            self._detections = []
            self.config.selected_model_id = adapter.model.id
        if self._selection_store is not None:
            self._selection_store.save(adapter.model.id)
        logging.info(f"Model loaded: {adapter.model_name} ({adapter.model.input_size_description})")

    def _run_inference(self, frame: FrameData) -> List[Detection]:
        with self._lock:
            adapter = self._adapter
            conf, nms = self.config.confidence_threshold, self.config.nms_threshold
            portrait = self.config.portrait_display
            display_size = self.config.display_size
        if adapter is None:
            return []

        source_size = oriented_size(frame.width, frame.height, portrait)
        with self._lock:
            self._video_size = source_size

        detections = adapter.detect(frame.oriented(portrait), conf, nms)
        if display_size is not None:
            detections = map_detections(detections, source_size, display_size)
        return detections

    def _on_result(self, result: FrameResult) -> None:
        with self._lock:
            if result.generation != self._scheduler.generation or not self._detecting:
                return
            self._detections = list(result.detections)
        self._publish()

    def _publish(self) -> None:
        if not self._listeners:
            return
        update = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(update)
            except Exception as e:
                logging.warning(f"Session listener error: {e}")

    def _on_model_event(self, event: ModelEvent) -> None:
        if event.kind is not ModelEventKind.DELETED:
            return
        with self._lock:
            active = self._adapter.model.id if self._adapter else None
            was_selected = self.config.selected_model_id == event.model_id
            if was_selected:
                self.config.selected_model_id = BUILTIN_MODEL_ID
        if active != event.model_id:
            if was_selected and self._selection_store is not None:
                self._selection_store.save(BUILTIN_MODEL_ID)
            return

        logging.info("Active model was deleted, switching to built-in model")
        try:
            self.model_selection_changed(BUILTIN_MODEL_ID)
        except ModelLoadFailed as e:
            logging.error(f"Built-in model unavailable after delete: {e}")
