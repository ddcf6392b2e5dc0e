"""
Frame scheduler: at most one inference in flight, newer frames dropped.

Frames arrive on the capture delivery thread. When the scheduler is idle a
frame is handed to a single inference worker; while that worker is busy
every further frame is dropped rather than queued, so results always come
from the freshest frame the engine could take.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Tuple

from models.detection import Detection
from models.frame import FrameData


class SchedulerState(str, Enum):
    IDLE = "idle"
    DISPATCHING = "dispatching"


@dataclass(frozen=True)
class FrameResult:
    """Detections for one processed frame, tagged with its dispatch generation."""
    frame_index: int
    detections: List[Detection]
    generation: int
    elapsed_ms: float


ProcessFn = Callable[[FrameData], List[Detection]]
ResultCallback = Callable[[FrameResult], None]


class FrameScheduler:
    """
    Single-in-flight frame dispatcher with throughput counters.

    Counters:
        raw: every frame offered via submit(), dispatched or not.
        processed: every frame whose inference completed.

    sample() reads and resets both, once per sampling window.

    Results are published only if the generation captured at dispatch is
    still current; invalidate() bumps the generation so a result computed
    under a replaced model or a stopped session is discarded.
    """

    def __init__(
        self,
        process: ProcessFn,
        on_result: Optional[ResultCallback] = None,
        executor: Optional[Executor] = None,
    ):
        self._process = process
        self._on_result = on_result
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="inference")

        self._lock = threading.Lock()
        self._idle = threading.Event()
        self._idle.set()
        self._state = SchedulerState.IDLE
        self._raw_count = 0
        self._processed_count = 0
        self._dropped_count = 0
        self._generation = 0
        self._paused = False
        self._stopped = False

    @property
    def state(self) -> SchedulerState:
        with self._lock:
            return self._state

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    @property
    def is_stopped(self) -> bool:
        with self._lock:
            return self._stopped

    @property
    def dropped_count(self) -> int:
        """Frames dropped since start (not reset by sample())."""
        with self._lock:
            return self._dropped_count

    def submit(self, frame: FrameData) -> bool:
        """
        Offer a frame.

        Returns True if the frame was dispatched to inference, False if it
        was dropped (busy, paused or stopped).
        """
        with self._lock:
            self._raw_count += 1
            if self._stopped or self._paused or self._state is SchedulerState.DISPATCHING:
                self._dropped_count += 1
                return False
            self._state = SchedulerState.DISPATCHING
            self._idle.clear()
            generation = self._generation

        try:
            self._executor.submit(self._run, frame, generation)
        except RuntimeError as e:
            # Executor already shut down.
            logging.debug(f"Frame {frame.frame_index} not dispatched: {e}")
            self._mark_idle()
            return False
        return True

    def _run(self, frame: FrameData, generation: int) -> None:
        start = time.perf_counter()
        try:
            try:
                detections = self._process(frame) or []
            except Exception as e:
                logging.warning(f"Inference failed on frame {frame.frame_index}: {e}")
                detections = []
            elapsed_ms = (time.perf_counter() - start) * 1000.0

            with self._lock:
                self._processed_count += 1
                current = generation == self._generation and not self._stopped

            if not current:
                logging.debug(f"Discarding stale result for frame {frame.frame_index}")
                return

            if self._on_result is not None:
                result = FrameResult(
                    frame_index=frame.frame_index,
                    detections=list(detections),
                    generation=generation,
                    elapsed_ms=elapsed_ms,
                )
                try:
                    self._on_result(result)
                except Exception as e:
                    logging.warning(f"Result callback error: {e}")
        finally:
            self._mark_idle()

    def _mark_idle(self) -> None:
        with self._lock:
            self._state = SchedulerState.IDLE
            self._idle.set()

    def sample(self) -> Tuple[int, int]:
        """Return (raw, processed) counts since the last sample and reset them."""
        with self._lock:
            counts = (self._raw_count, self._processed_count)
            self._raw_count = 0
            self._processed_count = 0
        return counts

    def invalidate(self) -> int:
        """Discard any in-flight result; returns the new generation."""
        with self._lock:
            self._generation += 1
            return self._generation

    def pause(self) -> None:
        """Keep counting frames but stop dispatching them."""
        with self._lock:
            self._paused = True
            self._generation += 1

    def resume(self) -> None:
        with self._lock:
            self._paused = False

    def wait_until_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until no inference is in flight."""
        return self._idle.wait(timeout)

    def stop(self, wait: bool = True) -> None:
        """Stop dispatching; an in-flight call completes but is not published."""
        with self._lock:
            if self._stopped:
                return
            self._stopped = True
            self._generation += 1
        if self._owns_executor:
            self._executor.shutdown(wait=wait)
        logging.info("Frame scheduler stopped")
