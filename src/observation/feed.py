"""
CaptureFeed: delivers frames from an ObservationSource on a dedicated thread.

The feed opens the source, reports an AuthorizationState once, and then
pushes each frame to a single consumer until it is stopped or the source
runs dry. If the source cannot be opened the consumer never sees a frame.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from domain.errors import CaptureAuthorizationDenied
from models.frame import FrameData
from .base import AuthorizationState, ObservationSource

FrameConsumer = Callable[[FrameData], object]
AuthorizationCallback = Callable[[AuthorizationState], None]


class CaptureFeed:
    def __init__(
        self,
        source: ObservationSource,
        on_frame: FrameConsumer,
        on_authorization: Optional[AuthorizationCallback] = None,
    ):
        self.source = source
        self._on_frame = on_frame
        self._on_authorization = on_authorization
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._authorization: Optional[AuthorizationState] = None
        self.frames_delivered = 0

    @property
    def authorization(self) -> Optional[AuthorizationState]:
        """None until the source has been opened (or refused)."""
        return self._authorization

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="capture-feed", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 2.0) -> None:
        self._stop_event.set()
        self.join(timeout)

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout=timeout)

    def _run(self) -> None:
        try:
            self.source.open()
        except CaptureAuthorizationDenied as e:
            logging.error(f"Capture unavailable: {e}")
            self._report(AuthorizationState.DENIED)
            return

        self._report(AuthorizationState.GRANTED)
        try:
            while not self._stop_event.is_set():
                frame = self.source.read()
                if frame is None:
                    logging.info(f"Capture source {self.source.source_id} exhausted")
                    break
                try:
                    self._on_frame(frame)
                except Exception as e:
                    logging.error(f"Frame consumer error: {e}")
                self.frames_delivered += 1
        finally:
            self.source.close()

    def _report(self, state: AuthorizationState) -> None:
        self._authorization = state
        if self._on_authorization is None:
            return
        try:
            self._on_authorization(state)
        except Exception as e:
            logging.warning(f"Authorization callback error: {e}")
