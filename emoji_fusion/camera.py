"""
Camera frame source.

Owns the cv2.VideoCapture handle and samples it on a fixed interval, handing each
frame to the registered consumers. Nothing is buffered: a tick produces one frame,
consumers see it once, and the next tick replaces it.
"""
from __future__ import annotations

import os
import time
import logging
import threading
from typing import Callable, List, Optional

import cv2
import numpy as np

from emoji_fusion.config import Settings
from emoji_fusion.errors import (
    DeviceAccessError, CameraPermissionError, CameraNotFoundError, CaptureError,
)

logger = logging.getLogger(__name__)

FrameConsumer = Callable[[np.ndarray], object]


def _access_error(index: int) -> DeviceAccessError:
    node = f"/dev/video{index}"
    if os.path.exists(node) and not os.access(node, os.R_OK):
        return CameraPermissionError(f"Permission denied for camera index {index}", index=index)
    return CameraNotFoundError(f"Could not open camera index {index}", index=index)


def list_video_devices(max_probe: int, exclude: tuple[int, ...] = ()) -> list[int]:
    """Probe camera indices 0..max_probe-1 and return the ones that open."""
    found: list[int] = []
    for idx in range(max(0, int(max_probe))):
        if idx in exclude:
            continue
        cap = cv2.VideoCapture(idx)
        try:
            if cap.isOpened():
                found.append(idx)
        finally:
            cap.release()
    return found


class FrameSource:
    """Periodic camera sampler with start/stop/switch lifecycle."""
    def __init__(self, settings: Settings, facing: Optional[str] = None):
        self.s = settings
        self.facing = facing or settings.FACING
        self.has_multiple_cameras = False
        self._cap = None
        self._cap_lock = threading.Lock()
        self._consumers: List[FrameConsumer] = []
        self._stop_evt = threading.Event()
        self._thread: Optional[threading.Thread] = None

    # ---- state ----
    @property
    def active(self) -> bool:
        return self._cap is not None

    @property
    def active_tracks(self) -> int:
        return 1 if self._cap is not None else 0

    def device_index(self, facing: Optional[str] = None) -> int:
        facing = facing or self.facing
        return self.s.CAMERA_ENV_INDEX if facing == "environment" else self.s.CAMERA_INDEX

    def subscribe(self, consumer: FrameConsumer) -> None:
        self._consumers.append(consumer)

    # ---- lifecycle ----
    def start(self) -> None:
        if self._cap is not None:
            return
        idx = self.device_index()
        logger.debug(f"[camera] opening index={idx} facing={self.facing}")
        cap = cv2.VideoCapture(idx)
        if not cap.isOpened():
            cap.release()
            err = _access_error(idx)
            logger.error(f"[camera] {err}")
            raise err
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.s.FRAME_WIDTH)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.s.FRAME_HEIGHT)

        others = list_video_devices(self.s.MAX_CAMERA_PROBE, exclude=(idx,))
        self.has_multiple_cameras = len(others) > 0

        with self._cap_lock:
            self._cap = cap
        self._stop_evt = threading.Event()
        self._thread = threading.Thread(
            target=self._capture_loop, args=(self._stop_evt,), daemon=True, name="frame-source"
        )
        self._thread.start()
        logger.debug(f"[camera] started index={idx} multiple={self.has_multiple_cameras}")

    def stop(self) -> None:
        """Cancel the capture timer and release the device. Safe to call at any time."""
        self._stop_evt.set()
        t, self._thread = self._thread, None
        if t is not None and t is not threading.current_thread():
            t.join(timeout=max(1.0, self.s.CAPTURE_INTERVAL * 5))
        # waits for an in-flight read before releasing
        with self._cap_lock:
            cap, self._cap = self._cap, None
            if cap is not None:
                cap.release()
                logger.debug("[camera] released")

    def switch_source(self) -> str:
        """Toggle user/environment facing; restarts the stream when active."""
        new_facing = "environment" if self.facing == "user" else "user"
        was_active = self.active
        self.facing = new_facing
        if was_active:
            self.stop()
            time.sleep(self.s.SWITCH_DELAY)
            self.start()
        logger.debug(f"[camera] switched facing={new_facing} restarted={was_active}")
        return new_facing

    # ---- frames ----
    def _grab(self) -> Optional[np.ndarray]:
        with self._cap_lock:
            if self._cap is None:
                return None
            try:
                ok, frame = self._cap.read()
            except cv2.error as e:
                raise CaptureError(f"camera read failed: {e}") from e
        if not ok or frame is None:
            # device has no data yet
            return None
        if frame.ndim < 2 or frame.shape[0] == 0 or frame.shape[1] == 0:
            raise CaptureError(f"zero-dimension frame shape={frame.shape}")
        return frame

    def read(self) -> Optional[np.ndarray]:
        """Grab the current frame without emitting it; None if there is nothing to grab."""
        try:
            return self._grab()
        except CaptureError as e:
            logger.debug(f"[camera] skipping frame: {e}")
            return None

    def capture(self) -> Optional[np.ndarray]:
        """Sample one frame and hand it to every consumer."""
        frame = self.read()
        if frame is None:
            return None
        for consumer in list(self._consumers):
            consumer(frame)
        return frame

    def _capture_loop(self, stop_evt: threading.Event) -> None:
        while not stop_evt.wait(self.s.CAPTURE_INTERVAL):
            try:
                self.capture()
            except Exception:
                logger.exception("[camera] capture tick failed; skipping")
