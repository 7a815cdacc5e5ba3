# emoji_fusion/live.py
"""
Live (real-time) emoji overlay session.

Wires the pipeline stages, data flowing one way per tick:
- FrameSource samples the camera every CAPTURE_INTERVAL seconds
- EmotionEstimator turns a frame into an emotion (+ face box), single-flight
- OverlayAnimator turns (emotion, face box) into an animated overlay transform

This module also provides a preview window (run_live_overlay) that draws:
- Animated emoji at eye level of the detected face
- Face rectangle, recent emotions
- Flags: MOCK (simulated estimation) / NO_FACE
"""

from __future__ import annotations

import time
import logging
import threading
from collections import deque
from typing import Deque, Optional

import cv2

from emoji_fusion.config import Settings
from emoji_fusion.camera import FrameSource
from emoji_fusion.estimator import EmotionEstimator
from emoji_fusion.animator import OverlayAnimator
from emoji_fusion.emotions import emotion_to_description, emotion_to_emoji
from emoji_fusion.errors import DeviceAccessError
from emoji_fusion.models import EstimationResult, LiveStatus, Notice
from emoji_fusion.visual import draw_overlays, draw_history

logger = logging.getLogger(__name__)

WINDOW_NAME = "Emoji Face Fusion (q to quit, s to switch camera)"


class LiveSession:
    """Owns one Frame Source -> Estimator -> Animator pipeline."""
    def __init__(self,
                 settings: Settings,
                 source: Optional[FrameSource] = None,
                 estimator: Optional[EmotionEstimator] = None,
                 animator: Optional[OverlayAnimator] = None):
        self.s = settings
        self.source = source or FrameSource(settings)
        self.estimator = estimator or EmotionEstimator(settings)
        self.animator = animator or OverlayAnimator(
            settings, frame_size=(settings.FRAME_WIDTH, settings.FRAME_HEIGHT)
        )
        self.source.subscribe(self.estimator.submit)
        self.estimator.subscribe(self._on_estimate)
        self._lock = threading.Lock()
        self._started_at: Optional[float] = None
        self.notices: Deque[Notice] = deque(maxlen=10)

    # ---- lifecycle ----
    @property
    def running(self) -> bool:
        return self.source.active

    def _notify(self, level: str, message: str) -> None:
        self.notices.append(Notice(level=level, message=message, ts=time.time()))

    def start(self) -> bool:
        """Start capture; returns False if already running. Raises DeviceAccessError."""
        with self._lock:
            if self.source.active:
                return False
            self.estimator.init()
            try:
                self.source.start()
            except DeviceAccessError:
                self._notify("error", "Couldn't access camera. Please check permissions.")
                raise
            self._started_at = time.time()
            self._notify("success", "Camera started successfully")
            logger.info(f"[live] started facing={self.source.facing}")
            return True

    def stop(self) -> bool:
        """Stop capture and hide the overlay; returns False if not running."""
        with self._lock:
            if not self.source.active:
                return False
            self.source.stop()
            self.animator.update(None)
            self._started_at = None
            self._notify("info", "Camera stopped")
            logger.info("[live] stopped")
            return True

    def switch_source(self) -> str:
        with self._lock:
            try:
                facing = self.source.switch_source()
            except DeviceAccessError:
                self.animator.update(None)
                self._started_at = None
                self._notify("error", "Couldn't access camera. Please check permissions.")
                raise
            return facing

    def close(self) -> None:
        """Teardown: release the camera, cancel the overlay clock, drop the detector."""
        self.stop()
        self.estimator.dispose()
        self.animator.dispose()

    # ---- pipeline ----
    def _on_estimate(self, result: EstimationResult) -> None:
        # a late estimation must not re-show the overlay after stop()
        if not self.source.active:
            return
        self.animator.update(
            result.emotion,
            result.face_box,
            frame_size=(result.frame_width, result.frame_height),
        )

    def status(self) -> LiveStatus:
        current = self.estimator.current if self.running else None
        emotion = current.emotion if current else None
        notices = sorted(list(self.notices) + list(self.estimator.notices), key=lambda n: n.ts)
        return LiveStatus(
            running=self.running,
            started_at=self._started_at,
            facing=self.source.facing,
            has_multiple_cameras=self.source.has_multiple_cameras,
            mode=self.estimator.mode,
            face_detected=bool(current and current.face_detected),
            emotion=emotion,
            emoji=emotion_to_emoji(emotion) if emotion else None,
            description=emotion_to_description(emotion) if emotion else None,
            history=self.estimator.history.items(),
            overlay=self.animator.transform(),
            notices=notices,
        )

    def flag(self) -> Optional[str]:
        if self.estimator.mode == "mock":
            return "MOCK"
        current = self.estimator.current
        if current is not None and not current.face_detected:
            return "NO_FACE"
        return None


# -----------------------------------------------------------------------------
# Preview window (OpenCV)
# -----------------------------------------------------------------------------
def run_live_overlay(settings: Settings,
                     camera_index: Optional[int] = None,
                     facing: Optional[str] = None) -> None:
    """
    Open the camera, run the emoji pipeline and show the overlay in a window.

    Keys:
      - q: quit
      - s: switch front/back camera (when more than one is available)
    """
    if camera_index is not None:
        settings.CAMERA_INDEX = int(camera_index)
    session = LiveSession(settings, source=FrameSource(settings, facing=facing))

    try:
        session.start()
        while True:
            frame = session.source.read()
            if frame is None:
                if not session.running:
                    break
                if (cv2.waitKey(10) & 0xFF) == ord("q"):
                    break
                continue

            current = session.estimator.current
            annotated = draw_overlays(
                frame,
                session.animator.transform(),
                face_box=current.face_box if current else None,
                flag=session.flag(),
            )
            draw_history(annotated, session.estimator.history.items())
            cv2.imshow(WINDOW_NAME, annotated)

            key = cv2.waitKey(1) & 0xFF
            if key == ord("q"):
                break
            if key == ord("s") and session.source.has_multiple_cameras:
                try:
                    session.switch_source()
                except DeviceAccessError:
                    logger.exception("[live] camera switch failed")
                    break
    finally:
        session.close()
        cv2.destroyAllWindows()
