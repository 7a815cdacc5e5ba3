"""
Emotion estimation from camera frames.

Two modes:
- model: DeepFace face detection, then a geometric heuristic over the face box
- mock:  uniform random label (no detector, or the detector failed to load)

The geometry heuristic is a placeholder for demo purposes, not a validated classifier;
its thresholds live in Settings and are illustrative defaults.
"""
from __future__ import annotations

import math
import time
import random
import logging
import threading
from collections import deque
from typing import Callable, Deque, List, Optional

import numpy as np

from emoji_fusion.config import Settings
from emoji_fusion.detector import FaceDetector, load_detector
from emoji_fusion.emotions import Emotion, EmotionHistory, mock_detect_emotion
from emoji_fusion.errors import ModelLoadError
from emoji_fusion.models import DetectedFace, EstimationResult, Notice

logger = logging.getLogger(__name__)

EstimateCallback = Callable[[EstimationResult], None]

# residual draw for boxes the geometry rules don't decide
RESIDUAL_EMOTIONS = ((0.3, Emotion.NEUTRAL), (0.6, Emotion.SAD), (1.0, Emotion.DISGUST))


def _eye_tilt_degrees(face: DetectedFace) -> Optional[float]:
    le = face.keypoints.get("left_eye")
    re = face.keypoints.get("right_eye")
    if le is None or re is None:
        return None
    dx = re[0] - le[0]
    dy = re[1] - le[1]
    if dx == 0 and dy == 0:
        return None
    angle = math.degrees(math.atan2(dy, dx))
    # eye order differs between backends; fold into [-90, 90]
    if angle > 90:
        angle -= 180
    elif angle < -90:
        angle += 180
    return angle


def classify_face_geometry(face: DetectedFace,
                           frame_w: int,
                           frame_h: int,
                           rng: random.Random,
                           settings: Settings) -> Emotion:
    """
    Map face box geometry to an emotion label.

    aspect = w/h, area = box area / frame area:
      aspect > HAPPY_ASPECT      -> happy
      aspect < SURPRISED_ASPECT  -> surprised
      area   < FEAR_AREA         -> fear
      area   > ANGRY_AREA        -> angry
      strong eye-line tilt       -> surprised (only when eye keypoints exist)
      otherwise                  -> random neutral/sad/disgust (30/30/40)
    """
    b = face.box
    if b.height <= 0 or frame_w <= 0 or frame_h <= 0:
        return Emotion.NEUTRAL
    aspect = b.width / b.height
    area_ratio = b.area / float(frame_w * frame_h)

    if aspect > settings.HAPPY_ASPECT:
        return Emotion.HAPPY
    if aspect < settings.SURPRISED_ASPECT:
        return Emotion.SURPRISED
    if area_ratio < settings.FEAR_AREA:
        return Emotion.FEAR
    if area_ratio > settings.ANGRY_AREA:
        return Emotion.ANGRY

    tilt = _eye_tilt_degrees(face)
    if tilt is not None and abs(tilt) > settings.TILT_DEGREES:
        return Emotion.SURPRISED

    r = rng.random()
    for bound, emotion in RESIDUAL_EMOTIONS:
        if r < bound:
            return emotion
    return Emotion.DISGUST


class EmotionEstimator:
    """Single-flight frame -> emotion stage. Frames arriving mid-estimation are dropped."""
    def __init__(self,
                 settings: Settings,
                 loader: Callable[[Settings], FaceDetector] = load_detector,
                 rng: Optional[random.Random] = None):
        self.s = settings
        self._loader = loader
        self._rng = rng or random.Random()
        self._detector: Optional[FaceDetector] = None
        self._use_mock = True
        self._load_thread: Optional[threading.Thread] = None
        self._busy = threading.Lock()
        self._submit_lock = threading.Lock()
        self._worker: Optional[threading.Thread] = None
        self._subscribers: List[EstimateCallback] = []
        self._failures = 0
        self._disposed = False

        self.history = EmotionHistory(settings.HISTORY_SIZE)
        self.current: Optional[EstimationResult] = None
        self.notices: Deque[Notice] = deque(maxlen=10)

    # ---- state ----
    @property
    def mode(self) -> str:
        return "mock" if (self._use_mock or self._detector is None) else "model"

    @property
    def model_loaded(self) -> bool:
        return self._detector is not None

    @property
    def face_detected(self) -> bool:
        return bool(self.current and self.current.face_detected)

    @property
    def busy(self) -> bool:
        return self._busy.locked()

    def subscribe(self, callback: EstimateCallback) -> None:
        self._subscribers.append(callback)

    def _notify(self, level: str, message: str) -> None:
        self.notices.append(Notice(level=level, message=message, ts=time.time()))

    # ---- lifecycle ----
    def init(self, wait: bool = False) -> None:
        """Start the one-time detector load in the background."""
        if self._load_thread is None:
            self._load_thread = threading.Thread(target=self._load, daemon=True, name="detector-load")
            self._load_thread.start()
        if wait:
            self._load_thread.join()

    def _load(self) -> None:
        try:
            detector = self._loader(self.s)
        except ModelLoadError as e:
            logger.warning(f"[estimator] detector unavailable, using mock estimation: {e}")
            self._notify("warning", "Couldn't load face detection model. Using simulated detection instead.")
            return
        except Exception:
            logger.exception("[estimator] detector load failed; using mock estimation")
            self._notify("warning", "Couldn't load face detection model. Using simulated detection instead.")
            return
        if self._disposed:
            return
        self._detector = detector
        self._use_mock = False
        logger.info("[estimator] face detection model loaded")
        self._notify("success", "Face detection model loaded successfully!")

    def dispose(self) -> None:
        self._disposed = True
        w = self._worker
        if w is not None and w is not threading.current_thread():
            w.join(timeout=2.0)
        self._subscribers.clear()
        self._detector = None
        self._use_mock = True

    # ---- frames ----
    def submit(self, frame: np.ndarray) -> bool:
        """Estimate on a background worker if idle; otherwise drop the frame."""
        if self._disposed:
            return False
        with self._submit_lock:
            if self._busy.locked() or (self._worker is not None and self._worker.is_alive()):
                logger.debug("[estimator] busy; dropping frame")
                return False
            self._worker = threading.Thread(
                target=self.process_frame, args=(frame,), daemon=True, name="estimator"
            )
            self._worker.start()
        return True

    def process_frame(self, frame: Optional[np.ndarray]) -> Optional[EstimationResult]:
        """
        Estimate one frame. Returns None when the frame is dropped (estimation in
        flight) or unusable. Never raises.
        """
        if not self._busy.acquire(blocking=False):
            logger.debug("[estimator] estimation in flight; dropping frame")
            return None
        try:
            if frame is None or getattr(frame, "size", 0) == 0 or frame.ndim < 2:
                return None
            result = self._estimate(frame)
            self.history.push(result.emotion)
            self.current = result
            self._emit(result)
            return result
        except Exception:
            logger.exception("[estimator] frame processing failed")
            return None
        finally:
            self._busy.release()

    def _estimate(self, frame: np.ndarray) -> EstimationResult:
        H, W = frame.shape[:2]
        ts = time.time()
        detector = self._detector
        if self._use_mock or detector is None:
            return EstimationResult(emotion=mock_detect_emotion(self._rng), mode="mock",
                                    frame_width=W, frame_height=H, ts=ts)
        try:
            faces = detector.detect(frame)
        except Exception:
            self._failures += 1
            logger.exception(f"[estimator] detection failed ({self._failures}/{self.s.MAX_DETECTION_FAILURES}); mock output for this tick")
            if self._failures >= self.s.MAX_DETECTION_FAILURES:
                self._use_mock = True
                self._notify("warning", "Face detection keeps failing. Using simulated detection instead.")
            return EstimationResult(emotion=mock_detect_emotion(self._rng), mode="mock",
                                    frame_width=W, frame_height=H, ts=ts)

        self._failures = 0
        if not faces:
            logger.debug("[estimator] no face; simulated emotion")
            return EstimationResult(emotion=mock_detect_emotion(self._rng), mode="model",
                                    frame_width=W, frame_height=H, ts=ts)

        face = faces[0]
        emotion = classify_face_geometry(face, W, H, self._rng, self.s)
        logger.debug(f"[estimator] face={face.box} -> {emotion.value}")
        return EstimationResult(emotion=emotion, face_box=face.box, face_detected=True, mode="model",
                                frame_width=W, frame_height=H, ts=ts)

    def _emit(self, result: EstimationResult) -> None:
        for cb in list(self._subscribers):
            try:
                cb(result)
            except Exception:
                logger.exception("[estimator] subscriber failed")
