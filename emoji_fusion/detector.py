"""
Face detection with DeepFace (lazy-loaded).

DeepFace is imported inside functions so tests can monkeypatch sys.modules['deepface'].
"""
from __future__ import annotations
import logging
from typing import Dict, List, Protocol, Tuple

import numpy as np

from emoji_fusion.config import Settings
from emoji_fusion.errors import ModelLoadError, DetectionError
from emoji_fusion.models import DetectedFace, FaceBox

logger = logging.getLogger(__name__)

KEYPOINT_NAMES = ("left_eye", "right_eye", "nose", "mouth_left", "mouth_right")

# DeepFace answers "no face" with the whole frame when enforce_detection=False
FULL_FRAME_FRAC = 0.95


class FaceDetector(Protocol):
    def detect(self, frame: np.ndarray) -> List[DetectedFace]: ...


def _keypoints(area: Dict) -> Dict[str, Tuple[float, float]]:
    out: Dict[str, Tuple[float, float]] = {}
    for name in KEYPOINT_NAMES:
        pt = area.get(name)
        if pt is None:
            continue
        try:
            out[name] = (float(pt[0]), float(pt[1]))
        except (TypeError, ValueError, IndexError):
            continue
    return out


class DeepFaceDetector:
    """Black-box face detector: bitmap in, zero or more boxes (+ keypoints) out."""
    def __init__(self, settings: Settings, deepface=None):
        self.s = settings
        if deepface is None:
            from deepface import DeepFace as deepface
        self._df = deepface

    def _valid(self, face: DetectedFace, frame_w: int, frame_h: int) -> bool:
        b = face.box
        if b.width < self.s.MIN_FACE_BOX or b.height < self.s.MIN_FACE_BOX:
            return False
        if face.confidence < self.s.MIN_DET_CONF:
            return False
        if frame_w and frame_h and b.area >= FULL_FRAME_FRAC * frame_w * frame_h:
            return False
        return True

    def detect(self, frame: np.ndarray) -> List[DetectedFace]:
        """
        Run DeepFace.extract_faces and convert facial areas to DetectedFace.

        Raises:
            DetectionError: the backend call failed.
        """
        try:
            dets = self._df.extract_faces(
                img_path=frame,
                detector_backend=self.s.DETECTOR_BACKEND,
                enforce_detection=False,
                align=False,
            )
        except Exception as e:
            raise DetectionError(f"extract_faces failed: {e}") from e

        H, W = frame.shape[:2]
        faces: List[DetectedFace] = []
        for d in dets or []:
            d = d or {}
            fa = d.get("facial_area") or {}
            conf = d.get("confidence")
            try:
                conf = float(conf) if conf is not None else 1.0
            except (TypeError, ValueError):
                conf = 1.0
            face = DetectedFace(
                box=FaceBox(
                    x=float(fa.get("x", 0)), y=float(fa.get("y", 0)),
                    width=float(fa.get("w", 0)), height=float(fa.get("h", 0)),
                ),
                confidence=conf,
                keypoints=_keypoints(fa),
            )
            if self._valid(face, W, H):
                faces.append(face)

        faces.sort(key=lambda f: f.box.area, reverse=True)
        logger.debug(f"[detector] raw={len(dets or [])} kept={len(faces)}")
        return faces[: max(1, self.s.MAX_FACES)]


def load_detector(settings: Settings) -> FaceDetector:
    """
    Import DeepFace, build the detector backend and warm it up on a blank frame.

    Raises:
        ModelLoadError: detector disabled, deepface missing, or warm-up failure.
    """
    if settings.ESTIMATOR_MODE == "mock":
        raise ModelLoadError("face detector disabled (ESTIMATOR_MODE=mock)")
    try:
        from deepface import DeepFace
    except Exception as e:
        raise ModelLoadError("DeepFace import failed. Ensure deepface/tensorflow stack is installed.") from e

    detector = DeepFaceDetector(settings, deepface=DeepFace)
    blank = np.zeros((settings.FRAME_HEIGHT, settings.FRAME_WIDTH, 3), dtype=np.uint8)
    try:
        detector.detect(blank)
    except DetectionError as e:
        raise ModelLoadError(f"detector warm-up failed for backend={settings.DETECTOR_BACKEND}") from e
    logger.debug(f"[detector] loaded backend={settings.DETECTOR_BACKEND}")
    return detector
