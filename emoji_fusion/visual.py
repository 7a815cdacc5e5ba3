"""Visualization helpers for the emoji overlay.

- draw_overlays: draw the animated emoji (plus particles, face box, flag banner) on a frame
- draw_history: draw the recent-emotions strip

OpenCV's Hershey fonts cannot render emoji glyphs, so the emoji is drawn as a vector
face from circles, ellipses and lines, one expression per emotion.
"""
from __future__ import annotations
import math
import cv2
import numpy as np
from typing import Optional, Sequence, Tuple

from emoji_fusion.emotions import Emotion, emotion_to_bgr
from emoji_fusion.models import FaceBox, OverlayTransform

BASE_RADIUS = 42
DARK = (40, 40, 40)
FLAG_COLOR = (0, 0, 255)


def _rotate(dx: float, dy: float, angle_deg: float) -> Tuple[float, float]:
    a = math.radians(angle_deg)
    c, s = math.cos(a), math.sin(a)
    return dx * c - dy * s, dx * s + dy * c


def _draw_face(canvas: np.ndarray, cx: float, cy: float, r: float, angle: float,
               emotion: Emotion, color: Tuple[int, int, int]) -> None:
    def pt(ux: float, uy: float) -> Tuple[int, int]:
        # (ux, uy) in face-radius units, rotated about the centre
        rx, ry = _rotate(ux * r, uy * r, angle)
        return int(round(cx + rx)), int(round(cy + ry))

    def axes(ax: float, ay: float) -> Tuple[int, int]:
        return max(1, int(ax * r)), max(1, int(ay * r))

    thick = max(1, int(r * 0.06))
    cv2.circle(canvas, pt(0, 0), int(r), color, -1, cv2.LINE_AA)
    cv2.circle(canvas, pt(0, 0), int(r), DARK, thick, cv2.LINE_AA)

    eye_r = max(2, int(r * 0.11))
    for ex in (-0.35, 0.35):
        cv2.circle(canvas, pt(ex, -0.2), eye_r, DARK, -1, cv2.LINE_AA)

    if emotion == Emotion.HAPPY:
        cv2.ellipse(canvas, pt(0, 0.15), axes(0.45, 0.32), angle, 10, 170, DARK, thick, cv2.LINE_AA)
    elif emotion == Emotion.SAD:
        cv2.ellipse(canvas, pt(0, 0.6), axes(0.38, 0.22), angle, 190, 350, DARK, thick, cv2.LINE_AA)
        cv2.circle(canvas, pt(0.4, 0.05), max(2, int(r * 0.08)), (255, 200, 120), -1, cv2.LINE_AA)
    elif emotion == Emotion.SURPRISED:
        cv2.circle(canvas, pt(0, 0.42), max(3, int(r * 0.18)), DARK, -1, cv2.LINE_AA)
    elif emotion == Emotion.FEAR:
        cv2.ellipse(canvas, pt(0, 0.45), axes(0.25, 0.14), angle, 0, 360, DARK, thick, cv2.LINE_AA)
        cv2.line(canvas, pt(-0.55, -0.45), pt(-0.2, -0.55), DARK, thick, cv2.LINE_AA)
        cv2.line(canvas, pt(0.55, -0.45), pt(0.2, -0.55), DARK, thick, cv2.LINE_AA)
    elif emotion == Emotion.ANGRY:
        cv2.line(canvas, pt(-0.35, 0.45), pt(0.35, 0.45), DARK, thick, cv2.LINE_AA)
        cv2.line(canvas, pt(-0.55, -0.5), pt(-0.15, -0.32), DARK, thick, cv2.LINE_AA)
        cv2.line(canvas, pt(0.55, -0.5), pt(0.15, -0.32), DARK, thick, cv2.LINE_AA)
    elif emotion == Emotion.DISGUST:
        zig = np.array([pt(-0.4, 0.45), pt(-0.2, 0.35), pt(0.0, 0.5), pt(0.2, 0.35), pt(0.4, 0.45)], dtype=np.int32)
        cv2.polylines(canvas, [zig], False, DARK, thick, cv2.LINE_AA)
    else:
        cv2.line(canvas, pt(-0.3, 0.42), pt(0.3, 0.42), DARK, thick, cv2.LINE_AA)


def draw_overlays(frame: np.ndarray,
                  overlay: Optional[OverlayTransform] = None,
                  face_box: Optional[FaceBox] = None,
                  flag: Optional[str] = None,
                  box_color: Tuple[int, int, int] = (0, 255, 0)) -> np.ndarray:
    """Draw the emoji overlay on a copy of the frame.

    Args:
        frame: BGR image
        overlay: current animator transform, or None when hidden
        face_box: optional detected face rectangle
        flag: optional banner text (e.g., "NO_FACE", "MOCK")
        box_color: BGR color for the face rectangle

    Returns:
        Annotated copy of the frame
    """
    out = frame.copy()
    h, w = out.shape[:2]

    if flag:
        cv2.putText(out, flag, (10, 30), cv2.FONT_HERSHEY_SIMPLEX, 1.0, FLAG_COLOR, 2, cv2.LINE_AA)

    if face_box is not None:
        x, y = int(face_box.x), int(face_box.y)
        fw, fh = int(face_box.width), int(face_box.height)
        # clamp to image bounds
        x = max(0, min(x, w-1)); y = max(0, min(y, h-1))
        fw = max(0, min(fw, w-x)); fh = max(0, min(fh, h-y))
        cv2.rectangle(out, (x, y), (x+fw, y+fh), box_color, 2)

    if overlay is None:
        return out

    color = emotion_to_bgr(overlay.emotion)
    layer = out.copy()
    for p in overlay.particles:
        pr = max(1, int(p.size * p.opacity))
        cv2.circle(layer, (int(overlay.x + p.x), int(overlay.y + p.y)), pr, color, -1, cv2.LINE_AA)

    r = BASE_RADIUS * max(0.05, overlay.scale)
    _draw_face(layer, overlay.x, overlay.y, r, overlay.rotation, overlay.emotion, color)

    alpha = float(min(1.0, max(0.0, overlay.opacity)))
    out = cv2.addWeighted(layer, alpha, out, 1.0 - alpha, 0)

    label = overlay.emotion.value
    org = (int(overlay.x - r), int(min(h - 5, overlay.y + r + 22)))
    cv2.putText(out, label, org, cv2.FONT_HERSHEY_SIMPLEX, 0.6, color, 2, cv2.LINE_AA)
    return out


def draw_history(frame: np.ndarray, history: Sequence[Emotion]) -> np.ndarray:
    """Write the recent emotions (most recent first) along the bottom edge, in place."""
    h = frame.shape[0]
    x = 10
    for e in history:
        text = e.value
        cv2.putText(frame, text, (x, h - 12), cv2.FONT_HERSHEY_SIMPLEX, 0.5, emotion_to_bgr(e), 1, cv2.LINE_AA)
        (tw, _), _ = cv2.getTextSize(text, cv2.FONT_HERSHEY_SIMPLEX, 0.5, 1)
        x += tw + 12
    return frame
