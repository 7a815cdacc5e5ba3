import numpy as np
import pytest

from emoji_fusion.emotions import Emotion, emotion_to_color, emotion_to_emoji
from emoji_fusion.models import FaceBox, OverlayTransform, Particle
from emoji_fusion.visual import draw_overlays, draw_history


def _overlay(emotion, **kw):
    params = dict(x=60.0, y=50.0, scale=1.0, rotation=5.0, opacity=1.0, phase="steady")
    params.update(kw)
    return OverlayTransform(
        emotion=emotion,
        glyph=emotion_to_emoji(emotion),
        color=emotion_to_color(emotion),
        **params,
    )


def test_draw_overlays_without_overlay():
    frame = np.zeros((40, 40, 3), dtype=np.uint8)
    out1 = draw_overlays(frame, None, flag="NO_FACE")
    assert out1.shape == frame.shape
    assert out1.any()
    out2 = draw_overlays(frame, None)
    assert not out2.any()
    # input is never modified
    assert not frame.any()


@pytest.mark.parametrize("emotion", list(Emotion))
def test_draw_overlays_every_emotion(emotion):
    frame = np.zeros((120, 160, 3), dtype=np.uint8)
    ov = _overlay(emotion, particles=[Particle(x=-20, y=-30, size=6, speed=30, opacity=0.5)])
    out = draw_overlays(frame, ov)
    assert out.shape == frame.shape and out.dtype == frame.dtype
    # face disc painted at the overlay centre
    assert out[50, 60].any()
    assert not frame.any()


def test_opacity_blends_overlay():
    frame = np.zeros((120, 160, 3), dtype=np.uint8)
    solid = draw_overlays(frame, _overlay(Emotion.HAPPY, opacity=1.0))
    faint = draw_overlays(frame, _overlay(Emotion.HAPPY, opacity=0.3))
    assert int(faint[50, 60].sum()) < int(solid[50, 60].sum())


def test_face_box_is_clamped_to_frame():
    frame = np.zeros((40, 40, 3), dtype=np.uint8)
    out = draw_overlays(frame, None, face_box=FaceBox(x=30, y=30, width=100, height=100))
    assert out.shape == frame.shape
    assert out[30, 30].any()


def test_overlay_off_screen_is_safe():
    frame = np.zeros((40, 40, 3), dtype=np.uint8)
    out = draw_overlays(frame, _overlay(Emotion.FEAR, x=-500.0, y=900.0, scale=0.0))
    assert out.shape == frame.shape


def test_draw_history_in_place():
    frame = np.zeros((60, 320, 3), dtype=np.uint8)
    res = draw_history(frame, [Emotion.SAD, Emotion.HAPPY, Emotion.NEUTRAL])
    assert res is frame
    assert frame[40:, :].any()
    empty = np.zeros((60, 320, 3), dtype=np.uint8)
    draw_history(empty, [])
    assert not empty.any()
