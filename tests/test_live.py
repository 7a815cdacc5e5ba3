import random
import time
import pytest

import emoji_fusion.live as live
from emoji_fusion.animator import OverlayAnimator
from emoji_fusion.errors import CameraNotFoundError, DeviceAccessError
from emoji_fusion.estimator import EmotionEstimator
from emoji_fusion.live import LiveSession, run_live_overlay


def _session(settings, **kw):
    est = EmotionEstimator(settings, rng=random.Random(1))
    anim = OverlayAnimator(settings, rng=random.Random(1), run_clock=False)
    return LiveSession(settings, estimator=est, animator=anim, **kw)


def _wait_for(pred, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if pred():
            return True
        time.sleep(0.01)
    return pred()


def test_start_status_stop(fake_camera, settings):
    session = _session(settings)
    try:
        assert session.start() is True
        assert session.start() is False
        assert session.running

        # drive one tick by hand: capture -> submit -> estimate -> animate
        assert session.source.capture() is not None
        assert _wait_for(lambda: session.status().overlay is not None)

        st = session.status()
        assert st.running and st.started_at is not None
        assert st.mode == "mock"
        assert st.emoji and st.description
        assert st.history == [st.emotion]
        assert st.overlay is not None and st.overlay.phase == "entering"
        assert st.has_multiple_cameras is True
        messages = [n.message for n in st.notices]
        assert "Camera started successfully" in messages
        assert session.flag() == "MOCK"

        assert session.stop() is True
        assert session.stop() is False
        st = session.status()
        assert not st.running and st.overlay is None and st.emotion is None
        assert session.notices[-1].message == "Camera stopped"
        assert fake_camera.live() == []
    finally:
        session.close()


def test_late_estimate_does_not_reshow_overlay(fake_camera, settings, frame):
    session = _session(settings)
    try:
        session.start()
        session.stop()
        session.estimator.process_frame(frame)
        assert session.animator.transform() is None
    finally:
        session.close()


def test_timer_drives_pipeline(fake_camera, settings):
    settings.CAPTURE_INTERVAL = 0.02
    session = _session(settings)
    try:
        session.start()
        assert _wait_for(lambda: len(session.estimator.history) >= 2)
        assert session.animator.transform() is not None
    finally:
        session.close()
    assert fake_camera.live() == []


def test_start_failure_posts_error_notice(fake_camera, settings):
    fake_camera.opened = False
    settings.CAMERA_INDEX = 97
    session = _session(settings)
    with pytest.raises(CameraNotFoundError):
        session.start()
    st = session.status()
    assert not st.running
    errors = [n for n in st.notices if n.level == "error"]
    assert [n.message for n in errors] == ["Couldn't access camera. Please check permissions."]
    session.close()


def test_switch_source(fake_camera, settings):
    session = _session(settings)
    try:
        session.start()
        assert session.switch_source() == "environment"
        assert session.running
        assert session.status().facing == "environment"
        assert session.source._cap.idx == settings.CAMERA_ENV_INDEX
    finally:
        session.close()


def test_run_live_overlay_quits_on_q(fake_camera, settings, monkeypatch):
    shown = []
    keys = iter([ord("s"), -1, ord("q")])
    destroyed = {"n": 0}
    monkeypatch.setattr(live.cv2, "imshow", lambda name, img: shown.append(img.shape))
    monkeypatch.setattr(live.cv2, "waitKey", lambda ms: next(keys, ord("q")))
    monkeypatch.setattr(live.cv2, "destroyAllWindows", lambda: destroyed.__setitem__("n", destroyed["n"] + 1))

    run_live_overlay(settings, camera_index=0)

    assert len(shown) == 3
    assert all(s == (48, 64, 3) for s in shown)
    assert destroyed["n"] == 1
    assert fake_camera.live() == []
    # 's' switched to the back camera before quitting
    assert any(c.idx == settings.CAMERA_ENV_INDEX for c in fake_camera.caps)


def test_run_live_overlay_closes_on_device_error(fake_camera, settings, monkeypatch):
    fake_camera.opened = False
    destroyed = {"n": 0}
    monkeypatch.setattr(live.cv2, "destroyAllWindows", lambda: destroyed.__setitem__("n", 1))
    with pytest.raises(DeviceAccessError):
        run_live_overlay(settings)
    assert destroyed["n"] == 1
