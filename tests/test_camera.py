import os
import threading
import numpy as np
import pytest

import emoji_fusion.camera as camera
from emoji_fusion.camera import FrameSource, list_video_devices
from emoji_fusion.config import Settings
from emoji_fusion.errors import CameraNotFoundError, CameraPermissionError, DeviceAccessError


def test_start_capture_stop_leaves_no_tracks(fake_camera, settings):
    src = FrameSource(settings)
    frames = []
    src.subscribe(frames.append)

    src.start()
    assert src.active and src.active_tracks == 1
    for _ in range(3):
        assert src.capture() is not None
    assert len(frames) == 3

    src.stop()
    assert src.active_tracks == 0
    assert fake_camera.live() == []
    # stop is idempotent
    src.stop()
    assert src.active_tracks == 0


def test_start_detects_multiple_cameras(fake_camera, settings):
    src = FrameSource(settings)
    src.start()
    assert src.has_multiple_cameras is True
    # probe captures are released straight away
    assert [c.idx for c in fake_camera.live()] == [0]
    src.stop()


def test_start_twice_is_noop(fake_camera, settings):
    src = FrameSource(settings)
    src.start()
    n = len(fake_camera.caps)
    src.start()
    assert len(fake_camera.caps) == n
    src.stop()


def test_missing_camera_raises_not_found(fake_camera):
    fake_camera.opened = False
    src = FrameSource(Settings(CAMERA_INDEX=97, MAX_CAMERA_PROBE=0))
    with pytest.raises(CameraNotFoundError) as exc:
        src.start()
    assert isinstance(exc.value, DeviceAccessError)
    assert exc.value.index == 97
    assert not src.active


def test_unreadable_device_raises_permission_error(fake_camera, monkeypatch):
    fake_camera.opened = False
    node = "/dev/video97"
    real_exists, real_access = os.path.exists, os.access
    monkeypatch.setattr(camera.os.path, "exists", lambda p: p == node or real_exists(p))
    monkeypatch.setattr(camera.os, "access", lambda p, m: False if p == node else real_access(p, m))

    src = FrameSource(Settings(CAMERA_INDEX=97, MAX_CAMERA_PROBE=0))
    with pytest.raises(CameraPermissionError) as exc:
        src.start()
    assert isinstance(exc.value, PermissionError)


def test_capture_is_noop_without_data(fake_camera, settings):
    src = FrameSource(settings)
    frames = []
    src.subscribe(frames.append)

    # inactive
    assert src.capture() is None

    src.start()
    fake_camera.ok = False
    assert src.capture() is None

    # zero-dimension frame is skipped silently
    fake_camera.ok = True
    fake_camera.frame = np.zeros((0, 0, 3), dtype=np.uint8)
    assert src.capture() is None
    assert frames == []
    src.stop()


def test_timer_emits_frames(fake_camera, settings):
    settings.CAPTURE_INTERVAL = 0.01
    src = FrameSource(settings)
    got = threading.Event()
    count = {"n": 0}
    def consumer(frame):
        count["n"] += 1
        if count["n"] >= 3:
            got.set()
    src.subscribe(consumer)
    src.start()
    try:
        assert got.wait(2.0)
    finally:
        src.stop()
    assert src.active_tracks == 0


def test_switch_source_restarts_on_other_device(fake_camera, settings):
    src = FrameSource(settings)
    src.start()
    first = src._cap

    facing = src.switch_source()
    assert facing == "environment" and src.facing == "environment"
    assert first.released
    assert src.active and src._cap.idx == settings.CAMERA_ENV_INDEX

    assert src.switch_source() == "user"
    assert src._cap.idx == settings.CAMERA_INDEX
    src.stop()
    assert fake_camera.live() == []


def test_switch_source_when_inactive_only_toggles(fake_camera, settings):
    src = FrameSource(settings)
    assert src.switch_source() == "environment"
    assert not src.active
    assert fake_camera.caps == []


def test_list_video_devices(fake_camera):
    assert list_video_devices(3, exclude=(1,)) == [0, 2]
    assert all(c.released for c in fake_camera.caps)
