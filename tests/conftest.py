import numpy as np
import pytest

import emoji_fusion.camera as camera
from emoji_fusion.config import Settings


class DummyCap:
    """Stand-in for cv2.VideoCapture; behaviour comes from the owning FakeCameras."""
    def __init__(self, idx, owner):
        self.idx = idx
        self.owner = owner
        self.released = False
        self.reads = 0
        self.props = {}
    def isOpened(self):
        return self.owner.opened and not self.released
    def read(self):
        self.reads += 1
        if not self.owner.ok:
            return False, None
        return True, self.owner.frame.copy()
    def set(self, prop, value):
        self.props[prop] = value
        return True
    def get(self, prop):
        return self.props.get(prop, 0.0)
    def release(self):
        self.released = True


class FakeCameras:
    def __init__(self):
        self.caps = []
        self.opened = True
        self.ok = True
        self.frame = np.zeros((48, 64, 3), dtype=np.uint8)
    def __call__(self, idx):
        cap = DummyCap(idx, self)
        self.caps.append(cap)
        return cap
    def live(self):
        return [c for c in self.caps if not c.released]


@pytest.fixture
def fake_camera(monkeypatch):
    cams = FakeCameras()
    monkeypatch.setattr(camera.cv2, "VideoCapture", cams)
    return cams

@pytest.fixture
def settings():
    # long capture interval: tests drive capture() by hand unless they shorten it
    return Settings(
        ESTIMATOR_MODE="mock",
        CAPTURE_INTERVAL=10.0,
        SWITCH_DELAY=0.0,
        CAMERA_INDEX=0,
        CAMERA_ENV_INDEX=1,
        MAX_CAMERA_PROBE=2,
    )

@pytest.fixture
def frame():
    return np.zeros((480, 640, 3), dtype=np.uint8)
