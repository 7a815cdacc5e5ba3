"""
Configuration for the live emotion overlay.
"""
from pydantic import BaseModel
import os

class Settings(BaseModel):
    """
    Runtime settings with environment-variable overrides.
    """
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "DEBUG")

    # Frame source
    CAMERA_INDEX: int = int(os.getenv("CAMERA_INDEX", "0"))
    CAMERA_ENV_INDEX: int = int(os.getenv("CAMERA_ENV_INDEX", "1"))
    FACING: str = (os.getenv("FACING", "user") or "user")
    FRAME_WIDTH: int = int(os.getenv("FRAME_WIDTH", "640"))
    FRAME_HEIGHT: int = int(os.getenv("FRAME_HEIGHT", "480"))
    CAPTURE_INTERVAL: float = float(os.getenv("CAPTURE_INTERVAL", "0.2"))
    SWITCH_DELAY: float = float(os.getenv("SWITCH_DELAY", "0.3"))
    MAX_CAMERA_PROBE: int = int(os.getenv("MAX_CAMERA_PROBE", "2"))

    # Estimator
    ESTIMATOR_MODE: str = (os.getenv("ESTIMATOR_MODE", "auto") or "auto")
    DETECTOR_BACKEND: str = os.getenv("DETECTOR_BACKEND", "opencv")
    MIN_FACE_BOX: int = int(os.getenv("MIN_FACE_BOX", "40"))
    MIN_DET_CONF: float = float(os.getenv("MIN_DET_CONF", "0.5"))
    MAX_FACES: int = int(os.getenv("MAX_FACES", "1"))
    MAX_DETECTION_FAILURES: int = int(os.getenv("MAX_DETECTION_FAILURES", "3"))
    HISTORY_SIZE: int = int(os.getenv("HISTORY_SIZE", "5"))

    # Geometry heuristic (illustrative defaults, tuned by eye)
    HAPPY_ASPECT: float = float(os.getenv("HAPPY_ASPECT", "0.9"))
    SURPRISED_ASPECT: float = float(os.getenv("SURPRISED_ASPECT", "0.7"))
    FEAR_AREA: float = float(os.getenv("FEAR_AREA", "0.05"))
    ANGRY_AREA: float = float(os.getenv("ANGRY_AREA", "0.15"))
    TILT_DEGREES: float = float(os.getenv("TILT_DEGREES", "12"))

    # Overlay animation
    ANIMATION_FPS: float = float(os.getenv("ANIMATION_FPS", "60"))
    ENTER_MS: float = float(os.getenv("ENTER_MS", "100"))
    SETTLE_MS: float = float(os.getenv("SETTLE_MS", "150"))
    ENTRY_SCALE: float = float(os.getenv("ENTRY_SCALE", "0.5"))
    ENTRY_OPACITY: float = float(os.getenv("ENTRY_OPACITY", "0.6"))
    ENTRY_ROTATION: float = float(os.getenv("ENTRY_ROTATION", "10"))
    OVERSHOOT_SCALE: float = float(os.getenv("OVERSHOOT_SCALE", "1.2"))
    CENTER_JITTER: float = float(os.getenv("CENTER_JITTER", "20"))
    INTENSITY_MIN: float = float(os.getenv("INTENSITY_MIN", "0.75"))
    INTENSITY_MAX: float = float(os.getenv("INTENSITY_MAX", "1.25"))
    PARTICLE_COUNT: int = int(os.getenv("PARTICLE_COUNT", "8"))
    MAX_PARTICLES: int = int(os.getenv("MAX_PARTICLES", "24"))
    PARTICLE_LIFETIME_MS: float = float(os.getenv("PARTICLE_LIFETIME_MS", "2000"))

    def __init__(self, **data):
        super().__init__(**data)
        # Normalize enum-like values: strip comments/extra words, lower-case, validate
        facing = (self.FACING or "user").strip().split()[0].lower()
        if facing not in ("user", "environment"):
            facing = "user"
        object.__setattr__(self, "FACING", facing)

        mode = (self.ESTIMATOR_MODE or "auto").strip().split()[0].lower()
        if mode not in ("auto", "model", "mock"):
            mode = "auto"
        object.__setattr__(self, "ESTIMATOR_MODE", mode)
