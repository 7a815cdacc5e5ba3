"""
Pydantic data models for pipeline and API IO.
"""
from __future__ import annotations
from pydantic import BaseModel, Field
from typing import Dict, List, Optional, Literal, Tuple

from emoji_fusion.emotions import Emotion

class FaceBox(BaseModel):
    x: float
    y: float
    width: float
    height: float

    @property
    def area(self) -> float:
        return self.width * self.height

    def eye_level(self) -> Tuple[float, float]:
        """Overlay anchor: horizontal centre, a third of the way down the box."""
        return self.x + self.width / 2.0, self.y + self.height / 3.0

class DetectedFace(BaseModel):
    box: FaceBox
    confidence: float = 1.0
    keypoints: Dict[str, Tuple[float, float]] = Field(default_factory=dict)

class EstimationResult(BaseModel):
    emotion: Emotion
    face_box: Optional[FaceBox] = None
    face_detected: bool = False
    mode: Literal["model", "mock"] = "mock"
    frame_width: int = 0
    frame_height: int = 0
    ts: float = 0.0

class Notice(BaseModel):
    level: Literal["info", "success", "warning", "error"] = "info"
    message: str
    ts: float = 0.0



# overlay models


class Particle(BaseModel):
    x: float
    y: float
    size: float
    speed: float
    opacity: float = 1.0
    age_ms: float = 0.0

class OverlayTransform(BaseModel):
    x: float
    y: float
    scale: float
    rotation: float
    opacity: float
    emotion: Emotion
    glyph: str
    color: str
    phase: Literal["entering", "settling", "steady"]
    particles: List[Particle] = Field(default_factory=list)

class LiveStatus(BaseModel):
    running: bool
    started_at: float | None = None
    facing: Literal["user", "environment"] = "user"
    has_multiple_cameras: bool = False
    mode: Literal["model", "mock"] = "mock"
    face_detected: bool = False
    emotion: Optional[Emotion] = None
    emoji: Optional[str] = None
    description: Optional[str] = None
    history: List[Emotion] = Field(default_factory=list)
    overlay: OverlayTransform | None = None
    notices: List[Notice] = Field(default_factory=list)
