"""
Emoji overlay animation.

State machine per overlay:
  hidden   -> entering   emotion arrives
  entering -> settling   after ENTER_MS (scale overshoots above 1)
  settling -> steady     after SETTLE_MS (scale eases to exactly 1, opacity to 1)
  steady: emotion-specific floating motion driven by a time accumulator
  any -> entering on emotion change, any -> hidden when emotion becomes absent

A clock thread per visible emotion calls advance(); its stop token lives on the
AnimationState and is set on every transition and on dispose().
"""
from __future__ import annotations

import math
import time
import random
import logging
import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from emoji_fusion.config import Settings
from emoji_fusion.emotions import Emotion, coerce_emotion, emotion_to_color, emotion_to_emoji
from emoji_fusion.models import FaceBox, OverlayTransform, Particle

logger = logging.getLogger(__name__)

HIDDEN = "hidden"
ENTERING = "entering"
SETTLING = "settling"
STEADY = "steady"


@dataclass(frozen=True)
class MotionProfile:
    freq_hz: float      # oscillation frequency
    offset_px: float    # position amplitude
    scale_amp: float    # scale amplitude around 1
    rotation_deg: float # rotation amplitude around the entry rotation


MOTION: Dict[Emotion, MotionProfile] = {
    Emotion.HAPPY: MotionProfile(1.2, 6.0, 0.05, 6.0),
    Emotion.SAD: MotionProfile(0.5, 3.0, 0.02, 3.0),
    Emotion.ANGRY: MotionProfile(2.6, 8.0, 0.06, 8.0),
    Emotion.SURPRISED: MotionProfile(2.2, 10.0, 0.08, 6.0),
    Emotion.NEUTRAL: MotionProfile(0.6, 3.0, 0.02, 2.0),
    Emotion.FEAR: MotionProfile(3.0, 7.0, 0.05, 5.0),
    Emotion.DISGUST: MotionProfile(0.9, 4.0, 0.03, 4.0),
}


@dataclass
class AnimationState:
    emotion: Optional[Emotion] = None
    phase: str = HIDDEN
    phase_ms: float = 0.0
    scale: float = 1.0
    rotation: float = 0.0
    base_rotation: float = 0.0
    opacity: float = 0.0
    entry_opacity: float = 0.0
    offset: Tuple[float, float] = (0.0, 0.0)
    target: Tuple[float, float] = (0.0, 0.0)
    intensity: float = 1.0
    float_ms: float = 0.0
    particles: List[Particle] = field(default_factory=list)
    # cancellation token of the clock driving this state
    clock_stop: Optional[threading.Event] = None


class OverlayAnimator:
    """Turns (emotion, face box) updates into a continuously updated overlay transform."""
    def __init__(self,
                 settings: Settings,
                 frame_size: Tuple[int, int] = (640, 480),
                 rng: Optional[random.Random] = None,
                 run_clock: bool = True):
        self.s = settings
        self.frame_size = frame_size
        self.run_clock = run_clock
        self._rng = rng or random.Random()
        self._lock = threading.RLock()
        self._clock_thread: Optional[threading.Thread] = None
        self.state = AnimationState()

    # ---- accessors ----
    @property
    def phase(self) -> str:
        return self.state.phase

    @property
    def target(self) -> Tuple[float, float]:
        return self.state.target

    @property
    def emotion(self) -> Optional[Emotion]:
        return self.state.emotion

    # ---- inputs ----
    def update(self,
               emotion,
               face_box: Optional[FaceBox] = None,
               frame_size: Optional[Tuple[int, int]] = None) -> None:
        """Feed the latest estimation. Only an emotion change restarts the entrance."""
        emotion = coerce_emotion(emotion)
        with self._lock:
            if frame_size and frame_size[0] > 0 and frame_size[1] > 0:
                self.frame_size = frame_size
            if emotion is None:
                if self.state.phase != HIDDEN:
                    logger.debug("[animator] emotion cleared -> hidden")
                self._cancel_clock()
                self.state = AnimationState()
                return

            if emotion != self.state.emotion or self.state.phase == HIDDEN:
                self._enter(emotion, face_box)
            elif face_box is not None:
                self.state.target = face_box.eye_level()

    def _enter(self, emotion: Emotion, face_box: Optional[FaceBox]) -> None:
        self._cancel_clock()
        rng = self._rng
        rotation = rng.uniform(-self.s.ENTRY_ROTATION, self.s.ENTRY_ROTATION)
        if face_box is not None:
            target = face_box.eye_level()
        else:
            w, h = self.frame_size
            j = self.s.CENTER_JITTER
            target = (w / 2.0 + rng.uniform(-j, j), h / 2.0 + rng.uniform(-j, j))

        self.state = AnimationState(
            emotion=emotion,
            phase=ENTERING,
            scale=self.s.ENTRY_SCALE,
            rotation=rotation,
            base_rotation=rotation,
            opacity=self.s.ENTRY_OPACITY,
            entry_opacity=self.s.ENTRY_OPACITY,
            target=target,
            intensity=rng.uniform(self.s.INTENSITY_MIN, self.s.INTENSITY_MAX),
            particles=self._burst(),
        )
        logger.debug(f"[animator] enter {emotion.value} target=({target[0]:.1f},{target[1]:.1f})")
        if self.run_clock:
            self._start_clock()

    def _burst(self) -> List[Particle]:
        rng = self._rng
        n = min(self.s.PARTICLE_COUNT, self.s.MAX_PARTICLES)
        return [
            Particle(
                x=rng.uniform(-60.0, 60.0),
                y=rng.uniform(-60.0, 60.0),
                size=rng.uniform(4.0, 12.0),
                speed=rng.uniform(20.0, 60.0),   # px per second, upwards
            )
            for _ in range(n)
        ]

    # ---- time ----
    def advance(self, dt_ms: float) -> None:
        """Move the animation forward by dt_ms milliseconds."""
        if dt_ms <= 0:
            return
        with self._lock:
            st = self.state
            if st.phase == HIDDEN:
                return
            self._age_particles(dt_ms)

            if st.phase == ENTERING:
                st.phase_ms += dt_ms
                if st.phase_ms >= self.s.ENTER_MS:
                    st.phase = SETTLING
                    st.phase_ms = 0.0
                    st.scale = self.s.OVERSHOOT_SCALE
            elif st.phase == SETTLING:
                st.phase_ms += dt_ms
                t = min(1.0, st.phase_ms / max(1e-6, self.s.SETTLE_MS))
                st.scale = self.s.OVERSHOOT_SCALE + (1.0 - self.s.OVERSHOOT_SCALE) * t
                st.opacity = st.entry_opacity + (1.0 - st.entry_opacity) * t
                if t >= 1.0:
                    st.phase = STEADY
                    st.phase_ms = 0.0
                    st.scale = 1.0
                    st.opacity = 1.0
            else:
                st.float_ms += dt_ms
                self._float(st)

    def _float(self, st: AnimationState) -> None:
        prof = MOTION[st.emotion]
        k = st.intensity
        w = 2.0 * math.pi * prof.freq_hz * (st.float_ms / 1000.0)
        st.offset = (prof.offset_px * k * math.sin(w), prof.offset_px * k * 0.5 * math.sin(2.0 * w))
        st.scale = 1.0 + prof.scale_amp * k * math.sin(w)
        st.rotation = st.base_rotation + prof.rotation_deg * k * math.sin(w + math.pi / 2.0)

    def _age_particles(self, dt_ms: float) -> None:
        life = self.s.PARTICLE_LIFETIME_MS
        alive: List[Particle] = []
        for p in self.state.particles:
            age = p.age_ms + dt_ms
            if age >= life:
                continue
            alive.append(Particle(
                x=p.x,
                y=p.y - p.speed * dt_ms / 1000.0,
                size=p.size,
                speed=p.speed,
                opacity=max(0.0, 1.0 - age / life),
                age_ms=age,
            ))
        self.state.particles = alive

    # ---- clock ----
    def _start_clock(self) -> None:
        stop = threading.Event()
        self.state.clock_stop = stop
        self._clock_thread = threading.Thread(
            target=self._clock_loop, args=(stop,), daemon=True, name="overlay-clock"
        )
        self._clock_thread.start()

    def _cancel_clock(self) -> Optional[threading.Thread]:
        """Set the current clock's stop token; returns its thread for an optional join."""
        stop = self.state.clock_stop
        if stop is not None:
            stop.set()
        self.state.clock_stop = None
        t, self._clock_thread = self._clock_thread, None
        return t

    def _clock_loop(self, stop: threading.Event) -> None:
        frame_s = 1.0 / max(1.0, self.s.ANIMATION_FPS)
        last = time.monotonic()
        while not stop.wait(frame_s):
            now = time.monotonic()
            with self._lock:
                # a stale clock must not advance a newer state
                if stop.is_set() or self.state.clock_stop is not stop:
                    return
                self.advance((now - last) * 1000.0)
            last = now

    @property
    def clock_running(self) -> bool:
        t = self._clock_thread
        return t is not None and t.is_alive()

    # ---- output ----
    def transform(self) -> Optional[OverlayTransform]:
        with self._lock:
            st = self.state
            if st.phase == HIDDEN or st.emotion is None:
                return None
            return OverlayTransform(
                x=st.target[0] + st.offset[0],
                y=st.target[1] + st.offset[1],
                scale=st.scale,
                rotation=st.rotation,
                opacity=st.opacity,
                emotion=st.emotion,
                glyph=emotion_to_emoji(st.emotion),
                color=emotion_to_color(st.emotion),
                phase=st.phase,
                particles=list(st.particles),
            )

    def dispose(self) -> None:
        with self._lock:
            t = self._cancel_clock()
            self.state = AnimationState()
        # joined outside the lock: the clock may be waiting on it
        if t is not None and t is not threading.current_thread():
            t.join(timeout=1.0)
